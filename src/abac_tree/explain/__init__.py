"""Explain mode — per-node breakdown of a policy decision."""

from abac_tree.explain._decision import explain_policy
from abac_tree.explain._models import DecisionExplanation, NodeExplanation

__all__ = ["DecisionExplanation", "NodeExplanation", "explain_policy"]
