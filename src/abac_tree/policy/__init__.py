"""Policy engine — node model, target matching, combining and evaluation."""

from abac_tree.policy._combining import (
    DENY_OVERRIDES,
    PERMIT_OVERRIDES,
    AlgorithmRegistry,
    CombiningAlgorithm,
    FunctionAlgorithm,
    OverridesAlgorithm,
    get_default_algorithms,
)
from abac_tree.policy._engine import evaluate_policy, evaluate_rule
from abac_tree.policy._nodes import PolicyNode, as_node
from abac_tree.policy._target import evaluate_target, match_value

__all__ = [
    "DENY_OVERRIDES",
    "PERMIT_OVERRIDES",
    "AlgorithmRegistry",
    "CombiningAlgorithm",
    "FunctionAlgorithm",
    "OverridesAlgorithm",
    "PolicyNode",
    "as_node",
    "evaluate_policy",
    "evaluate_rule",
    "evaluate_target",
    "get_default_algorithms",
    "match_value",
]
