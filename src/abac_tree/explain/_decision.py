"""explain_policy() — explain how a policy tree reached its verdict."""

from __future__ import annotations

from abac_tree.explain._models import DecisionExplanation, NodeExplanation
from abac_tree.policy._combining import AlgorithmRegistry
from abac_tree.policy._engine import NodeLike, _evaluate_with_trace, _Trace
from abac_tree.retrieval._context import ContextNode

__all__ = ["explain_policy"]


async def explain_policy(
    node: NodeLike,
    context_node: ContextNode,
    *,
    algorithms: AlgorithmRegistry | None = None,
) -> DecisionExplanation:
    """Evaluate *node* and report the verdict of every visited node.

    Evaluation is identical to :func:`~abac_tree.policy.evaluate_policy`
    and raises the same errors. Children that a combining algorithm never
    evaluated are not part of the explanation.

    Args:
        node: A :class:`~abac_tree.policy.PolicyNode` or document mapping.
        context_node: The node binding the request context.
        algorithms: Optional algorithm registry. Defaults to the global one.

    Returns:
        A ``DecisionExplanation`` with the per-node tree.

    Example::

        explanation = await explain_policy(policy_set, root.create_child(information))
        print(explanation)
    """
    verdict, trace = await _evaluate_with_trace(node, context_node, algorithms)
    return DecisionExplanation(
        verdict=verdict,
        context_repr=repr(context_node.context),
        root=_to_explanation(trace),
    )


def _to_explanation(trace: _Trace) -> NodeExplanation:
    return NodeExplanation(
        kind=trace.kind,
        name=trace.name,
        applies=trace.applies,
        verdict=trace.verdict,
        algorithm=trace.algorithm,
        children=[_to_explanation(child) for child in trace.children],
    )
