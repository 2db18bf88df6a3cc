"""Policy evaluation engine — recursive PolicySet / Policy / Rule evaluation.

Each call is one pass over the tree: nodes are never mutated and nothing
is cached between calls. Children are fanned out through the node's
combining algorithm, which evaluates them concurrently.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, cast

from abac_tree._audit import log_node_decision, log_policy_decision
from abac_tree._types import NodeKind, Verdict
from abac_tree.config._config import EngineConfig, get_global_config
from abac_tree.exceptions import ConfigurationError
from abac_tree.policy._combining import AlgorithmRegistry, EvaluateFn, get_default_algorithms
from abac_tree.policy._nodes import PolicyNode, as_node
from abac_tree.policy._target import evaluate_target
from abac_tree.retrieval._context import ContextNode

__all__ = ["evaluate_policy", "evaluate_rule"]

NodeLike = PolicyNode | Mapping[str, Any] | None


@dataclass(slots=True)
class _Trace:
    """Mutable record of one visited node, filled in during evaluation."""

    kind: NodeKind
    name: str
    algorithm: str | None = None
    applies: bool | None = None
    verdict: Verdict | None = None
    children: list[_Trace] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _Evaluation:
    """Per-call state shared by every node of one evaluation."""

    algorithms: AlgorithmRegistry
    config: EngineConfig


_Step = Callable[[PolicyNode, ContextNode, _Evaluation, _Trace | None], Awaitable[Verdict]]


async def evaluate_policy(
    node: NodeLike,
    context_node: ContextNode,
    *,
    algorithms: AlgorithmRegistry | None = None,
) -> Verdict:
    """Evaluate a policy set, policy or rule against *context_node*.

    Args:
        node: A :class:`PolicyNode` or a parsed policy document mapping.
        context_node: The node binding the request context.
        algorithms: Optional algorithm registry. Defaults to the global one.

    Returns:
        ``PERMIT``, ``DENY``, or ``UNDETERMINED`` when the node's target
        does not apply.

    Raises:
        ConfigurationError: The document is malformed, an algorithm is
            unknown or *context_node* is not a :class:`ContextNode`.
        RetrievalError: An attribute lookup failed.

    Example::

        verdict = await evaluate_policy(policy_set, root.create_child(information))
    """
    policy_node, evaluation = _prepare(node, context_node, algorithms)
    verdict = await _evaluate_node(policy_node, context_node, evaluation, None)
    _log_decision(policy_node, context_node, evaluation, verdict)
    return verdict


async def evaluate_rule(
    rule: NodeLike,
    context_node: ContextNode,
) -> Verdict:
    """Evaluate a single rule: its effect if the target applies.

    Raises:
        ConfigurationError: *rule* is missing, is not a rule or has an
            invalid effect.
        RetrievalError: An attribute lookup failed.
    """
    rule_node, evaluation = _prepare(rule, context_node, None)
    verdict = await _evaluate_rule(rule_node, context_node, evaluation, None)
    _log_decision(rule_node, context_node, evaluation, verdict)
    return verdict


async def _evaluate_with_trace(
    node: NodeLike,
    context_node: ContextNode,
    algorithms: AlgorithmRegistry | None = None,
) -> tuple[Verdict, _Trace]:
    """Evaluate like :func:`evaluate_policy`, recording every visited node."""
    policy_node, evaluation = _prepare(node, context_node, algorithms)
    trace = _Trace(kind=policy_node.kind, name=policy_node.name)
    verdict = await _evaluate_node(policy_node, context_node, evaluation, trace)
    return verdict, trace


def _prepare(
    node: NodeLike,
    context_node: ContextNode,
    algorithms: AlgorithmRegistry | None,
) -> tuple[PolicyNode, _Evaluation]:
    policy_node = as_node(node)
    if not isinstance(context_node, ContextNode):
        raise ConfigurationError(
            f"A ContextNode is required to evaluate policies, got {type(context_node).__name__}"
        )
    evaluation = _Evaluation(
        algorithms=algorithms if algorithms is not None else get_default_algorithms(),
        config=get_global_config(),
    )
    return policy_node, evaluation


async def _evaluate_node(
    node: PolicyNode,
    context_node: ContextNode,
    evaluation: _Evaluation,
    trace: _Trace | None,
) -> Verdict:
    if node.kind is NodeKind.RULE:
        return await _evaluate_rule(node, context_node, evaluation, trace)

    # Unknown algorithms fail even when the target would not apply.
    algorithm = evaluation.algorithms.resolve(
        node.apply, default=evaluation.config.default_algorithm
    )
    if trace is not None:
        trace.algorithm = algorithm.name

    applies = await evaluate_target(node.target, context_node)
    if not applies:
        return _finish(node, evaluation, trace, applies=False, verdict=Verdict.UNDETERMINED)

    step: _Step = _evaluate_node if node.kind is NodeKind.POLICY_SET else _evaluate_rule
    evaluate = _child_evaluator(step, evaluation, trace)
    verdict = await algorithm.apply(node.children, context_node, evaluate)
    return _finish(node, evaluation, trace, applies=True, verdict=verdict)


async def _evaluate_rule(
    rule: PolicyNode,
    context_node: ContextNode,
    evaluation: _Evaluation,
    trace: _Trace | None,
) -> Verdict:
    if rule.kind is not NodeKind.RULE:
        raise ConfigurationError(f"Rule error: expected a rule, got a {rule.kind.value} node")
    applies = await evaluate_target(rule.target, context_node)
    if not applies:
        return _finish(rule, evaluation, trace, applies=False, verdict=Verdict.UNDETERMINED)
    return _finish(rule, evaluation, trace, applies=True, verdict=cast(Verdict, rule.effect))


def _child_evaluator(step: _Step, evaluation: _Evaluation, trace: _Trace | None) -> EvaluateFn:
    def evaluate(child: PolicyNode, context_node: ContextNode) -> Awaitable[Verdict]:
        child_node = as_node(child)
        child_trace = None
        if trace is not None:
            # Recorded at call time so children keep document order.
            child_trace = _Trace(kind=child_node.kind, name=child_node.name)
            trace.children.append(child_trace)
        return step(child_node, context_node, evaluation, child_trace)

    return evaluate


def _finish(
    node: PolicyNode,
    evaluation: _Evaluation,
    trace: _Trace | None,
    *,
    applies: bool,
    verdict: Verdict,
) -> Verdict:
    if trace is not None:
        trace.applies = applies
        trace.verdict = verdict
    if evaluation.config.log_policy_decisions:
        log_node_decision(name=node.name, kind=node.kind, applies=applies, verdict=verdict)
    return verdict


def _log_decision(
    node: PolicyNode,
    context_node: ContextNode,
    evaluation: _Evaluation,
    verdict: Verdict,
) -> None:
    if evaluation.config.log_policy_decisions:
        log_policy_decision(
            name=node.name,
            kind=node.kind,
            verdict=verdict,
            context=context_node.context,
        )
