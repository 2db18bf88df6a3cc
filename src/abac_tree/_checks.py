"""Point checks — decide(), can() and authorize() for synchronous callers.

These run the engine with :func:`asyncio.run` and therefore cannot be
used from inside a running event loop; await
:func:`~abac_tree.policy.evaluate_policy` there instead.
"""

from __future__ import annotations

import asyncio

from abac_tree._types import Verdict
from abac_tree.exceptions import AccessDenied
from abac_tree.policy._combining import AlgorithmRegistry
from abac_tree.policy._engine import NodeLike, evaluate_policy
from abac_tree.policy._nodes import as_node
from abac_tree.retrieval._context import ContextNode

__all__ = ["authorize", "can", "decide"]


def decide(
    node: NodeLike,
    context_node: ContextNode,
    *,
    algorithms: AlgorithmRegistry | None = None,
) -> Verdict:
    """Evaluate *node* synchronously and return the verdict.

    Args:
        node: A :class:`~abac_tree.policy.PolicyNode` or document mapping.
        context_node: The node binding the request context.
        algorithms: Optional algorithm registry. Defaults to the global one.

    Example::

        verdict = decide(policy_set, root.create_child(information))
    """
    return asyncio.run(evaluate_policy(node, context_node, algorithms=algorithms))


def can(
    node: NodeLike,
    context_node: ContextNode,
    *,
    algorithms: AlgorithmRegistry | None = None,
) -> bool:
    """Return ``True`` only when *node* evaluates to ``PERMIT``.

    ``DENY`` and ``UNDETERMINED`` both give ``False``.

    Example::

        if can(articles_policy, root.create_child(information)):
            publish(article)
    """
    return decide(node, context_node, algorithms=algorithms) is Verdict.PERMIT


def authorize(
    node: NodeLike,
    context_node: ContextNode,
    *,
    algorithms: AlgorithmRegistry | None = None,
    message: str | None = None,
) -> None:
    """Assert that *node* permits the request.

    Raises:
        AccessDenied: The verdict is ``DENY`` or ``UNDETERMINED``.

    Example::

        authorize(articles_policy, root.create_child(information))  # raises if not permitted
    """
    policy_node = as_node(node)
    verdict = decide(policy_node, context_node, algorithms=algorithms)
    if verdict is not Verdict.PERMIT:
        raise AccessDenied(verdict=verdict, policy=policy_node.name, message=message)
