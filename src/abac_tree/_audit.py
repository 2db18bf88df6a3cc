"""Audit logging for policy decisions and attribute lookups."""

from __future__ import annotations

import logging
from typing import Any

from abac_tree._types import NodeKind, Verdict

__all__ = ["log_attribute_resolution", "log_node_decision", "log_policy_decision"]

logger = logging.getLogger("abac_tree")


def log_policy_decision(
    *,
    name: str,
    kind: NodeKind,
    verdict: Verdict,
    context: Any,
) -> None:
    """Log the final decision for an evaluated root node.

    Logging levels:
    - INFO: Summary (node, kind, verdict)
    - DEBUG: The bound request context

    Example::

        log_policy_decision(
            name="articles",
            kind=NodeKind.POLICY_SET,
            verdict=Verdict.PERMIT,
            context=request_context,
        )
    """
    label = name or "<unnamed>"
    logger.info("Policy decision: %s %s -> %s", kind.value, label, verdict.name)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Context for %s %s: %r", kind.value, label, context)


def log_node_decision(
    *,
    name: str,
    kind: NodeKind,
    applies: bool,
    verdict: Verdict,
) -> None:
    """Log the verdict of one node inside a policy tree at DEBUG level."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "Node %s %s: target %s -> %s",
        kind.value,
        name or "<unnamed>",
        "applies" if applies else "does not apply",
        verdict.name,
    )


def log_attribute_resolution(*, reference: str, value: Any, depth: int) -> None:
    """Log an attribute lookup on the ``abac_tree.attributes`` sub-logger.

    Args:
        reference: The ``source:key`` reference that was resolved.
        value: The resolved value (``None`` when absent).
        depth: How many parent hops were needed (0 is the calling node,
            ``-1`` when no node in the chain knows the source).
    """
    attr_logger = logging.getLogger("abac_tree.attributes")
    if not attr_logger.isEnabledFor(logging.DEBUG):
        return
    if depth < 0:
        attr_logger.debug("Attribute %s: no retriever registered, resolved as absent", reference)
    else:
        attr_logger.debug("Attribute %s resolved at depth %d: %r", reference, depth, value)
