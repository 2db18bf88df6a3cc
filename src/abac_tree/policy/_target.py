"""Target matching — decides whether a node applies to a request.

A target is one AND-group (``{"source:key": matcher, ...}``) or an
OR-list of AND-groups. Matchers are compared with the attribute value
resolved through a :class:`~abac_tree.retrieval.ContextNode`:

- literal scalar: equality, or membership when the value is a sequence
- literal sequence: every element must be in the value sequence
- compiled pattern: ``search`` on the value, or on any element of it;
  numbers are searched as text
- ``{"field": "source:key"}``: compare with another resolved attribute

An absent value never matches.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping, Sequence, Set
from typing import Any

from abac_tree._types import Matcher, Target
from abac_tree.config._config import get_global_config
from abac_tree.exceptions import ConfigurationError
from abac_tree.retrieval._context import ContextNode

__all__ = ["evaluate_target", "match_value", "normalize_target"]


def normalize_target(target: Target) -> list[Mapping[str, Matcher]]:
    """Return *target* as a list of AND-groups.

    Raises:
        ConfigurationError: The target is an empty sequence or is not made
            of mappings.
    """
    if isinstance(target, Mapping):
        return [target]
    if isinstance(target, (str, bytes)) or not isinstance(target, Sequence):
        raise ConfigurationError(
            f"Target error: invalid format {target!r}. Expected a mapping or a "
            f"non-empty list of mappings"
        )
    groups = list(target)
    if not groups:
        raise ConfigurationError("Target error: an OR-list target needs at least one AND-group")
    for group in groups:
        if not isinstance(group, Mapping):
            raise ConfigurationError(f"Target error: AND-group must be a mapping, got {group!r}")
    return groups


async def evaluate_target(target: Target | None, context_node: ContextNode) -> bool:
    """Check whether *target* applies in *context_node*.

    Groups are checked in order and the first fully matching group wins.

    Returns:
        ``True`` when the target is ``None`` or one AND-group matches.

    Raises:
        ConfigurationError: The target or one of its matchers is malformed.
        RetrievalError: An attribute lookup failed.

    Example::

        applies = await evaluate_target(
            [{"credentials:group": "writer"}, {"credentials:premium": True}],
            root.create_child(information),
        )
    """
    if target is None:
        return True
    groups = normalize_target(target)
    if not isinstance(context_node, ContextNode):
        raise ConfigurationError(
            f"A ContextNode is required to evaluate targets, got {type(context_node).__name__}"
        )
    concurrent = get_global_config().concurrent_attribute_resolution
    for group in groups:
        if await _group_matches(group, context_node, concurrent=concurrent):
            return True
    return False


async def _group_matches(
    group: Mapping[str, Matcher],
    context_node: ContextNode,
    *,
    concurrent: bool,
) -> bool:
    entries = [(reference, matcher, _field_reference(matcher)) for reference, matcher in group.items()]
    if concurrent:
        results = await asyncio.gather(
            *(_entry_matches(context_node, ref, matcher, field) for ref, matcher, field in entries)
        )
        return all(results)
    for ref, matcher, field in entries:
        if not await _entry_matches(context_node, ref, matcher, field):
            return False
    return True


async def _entry_matches(
    context_node: ContextNode,
    reference: str,
    matcher: Matcher,
    field: str | None,
) -> bool:
    if field is None:
        return match_value(matcher, await context_node.get(reference))
    value, expected = await asyncio.gather(context_node.get(reference), context_node.get(field))
    if expected is None:
        return False
    return _match_literal(expected, value)


def _field_reference(matcher: Matcher) -> str | None:
    if not isinstance(matcher, Mapping):
        return None
    if set(matcher) == {"field"} and isinstance(matcher["field"], str):
        return matcher["field"]
    raise ConfigurationError(
        f"Target error: unsupported matcher {matcher!r}. Mapping matchers must be "
        f"{{'field': 'source:key'}}"
    )


def match_value(matcher: Matcher, value: Any) -> bool:
    """Compare a literal or pattern *matcher* with a resolved *value*.

    Field references are resolved by :func:`evaluate_target` and are not
    accepted here.

    Example::

        match_value("writer", ["reader", "writer"])          # True
        match_value(["admin", "pub"], ["pub", "x", "admin"])  # True
        match_value(re.compile(r"^articles:"), "articles:w")  # True
    """
    if value is None:
        return False
    if isinstance(matcher, re.Pattern):
        if _is_sequence(value):
            return any(_search(matcher, item) for item in value)
        return _search(matcher, value)
    if isinstance(matcher, Mapping):
        raise ConfigurationError(f"Target error: unsupported matcher {matcher!r}")
    return _match_literal(matcher, value)


def _match_literal(matcher: Any, value: Any) -> bool:
    if value is None:
        return False
    if _is_sequence(matcher):
        # Subset containment; a scalar value never satisfies a sequence.
        if not _is_sequence(value):
            return False
        return all(_contains(value, item) for item in matcher)
    if _equals(matcher, value):
        return True
    return _is_sequence(value) and _contains(value, matcher)


def _search(pattern: re.Pattern[str], value: Any) -> bool:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return isinstance(value, str) and pattern.search(value) is not None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (Sequence, Set)) and not isinstance(value, (str, bytes, bytearray))


def _contains(values: Any, item: Any) -> bool:
    return any(_equals(item, candidate) for candidate in values)


def _equals(left: Any, right: Any) -> bool:
    # True == 1 in Python; attribute matching keeps booleans apart.
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return bool(left == right)
