"""Shared enums, protocols and type aliases for abac-tree."""

from __future__ import annotations

import enum
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Literal, Protocol, Union

__all__ = [
    "NOT_FOUND",
    "AdaptedRetriever",
    "AttributeReference",
    "Matcher",
    "NodeKind",
    "OnUnloaded",
    "Retriever",
    "RetrieverCallback",
    "RetrieverStyle",
    "Target",
    "Verdict",
]


class Verdict(enum.Enum):
    """Three-valued outcome of a policy evaluation.

    ``UNDETERMINED`` means the node did not apply to the request. It is
    never a denial.
    """

    DENY = "deny"
    PERMIT = "permit"
    UNDETERMINED = "undetermined"

    def __repr__(self) -> str:
        return f"Verdict.{self.name}"


class NodeKind(enum.Enum):
    """Which payload a policy node carries."""

    POLICY_SET = "policy_set"
    POLICY = "policy"
    RULE = "rule"


class _NotFound:
    """Sentinel returned by a registry that has no retriever for a source."""

    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

# Calling conventions a retrieval function may follow.
RetrieverStyle = Literal["sync", "callback", "coroutine"]

# Valid values for orm_retriever(on_unloaded=...).
OnUnloaded = Literal["absent", "raise"]

# "source:key"
AttributeReference = str

# A literal scalar, a sequence of literals, a compiled pattern or
# a {"field": "source:key"} reference.
Matcher = Union[Any, Sequence[Any], re.Pattern[str], Mapping[str, str]]

# One AND-group or an OR-list of AND-groups.
Target = Union[Mapping[AttributeReference, Matcher], Sequence[Mapping[AttributeReference, Matcher]]]


class Retriever(Protocol):
    """Structural type for attribute retrieval functions.

    A retriever receives the source name, the key and the context bound
    to the calling :class:`~abac_tree.retrieval.ContextNode`. It may
    return the value, return an awaitable, be a coroutine function, or
    accept a fourth ``callback(error, value)`` argument.

    Example::

        def credentials(source: str, key: str, context: dict) -> object:
            return context.get(key)
    """

    def __call__(self, source: str, key: str, context: Any, /) -> Any: ...


# Completion callback handed to callback-style retrievers.
RetrieverCallback = Callable[[BaseException | None, Any], None]

# Adapted form every registered retriever is normalised into.
AdaptedRetriever = Callable[[str, str, Any], Awaitable[Any]]
