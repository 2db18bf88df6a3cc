"""ContextNode — binds a request context to a retriever registry.

Nodes form a chain: a child created with :meth:`ContextNode.create_child`
has its own (initially empty) registry and falls back to its parent for
sources it does not know. The parent link is a weak reference, so a child
never keeps its parent alive; keep the root node referenced for as long
as its children are used.
"""

from __future__ import annotations

import weakref
from collections.abc import Callable, Sequence
from typing import Any

from abac_tree._audit import log_attribute_resolution
from abac_tree._types import NOT_FOUND
from abac_tree.config._config import get_global_config
from abac_tree.exceptions import ConfigurationError
from abac_tree.retrieval._registry import RetrieverRegistry

__all__ = ["ContextNode", "split_reference"]


def split_reference(reference: str, separator: str = ":") -> tuple[str, str]:
    """Split a ``source:key`` reference on the first separator.

    Raises:
        ConfigurationError: *reference* is not a string or has no source
            or key part.

    Example::

        split_reference("credentials:group")  # ("credentials", "group")
        split_reference("ldap:cn:admins")     # ("ldap", "cn:admins")
    """
    if not isinstance(reference, str):
        raise ConfigurationError(
            f"Attribute reference must be a string like 'source{separator}key', got {reference!r}"
        )
    source, found, key = reference.partition(separator)
    if not found or not source or not key:
        raise ConfigurationError(
            f"Invalid attribute reference {reference!r}: expected 'source{separator}key'"
        )
    return source, key


class ContextNode:
    """A scope that resolves ``source:key`` attribute references.

    Each node owns its registry and its bound context value. Lookups try
    the node's own registry first, then walk up the parent chain. The
    retriever always receives the context bound to the node the lookup
    started from, even when that context is ``None``.

    Example::

        root = ContextNode()
        root.register("credentials", lambda source, key, ctx: ctx.get(key))

        request = root.create_child({"group": ["writer"], "premium": True})
        await request.get("credentials:group")  # ["writer"]
        await request.get("unknown:thing")      # None
    """

    __slots__ = ("_registry", "_context", "_parent_ref", "__weakref__")

    def __init__(
        self,
        registry: RetrieverRegistry | None = None,
        context: Any = None,
        *,
        parent: ContextNode | None = None,
    ) -> None:
        self._registry = registry if registry is not None else RetrieverRegistry()
        self._context = context
        self._parent_ref: weakref.ReferenceType[ContextNode] | None = (
            weakref.ref(parent) if parent is not None else None
        )

    @property
    def registry(self) -> RetrieverRegistry:
        """The registry owned by this node."""
        return self._registry

    @property
    def context(self) -> Any:
        """The context value bound to this node."""
        return self._context

    @property
    def parent(self) -> ContextNode | None:
        """The parent node, or ``None`` for a root or a collected parent."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def register(
        self,
        sources: str | Sequence[str],
        fn: Callable[..., Any],
        *,
        override: bool = False,
    ) -> None:
        """Register a retriever on this node's own registry.

        See :meth:`RetrieverRegistry.register`.
        """
        self._registry.register(sources, fn, override=override)

    def create_child(self, context: Any = None) -> ContextNode:
        """Return a new node bound to *context* that falls back to this one."""
        return ContextNode(context=context, parent=self)

    async def get(self, reference: str, *extra: Any) -> Any:
        """Resolve a ``source:key`` reference.

        Returns:
            The retrieved value, or ``None`` when no node in the chain has
            a retriever for the source.

        Raises:
            ConfigurationError: A context argument was passed (the bound
                context is always used) or the reference is malformed.
            RetrievalError: The retriever failed.
        """
        if extra:
            raise ConfigurationError(
                "ContextNode.get() takes only a reference; the bound context is used "
                "for every lookup. Use create_child(context) to bind a different one."
            )
        config = get_global_config()
        source, key = split_reference(reference, config.reference_separator)
        value, depth = await self._lookup(source, key, self._context, 0)
        if config.log_attribute_resolution:
            log_attribute_resolution(reference=reference, value=value, depth=depth)
        return value

    async def _lookup(self, source: str, key: str, context: Any, depth: int) -> tuple[Any, int]:
        value = await self._registry.resolve(source, key, context)
        if value is not NOT_FOUND:
            return value, depth
        parent = self.parent
        if parent is None:
            return None, -1
        return await parent._lookup(source, key, context, depth + 1)

    def __repr__(self) -> str:
        return (
            f"ContextNode(sources={self._registry.sources()!r}, "
            f"has_parent={self.parent is not None})"
        )
