"""RetrieverRegistry — maps source names to attribute retrieval functions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from abac_tree._types import NOT_FOUND, AdaptedRetriever, RetrieverStyle
from abac_tree.exceptions import CollisionError, ConfigurationError, RetrievalError
from abac_tree.retrieval._adapt import adapt_retriever, detect_style

__all__ = ["RetrieverRegistration", "RetrieverRegistry"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetrieverRegistration:
    """A single registered retrieval function with its metadata.

    Attributes:
        source: The source name the function answers for.
        fn: The function as it was registered.
        invoke: ``fn`` adapted to the awaitable calling convention.
        style: The calling convention detected at registration.
        override: Whether the registration was made with ``override=True``.
            Only consulted when the source is registered again.
    """

    source: str
    fn: Callable[..., Any]
    invoke: AdaptedRetriever
    style: RetrieverStyle
    override: bool


class RetrieverRegistry:
    """Registry that maps source names to retrieval functions.

    Registration is expected during setup; after that the registry is
    read-only and safe to share across concurrent evaluations.

    Example::

        registry = RetrieverRegistry()
        registry.register("credentials", lambda source, key, ctx: ctx.get(key))
        value = await registry.resolve("credentials", "group", {"group": "writer"})
    """

    def __init__(self) -> None:
        self._retrievers: dict[str, RetrieverRegistration] = {}
        self._lock = threading.Lock()

    def register(
        self,
        sources: str | Sequence[str],
        fn: Callable[..., Any],
        *,
        override: bool = False,
    ) -> None:
        """Register *fn* for one or several source names.

        The batch is atomic: if any name is already registered and
        ``override`` is false, nothing is registered.

        Args:
            sources: A source name or a sequence of source names.
            fn: A synchronous, coroutine or callback-style retriever.
            override: Replace existing registrations instead of failing.

        Raises:
            CollisionError: A name is taken and ``override`` is false.
            ConfigurationError: *fn* is not callable or a name is invalid.

        Example::

            registry.register(["user", "session"], from_request)
            registry.register("user", from_database, override=True)
        """
        names = _normalize_sources(sources)
        if not callable(fn):
            raise ConfigurationError(f"Retriever for {names!r} must be callable, got {fn!r}")

        style = detect_style(fn)
        invoke = adapt_retriever(fn, style)
        with self._lock:
            if not override:
                for name in names:
                    if name in self._retrievers:
                        raise CollisionError(name=name, kind="source")
            for name in names:
                if name in self._retrievers:
                    logger.debug("Overriding retriever for source %r", name)
                self._retrievers[name] = RetrieverRegistration(
                    source=name,
                    fn=fn,
                    invoke=invoke,
                    style=style,
                    override=override,
                )

    def lookup(self, source: str) -> RetrieverRegistration | None:
        """Return the registration for *source*, or ``None``."""
        return self._retrievers.get(source)

    def has_source(self, source: str) -> bool:
        """Check whether a retriever is registered for *source*."""
        return source in self._retrievers

    def sources(self) -> list[str]:
        """Return the registered source names, in registration order."""
        return list(self._retrievers)

    def unregister(self, source: str) -> bool:
        """Remove the retriever for *source*.

        Returns:
            ``True`` if a registration was removed.
        """
        with self._lock:
            return self._retrievers.pop(source, None) is not None

    def clear(self) -> None:
        """Remove all registrations. Primarily useful in test teardown."""
        with self._lock:
            self._retrievers.clear()

    async def resolve(self, source: str, key: str, context: Any) -> Any:
        """Run the retriever registered for *source*.

        Returns:
            The retrieved value, or ``NOT_FOUND`` when no retriever is
            registered for *source*. ``NOT_FOUND`` is not an error: it lets
            a :class:`~abac_tree.retrieval.ContextNode` fall back to its
            parent.

        Raises:
            RetrievalError: The retriever raised or reported an error.
        """
        registration = self._retrievers.get(source)
        if registration is None:
            return NOT_FOUND
        try:
            return await registration.invoke(source, key, context)
        except RetrievalError:
            raise
        except Exception as exc:
            raise RetrievalError(
                source=source,
                key=key,
                message=f"Attribute retrieval failed for '{source}:{key}': {exc}",
            ) from exc

    def __len__(self) -> int:
        return len(self._retrievers)

    def __repr__(self) -> str:
        return f"RetrieverRegistry(sources={self.sources()!r})"


def _normalize_sources(sources: str | Sequence[str]) -> list[str]:
    names = [sources] if isinstance(sources, str) else list(sources)
    if not names:
        raise ConfigurationError("At least one source name is required")
    for name in names:
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Source names must be non-empty strings, got {name!r}")
    return names
