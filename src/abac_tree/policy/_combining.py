"""Combining algorithms — reduce child verdicts into one verdict.

Built-ins:

- ``permit-overrides``: PERMIT if any child permits, otherwise DENY
- ``deny-overrides``: DENY if any child denies, otherwise PERMIT

Both return UNDETERMINED for an empty child list and evaluate children
concurrently. Any callable with the signature
``fn(children, context_node, evaluate)`` can be used in place of a name;
``first-applicable`` style algorithms are written that way.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from abac_tree._types import Verdict
from abac_tree.exceptions import CollisionError, ConfigurationError
from abac_tree.policy._nodes import PolicyNode
from abac_tree.retrieval._context import ContextNode

__all__ = [
    "AlgorithmRegistry",
    "CombiningAlgorithm",
    "DENY_OVERRIDES",
    "EvaluateFn",
    "FunctionAlgorithm",
    "OverridesAlgorithm",
    "PERMIT_OVERRIDES",
    "get_default_algorithms",
]

# Evaluates one child node; handed to algorithms by the engine.
EvaluateFn = Callable[[PolicyNode, ContextNode], Awaitable[Verdict]]


@runtime_checkable
class CombiningAlgorithm(Protocol):
    """Structural type for combining algorithms.

    Example::

        class FirstApplicable:
            name = "first-applicable"

            async def apply(self, children, context_node, evaluate):
                for child in children:
                    verdict = await evaluate(child, context_node)
                    if verdict is not Verdict.UNDETERMINED:
                        return verdict
                return Verdict.UNDETERMINED
    """

    name: str

    async def apply(
        self,
        children: Sequence[PolicyNode],
        context_node: ContextNode,
        evaluate: EvaluateFn,
    ) -> Verdict: ...


@dataclass(frozen=True, slots=True)
class OverridesAlgorithm:
    """``<overriding>-overrides``: one overriding verdict decides.

    Children are evaluated concurrently. The first failure propagates and
    the results of the other children are discarded.

    Attributes:
        name: Registered name.
        overriding: Verdict that wins as soon as one child returns it.
        fallback: Verdict returned when no child returns ``overriding``.
    """

    name: str
    overriding: Verdict
    fallback: Verdict

    async def apply(
        self,
        children: Sequence[PolicyNode],
        context_node: ContextNode,
        evaluate: EvaluateFn,
    ) -> Verdict:
        if not children:
            return Verdict.UNDETERMINED
        results = await asyncio.gather(*(evaluate(child, context_node) for child in children))
        if any(result is self.overriding for result in results):
            return self.overriding
        return self.fallback


class FunctionAlgorithm:
    """Adapts a plain (sync or async) function to :class:`CombiningAlgorithm`."""

    def __init__(self, fn: Callable[..., Any], *, name: str = "") -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "<anonymous>")

    async def apply(
        self,
        children: Sequence[PolicyNode],
        context_node: ContextNode,
        evaluate: EvaluateFn,
    ) -> Verdict:
        result = self._fn(children, context_node, evaluate)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, Verdict):
            raise ConfigurationError(
                f"Combining algorithm {self.name!r} returned {result!r}, expected a Verdict"
            )
        return result

    def __repr__(self) -> str:
        return f"FunctionAlgorithm({self.name!r})"


PERMIT_OVERRIDES = OverridesAlgorithm("permit-overrides", Verdict.PERMIT, Verdict.DENY)
DENY_OVERRIDES = OverridesAlgorithm("deny-overrides", Verdict.DENY, Verdict.PERMIT)


class AlgorithmRegistry:
    """Registry that maps names to combining algorithms.

    A new registry starts with the built-in algorithms unless
    ``builtins=False``.

    Example::

        algorithms = AlgorithmRegistry()
        algorithms.register("first-applicable", first_applicable)
        await evaluate_policy(policy_set, context, algorithms=algorithms)
    """

    def __init__(self, *, builtins: bool = True) -> None:
        self._algorithms: dict[str, CombiningAlgorithm] = {}
        self._lock = threading.Lock()
        if builtins:
            for algorithm in (PERMIT_OVERRIDES, DENY_OVERRIDES):
                self._algorithms[algorithm.name] = algorithm

    def register(
        self,
        name: str,
        algorithm: CombiningAlgorithm | Callable[..., Any],
        *,
        override: bool = False,
    ) -> None:
        """Register *algorithm* under *name*.

        Plain callables are wrapped in :class:`FunctionAlgorithm`.

        Raises:
            CollisionError: *name* is taken and ``override`` is false.
            ConfigurationError: *name* is empty or *algorithm* is unusable.
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Algorithm names must be non-empty strings, got {name!r}")
        if not isinstance(algorithm, CombiningAlgorithm):
            if not callable(algorithm):
                raise ConfigurationError(
                    f"Combining algorithm {name!r} must be callable, got {algorithm!r}"
                )
            algorithm = FunctionAlgorithm(algorithm, name=name)
        with self._lock:
            if name in self._algorithms and not override:
                raise CollisionError(name=name, kind="algorithm")
            self._algorithms[name] = algorithm

    def lookup(self, name: str) -> CombiningAlgorithm | None:
        """Return the algorithm registered under *name*, or ``None``."""
        return self._algorithms.get(name)

    def names(self) -> list[str]:
        """Return all registered names."""
        return list(self._algorithms)

    def resolve(
        self,
        apply: str | CombiningAlgorithm | Callable[..., Any] | None,
        *,
        default: str,
    ) -> CombiningAlgorithm:
        """Turn a node's ``apply`` value into an algorithm.

        Raises:
            ConfigurationError: A named algorithm does not exist or *apply*
                is neither a name, an algorithm nor a callable.
        """
        if apply is None:
            apply = default
        if isinstance(apply, str):
            algorithm = self._algorithms.get(apply)
            if algorithm is None:
                raise ConfigurationError(f"Combining algorithm does not exist: {apply}")
            return algorithm
        if isinstance(apply, CombiningAlgorithm):
            return apply
        if callable(apply):
            return FunctionAlgorithm(apply)
        raise ConfigurationError(f"Invalid combining algorithm {apply!r}")

    def __repr__(self) -> str:
        return f"AlgorithmRegistry(names={self.names()!r})"


# Module-level default registry (singleton).
_default_algorithms = AlgorithmRegistry()


def get_default_algorithms() -> AlgorithmRegistry:
    """Return the global default algorithm registry.

    Used by the engine when no explicit registry is passed.
    """
    return _default_algorithms
