"""Exception hierarchy for abac-tree."""

from __future__ import annotations

from typing import Literal

from abac_tree._types import Verdict

__all__ = [
    "AbacError",
    "AccessDenied",
    "CollisionError",
    "ConfigurationError",
    "RetrievalError",
    "UnloadedAttributeError",
]


class AbacError(Exception):
    """Base exception for all abac-tree errors."""


class ConfigurationError(AbacError):
    """A policy document, target, registration or call is malformed.

    Raised for nodes without ``policies``/``rules``/``effect``, invalid
    effects, unknown combining algorithms, empty OR-list targets,
    unsupported matchers and misuse of :meth:`ContextNode.get`.
    """


class CollisionError(ConfigurationError):
    """A name is already registered and ``override`` was not requested.

    Attributes:
        name: The colliding source or algorithm name.
        kind: ``"source"`` for attribute retrievers, ``"algorithm"`` for
            combining algorithms.

    Example::

        registry.register("credentials", fn)
        try:
            registry.register("credentials", other_fn)
        except CollisionError as exc:
            print(exc.name)  # "credentials"
    """

    def __init__(self, *, name: str, kind: Literal["source", "algorithm"] = "source") -> None:
        self.name = name
        self.kind = kind
        if kind == "source":
            message = f"There is a data retriever already registered for the source: {name}"
        else:
            message = f"There is a combining algorithm already registered under the name: {name}"
        super().__init__(message)


class RetrievalError(AbacError):
    """An attribute retrieval function raised or completed with an error.

    The original exception, when there is one, is chained as
    ``__cause__``.

    Attributes:
        source: The source name of the failing retriever.
        key: The key that was being resolved.
    """

    def __init__(self, *, source: str, key: str, message: str | None = None) -> None:
        self.source = source
        self.key = key
        if message is None:
            message = f"Attribute retrieval failed for '{source}:{key}'"
        super().__init__(message)


class UnloadedAttributeError(AbacError):
    """A mapped attribute was not loaded and cannot be read without I/O.

    Raised by :func:`~abac_tree.retrieval.orm_retriever` when
    ``on_unloaded="raise"``. It reaches callers wrapped in a
    :class:`RetrievalError`.

    Attributes:
        model: The mapped class name.
        attribute: The unloaded attribute name.
    """

    def __init__(self, *, model: str, attribute: str) -> None:
        self.model = model
        self.attribute = attribute
        super().__init__(
            f"Attribute '{attribute}' on {model} is not loaded. "
            f"Either eagerly load it or use on_unloaded='absent'."
        )


class AccessDenied(AbacError):  # noqa: N818
    """The evaluated policy did not permit the request.

    Attributes:
        verdict: The verdict that was reached (``DENY`` or ``UNDETERMINED``).
        policy: Name of the evaluated root node, if it has one.

    Example::

        try:
            authorize(policy_set, context)
        except AccessDenied as exc:
            print(exc.verdict)
    """

    def __init__(
        self,
        *,
        verdict: Verdict,
        policy: str = "",
        message: str | None = None,
    ) -> None:
        self.verdict = verdict
        self.policy = policy
        if message is None:
            label = f"policy {policy!r}" if policy else "policy"
            message = f"Access not permitted by {label}: verdict is {verdict.name}"
        super().__init__(message)
