"""Ready-made retrieval functions for common context shapes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm.base import NO_VALUE

from abac_tree._types import OnUnloaded
from abac_tree.exceptions import UnloadedAttributeError

__all__ = ["context_retriever", "orm_retriever", "static_retriever"]

logger = logging.getLogger(__name__)

_VALID_ON_UNLOADED: set[str] = {"absent", "raise"}


def context_retriever(source: str, key: str, context: Any) -> Any:
    """Read *key* from the bound context.

    Mappings are read with ``context.get(key)``, any other object with
    ``getattr(context, key, None)``. A missing key is absent.

    Example::

        root.register("credentials", context_retriever)
        await root.create_child({"group": "writer"}).get("credentials:group")
    """
    if context is None:
        return None
    if isinstance(context, Mapping):
        return context.get(key)
    return getattr(context, key, None)


def static_retriever(values: Mapping[str, Any]) -> Callable[[str, str, Any], Any]:
    """Build a retriever that answers from *values*, ignoring the context.

    Example::

        root.register("env", static_retriever({"region": "eu-west-1"}))
    """
    snapshot = dict(values)

    def retrieve(source: str, key: str, context: Any) -> Any:
        return snapshot.get(key)

    return retrieve


def orm_retriever(*, on_unloaded: OnUnloaded = "absent") -> Callable[[str, str, Any], Any]:
    """Build a retriever that reads mapped attributes of a SQLAlchemy instance.

    The bound context must be a mapped instance. Keys may be dotted paths
    that follow relationships (``"organization.name"``); a path crossing a
    collection yields the list of values found on its members.

    Only already-loaded state is read, so a lookup never emits SQL. Keys
    that are not mapped attributes are absent.

    Args:
        on_unloaded: ``"absent"`` treats an unloaded attribute as missing,
            ``"raise"`` raises :class:`UnloadedAttributeError`.

    Example::

        root.register("resource", orm_retriever(on_unloaded="raise"))
        request = root.create_child(post)
        await request.get("resource:author.name")
    """
    if on_unloaded not in _VALID_ON_UNLOADED:
        raise ValueError(
            f"on_unloaded must be one of {_VALID_ON_UNLOADED!r}, got {on_unloaded!r}"
        )

    def retrieve(source: str, key: str, context: Any) -> Any:
        current = context
        for part in key.split("."):
            if current is None:
                return None
            if isinstance(current, (list, tuple, set, frozenset)):
                values = (_read_attribute(item, part, on_unloaded) for item in current)
                current = [v for v in values if v is not None]
            else:
                current = _read_attribute(current, part, on_unloaded)
        return current

    return retrieve


def _read_attribute(instance: Any, name: str, on_unloaded: OnUnloaded) -> Any:
    state = sa_inspect(instance, raiseerr=False)
    if state is None or not hasattr(state, "mapper"):
        return context_retriever("", name, instance)

    if name not in state.mapper.attrs:
        logger.debug("%s has no mapped attribute %r", type(instance).__name__, name)
        return None

    value = NO_VALUE if name in state.unloaded else state.attrs[name].loaded_value
    if value is NO_VALUE:
        if on_unloaded == "raise":
            raise UnloadedAttributeError(model=type(instance).__name__, attribute=name)
        return None
    # Collections come back instrumented; hand matchers a plain list.
    if isinstance(value, list):
        return list(value)
    return value
