"""Normalise retrieval functions into a single awaitable calling convention.

Three shapes are accepted:

- synchronous ``fn(source, key, context)``, returning a value (or an
  awaitable, which is awaited);
- coroutine functions ``async def fn(source, key, context)``;
- callback style ``fn(source, key, context, callback)`` that eventually
  calls ``callback(error, value)``, possibly from another thread.

The style is detected once, at registration time.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from abac_tree._types import AdaptedRetriever, RetrieverStyle

__all__ = ["adapt_retriever", "detect_style"]

logger = logging.getLogger(__name__)

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def detect_style(fn: Callable[..., Any]) -> RetrieverStyle:
    """Work out which calling convention *fn* follows.

    A function with four or more required positional parameters is
    treated as callback style.
    """
    if inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
        getattr(fn, "__call__", None)
    ):
        return "coroutine"
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures.
        return "sync"
    required = [
        p
        for p in signature.parameters.values()
        if p.kind in _POSITIONAL and p.default is inspect.Parameter.empty
    ]
    return "callback" if len(required) >= 4 else "sync"


def adapt_retriever(fn: Callable[..., Any], style: RetrieverStyle) -> AdaptedRetriever:
    """Wrap *fn* so that every call returns an awaitable of the value."""
    if style == "coroutine":

        async def _call_coroutine(source: str, key: str, context: Any) -> Any:
            return await fn(source, key, context)

        return _call_coroutine

    if style == "callback":

        async def _call_callback(source: str, key: str, context: Any) -> Any:
            loop = asyncio.get_running_loop()
            future: asyncio.Future[Any] = loop.create_future()
            reported = threading.Event()

            def callback(error: object = None, value: Any = None) -> None:
                reported.set()
                loop.call_soon_threadsafe(_settle, future, error, value)

            try:
                fn(source, key, context, callback)
            except Exception:
                # Only a raise before the callback settles is a failure.
                if reported.is_set():
                    logger.debug(
                        "Ignoring error raised by %r after it reported a result",
                        fn,
                        exc_info=True,
                    )
                else:
                    raise
            return await future

        return _call_callback

    async def _call_sync(source: str, key: str, context: Any) -> Any:
        result = fn(source, key, context)
        if inspect.isawaitable(result):
            result = await result
        return result

    return _call_sync


def _settle(future: asyncio.Future[Any], error: object, value: Any) -> None:
    # Only the first completion counts.
    if future.done():
        return
    if error is None:
        future.set_result(value)
    elif isinstance(error, BaseException):
        future.set_exception(error)
    else:
        future.set_exception(RuntimeError(f"retriever reported an error: {error!r}"))
