# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Helpers for calling collaborators that may be sync or async.

Plain callables are treated as blocking and run on a worker thread so a slow
record source or token store never stalls the event loop.
"""

from __future__ import annotations

from functools import partial
import inspect
from typing import Any, Callable

from anyio import to_thread


async def maybe_await(value: Any) -> Any:
    """Await *value* when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def maybe_await_with_args(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call *fn* with the given arguments and return its (awaited) result."""
    if inspect.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)
    result = await to_thread.run_sync(partial(fn, *args, **kwargs))
    return await maybe_await(result)


__all__ = ["maybe_await", "maybe_await_with_args"]
