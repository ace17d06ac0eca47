"""
Concurrency Infrastructure.

Thread pool for blocking SDK calls, and the hop from SDK threads back onto
the event loop that owns the sync state.

Pools:
    _io_pool - TracedThreadPoolExecutor for blocking I/O (Firestore SDK calls)

Usage:
    from notetogether.core.concurrency import run_blocking, call_on_loop

    # Run a blocking SDK call without stalling the loop (preserves structlog context)
    doc_ref = await run_blocking(collection.document, note_id)

    # From an SDK callback thread, schedule work on the owning loop
    call_on_loop(loop, controller_callback, records)
"""

import asyncio
import contextvars
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from notetogether.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_io_pool: ThreadPoolExecutor | None = None


class TracedThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates contextvars to worker threads.

    Standard ThreadPoolExecutor does not carry structlog context into worker
    threads. This subclass copies the current context before dispatching.
    """

    def submit(self, fn, /, *args, **kwargs):
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


def get_io_pool() -> TracedThreadPoolExecutor:
    """Get the shared thread pool for blocking I/O operations.

    Creates the pool lazily on first call using config from concurrency.yaml.
    """
    global _io_pool
    if _io_pool is None:
        from notetogether.core.config import get_app_config
        max_workers = get_app_config().concurrency.thread_pool.max_workers
        _io_pool = TracedThreadPoolExecutor(max_workers=max_workers)
        logger.info("Thread pool created", extra={"max_workers": max_workers})
    return _io_pool


async def run_blocking(fn: Callable[..., T], *args: Any) -> T:
    """Run a blocking callable in the shared I/O pool and await its result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_io_pool(), fn, *args)


def call_on_loop(loop: asyncio.AbstractEventLoop, fn: Callable[..., Any], *args: Any) -> None:
    """Schedule `fn(*args)` on `loop` from any thread.

    Deliveries to a loop that has already closed are dropped; the owner of
    that loop has gone away and nothing is left to observe them.
    """
    try:
        loop.call_soon_threadsafe(fn, *args)
    except RuntimeError:
        logger.debug(
            "Dropping callback for closed loop",
            extra={"callback": getattr(fn, "__name__", "unknown")},
        )


async def shutdown_pools() -> None:
    """Shut down the I/O pool gracefully.

    Pool shutdown is blocking, so we run it in a thread to avoid stalling
    the event loop.
    """
    global _io_pool

    if _io_pool is not None:
        await asyncio.to_thread(_io_pool.shutdown, wait=True)
        logger.info("Thread pool shut down")
        _io_pool = None
