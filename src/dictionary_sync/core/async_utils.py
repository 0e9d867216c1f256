"""Async utilities for running blocking file I/O and prompts off the event loop."""

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used for settings-file I/O so the poller and MCP handlers keep running
    while they wait.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        settings = await run_sync(settings_store.load)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_detached(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a blocking call that may never return in a daemon thread.

    Unlike ``run_sync`` the call does not occupy the default executor, so
    cancelling the awaiting task lets ``asyncio.run()`` and the interpreter
    exit while the call is still blocked (e.g. ``input()`` on a terminal).

    Example:
        answer = await run_detached(input, "Keep 'colour'? [Y/n] ")
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _deliver(error: BaseException | None, result: Any) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _worker() -> None:
        error = result = None
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(_deliver, error, result)
        except RuntimeError:
            # Loop closed; nobody is waiting any more.
            logger.debug("Detached call finished after its loop closed")

    threading.Thread(
        target=_worker, name="dictionary-sync-prompt", daemon=True
    ).start()
    return await future


async def run_with_timeout(
    awaitable: Awaitable[T], timeout: float | None
) -> tuple[bool, T | None]:
    """Await *awaitable* for at most *timeout* seconds.

    Returns:
        ``(True, result)`` on completion, ``(False, None)`` when the
        timeout expired (the awaitable is cancelled).
    """
    try:
        return True, await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        logger.warning("Timed out after %.1fs", timeout or 0)
        return False, None
