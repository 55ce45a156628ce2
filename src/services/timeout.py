"""
Time-bounded execution of a single async operation.

The operation runs as its own task and races a timer. Whichever finishes
first wins; there is no partial outcome. On timeout the task is cancelled,
and asyncio task cancellation is the cancellation token: CancelledError is
delivered at the operation's next await point. Cancellation is best-effort.
A remote call that has already reached the server may still complete there,
and whatever the task produces afterwards is logged and discarded, never
applied to local state.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from src.services.exceptions import OperationTimedOut

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_late_result(task: asyncio.Task) -> None:
    """Consume the outcome of an abandoned task so it is never surfaced."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Discarding late failure from timed-out operation: {error!r}")
    else:
        logger.debug("Discarding late result from timed-out operation")


async def with_timeout(
    seconds: float,
    operation: Callable[[], Awaitable[T]],
    name: str = "operation",
) -> T:
    """
    Run `operation` with a time limit.

    Args:
        seconds: Time limit
        operation: Zero-argument callable returning an awaitable
        name: Label used in the timeout error and logs

    Returns:
        The operation's result

    Raises:
        OperationTimedOut: If the timer elapses first
        Exception: Whatever the operation raised, if it finished first

    Example:
        >>> blob = await with_timeout(30, lambda: blob_store.upload(auth, name, data))
    """
    task = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    # Not awaited: the cancelled task may take arbitrarily long to unwind.
    task.cancel()
    task.add_done_callback(_discard_late_result)
    logger.warning(f"{name} timed out after {seconds:g}s")
    raise OperationTimedOut(seconds, name)
