"""Bridge between asyncio pipelines and line-yielding CLI controllers."""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from collections.abc import Awaitable, Callable, Generator
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SENTINEL = object()
_JOIN_TIMEOUT_SECONDS = 10


def stream_progress(
    work: Callable[[Callable[[str], None]], Awaitable[T]],
) -> Generator[str, None, T]:
    """Run ``work(emit)`` on an event loop in a worker thread.

    Lines passed to ``emit`` are yielded as they arrive.  The generator
    returns the result of ``work``; an exception raised by ``work`` is
    re-raised in the consuming thread after all earlier lines are yielded.
    """

    progress_q: queue.Queue[str | object] = queue.Queue()
    result_holder: list[T] = []
    error_holder: list[Exception] = []

    def _run() -> None:
        try:
            result_holder.append(asyncio.run(work(progress_q.put)))
        except Exception as exc:  # noqa: BLE001
            logger.debug("Streamed job failed: %s", exc, exc_info=True)
            error_holder.append(exc)
        finally:
            progress_q.put(_SENTINEL)

    worker_thread = threading.Thread(target=_run, daemon=True)
    worker_thread.start()

    while True:
        item = progress_q.get()
        if item is _SENTINEL:
            break
        yield str(item)

    worker_thread.join(timeout=_JOIN_TIMEOUT_SECONDS)

    if error_holder:
        raise error_holder[0]
    return result_holder[0]
