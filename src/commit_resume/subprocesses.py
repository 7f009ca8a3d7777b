"""Helpers shared by asyncio subprocess callers."""

from __future__ import annotations

import asyncio

_GRACE_SECONDS = 2


async def terminate_process(process: asyncio.subprocess.Process) -> None:
    """Terminate ``process``, escalating to kill after a short grace period."""

    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=_GRACE_SECONDS)
    except TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()
