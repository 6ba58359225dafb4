"""
Fail-fast fan-out/fan-in for concurrent provider calls.
"""

import asyncio
import logging
from collections.abc import Awaitable, Hashable
from typing import Any

from tqdm.asyncio import tqdm

logger = logging.getLogger("shortvid")


async def gather_fail_fast(
    jobs: dict[Hashable, Awaitable[Any]], desc: str | None = None
) -> dict[Hashable, Any]:
    """
    Run all awaitables concurrently and return their results keyed like ``jobs``.

    Results are re-associated by key, never by completion order. The first failure
    cancels the siblings still in flight and is re-raised.
    """

    async def _keyed(key, aw):
        return key, await aw

    tasks = [asyncio.ensure_future(_keyed(key, aw)) for key, aw in jobs.items()]
    results: dict[Hashable, Any] = {}
    try:
        for next_done in tqdm.as_completed(tasks, desc=desc, total=len(tasks)):
            key, value = await next_done
            results[key] = value
    except BaseException:
        pending = [t for t in tasks if not t.done()]
        if pending:
            logger.debug("Cancelling %d in-flight tasks", len(pending))
        for t in pending:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return results
