from asyncio import ensure_future, wait
from typing import Awaitable, Optional, TypeVar

from std2.asyncio import cancel

_T = TypeVar("_T")


async def with_timeout(timeout: float, aw: Awaitable[_T]) -> Optional[_T]:
    """
    `None` on timeout, the straggler is cancelled
    """

    fut = ensure_future(aw)
    done, not_done = await wait((fut,), timeout=timeout)
    await cancel(*not_done)
    return (await done.pop()) if done else None
