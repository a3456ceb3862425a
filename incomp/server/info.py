from inspect import isawaitable
from typing import Any, Optional

from pynvim_pp.logging import log

from ..shared.aio import with_timeout
from ..shared.lru import LRU
from ..shared.settings import Settings
from ..shared.types import Completion

InfoCache = LRU[Completion, Any]


def new_info_cache(settings: Settings) -> InfoCache:
    return LRU(size=settings.display.info_cache_size)


async def resolve_info(
    completion: Completion, settings: Settings, cache: InfoCache
) -> Optional[Any]:
    """
    Plain `info` passes through, computed `info` is awaited within `info_timeout`

    Only successful lookups are cached
    """

    if completion in cache:
        return cache[completion]

    info = completion.info
    if info is None or isinstance(info, str):
        return info

    try:
        ret = info(completion)
        resolved = (
            (await with_timeout(settings.limits.info_timeout, ret))
            if isawaitable(ret)
            else ret
        )
    except Exception as e:
        log.exception("%s", e)
        return None
    else:
        if resolved is None:
            log.debug("%s", f"no info -- {completion.label}")
        else:
            cache[completion] = resolved
        return resolved
