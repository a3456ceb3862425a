from functools import lru_cache
from typing import Any, Mapping, Optional, cast

from std2.configparser import hydrate
from std2.graphlib import merge
from std2.pickle.decoder import new_decoder
from std2.pickle.types import DecodeError
from yaml import safe_load

from ..consts import CONFIG_YML
from ..shared.settings import CompletionConfig, Hooks, Settings
from ..shared.types import ValidationError

_DECODER = new_decoder[Settings](Settings)


def _validate(config: Settings) -> Settings:
    limits = config.limits
    if config.match.max_results <= 0:
        raise ValidationError("match.max_results <= 0")
    elif config.match.scan_limit <= 0:
        raise ValidationError("match.scan_limit <= 0")
    elif config.display.max_rendered_options <= 0:
        raise ValidationError("display.max_rendered_options <= 0")
    elif config.display.info_cache_size <= 0:
        raise ValidationError("display.info_cache_size <= 0")
    elif config.display.page_size < 2:
        raise ValidationError("display.page_size < 2")
    elif limits.max_update_count <= 0:
        raise ValidationError("limits.max_update_count <= 0")
    elif (
        min(
            limits.debounce_time,
            limits.explicit_delay,
            limits.update_sync_time,
            limits.interaction_delay,
            limits.min_abort_time,
            limits.info_timeout,
            limits.composition_delay,
            limits.blur_delay,
        )
        < 0
    ):
        raise ValidationError("negative limits")
    else:
        return config


def load_settings(user_config: Optional[Mapping[str, Any]] = None) -> Settings:
    """
    Defaults overlaid with `user_config`, dotted keys allowed
    """

    yml = safe_load(CONFIG_YML.read_text("UTF-8"))
    u_conf = hydrate(cast(Any, user_config or {}))
    merged = merge(yml, u_conf, replace=True)
    try:
        config = _DECODER(merged)
    except DecodeError as e:
        raise ValidationError(e) from e
    else:
        return _validate(config)


@lru_cache(maxsize=None)
def default_settings() -> Settings:
    return load_settings()


def default_config() -> CompletionConfig:
    return CompletionConfig(settings=default_settings(), hooks=Hooks())
