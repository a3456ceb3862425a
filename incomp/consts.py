from os import environ
from pathlib import Path

_CONF_DIR = Path(__file__).resolve().parent / "config"
CONFIG_YML = _CONF_DIR / "defaults.yml"


DEBUG = "INCOMP_DEBUG" in environ


# Lookback limit for `CompletionContext.match_before`
MATCH_BEFORE_LIMIT = 250

USER_EVENT_TYPE = "input.type"
USER_EVENT_DELETE = "delete.backward"
USER_EVENT_COMPLETE = "input.complete"

PICKED_COMPLETION = "picked_completion"
