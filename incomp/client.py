from typing import Optional

from .host.state import Extension, ViewPlugin
from .server.scheduler import Scheduler
from .server.settings import default_settings
from .server.state import COMPLETION_CONFIG, COMPLETION_STATE
from .shared.settings import CompletionConfig, Hooks, Settings


def autocompletion(settings: Optional[Settings] = None, hooks: Hooks = Hooks()) -> Extension:
    """
    Everything an `EditorState` needs to complete
    """

    config = CompletionConfig(settings=settings or default_settings(), hooks=hooks)
    return (COMPLETION_CONFIG.of(config), COMPLETION_STATE, ViewPlugin(create=Scheduler))
