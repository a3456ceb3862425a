from dataclasses import dataclass, field
from locale import strxfrm
from typing import Any, Callable, Optional, Sequence

from .types import Completion, CompletionSource, MatchedRanges


@dataclass(frozen=True)
class Limits:
    debounce_time: float
    explicit_delay: float
    update_sync_time: float
    interaction_delay: float
    max_update_count: int
    min_abort_time: float
    info_timeout: float
    composition_delay: float
    blur_delay: float


@dataclass(frozen=True)
class MatchOptions:
    filter_strict: bool
    case_sensitive: bool
    max_results: int
    scan_limit: int


@dataclass(frozen=True)
class Weights:
    gap: float
    not_start: float
    case_fold: float
    by_word: float
    not_full: float
    section_offset: float
    unfiltered_base: float


@dataclass(frozen=True)
class CompleteOptions:
    activate_on_typing: bool
    select_on_open: bool
    close_on_blur: bool


@dataclass(frozen=True)
class Display:
    max_rendered_options: int
    above_cursor: bool
    icons: bool
    info_cache_size: int
    page_size: int


@dataclass(frozen=True)
class KeyMapping:
    enabled: bool


@dataclass(frozen=True)
class Settings:
    limits: Limits
    match: MatchOptions
    weights: Weights
    completion: CompleteOptions
    display: Display
    keymap: KeyMapping


def compare_labels(lhs: Completion, rhs: Completion) -> int:
    l, r = strxfrm(lhs.label), strxfrm(rhs.label)
    return (l > r) - (l < r)


@dataclass(frozen=True)
class OptionContent:
    render: Callable[[Completion, Any, MatchedRanges], Any]
    position: int


@dataclass(frozen=True)
class Hooks:
    """
    Options that cannot come from a config file
    """

    override: Optional[Sequence[CompletionSource]] = None
    compare_completions: Callable[[Completion, Completion], int] = compare_labels
    add_to_options: Sequence[OptionContent] = ()


@dataclass(frozen=True)
class CompletionConfig:
    settings: Settings
    hooks: Hooks = field(default_factory=Hooks)
