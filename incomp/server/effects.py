from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .sources import SourceState


@dataclass(frozen=True)
class StartCompletion:
    # `False` when activated implicitly, ie. after an IME composition
    explicit: bool


@dataclass(frozen=True)
class CloseCompletion: ...


@dataclass(frozen=True)
class SetActive:
    """
    Results delivered by the scheduler
    """

    sources: Sequence["SourceState"]


@dataclass(frozen=True)
class SetSelected:
    index: int
