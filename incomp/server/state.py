from __future__ import annotations

from dataclasses import dataclass, replace
from time import monotonic
from typing import Any, Optional, Sequence, Tuple, Union
from uuid import UUID, uuid4

from std2 import clamp

from ..clients.static import complete_from_list
from ..host.state import EditorState, Facet, StateField, Transaction
from ..host.text import ChangeSet
from ..shared.lru import LRU
from ..shared.settings import CompletionConfig
from ..shared.types import Completion, CompletionSource
from .effects import SetActive, SetSelected
from .settings import default_config
from .sources import (
    ActiveResult,
    ActiveSource,
    SourceState,
    Status,
    advance,
    inactive,
    is_pending,
)
from .trans import Option, sort_options

_LISTS: LRU[Tuple[Union[str, Completion], ...], CompletionSource] = LRU(size=64)


def as_source(data: Any) -> CompletionSource:
    """
    Plain lists of labels or completions become a `complete_from_list` source

    The same list maps to the same source, which is how sources are told apart
    """

    if callable(data):
        return data
    else:
        key = tuple(data)
        if key not in _LISTS:
            _LISTS[key] = complete_from_list(key)
        return _LISTS[key]


@dataclass(frozen=True)
class CompletionDialog:
    options: Sequence[Option]
    # Anchor for the renderer, the leftmost result `begin`
    pos: int
    above: bool
    timestamp: float
    selected: int
    disabled: bool = False

    def set_selected(self, selected: int) -> CompletionDialog:
        idx = clamp(-1, selected, len(self.options) - 1)
        return self if idx == self.selected else replace(self, selected=idx)

    def set_disabled(self) -> CompletionDialog:
        return self if self.disabled else replace(self, disabled=True)

    def map(self, changes: ChangeSet) -> CompletionDialog:
        return self if changes.empty else replace(self, pos=changes.map_pos(self.pos))

    @property
    def selected_option(self) -> Optional[Option]:
        if 0 <= self.selected < len(self.options):
            return self.options[self.selected]
        else:
            return None


def build_dialog(
    active: Sequence[SourceState],
    state: EditorState,
    prev: Optional[CompletionDialog],
    config: CompletionConfig,
) -> Optional[CompletionDialog]:
    options = sort_options(active, state=state, config=config)
    if not options:
        if prev and any(map(is_pending, active)):
            return prev.set_disabled()
        else:
            return None

    selected = 0 if config.settings.completion.select_on_open else -1
    if prev and (prev_option := prev.selected_option):
        for idx, option in enumerate(options):
            if option.completion is prev_option.completion:
                selected = idx
                break

    pos = min(a.begin for a in active if isinstance(a, ActiveResult))
    return CompletionDialog(
        options=options,
        pos=pos,
        above=config.settings.display.above_cursor,
        timestamp=prev.timestamp if prev else monotonic(),
        selected=selected,
    )


def same_results(lhs: Sequence[SourceState], rhs: Sequence[SourceState]) -> bool:
    if lhs is rhs:
        return True
    else:
        l_results = tuple(a.result for a in lhs if isinstance(a, ActiveResult))
        r_results = tuple(a.result for a in rhs if isinstance(a, ActiveResult))
        return len(l_results) == len(r_results) and all(
            l is r for l, r in zip(l_results, r_results)
        )


@dataclass(frozen=True)
class CompletionState:
    active: Sequence[SourceState]
    id: UUID
    open: Optional[CompletionDialog]

    @classmethod
    def start(cls) -> CompletionState:
        return cls(active=(), id=uuid4(), open=None)

    def _previous(self, source: CompletionSource) -> SourceState:
        for active in self.active:
            if active.source is source:
                return active
        else:
            # Start together with siblings that are already going
            status = (
                Status.pending
                if any(a.status is not Status.inactive for a in self.active)
                else Status.inactive
            )
            return ActiveSource(source=source, status=status)

    def update(self, tr: Transaction, config: CompletionConfig) -> CompletionState:
        state = tr.state
        override = config.hooks.override
        sources = tuple(
            map(as_source, override if override is not None else state.language_sources)
        )

        active: Sequence[SourceState] = tuple(
            advance(self._previous(source), tr=tr, options=config.settings.completion)
            for source in sources
        )
        if len(active) == len(self.active) and all(
            a is b for a, b in zip(active, self.active)
        ):
            active = self.active

        did_set_active = any(isinstance(e, SetActive) for e in tr.effects)
        touched = any(
            isinstance(a, ActiveResult) and tr.changes.touches_range(a.begin, a.end)
            for a in active
        )
        if (
            tr.selection
            or touched
            or did_set_active
            or not same_results(active, self.active)
        ):
            dialog = build_dialog(active, state=state, prev=self.open, config=config)
        elif self.open and tr.doc_changed:
            dialog = self.open.map(tr.changes)
        else:
            dialog = self.open

        if (
            not dialog
            and not any(map(is_pending, active))
            and any(isinstance(a, ActiveResult) for a in active)
        ):
            active = tuple(
                inactive(a) if isinstance(a, ActiveResult) else a for a in active
            )

        for effect in tr.effects:
            if isinstance(effect, SetSelected) and dialog:
                dialog = dialog.set_selected(effect.index)

        if active is self.active and dialog is self.open:
            return self
        else:
            return CompletionState(active=active, id=self.id, open=dialog)


COMPLETION_CONFIG: Facet[Optional[CompletionConfig]] = Facet(default=None)


def completion_config(state: EditorState) -> CompletionConfig:
    return state.facet(COMPLETION_CONFIG) or default_config()


COMPLETION_STATE = StateField[CompletionState](
    create=lambda _: CompletionState.start(),
    update=lambda value, tr: value.update(tr, config=completion_config(tr.state)),
)
