from dataclasses import dataclass, replace
from enum import Enum, Flag, auto
from typing import ClassVar, Optional, Sequence, Union

from pynvim_pp.logging import log

from ..consts import USER_EVENT_DELETE, USER_EVENT_TYPE
from ..host.state import EditorState, Transaction
from ..host.text import ChangeSet
from ..shared.context import CompletionContext
from ..shared.parse import ensure_anchor
from ..shared.settings import CompleteOptions
from ..shared.types import CompletionResult, CompletionSource, ValidFor
from .effects import CloseCompletion, SetActive, StartCompletion


class Status(Enum):
    inactive = auto()
    pending = auto()
    result = auto()


class UpdateType(Flag):
    none = 0
    typing = 1
    backspacing = 2
    activate = 4
    selection = 8
    reset_if_touching = 16

    simple = 3


@dataclass(frozen=True)
class ActiveSource:
    """
    `inactive` or `pending`, `explicit_pos < 0` unless explicitly started
    """

    source: CompletionSource
    status: Status
    explicit_pos: int = -1


@dataclass(frozen=True)
class ActiveResult:
    status: ClassVar[Status] = Status.result

    source: CompletionSource
    explicit_pos: int
    result: CompletionResult
    begin: int
    end: int


SourceState = Union[ActiveSource, ActiveResult]


def update_type(tr: Transaction, options: CompleteOptions) -> UpdateType:
    if tr.is_user_event(USER_EVENT_TYPE):
        return (
            UpdateType.typing | UpdateType.activate
            if options.activate_on_typing
            else UpdateType.typing
        )
    elif tr.is_user_event(USER_EVENT_DELETE):
        return UpdateType.backspacing
    elif tr.doc_changed:
        return UpdateType.reset_if_touching | (
            UpdateType.selection if tr.selection else UpdateType.none
        )
    elif tr.selection:
        return UpdateType.selection
    else:
        return UpdateType.none


def is_reset(kind: UpdateType) -> bool:
    """
    Anything other than typing / backspacing that moved things around
    """

    return not kind & UpdateType.simple and bool(
        kind & (UpdateType.selection | UpdateType.reset_if_touching)
    )


def is_pending(value: SourceState) -> bool:
    return value.status is Status.pending


def inactive(value: SourceState) -> ActiveSource:
    if (
        isinstance(value, ActiveSource)
        and value.status is Status.inactive
        and value.explicit_pos < 0
    ):
        return value
    else:
        return ActiveSource(source=value.source, status=Status.inactive)


def _map_pos(changes: ChangeSet, pos: int) -> int:
    return pos if pos < 0 else changes.map_pos(pos)


def check_valid(
    valid_for: Optional[ValidFor], state: EditorState, begin: int, end: int
) -> bool:
    if valid_for is None:
        return False
    else:
        text = state.slice_doc(begin, end)
        if callable(valid_for):
            try:
                return bool(valid_for(text, begin, end, state))
            except Exception as e:
                log.exception("%s", e)
                return False
        else:
            match = ensure_anchor(valid_for, start=True).search(text)
            # `$` also matches before a trailing newline
            return match is not None and match.end() == len(text)


def _mapped(
    result: CompletionResult, changes: ChangeSet
) -> Optional[CompletionResult]:
    if not result.map or changes.empty:
        return result
    else:
        try:
            return result.map(result, changes)
        except Exception as e:
            log.exception("%s", e)
            return None


def _updated(
    result: CompletionResult, begin: int, end: int, context: CompletionContext
) -> Optional[CompletionResult]:
    if not result.update:
        return None
    else:
        try:
            return result.update(result, begin, end, context)
        except Exception as e:
            log.exception("%s", e)
            return None


def _deletes_through(value: ActiveResult, tr: Transaction) -> bool:
    return tr.start_state.cursor == value.begin or any(
        change.begin < value.begin for change in tr.changes.changes
    )


def _touches(value: SourceState, tr: Transaction) -> bool:
    if isinstance(value, ActiveResult):
        return tr.changes.touches_range(value.begin, value.end)
    else:
        return tr.changes.touches_range(tr.start_state.cursor)


def map_source(value: SourceState, changes: ChangeSet) -> SourceState:
    if changes.empty:
        return value
    elif isinstance(value, ActiveResult):
        result = _mapped(value.result, changes=changes)
        if result is None:
            return inactive(value)
        else:
            return ActiveResult(
                source=value.source,
                explicit_pos=_map_pos(changes, value.explicit_pos),
                result=result,
                begin=changes.map_pos(value.begin),
                end=changes.map_pos(value.end, assoc=1),
            )
    elif value.explicit_pos < 0:
        return value
    else:
        return replace(value, explicit_pos=changes.map_pos(value.explicit_pos))


def _source_for(
    value: ActiveSource, tr: Transaction, kind: UpdateType
) -> SourceState:
    if kind & UpdateType.selection and not kind & UpdateType.simple:
        return inactive(value)
    else:
        return map_source(value, tr.changes)


def _result_for(
    value: ActiveResult, tr: Transaction, kind: UpdateType
) -> SourceState:
    if not kind & UpdateType.simple:
        mapped = map_source(value, tr.changes)
        pos = tr.state.cursor
        if (
            kind & UpdateType.selection
            and isinstance(mapped, ActiveResult)
            and not mapped.begin <= pos <= mapped.end
        ):
            return inactive(mapped)
        else:
            return mapped

    changes = tr.changes
    result = _mapped(value.result, changes=changes)

    begin = changes.map_pos(value.begin)
    end = changes.map_pos(value.end, assoc=1)
    pos = tr.state.cursor

    if (
        result is None
        or pos < begin
        or pos > end
        or (kind & UpdateType.backspacing and _deletes_through(value, tr=tr))
    ):
        status = Status.pending if kind & UpdateType.activate else Status.inactive
        return ActiveSource(source=value.source, status=status)

    explicit_pos = _map_pos(changes, value.explicit_pos)
    if check_valid(result.valid_for, tr.state, begin=begin, end=end):
        return ActiveResult(
            source=value.source,
            explicit_pos=explicit_pos,
            result=result,
            begin=begin,
            end=end,
        )
    elif updated := _updated(
        result,
        begin=begin,
        end=end,
        context=CompletionContext(tr.state, pos=pos, explicit=False),
    ):
        return ActiveResult(
            source=value.source,
            explicit_pos=explicit_pos,
            result=updated,
            begin=updated.begin,
            end=pos if updated.end is None else updated.end,
        )
    else:
        return ActiveSource(
            source=value.source, status=Status.pending, explicit_pos=explicit_pos
        )


def advance(
    value: SourceState, tr: Transaction, options: CompleteOptions
) -> SourceState:
    """
    One source, one transaction
    """

    kind = update_type(tr, options=options)
    if kind & UpdateType.reset_if_touching and _touches(value, tr):
        value = inactive(value)
    if kind & UpdateType.activate and value.status is Status.inactive:
        value = ActiveSource(source=value.source, status=Status.pending)

    if isinstance(value, ActiveResult):
        value = _result_for(value, tr=tr, kind=kind)
    else:
        value = _source_for(value, tr=tr, kind=kind)

    for effect in tr.effects:
        if isinstance(effect, StartCompletion):
            value = ActiveSource(
                source=value.source,
                status=Status.pending,
                explicit_pos=tr.state.cursor if effect.explicit else -1,
            )
        elif isinstance(effect, CloseCompletion):
            value = inactive(value)
        elif isinstance(effect, SetActive):
            for active in effect.sources:
                if active.source is value.source:
                    value = active

    return value


def replay(
    value: SourceState, transactions: Sequence[Transaction], options: CompleteOptions
) -> SourceState:
    for tr in transactions:
        value = advance(value, tr=tr, options=options)
    return value
