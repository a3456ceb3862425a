from time import monotonic
from typing import Callable, Literal, Mapping, Optional, Sequence

from ..consts import PICKED_COMPLETION, USER_EVENT_COMPLETE
from ..host.state import EditorState, Selection, TransactionSpec, type_text
from ..host.text import Change
from ..host.view import EditorView
from ..shared.settings import CompletionConfig
from ..shared.types import Completion
from .effects import CloseCompletion, SetSelected, StartCompletion
from .sources import ActiveResult, Status
from .state import COMPLETION_STATE, CompletionDialog, CompletionState, completion_config
from .trans import Option

Command = Callable[[EditorView], bool]
CompletionStatus = Literal["active", "pending"]


def _cstate(state: EditorState) -> Optional[CompletionState]:
    return state.field(COMPLETION_STATE, require=False)


def _interactive(state: EditorState) -> Optional[CompletionDialog]:
    """
    The open dialog, if keys are allowed to act on it yet
    """

    cstate = _cstate(state)
    if not cstate or not cstate.open or cstate.open.disabled:
        return None
    else:
        delay = completion_config(state).settings.limits.interaction_delay
        elapsed = monotonic() - cstate.open.timestamp
        return cstate.open if elapsed >= delay else None


def insert_completion_text(
    state: EditorState, text: str, begin: int, end: int
) -> TransactionSpec:
    return TransactionSpec(
        changes=(Change(begin=begin, end=end, insert=text),),
        selection=Selection.cursor(begin + len(text)),
        user_event=USER_EVENT_COMPLETE,
    )


def apply_completion(view: EditorView, option: Option) -> bool:
    state = view.state
    cstate = _cstate(state)
    if not cstate or state.read_only:
        return False

    current = next(
        (a for a in cstate.active if a.source is option.source.source), None
    )
    if not isinstance(current, ActiveResult):
        return False

    completion = option.completion
    apply = completion.apply if completion.apply is not None else completion.label
    if isinstance(apply, str):
        spec = insert_completion_text(
            state, text=apply, begin=current.begin, end=current.end
        )
        view.dispatch(
            TransactionSpec(
                changes=spec.changes,
                selection=spec.selection,
                annotations={PICKED_COMPLETION: completion},
                user_event=spec.user_event,
            )
        )
    else:
        apply(view, completion, current.begin, current.end)
    return True


def start_completion(view: EditorView) -> bool:
    if not _cstate(view.state):
        return False
    else:
        view.dispatch(TransactionSpec(effects=(StartCompletion(explicit=True),)))
        return True


def close_completion(view: EditorView) -> bool:
    cstate = _cstate(view.state)
    if not cstate or all(a.status is Status.inactive for a in cstate.active):
        return False
    else:
        view.dispatch(TransactionSpec(effects=(CloseCompletion(),)))
        return True


def accept_completion(view: EditorView) -> bool:
    dialog = _interactive(view.state)
    if not dialog or not (option := dialog.selected_option):
        return False
    else:
        return apply_completion(view, option=option)


def move_completion_selection(
    forward: bool, by: Literal["option", "page"] = "option"
) -> Command:
    def cmd(view: EditorView) -> bool:
        dialog = _interactive(view.state)
        if not dialog:
            return False

        step = (
            completion_config(view.state).settings.display.page_size
            if by == "page"
            else 1
        )
        length = len(dialog.options)
        if dialog.selected > -1:
            selected = dialog.selected + (step if forward else -step)
        else:
            selected = 0 if forward else length - 1

        if selected < 0:
            selected = 0 if by == "page" else length - 1
        elif selected >= length:
            selected = length - 1 if by == "page" else 0

        view.dispatch(TransactionSpec(effects=(SetSelected(index=selected),)))
        return True

    return cmd


def commit_character(view: EditorView, key: str) -> bool:
    """
    Accept the selection, then type `key`, if `key` commits the selected option
    """

    dialog = _interactive(view.state)
    if not dialog or not (option := dialog.selected_option):
        return False

    chars = option.completion.commit_characters
    if chars is None:
        chars = option.source.result.commit_characters
    if not chars or key not in chars:
        return False
    elif not apply_completion(view, option=option):
        return False
    else:
        view.dispatch(type_text(view.state, text=key))
        return True


def completion_status(state: EditorState) -> Optional[CompletionStatus]:
    cstate = _cstate(state)
    if not cstate:
        return None
    elif any(a.status is Status.pending for a in cstate.active):
        return "pending"
    elif any(a.status is not Status.inactive for a in cstate.active):
        return "active"
    else:
        return None


def current_completions(state: EditorState) -> Sequence[Completion]:
    cstate = _cstate(state)
    if not cstate or not cstate.open:
        return ()
    else:
        return tuple(option.completion for option in cstate.open.options)


def selected_completion_index(state: EditorState) -> Optional[int]:
    cstate = _cstate(state)
    if (
        cstate
        and cstate.open
        and not cstate.open.disabled
        and cstate.open.selected >= 0
    ):
        return cstate.open.selected
    else:
        return None


def selected_completion(state: EditorState) -> Optional[Completion]:
    cstate = _cstate(state)
    idx = selected_completion_index(state)
    if cstate and cstate.open and idx is not None:
        return cstate.open.options[idx].completion
    else:
        return None


def set_selected_completion(index: int) -> SetSelected:
    return SetSelected(index=index)


COMPLETION_KEYMAP: Mapping[str, Command] = {
    "Ctrl-Space": start_completion,
    "Escape": close_completion,
    "ArrowDown": move_completion_selection(True),
    "ArrowUp": move_completion_selection(False),
    "PageDown": move_completion_selection(True, by="page"),
    "PageUp": move_completion_selection(False, by="page"),
    "Enter": accept_completion,
}


def keymap(config: CompletionConfig) -> Mapping[str, Command]:
    return COMPLETION_KEYMAP if config.settings.keymap.enabled else {}
