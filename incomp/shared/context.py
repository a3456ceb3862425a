from dataclasses import dataclass
from typing import Callable, MutableSequence, Optional, Pattern, Union

from pynvim_pp.logging import suppress_and_log

from ..consts import MATCH_BEFORE_LIMIT
from ..host.state import EditorState
from .parse import ensure_anchor


@dataclass(frozen=True)
class Token:
    begin: int
    end: int
    text: str


class CompletionContext:
    """
    Handed to completion sources, one per query

    Cancellation is cooperative: sources poll `aborted`, or register
    listeners that run once when the query is dropped
    """

    def __init__(self, state: EditorState, pos: int, explicit: bool) -> None:
        self.state, self.pos, self.explicit = state, pos, explicit
        self._abort_listeners: Optional[MutableSequence[Callable[[], None]]] = []

    @property
    def aborted(self) -> bool:
        return self._abort_listeners is None

    def add_abort_listener(self, listener: Callable[[], None]) -> None:
        if self._abort_listeners is None:
            with suppress_and_log():
                listener()
        else:
            self._abort_listeners.append(listener)

    def abort(self) -> None:
        listeners, self._abort_listeners = self._abort_listeners, None
        for listener in listeners or ():
            with suppress_and_log():
                listener()

    def match_before(self, expr: Union[Pattern[str], str]) -> Optional[Token]:
        begin = max(self.state.line_begin(self.pos), self.pos - MATCH_BEFORE_LIMIT)
        text = self.state.slice_doc(begin, self.pos)
        if match := ensure_anchor(expr, start=False).search(text):
            found = match.start()
            return Token(begin=begin + found, end=self.pos, text=text[found:])
        else:
            return None
