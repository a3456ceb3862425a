from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from pynvim_pp.logging import suppress_and_log

from .state import EditorState, Transaction, TransactionSpec


@dataclass(frozen=True)
class ViewUpdate:
    start_state: EditorState
    state: EditorState
    transactions: Sequence[Transaction]

    @property
    def doc_changed(self) -> bool:
        return any(tr.doc_changed for tr in self.transactions)

    @property
    def selection_set(self) -> bool:
        return any(tr.selection is not None for tr in self.transactions)


class PluginValue(Protocol):
    def update(self, update: ViewUpdate) -> None: ...

    def destroy(self) -> None: ...


class EditorView:
    def __init__(self, state: EditorState) -> None:
        self._state = state
        self._plugins: Sequence[Any] = tuple(
            plugin.create(self) for plugin in state.plugins
        )

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def plugins(self) -> Sequence[Any]:
        return self._plugins

    def dispatch(self, *specs: TransactionSpec) -> None:
        start = self._state
        transactions = []
        for spec in specs:
            tr = self._state.update(spec)
            self._state = tr.state
            transactions.append(tr)

        update = ViewUpdate(
            start_state=start, state=self._state, transactions=tuple(transactions)
        )
        for plugin in self._plugins:
            with suppress_and_log():
                plugin.update(update)

    def destroy(self) -> None:
        for plugin in self._plugins:
            with suppress_and_log():
                plugin.destroy()
