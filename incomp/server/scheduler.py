from asyncio import CancelledError, Future, TimerHandle, ensure_future, get_running_loop
from dataclasses import dataclass, field
from enum import Enum, auto
from inspect import isawaitable
from time import monotonic
from typing import Any, MutableSequence, Optional

from pynvim_pp.logging import log, suppress_and_log

from ..consts import USER_EVENT_TYPE
from ..host.state import Transaction, TransactionSpec
from ..host.view import EditorView, ViewUpdate
from ..shared.context import CompletionContext
from ..shared.settings import Settings
from ..shared.timeit import timeit
from ..shared.types import CompletionResult
from .effects import CloseCompletion, SetActive, StartCompletion
from .sources import (
    ActiveResult,
    ActiveSource,
    SourceState,
    Status,
    is_reset,
    replay,
    update_type,
)
from .state import COMPLETION_STATE, CompletionState, completion_config


class _Composition(Enum):
    none = auto()
    started = auto()
    changed = auto()
    changed_and_moved = auto()


@dataclass
class _RunningQuery:
    active: ActiveSource
    context: CompletionContext
    time: float = field(default_factory=monotonic)
    # Transactions seen since the query started, replayed over the answer
    updates: MutableSequence[Transaction] = field(default_factory=list)
    finished: bool = False
    # `None` -> source had nothing
    done: Optional[CompletionResult] = None


class Scheduler:
    """
    Runs pending sources, folds their answers back in through `SetActive`

    Never touches `CompletionState` directly, everything goes through
    `EditorView.dispatch`
    """

    def __init__(self, view: EditorView) -> None:
        self._view = view
        self._loop = get_running_loop()
        self._running: MutableSequence[_RunningQuery] = []
        self._debounce_update: Optional[TimerHandle] = None
        self._debounce_accept: Optional[TimerHandle] = None
        self._pending_start = False
        self._composing = _Composition.none

        for active in self._cstate().active:
            if isinstance(active, ActiveSource) and active.status is Status.pending:
                self._start_query(active)

    def _cstate(self) -> CompletionState:
        cstate = self._view.state.field(COMPLETION_STATE)
        assert cstate
        return cstate

    def _settings(self) -> Settings:
        return completion_config(self._view.state).settings

    def _is_running(self, active: SourceState) -> bool:
        return any(q.active.source is active.source for q in self._running)

    @property
    def running(self) -> int:
        return len(self._running)

    def update(self, update: ViewUpdate) -> None:
        cstate = update.state.field(COMPLETION_STATE)
        if (
            not update.selection_set
            and not update.doc_changed
            and update.start_state.field(COMPLETION_STATE) is cstate
        ):
            return

        settings = completion_config(update.state).settings
        limits = settings.limits
        does_reset = any(
            is_reset(update_type(tr, options=settings.completion))
            for tr in update.transactions
        )
        now = monotonic()
        for query in tuple(self._running):
            if does_reset or (
                len(query.updates) + len(update.transactions) > limits.max_update_count
                and now - query.time > limits.min_abort_time
            ):
                query.context.abort()
                self._running.remove(query)
            else:
                query.updates.extend(update.transactions)

        if self._debounce_update:
            self._debounce_update.cancel()
            self._debounce_update = None

        if any(
            isinstance(effect, StartCompletion)
            for tr in update.transactions
            for effect in tr.effects
        ):
            self._pending_start = True

        delay = limits.explicit_delay if self._pending_start else limits.debounce_time
        assert cstate
        if any(
            a.status is Status.pending and not self._is_running(a)
            for a in cstate.active
        ):
            self._debounce_update = self._loop.call_later(delay, self._start_update)

        if self._composing is not _Composition.none:
            for tr in update.transactions:
                if tr.is_user_event(USER_EVENT_TYPE):
                    self._composing = _Composition.changed
                elif self._composing is _Composition.changed and tr.selection:
                    self._composing = _Composition.changed_and_moved

    def _start_update(self) -> None:
        self._debounce_update = None
        self._pending_start = False
        with suppress_and_log():
            for active in self._cstate().active:
                if (
                    isinstance(active, ActiveSource)
                    and active.status is Status.pending
                    and not self._is_running(active)
                ):
                    self._start_query(active)

    def _start_query(self, active: ActiveSource) -> None:
        state = self._view.state
        pos = state.cursor
        context = CompletionContext(state, pos=pos, explicit=active.explicit_pos == pos)
        query = _RunningQuery(active=active, context=context)
        self._running.append(query)

        fut: Future
        try:
            ret: Any = active.source(context)
        except Exception as e:
            fut = self._loop.create_future()
            fut.set_exception(e)
        else:
            if isawaitable(ret):
                fut = ensure_future(ret)
            else:
                fut = self._loop.create_future()
                fut.set_result(ret)

        fut.add_done_callback(lambda f: self._resolved(query, fut=f))

    def _resolved(self, query: _RunningQuery, fut: Future) -> None:
        try:
            done: Optional[CompletionResult] = fut.result()
        except CancelledError:
            done = None
        except Exception as e:
            if query in self._running:
                self._running.remove(query)
            if not query.context.aborted:
                log.exception("%s", e)
                with suppress_and_log():
                    self._view.dispatch(
                        TransactionSpec(effects=(CloseCompletion(),))
                    )
            return

        if query.context.aborted:
            log.debug("%s", f"dropped late answer -- {query.active.source}")
        else:
            end = query.context.pos if done is None or done.end is None else done.end
            if done is not None and done.begin > end:
                log.warn("%s", f"inverted span -- {done.begin} > {end}")
                done = None
            query.done, query.finished = done, True
            self._schedule_accept()

    def _schedule_accept(self) -> None:
        if all(q.finished for q in self._running):
            self._accept()
        elif self._debounce_accept is None:
            self._debounce_accept = self._loop.call_later(
                self._settings().limits.update_sync_time, self._accept
            )

    def _fold(self, query: _RunningQuery) -> Optional[SourceState]:
        options = self._settings().completion
        if isinstance(query.done, CompletionResult):
            result = query.done
            active: SourceState = ActiveResult(
                source=query.active.source,
                explicit_pos=query.active.explicit_pos,
                result=result,
                begin=result.begin,
                end=query.context.pos if result.end is None else result.end,
            )
            active = replay(active, transactions=query.updates, options=options)
            if isinstance(active, ActiveResult):
                return active

        current = next(
            (a for a in self._cstate().active if a.source is query.active.source),
            None,
        )
        if current and isinstance(current, ActiveSource) and current.status is Status.pending:
            if query.done is None:
                # Only clear the pending status if nothing re-armed it meanwhile
                cleared = replay(
                    ActiveSource(source=query.active.source, status=Status.inactive),
                    transactions=query.updates,
                    options=options,
                )
                if cleared.status is not Status.pending:
                    return cleared
            else:
                self._start_query(current)
        return None

    def _accept(self) -> None:
        if self._debounce_accept:
            self._debounce_accept.cancel()
        self._debounce_accept = None

        with suppress_and_log(), timeit("ACCEPT"):
            updated: MutableSequence[SourceState] = []
            for query in tuple(self._running):
                if not query.finished:
                    continue
                self._running.remove(query)
                if folded := self._fold(query):
                    updated.append(folded)

            if updated:
                self._view.dispatch(
                    TransactionSpec(effects=(SetActive(sources=tuple(updated)),))
                )

    def _dispatch_later(self, delay: float, effect: Any) -> None:
        def cont() -> None:
            with suppress_and_log():
                self._view.dispatch(TransactionSpec(effects=(effect,)))

        self._loop.call_later(delay, cont)

    def blur(self, inside_dialog: bool = False) -> None:
        settings = self._settings()
        if settings.completion.close_on_blur and self._cstate().open and not inside_dialog:
            self._dispatch_later(settings.limits.blur_delay, effect=CloseCompletion())

    def composition_start(self) -> None:
        self._composing = _Composition.started

    def composition_end(self) -> None:
        if self._composing is _Composition.changed_and_moved:
            # Nothing observable happened mid composition, start over
            self._dispatch_later(
                self._settings().limits.composition_delay,
                effect=StartCompletion(explicit=False),
            )
        self._composing = _Composition.none

    def destroy(self) -> None:
        for handle in (self._debounce_update, self._debounce_accept):
            if handle:
                handle.cancel()
        self._debounce_update = self._debounce_accept = None
        for query in self._running:
            query.context.abort()
        self._running.clear()
