from dataclasses import replace
from typing import Optional
from unittest import TestCase

from incomp.host.state import (
    EditorState,
    Selection,
    TransactionSpec,
    delete_backward,
    type_text,
)
from incomp.host.text import Change, ChangeSet
from incomp.server.effects import CloseCompletion, SetActive, StartCompletion
from incomp.server.settings import default_settings
from incomp.server.sources import (
    ActiveResult,
    ActiveSource,
    Status,
    UpdateType,
    advance,
    is_reset,
    replay,
    update_type,
)
from incomp.shared.context import CompletionContext
from incomp.shared.types import Completion, CompletionResult

_OPTIONS = default_settings().completion


def _source(_: CompletionContext) -> Optional[CompletionResult]:
    return None


def _state(doc: str, pos: Optional[int] = None) -> EditorState:
    return EditorState.create(
        doc=doc, selection=Selection.cursor(len(doc) if pos is None else pos)
    )


def _result(begin: int, end: int, **kwargs: object) -> ActiveResult:
    result = CompletionResult(
        begin=begin, end=end, options=(Completion(label="apple"),), **kwargs
    )
    return ActiveResult(
        source=_source, explicit_pos=-1, result=result, begin=begin, end=end
    )


class UpdateTypes(TestCase):
    def test_1(self) -> None:
        state = _state("a")
        tr = state.update(type_text(state, text="b"))
        kind = update_type(tr, options=_OPTIONS)
        self.assertEqual(kind, UpdateType.typing | UpdateType.activate)
        self.assertFalse(is_reset(kind))

    def test_2(self) -> None:
        state = _state("a")
        tr = state.update(type_text(state, text="b"))
        options = replace(_OPTIONS, activate_on_typing=False)
        self.assertEqual(update_type(tr, options=options), UpdateType.typing)

    def test_3(self) -> None:
        state = _state("abc")
        tr = state.update(TransactionSpec(changes=(Change(begin=0, end=1),)))
        kind = update_type(tr, options=_OPTIONS)
        self.assertEqual(kind, UpdateType.reset_if_touching)
        self.assertTrue(is_reset(kind))

    def test_4(self) -> None:
        state = _state("abc")
        tr = state.update(TransactionSpec(selection=Selection.cursor(0)))
        self.assertEqual(update_type(tr, options=_OPTIONS), UpdateType.selection)

    def test_5(self) -> None:
        state = _state("abc")
        tr = state.update(TransactionSpec(effects=(CloseCompletion(),)))
        kind = update_type(tr, options=_OPTIONS)
        self.assertEqual(kind, UpdateType.none)
        self.assertFalse(is_reset(kind))


class Inactive(TestCase):
    def test_1(self) -> None:
        value = ActiveSource(source=_source, status=Status.inactive)
        state = _state("foo")
        tr = state.update(type_text(state, text="b"))
        new = advance(value, tr=tr, options=_OPTIONS)
        self.assertIsInstance(new, ActiveSource)
        self.assertIs(new.status, Status.pending)
        assert isinstance(new, ActiveSource)
        self.assertEqual(new.explicit_pos, -1)

    def test_2(self) -> None:
        value = ActiveSource(source=_source, status=Status.inactive)
        state = _state("foo")
        tr = state.update(type_text(state, text="b"))
        options = replace(_OPTIONS, activate_on_typing=False)
        self.assertIs(advance(value, tr=tr, options=options), value)

    def test_3(self) -> None:
        value = ActiveSource(source=_source, status=Status.inactive)
        state = _state("foo", pos=1)
        tr = state.update(TransactionSpec(effects=(StartCompletion(explicit=True),)))
        new = advance(value, tr=tr, options=_OPTIONS)
        assert isinstance(new, ActiveSource)
        self.assertIs(new.status, Status.pending)
        self.assertEqual(new.explicit_pos, 1)

    def test_4(self) -> None:
        value = ActiveSource(source=_source, status=Status.pending)
        state = _state("foo")
        tr = state.update(TransactionSpec(selection=Selection.cursor(0)))
        new = advance(value, tr=tr, options=_OPTIONS)
        self.assertIs(new.status, Status.inactive)

    def test_5(self) -> None:
        value = ActiveSource(source=_source, status=Status.pending, explicit_pos=3)
        state = _state("foo")
        tr = state.update(TransactionSpec(changes=(Change(begin=3, end=3, insert="x"),)))
        new = advance(value, tr=tr, options=_OPTIONS)
        self.assertIs(new.status, Status.inactive)

    def test_6(self) -> None:
        value = ActiveSource(source=_source, status=Status.pending, explicit_pos=3)
        state = _state("foo")
        tr = state.update(type_text(state, text="d"))
        new = advance(value, tr=tr, options=_OPTIONS)
        assert isinstance(new, ActiveSource)
        self.assertIs(new.status, Status.pending)
        self.assertEqual(new.explicit_pos, 3)


class Results(TestCase):
    def test_1(self) -> None:
        value = _result(4, 4, valid_for=r"\w*")
        state = _state("foo.")
        tr = state.update(type_text(state, text="b"))
        new = advance(value, tr=tr, options=_OPTIONS)
        assert isinstance(new, ActiveResult)
        self.assertEqual((new.begin, new.end), (4, 5))
        self.assertIs(new.result, value.result)

    def test_2(self) -> None:
        value = _result(3, 8, valid_for=r"\w*")
        state = _state("0123456789", pos=8)
        tr = state.update(TransactionSpec(changes=(Change(begin=3, end=8),)))
        new = advance(value, tr=tr, options=_OPTIONS)
        self.assertIsInstance(new, ActiveSource)
        self.assertIs(new.status, Status.inactive)

    def test_3(self) -> None:
        value = _result(0, 1)
        state = _state("a")
        tr = state.update(type_text(state, text="p"))
        new = advance(value, tr=tr, options=_OPTIONS)
        assert isinstance(new, ActiveSource)
        self.assertIs(new.status, Status.pending)

    def test_4(self) -> None:
        value = _result(2, 4, valid_for=r"\w*")
        state = _state("x.ab")
        for _ in range(2):
            tr = state.update(delete_backward(state))
            state = tr.state
            value = advance(value, tr=tr, options=_OPTIONS)
            self.assertIsInstance(value, ActiveResult)

        assert isinstance(value, ActiveResult)
        self.assertEqual((value.begin, value.end), (2, 2))

        tr = state.update(delete_backward(state))
        new = advance(value, tr=tr, options=_OPTIONS)
        self.assertIs(new.status, Status.inactive)

    def test_5(self) -> None:
        value = _result(0, 3, valid_for=r"\w*")
        state = _state("abc defg")
        tr = state.update(TransactionSpec(selection=Selection.cursor(8)))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.inactive)

    def test_6(self) -> None:
        value = _result(0, 3, valid_for=r"\w*")
        state = _state("abc defg", pos=3)
        tr = state.update(TransactionSpec(selection=Selection.cursor(1)))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS), value)

    def test_7(self) -> None:
        value = _result(0, 1, valid_for=r"\w*")
        state = _state("a")
        tr = state.update(type_text(state, text="."))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.pending)

    def test_8(self) -> None:
        def update(
            result: CompletionResult, begin: int, end: int, context: CompletionContext
        ) -> Optional[CompletionResult]:
            return replace(result, options=(Completion(label="updated"),), end=None)

        value = _result(0, 1, update=update)
        state = _state("a")
        tr = state.update(type_text(state, text="b"))
        new = advance(value, tr=tr, options=_OPTIONS)
        assert isinstance(new, ActiveResult)
        self.assertEqual(new.result.options[0].label, "updated")
        self.assertEqual(new.end, 2)

    def test_9(self) -> None:
        value = _result(0, 1, valid_for=r"\w*", map=lambda *_: None)
        state = _state("a b")
        tr = state.update(TransactionSpec(changes=(Change(begin=3, end=3, insert="c"),)))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.inactive)

    def test_10(self) -> None:
        value = _result(0, 1, valid_for=r"\w*")
        state = _state("a")
        tr = state.update(TransactionSpec(effects=(CloseCompletion(),)))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.inactive)

    def test_11(self) -> None:
        value = ActiveSource(source=_source, status=Status.pending)
        delivered = _result(0, 1)
        state = _state("a")
        tr = state.update(TransactionSpec(effects=(SetActive(sources=(delivered,)),)))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS), delivered)

    def test_12(self) -> None:
        value = _result(0, 2, valid_for=r"\w*")
        state = _state("ap")
        tr = state.update(type_text(state, text="\n"))
        new = advance(value, tr=tr, options=_OPTIONS)
        self.assertIsInstance(new, ActiveSource)
        self.assertIs(new.status, Status.pending)

    def test_13(self) -> None:
        def valid_for(text: str, begin: int, end: int, state: EditorState) -> bool:
            raise RuntimeError(text)

        value = _result(0, 1, valid_for=valid_for)
        state = _state("a")
        tr = state.update(type_text(state, text="p"))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.pending)

    def test_14(self) -> None:
        def update(
            result: CompletionResult, begin: int, end: int, context: CompletionContext
        ) -> Optional[CompletionResult]:
            raise RuntimeError(begin)

        value = _result(0, 1, update=update)
        state = _state("a")
        tr = state.update(type_text(state, text="p"))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.pending)

    def test_15(self) -> None:
        def map_result(
            result: CompletionResult, changes: ChangeSet
        ) -> Optional[CompletionResult]:
            raise RuntimeError(changes)

        value = _result(0, 1, valid_for=r"\w*", map=map_result)
        state = _state("a b")
        tr = state.update(TransactionSpec(changes=(Change(begin=3, end=3, insert="c"),)))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.inactive)

        state = _state("a b", pos=1)
        tr = state.update(type_text(state, text="p"))
        self.assertIs(advance(value, tr=tr, options=_OPTIONS).status, Status.pending)


class Replay(TestCase):
    def test_1(self) -> None:
        value = _result(0, 1, valid_for=r"\w*")
        state = _state("a")
        transactions = []
        for char in "ppl":
            tr = state.update(type_text(state, text=char))
            state = tr.state
            transactions.append(tr)

        stepped = value
        for tr in transactions:
            stepped = advance(stepped, tr=tr, options=_OPTIONS)

        replayed = replay(value, transactions=transactions, options=_OPTIONS)
        assert isinstance(replayed, ActiveResult) and isinstance(stepped, ActiveResult)
        self.assertEqual((replayed.begin, replayed.end), (stepped.begin, stepped.end))
        self.assertEqual(replayed.end, 4)
