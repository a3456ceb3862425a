from typing import MutableSequence
from unittest import TestCase

from incomp.host.state import EditorState, Selection
from incomp.shared.context import CompletionContext


def _context(doc: str, pos: int) -> CompletionContext:
    state = EditorState.create(doc=doc, selection=Selection.cursor(pos))
    return CompletionContext(state, pos=pos, explicit=False)


class MatchBefore(TestCase):
    def test_1(self) -> None:
        token = _context("foo bar", pos=7).match_before(r"\w+")
        assert token
        self.assertEqual((token.begin, token.end, token.text), (4, 7, "bar"))

    def test_2(self) -> None:
        context = _context("foo\nbar", pos=4)
        self.assertIsNone(context.match_before(r"\w+"))
        token = context.match_before(r"\w*")
        assert token
        self.assertEqual((token.begin, token.end, token.text), (4, 4, ""))

    def test_3(self) -> None:
        token = _context("foo bar", pos=5).match_before(r"\w+")
        assert token
        self.assertEqual(token.text, "b")

    def test_4(self) -> None:
        doc = "x" * 1000
        token = _context(doc, pos=len(doc)).match_before(r"x+")
        assert token
        self.assertEqual(len(token.text), 250)


class Abort(TestCase):
    def test_1(self) -> None:
        calls: MutableSequence[int] = []
        context = _context("", pos=0)
        context.add_abort_listener(lambda: calls.append(1))
        self.assertFalse(context.aborted)

        context.abort()
        context.abort()
        self.assertTrue(context.aborted)
        self.assertEqual(calls, [1])

    def test_2(self) -> None:
        calls: MutableSequence[int] = []
        context = _context("", pos=0)
        context.abort()
        context.add_abort_listener(lambda: calls.append(2))
        self.assertEqual(calls, [2])

    def test_3(self) -> None:
        calls: MutableSequence[int] = []

        def boom() -> None:
            raise RuntimeError()

        context = _context("", pos=0)
        context.add_abort_listener(boom)
        context.add_abort_listener(lambda: calls.append(3))
        context.abort()
        self.assertEqual(calls, [3])
