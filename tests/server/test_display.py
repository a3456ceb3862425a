from dataclasses import replace
from unittest import TestCase

from incomp.server.display import (
    label_segments,
    option_content,
    range_around_selected,
    visible_options,
)
from incomp.server.settings import default_config
from incomp.server.sources import ActiveResult
from incomp.server.state import CompletionDialog
from incomp.server.trans import Option
from incomp.shared.settings import CompletionConfig, OptionContent
from incomp.shared.types import Completion, CompletionResult

_CONFIG = default_config()


class RangeAroundSelected(TestCase):
    def test_1(self) -> None:
        self.assertEqual(range_around_selected(10, selected=3, limit=20), (0, 10))

    def test_2(self) -> None:
        self.assertEqual(range_around_selected(1000, selected=-1, limit=100), (0, 100))
        self.assertEqual(range_around_selected(1000, selected=250, limit=100), (200, 300))

    def test_3(self) -> None:
        self.assertEqual(range_around_selected(1000, selected=999, limit=100), (900, 1000))
        self.assertEqual(range_around_selected(10, selected=6, limit=3), (4, 7))

    def test_4(self) -> None:
        for selected in range(50):
            begin, end = range_around_selected(50, selected=selected, limit=7)
            self.assertLessEqual(begin, selected)
            self.assertLess(selected, end)
            self.assertEqual(end - begin, 7)


class LabelSegments(TestCase):
    def test_1(self) -> None:
        self.assertEqual(
            label_segments("apple", matched=((0, 2),)), [("ap", True), ("ple", False)]
        )

    def test_2(self) -> None:
        self.assertEqual(
            label_segments("getString", matched=((0, 1), (3, 4))),
            [("g", True), ("et", False), ("S", True), ("tring", False)],
        )

    def test_3(self) -> None:
        self.assertEqual(label_segments("abc", matched=()), [("abc", False)])
        self.assertEqual(label_segments("", matched=()), [])


class Content(TestCase):
    def test_1(self) -> None:
        completion = Completion(label="apple", type="fn", detail="()")
        rendered = tuple(
            render(completion, None, ((0, 2),)) for render in option_content(_CONFIG)
        )
        self.assertEqual(rendered, ("fn", [("ap", True), ("ple", False)], "()"))

    def test_2(self) -> None:
        extra = OptionContent(render=lambda c, _, __: c.label.upper(), position=60)
        config = replace(_CONFIG, hooks=replace(_CONFIG.hooks, add_to_options=(extra,)))
        completion = Completion(label="apple")
        rendered = tuple(render(completion, None, ()) for render in option_content(config))
        self.assertEqual(rendered, (None, [("apple", False)], "APPLE", None))

    def test_3(self) -> None:
        settings = _CONFIG.settings
        config = replace(
            _CONFIG,
            settings=replace(settings, display=replace(settings.display, icons=False)),
        )
        self.assertEqual(len(option_content(config)), 2)


class Visible(TestCase):
    def _dialog(self, total: int, selected: int) -> CompletionDialog:
        completions = tuple(Completion(label=f"c{i}") for i in range(total))
        result = CompletionResult(begin=0, end=0, options=completions)
        active = ActiveResult(
            source=lambda _: None, explicit_pos=-1, result=result, begin=0, end=0
        )
        options = tuple(
            Option(completion=c, source=active, matched=(), score=0.0)
            for c in completions
        )
        return CompletionDialog(
            options=options, pos=0, above=False, timestamp=0.0, selected=selected
        )

    def _config(self, limit: int) -> CompletionConfig:
        settings = _CONFIG.settings
        display = replace(settings.display, max_rendered_options=limit)
        return replace(_CONFIG, settings=replace(settings, display=display))

    def test_1(self) -> None:
        dialog = self._dialog(5, selected=0)
        offset, rows = visible_options(dialog, config=self._config(10))
        self.assertEqual(offset, 0)
        self.assertEqual(tuple(rows), tuple(dialog.options))

    def test_2(self) -> None:
        dialog = self._dialog(30, selected=27)
        offset, rows = visible_options(dialog, config=self._config(10))
        self.assertEqual(offset, 20)
        self.assertEqual(len(rows), 10)
        self.assertIs(rows[27 - offset], dialog.options[27])

    def test_3(self) -> None:
        dialog = self._dialog(30, selected=-1)
        offset, rows = visible_options(dialog, config=self._config(4))
        self.assertEqual(offset, 0)
        self.assertEqual([o.completion.label for o in rows], ["c0", "c1", "c2", "c3"])
