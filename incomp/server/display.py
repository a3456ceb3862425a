from typing import Any, Callable, MutableSequence, Sequence, Tuple

from ..shared.settings import CompletionConfig, OptionContent
from ..shared.types import Completion, MatchedRanges
from .state import CompletionDialog
from .trans import Option

# (text, highlighted)
Segment = Tuple[str, bool]
Renderer = Callable[[Completion, Any, MatchedRanges], Any]

ICON_POSITION = 20
LABEL_POSITION = 50
DETAIL_POSITION = 80


def range_around_selected(total: int, selected: int, limit: int) -> Tuple[int, int]:
    """
    Window of at most `limit` rows out of `total` that holds `selected`
    """

    if total <= limit:
        return 0, total

    selected = 0 if selected < 0 else selected
    if selected <= total // 2:
        off = selected // limit
        return off * limit, (off + 1) * limit
    else:
        off = (total - 1 - selected) // limit
        return total - (off + 1) * limit, total - off * limit


def visible_options(
    dialog: CompletionDialog, config: CompletionConfig
) -> Tuple[int, Sequence[Option]]:
    """
    (offset of the first row, rows) the renderer should draw
    """

    begin, end = range_around_selected(
        len(dialog.options),
        selected=dialog.selected,
        limit=config.settings.display.max_rendered_options,
    )
    return begin, dialog.options[begin:end]


def label_segments(label: str, matched: MatchedRanges) -> Sequence[Segment]:
    acc: MutableSequence[Segment] = []
    pos = 0
    for begin, end in matched:
        begin, end = max(begin, pos), min(end, len(label))
        if begin >= end:
            continue
        if begin > pos:
            acc.append((label[pos:begin], False))
        acc.append((label[begin:end], True))
        pos = end
    if pos < len(label):
        acc.append((label[pos:], False))
    return acc


def _icon(completion: Completion, _: Any, __: MatchedRanges) -> Any:
    return completion.type


def _label(completion: Completion, _: Any, matched: MatchedRanges) -> Any:
    label = completion.display_label or completion.label
    return label_segments(label, matched=matched)


def _detail(completion: Completion, _: Any, __: MatchedRanges) -> Any:
    return completion.detail


def option_content(config: CompletionConfig) -> Sequence[Renderer]:
    content: MutableSequence[OptionContent] = [*config.hooks.add_to_options]
    if config.settings.display.icons:
        content.append(OptionContent(render=_icon, position=ICON_POSITION))
    content.append(OptionContent(render=_label, position=LABEL_POSITION))
    content.append(OptionContent(render=_detail, position=DETAIL_POSITION))
    ordered = sorted(content, key=lambda c: c.position)
    return tuple(c.render for c in ordered)
