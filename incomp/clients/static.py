from re import compile, escape, search, sub
from typing import Iterable, Optional, Pattern, Sequence, Tuple, Union

from ..shared.context import CompletionContext
from ..shared.types import Completion, CompletionResult, CompletionSource

_WORD = compile(r"^\w+$")


def _char_set(chars: Iterable[str]) -> str:
    flat = "".join(sorted(set(chars)))
    words = search(r"\w", flat) is not None
    if words:
        flat = sub(r"\w", "", flat)
    body = ("\\w" if words else "") + "".join(map(escape, flat))
    return f"[{body}]" if body else ""


def prefix_match(options: Sequence[Completion]) -> Tuple[Pattern[str], Pattern[str]]:
    """
    (`valid_for`, token) patterns covering every char the labels use
    """

    labels = tuple(o.label for o in options if o.label)
    first = _char_set(label[0] for label in labels)
    rest = _char_set(char for label in labels for char in label[1:])
    source = first + (f"{rest}*" if rest else "") + "$"
    return compile("^" + source), compile(source)


def complete_from_list(items: Iterable[Union[str, Completion]]) -> CompletionSource:
    options = tuple(
        Completion(label=item) if isinstance(item, str) else item for item in items
    )
    if all(_WORD.match(o.label) for o in options):
        valid_for, token = compile(r"\w*$"), compile(r"\w+$")
    else:
        valid_for, token = prefix_match(options)

    def source(context: CompletionContext) -> Optional[CompletionResult]:
        match = context.match_before(token)
        if not match and not context.explicit:
            return None
        else:
            return CompletionResult(
                begin=match.begin if match else context.pos,
                options=options,
                valid_for=valid_for,
            )

    return source
