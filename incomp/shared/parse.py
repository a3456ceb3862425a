from re import compile
from typing import Pattern, Union


def fold(text: str) -> str:
    """
    Lower case, one char in one char out, so offsets survive
    """

    def cont(char: str) -> str:
        low = char.lower()
        return low if len(low) == 1 else char

    return "".join(map(cont, text))


def fold_char(char: str) -> str:
    """
    The other case of `char`, or `char` itself
    """

    upper = char.upper()
    flipped = char.lower() if upper == char else upper
    return flipped if len(flipped) == 1 else char


def ensure_anchor(expr: Union[Pattern[str], str], start: bool) -> Pattern[str]:
    pattern = expr if isinstance(expr, str) else expr.pattern
    flags = 0 if isinstance(expr, str) else expr.flags
    add_start = start and not pattern.startswith("^")
    add_end = not pattern.endswith("$")
    if not add_start and not add_end and not isinstance(expr, str):
        return expr
    else:
        anchored = f"{'^' if add_start else ''}(?:{pattern}){'$' if add_end else ''}"
        return compile(anchored, flags)
