from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    AbstractSet,
    Any,
    Awaitable,
    Callable,
    Literal,
    Optional,
    Pattern,
    Sequence,
    Tuple,
    Union,
)

if TYPE_CHECKING:
    from ..host.state import EditorState
    from ..host.text import ChangeSet
    from .context import CompletionContext


class ValidationError(Exception): ...


# Half open (begin, end) offsets into a label
MatchedRange = Tuple[int, int]
MatchedRanges = Sequence[MatchedRange]


@dataclass(frozen=True)
class CompletionSection:
    name: str
    # `None` sorts after every numbered section
    rank: Union[int, Literal["dynamic"], None] = None


ApplyFunc = Callable[[Any, "Completion", int, int], None]
InfoFunc = Callable[["Completion"], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True, eq=False)
class Completion:
    """
    Compared by identity, the same label from two sources are two completions
    """

    label: str
    display_label: Optional[str] = None
    detail: Optional[str] = None
    info: Union[str, InfoFunc, None] = None
    apply: Union[str, ApplyFunc, None] = None
    type: Optional[str] = None
    boost: int = 0
    commit_characters: Optional[AbstractSet[str]] = None
    section: Union[str, CompletionSection, None] = None

    def __post_init__(self) -> None:
        if not -99 <= self.boost <= 99:
            raise ValidationError(f"boost out of range -- {self.label} :: {self.boost}")

    @property
    def section_name(self) -> Optional[str]:
        if isinstance(self.section, CompletionSection):
            return self.section.name
        else:
            return self.section


ValidFor = Union[Pattern[str], str, Callable[[str, int, int, "EditorState"], bool]]
GetMatch = Callable[[Completion, MatchedRanges], MatchedRanges]


@dataclass(frozen=True, eq=False)
class CompletionResult:
    begin: int
    options: Sequence[Completion]
    # Defaults to the query position
    end: Optional[int] = None
    valid_for: Optional[ValidFor] = None
    update: Optional[
        Callable[
            ["CompletionResult", int, int, "CompletionContext"],
            Optional["CompletionResult"],
        ]
    ] = None
    map: Optional[
        Callable[["CompletionResult", "ChangeSet"], Optional["CompletionResult"]]
    ] = None
    filter: bool = True
    get_match: Optional[GetMatch] = None
    commit_characters: Optional[AbstractSet[str]] = None

    def __post_init__(self) -> None:
        if not self.filter and self.valid_for is not None:
            raise ValidationError("`valid_for` cannot be combined with `filter=False`")
        elif self.end is not None and self.end < self.begin:
            raise ValidationError(f"inverted span -- {self.begin} > {self.end}")


SourceReturn = Union[
    CompletionResult, None, Awaitable[Optional[CompletionResult]]
]
CompletionSource = Callable[["CompletionContext"], SourceReturn]
