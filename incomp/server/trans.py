from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import (
    Callable,
    Iterator,
    Mapping,
    MutableMapping,
    MutableSequence,
    Optional,
    Sequence,
)

from ..host.state import EditorState
from ..shared.fuzzy import new_matcher
from ..shared.settings import CompletionConfig
from ..shared.timeit import timeit
from ..shared.types import Completion, CompletionSection, MatchedRanges
from .sources import ActiveResult, SourceState

_NO_RANK = 1e9


@dataclass(frozen=True)
class Option:
    completion: Completion
    source: ActiveResult
    matched: MatchedRanges
    score: float


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


def quality(completion: Completion) -> int:
    """
    Tie breaker between duplicates
    """

    return (
        (4 if completion.apply is not None else 0)
        + (2 if completion.info is not None else 0)
        + (1 if completion.type is not None else 0)
    )


def _is_dup(prev: Completion, cur: Completion) -> bool:
    return (
        prev.label == cur.label
        and prev.detail == cur.detail
        and (prev.type is None or cur.type is None or prev.type == cur.type)
        and prev.apply == cur.apply
        and prev.boost == cur.boost
    )


def _matched(active: ActiveResult, state: EditorState, config: CompletionConfig) -> Iterator[Option]:
    settings = config.settings
    get_match = active.result.get_match
    pattern = state.slice_doc(active.begin, active.end)
    matcher = new_matcher(pattern, options=settings.match, weights=settings.weights)

    for completion in active.result.options:
        if metrics := matcher.match(completion.label):
            if completion.display_label is None:
                matched = metrics.matched
            else:
                matched = get_match(completion, metrics.matched) if get_match else ()
            yield Option(
                completion=completion,
                source=active,
                matched=matched,
                score=metrics.score + completion.boost,
            )


def _section_order(
    sections: Sequence[CompletionSection], best: Mapping[str, float]
) -> Sequence[CompletionSection]:
    def rank(section: CompletionSection) -> float:
        return section.rank if isinstance(section.rank, int) else _NO_RANK

    def cmp(lhs: CompletionSection, rhs: CompletionSection) -> int:
        if lhs.rank == "dynamic" and rhs.rank == "dynamic":
            if dynamic := _sign(best[rhs.name] - best[lhs.name]):
                return dynamic
        return _sign(rank(lhs) - rank(rhs)) or (lhs.name > rhs.name) - (
            lhs.name < rhs.name
        )

    return sorted(sections, key=cmp_to_key(cmp))


def _sectioned(options: Sequence[Option], config: CompletionConfig) -> Sequence[Option]:
    sections: MutableMapping[str, CompletionSection] = {}
    best: MutableMapping[str, float] = {}
    for option in options:
        section = option.completion.section
        if section is not None:
            name = option.completion.section_name or ""
            if name not in sections:
                sections[name] = (
                    section
                    if isinstance(section, CompletionSection)
                    else CompletionSection(name=name)
                )
            best[name] = max(best.get(name, option.score), option.score)

    if not sections:
        return options
    else:
        offset = config.settings.weights.section_offset
        order = _section_order(tuple(sections.values()), best=best)
        offsets = {section.name: -(idx + 1) * offset for idx, section in enumerate(order)}

        def cont(option: Option) -> Option:
            name = option.completion.section_name
            if option.completion.section is None or name is None:
                return option
            else:
                return replace(option, score=option.score + offsets[name])

        return tuple(map(cont, options))


def _sort_by(
    compare: Callable[[Completion, Completion], int]
) -> Callable[[Option], object]:
    def cmp(lhs: Option, rhs: Option) -> int:
        return _sign(rhs.score - lhs.score) or compare(lhs.completion, rhs.completion)

    return cmp_to_key(cmp)


def _dedup(ranked: Sequence[Option], max_results: int) -> Iterator[Option]:
    prev: Optional[Completion] = None
    kept: Optional[Option] = None
    count = 0
    for option in ranked:
        cur = option.completion
        if prev is not None and kept is not None and _is_dup(prev, cur):
            if quality(cur) > quality(prev):
                kept = option
        else:
            if kept is not None:
                yield kept
                count += 1
            if count >= max_results:
                return
            kept = option
        prev = cur

    if kept is not None and count < max_results:
        yield kept


def sort_options(
    active: Sequence[SourceState], state: EditorState, config: CompletionConfig
) -> Sequence[Option]:
    """
    Match, score, section, sort, dedup
    """

    settings = config.settings
    with timeit("SORT OPTIONS"):
        options: MutableSequence[Option] = []
        for a in active:
            if isinstance(a, ActiveResult):
                if a.result.filter:
                    options.extend(_matched(a, state=state, config=config))
                else:
                    get_match = a.result.get_match
                    for completion in a.result.options:
                        options.append(
                            Option(
                                completion=completion,
                                source=a,
                                matched=get_match(completion, ()) if get_match else (),
                                score=settings.weights.unfiltered_base - len(options),
                            )
                        )

        sectioned = _sectioned(options, config=config)
        ranked = sorted(sectioned, key=_sort_by(config.hooks.compare_completions))
        return tuple(_dedup(ranked, max_results=settings.match.max_results))
