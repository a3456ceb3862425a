from dataclasses import dataclass
from enum import Enum, auto
from typing import MutableSequence, Optional, Protocol, Sequence

from .parse import fold, fold_char
from .settings import MatchOptions, Weights
from .types import MatchedRange, MatchedRanges


@dataclass(frozen=True)
class MatchMetrics:
    score: float
    matched: MatchedRanges


class Matcher(Protocol):
    def match(self, word: str) -> Optional[MatchMetrics]: ...


class _CharType(Enum):
    non_word = auto()
    upper = auto()
    lower = auto()


def _char_type(char: str) -> _CharType:
    if char.isdigit():
        return _CharType.lower
    elif char != char.lower():
        return _CharType.upper
    elif char != char.upper():
        return _CharType.lower
    else:
        return _CharType.non_word


def _ranges(positions: Sequence[int]) -> MatchedRanges:
    acc: MutableSequence[MatchedRange] = []
    for pos in positions:
        if acc and acc[-1][1] == pos:
            begin, _ = acc[-1]
            acc[-1] = (begin, pos + 1)
        else:
            acc.append((pos, pos + 1))
    return tuple(acc)


class FuzzyMatcher:
    """
    Subsequence match, in decreasing order of preference:

    - exact prefix
    - every char starts a word, first one at the start
    - case folded prefix
    - exact substring
    - case folded substring
    - word starts anywhere
    - loose subsequence, not for 2 char patterns
    """

    def __init__(self, pattern: str, weights: Weights, scan_limit: int) -> None:
        self._pattern, self._weights, self._limit = pattern, weights, scan_limit
        self._chars = tuple(pattern)
        self._folded = tuple(map(fold_char, pattern))

    def _result(self, score: float, positions: Sequence[int], word: str) -> MatchMetrics:
        return MatchMetrics(score=score - len(word), matched=_ranges(positions))

    def match(self, word: str) -> Optional[MatchMetrics]:
        w, pattern = self._weights, self._pattern
        chars, folded = self._chars, self._folded
        length = len(chars)

        if not length:
            return MatchMetrics(score=w.not_full, matched=())
        elif len(word) < length:
            return None
        elif length == 1:
            first = word[0]
            score = 0 if len(word) == 1 else w.not_full
            if first == chars[0]:
                pass
            elif first == folded[0]:
                score += w.case_fold
            else:
                return None
            return MatchMetrics(score=score, matched=((0, 1),))

        direct = word.find(pattern)
        if direct == 0:
            score = 0 if len(word) == length else w.not_full
            return MatchMetrics(score=score, matched=((0, length),))

        limit = min(len(word), self._limit)
        any_to: MutableSequence[int] = []
        if direct < 0:
            for i in range(limit):
                if len(any_to) >= length:
                    break
                char, j = word[i], len(any_to)
                if char == chars[j] or char == folded[j]:
                    any_to.append(i)
            if len(any_to) < length:
                return None

        by_word: MutableSequence[int] = []
        by_word_folded = False
        adjacent_to, adjacent_start, adjacent_end = 0, -1, -1
        has_lower = any(char.islower() for char in word)
        word_adjacent = True
        prev_type = _CharType.non_word

        for i in range(limit):
            if len(by_word) >= length:
                break
            char = word[i]

            if direct < 0 and adjacent_to < length:
                if char == chars[adjacent_to] or char == folded[adjacent_to]:
                    if adjacent_to == 0:
                        adjacent_start = i
                    adjacent_end = i + 1
                    adjacent_to += 1
                else:
                    adjacent_to = 0

            char_type = _char_type(char)
            if (
                not i
                or (char_type is _CharType.upper and has_lower)
                or (
                    prev_type is _CharType.non_word
                    and char_type is not _CharType.non_word
                )
            ):
                j = len(by_word)
                if chars[j] == char:
                    by_word.append(i)
                elif folded[j] == char:
                    by_word_folded = True
                    by_word.append(i)
                elif by_word:
                    word_adjacent = False
            prev_type = char_type

        case_fold = w.case_fold if by_word_folded else 0
        if len(by_word) == length and by_word[0] == 0 and word_adjacent:
            return self._result(w.by_word + case_fold, by_word, word=word)
        elif adjacent_to == length and adjacent_start == 0:
            score = (
                w.case_fold
                - len(word)
                + (0 if adjacent_end == len(word) else w.not_full)
            )
            return MatchMetrics(score=score, matched=((0, adjacent_end),))
        elif direct > -1:
            return MatchMetrics(
                score=w.not_start - len(word),
                matched=((direct, direct + length),),
            )
        elif adjacent_to == length:
            return MatchMetrics(
                score=w.case_fold + w.not_start - len(word),
                matched=((adjacent_start, adjacent_end),),
            )
        elif len(by_word) == length:
            score = w.by_word + case_fold + w.not_start + (0 if word_adjacent else w.gap)
            return self._result(score, by_word, word=word)
        elif length == 2:
            return None
        else:
            score = (w.not_start if any_to[0] else 0) + w.case_fold + w.gap
            return self._result(score, any_to, word=word)


class StrictMatcher:
    """
    Contiguous substring only
    """

    def __init__(self, pattern: str, weights: Weights, case_sensitive: bool) -> None:
        self._pattern, self._weights = pattern, weights
        self._case_sensitive = case_sensitive
        self._folded = fold(pattern)

    def match(self, word: str) -> Optional[MatchMetrics]:
        w, pattern = self._weights, self._pattern
        if not pattern:
            return MatchMetrics(score=w.not_full, matched=())
        elif len(word) < len(pattern):
            return None
        else:
            penalty = 0.0
            idx = word.find(pattern)
            if idx < 0 and not self._case_sensitive:
                idx = fold(word).find(self._folded)
                penalty = w.case_fold
            if idx < 0:
                return None
            else:
                score = (
                    penalty
                    + (0 if len(word) == len(pattern) else w.not_full)
                    + (w.not_start - len(word) if idx else 0)
                )
                return MatchMetrics(score=score, matched=((idx, idx + len(pattern)),))


def new_matcher(pattern: str, options: MatchOptions, weights: Weights) -> Matcher:
    if options.filter_strict:
        return StrictMatcher(
            pattern, weights=weights, case_sensitive=options.case_sensitive
        )
    else:
        return FuzzyMatcher(pattern, weights=weights, scan_limit=options.scan_limit)
