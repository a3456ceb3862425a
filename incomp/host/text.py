from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Change:
    """
    Replace `doc[begin:end]` with `insert`, offsets in the pre-change doc
    """

    begin: int
    end: int
    insert: str = ""


@dataclass(frozen=True)
class ChangeSet:
    length: int
    changes: Sequence[Change] = ()

    @classmethod
    def of(cls, length: int, changes: Sequence[Change]) -> "ChangeSet":
        ordered = sorted(changes, key=lambda c: (c.begin, c.end))
        prev_end = 0
        for change in ordered:
            if not 0 <= change.begin <= change.end <= length:
                raise ValueError(f"change out of range {change} :: {length}")
            elif change.begin < prev_end:
                raise ValueError(f"overlapping changes {ordered}")
            prev_end = change.end
        return cls(
            length=length,
            changes=tuple(c for c in ordered if c.begin != c.end or c.insert),
        )

    @property
    def empty(self) -> bool:
        return not self.changes

    @property
    def new_length(self) -> int:
        return self.length + sum(
            len(c.insert) - (c.end - c.begin) for c in self.changes
        )

    def _sections(self) -> Iterator[Tuple[int, int, Optional[str]]]:
        """
        Yields (pos_a, len_a, insert), `insert is None` for unchanged stretches
        """

        pos = 0
        for change in self.changes:
            if change.begin > pos:
                yield pos, change.begin - pos, None
            yield change.begin, change.end - change.begin, change.insert
            pos = change.end
        if pos < self.length:
            yield pos, self.length - pos, None

    def map_pos(self, pos: int, assoc: int = -1) -> int:
        pos_b = 0
        for pos_a, len_a, insert in self._sections():
            end_a = pos_a + len_a
            if insert is None:
                if end_a > pos:
                    return pos_b + (pos - pos_a)
                pos_b += len_a
            else:
                if end_a > pos or (end_a == pos and assoc < 0 and not len_a):
                    return pos_b if pos == pos_a or assoc < 0 else pos_b + len(insert)
                pos_b += len(insert)
        return pos_b + max(0, pos - self.length)

    def touches_range(self, begin: int, end: Optional[int] = None) -> bool:
        end = begin if end is None else end
        return any(c.begin <= end and c.end >= begin for c in self.changes)

    def apply(self, doc: str) -> str:
        if len(doc) != self.length:
            raise ValueError(f"length mismatch {len(doc)} != {self.length}")

        def cont() -> Iterator[str]:
            for pos_a, len_a, insert in self._sections():
                yield doc[pos_a : pos_a + len_a] if insert is None else insert

        return "".join(cont())
