from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Callable,
    Generic,
    Iterator,
    Mapping,
    MutableMapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from ..consts import USER_EVENT_DELETE, USER_EVENT_TYPE
from .text import Change, ChangeSet

_T = TypeVar("_T")


@dataclass(frozen=True)
class Selection:
    anchor: int
    head: int

    @classmethod
    def cursor(cls, pos: int) -> Selection:
        return cls(anchor=pos, head=pos)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head


class Facet(Generic[_T]):
    def __init__(self, default: _T) -> None:
        self.default = default

    def of(self, value: _T) -> FacetValue:
        return FacetValue(facet=self, value=value)


@dataclass(frozen=True)
class FacetValue:
    facet: Facet
    value: Any


class StateField(Generic[_T]):
    def __init__(
        self,
        create: Callable[[EditorState], _T],
        update: Callable[[_T, Transaction], _T],
    ) -> None:
        self.create, self.update = create, update


class ViewPlugin:
    def __init__(self, create: Callable[[Any], Any]) -> None:
        self.create = create


Extension = Union[FacetValue, StateField, ViewPlugin, Sequence[Any]]


def _flatten(extensions: Extension) -> Iterator[Union[FacetValue, StateField, ViewPlugin]]:
    if isinstance(extensions, (FacetValue, StateField, ViewPlugin)):
        yield extensions
    else:
        for ext in extensions:
            yield from _flatten(ext)


@dataclass(frozen=True)
class TransactionSpec:
    changes: Sequence[Change] = ()
    selection: Optional[Selection] = None
    effects: Sequence[Any] = ()
    annotations: Mapping[str, Any] = field(default_factory=dict)
    user_event: Optional[str] = None


@dataclass(frozen=True)
class EditorState:
    doc: str
    selection: Selection
    language_sources: Sequence[Any] = ()
    read_only: bool = False
    facets: Mapping[Facet, Any] = field(default_factory=dict)
    fields: Mapping[StateField, Any] = field(default_factory=dict)
    plugins: Sequence[ViewPlugin] = ()

    @classmethod
    def create(
        cls,
        doc: str = "",
        selection: Optional[Selection] = None,
        extensions: Extension = (),
        language_sources: Sequence[Any] = (),
        read_only: bool = False,
    ) -> EditorState:
        facets: MutableMapping[Facet, Any] = {}
        fields: MutableMapping[StateField, Any] = {}
        plugins = []
        for ext in _flatten(extensions):
            if isinstance(ext, FacetValue):
                facets[ext.facet] = ext.value
            elif isinstance(ext, StateField):
                fields[ext] = None
            else:
                plugins.append(ext)

        base = cls(
            doc=doc,
            selection=selection or Selection.cursor(len(doc)),
            language_sources=language_sources,
            read_only=read_only,
            facets=facets,
            plugins=tuple(plugins),
        )
        values = {f: f.create(base) for f in fields}
        return replace(base, fields=values)

    @property
    def cursor(self) -> int:
        return self.selection.head

    def slice_doc(self, begin: int = 0, end: Optional[int] = None) -> str:
        return self.doc[begin:end]

    def line_begin(self, pos: int) -> int:
        return self.doc.rfind("\n", 0, pos) + 1

    def facet(self, facet: Facet[_T]) -> _T:
        return self.facets.get(facet, facet.default)

    def field(self, state_field: StateField[_T], require: bool = True) -> Optional[_T]:
        if state_field in self.fields:
            return self.fields[state_field]
        elif require:
            raise KeyError("field not present in state")
        else:
            return None

    def update(self, spec: TransactionSpec) -> Transaction:
        changes = ChangeSet.of(len(self.doc), changes=spec.changes)
        doc = changes.apply(self.doc)

        def clip(pos: int) -> int:
            return min(max(0, pos), len(doc))

        sel = spec.selection or Selection(
            anchor=changes.map_pos(self.selection.anchor, assoc=1),
            head=changes.map_pos(self.selection.head, assoc=1),
        )
        base = replace(
            self,
            doc=doc,
            selection=Selection(anchor=clip(sel.anchor), head=clip(sel.head)),
        )
        tr = Transaction(
            start_state=self,
            state=base,
            changes=changes,
            selection=spec.selection,
            effects=tuple(spec.effects),
            annotations=spec.annotations,
            user_event=spec.user_event,
        )
        values = {f: f.update(value, tr) for f, value in self.fields.items()}
        tr.state = replace(base, fields=values)
        return tr


@dataclass
class Transaction:
    start_state: EditorState
    state: EditorState
    changes: ChangeSet
    selection: Optional[Selection]
    effects: Sequence[Any]
    annotations: Mapping[str, Any]
    user_event: Optional[str]

    @property
    def doc_changed(self) -> bool:
        return not self.changes.empty

    def is_user_event(self, event: str) -> bool:
        ue = self.user_event
        return ue is not None and (ue == event or ue.startswith(event + "."))

    def annotation(self, key: str) -> Any:
        return self.annotations.get(key)


def type_text(state: EditorState, text: str) -> TransactionSpec:
    pos = state.cursor
    return TransactionSpec(
        changes=(Change(begin=pos, end=pos, insert=text),),
        selection=Selection.cursor(pos + len(text)),
        user_event=USER_EVENT_TYPE,
    )


def delete_backward(state: EditorState, count: int = 1) -> TransactionSpec:
    pos = state.cursor
    begin = max(0, pos - count)
    return TransactionSpec(
        changes=(Change(begin=begin, end=pos),),
        selection=Selection.cursor(begin),
        user_event=USER_EVENT_DELETE,
    )
