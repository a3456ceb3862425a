from collections import OrderedDict, UserDict
from typing import Generic, TypeVar, cast

K = TypeVar("K")
V = TypeVar("V")


class LRU(UserDict, Generic[K, V]):
    def __init__(self, size: int) -> None:
        assert size > 0
        self._size = size
        self.data = OrderedDict()

    def __getitem__(self, key: K) -> V:
        item = super().__getitem__(key)
        cast(OrderedDict, self.data).move_to_end(key)
        return item

    def __setitem__(self, key: K, item: V) -> None:
        if key not in self.data and len(self) >= self._size:
            cast(OrderedDict, self.data).popitem(last=False)
        super().__setitem__(key, item)
        cast(OrderedDict, self.data).move_to_end(key)
