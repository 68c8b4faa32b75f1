"""
Bounded record of recently processed data sets.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable, Iterator

DEFAULT_RECENTLY_PROCESSED_CAPACITY = 10000


class RecentlyProcessed:
    """
    Fixed-capacity, insertion-ordered set that evicts its oldest member.

    Guards against picking a data set up again while its relocation in S3 is
    not yet visible. It lives in memory only and is not a source of truth.
    """

    def __init__(self, capacity: int = DEFAULT_RECENTLY_PROCESSED_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: OrderedDict[Hashable, None] = OrderedDict()

    def add(self, item: Hashable) -> None:
        """Record an item; re-adding a member keeps its original position."""
        if item in self._items:
            return
        self._items[item] = None
        while len(self._items) > self.capacity:
            self._items.popitem(last=False)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"RecentlyProcessed(size={len(self._items)}, capacity={self.capacity})"
