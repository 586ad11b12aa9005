"""Append-only arena with typed integer handles.

Nodes of the search tree reference each other by handle instead of by
object reference. An arena never frees anything; memory is reclaimed by
building a new arena and dropping the old one.
"""

from typing import Generic, Iterator, List, TypeVar

T = TypeVar("T")


class ArenaHandle(Generic[T]):
    """Stable reference to one item of one arena.

    A handle is only meaningful for the arena that issued it. Using it
    against any other arena is not detected.
    """

    __slots__ = ("index",)

    def __init__(self, index: int):
        self.index = index

    def get(self, arena: "Arena[T]") -> T:
        return arena.get(self)

    def internal_index(self) -> int:
        return self.index

    def __eq__(self, other) -> bool:
        if not isinstance(other, ArenaHandle):
            return NotImplemented
        return self.index == other.index

    def __hash__(self) -> int:
        return hash(self.index)

    def __repr__(self) -> str:
        return f"ArenaHandle({self.index})"


class Arena(Generic[T]):
    """Growable store handing out sequential handles starting at 0."""

    def __init__(self):
        self._items: List[T] = []

    @classmethod
    def with_capacity(cls, capacity: int) -> "Arena[T]":
        """Same as Arena(); Python lists grow on their own."""
        return cls()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ArenaHandle[T]]:
        """Iterate over all handles in allocation order."""
        for index in range(len(self._items)):
            yield ArenaHandle(index)

    def allocate(self, item: T) -> ArenaHandle[T]:
        self._items.append(item)
        return ArenaHandle(len(self._items) - 1)

    def get(self, handle: ArenaHandle[T]) -> T:
        return self._items[handle.index]

    # Items are mutable Python objects, so mutable access is the same lookup.
    get_mut = get
