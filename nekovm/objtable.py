"""Field tables: cells of (field id, value) kept sorted by field id."""

from __future__ import annotations

from bisect import bisect_left
from typing import Any, Iterable, Iterator, Optional, Tuple


class ObjTable:
    """A table of field cells sorted by integer id, searched by bisection.

    A value of ``None`` stands for the null value; a cell holding null is
    still present in the table until :meth:`optimize` drops it.
    """

    __slots__ = ("_ids", "_values")

    def __init__(self, items: Iterable[Tuple[int, Any]] = ()) -> None:
        self._ids: list[int] = []
        self._values: list[Any] = []
        for fid, value in items:
            self.replace(fid, value)

    def _index(self, fid: int) -> Optional[int]:
        i = bisect_left(self._ids, fid)
        if i < len(self._ids) and self._ids[i] == fid:
            return i
        return None

    def find(self, fid: int) -> Any:
        """Return the value stored under ``fid``; raise KeyError if there is no cell."""
        i = self._index(fid)
        if i is None:
            raise KeyError(fid)
        return self._values[i]

    def get(self, fid: int) -> Any:
        """Return the value stored under ``fid``, or None when absent."""
        i = self._index(fid)
        return None if i is None else self._values[i]

    def replace(self, fid: int, value: Any) -> None:
        """Set the value of ``fid``, inserting a new cell in order if needed."""
        i = bisect_left(self._ids, fid)
        if i < len(self._ids) and self._ids[i] == fid:
            self._values[i] = value
        else:
            self._ids.insert(i, fid)
            self._values.insert(i, value)

    def remove(self, fid: int) -> bool:
        """Remove the cell for ``fid``; return whether one was removed."""
        i = self._index(fid)
        if i is None:
            return False
        del self._ids[i]
        del self._values[i]
        return True

    def optimize(self) -> None:
        """Drop every cell whose value is null."""
        kept = [(fid, v) for fid, v in zip(self._ids, self._values) if v is not None]
        self._ids = [fid for fid, _ in kept]
        self._values = [v for _, v in kept]

    def copy(self) -> "ObjTable":
        """Return an independent table holding the same cells."""
        other = ObjTable()
        other._ids = list(self._ids)
        other._values = list(self._values)
        return other

    def __iter__(self) -> Iterator[Tuple[int, Any]]:
        return iter(list(zip(self._ids, self._values)))

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, fid: object) -> bool:
        return isinstance(fid, int) and self._index(fid) is not None

    def __repr__(self) -> str:
        return f"ObjTable({list(self)!r})"