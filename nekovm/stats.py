"""Timing statistics: nested measurements of named sections of work."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional


class StatEntry(NamedTuple):
    """One row of a statistics report, all times in microseconds."""

    kind: str
    total_time: int
    self_time: int
    calls: int
    errors: int


@dataclass
class _Record:
    kind: str
    ncalls: int = 0
    nerrors: int = 0
    subtime: int = 0
    totaltime: int = 0
    starttime: Optional[int] = None


class _MicroTimer:
    """Microseconds elapsed since the first reading."""

    def __init__(self) -> None:
        self._base: Optional[float] = None

    def __call__(self) -> int:
        now = time.perf_counter()
        if self._base is None:
            self._base = now
        return int((now - self._base) * 1_000_000)


class Stats:
    """Collects call counts and times for named, possibly nested, sections.

    ``timer`` returns the current time as an integer number of microseconds.
    """

    def __init__(self, timer: Optional[Callable[[], int]] = None) -> None:
        self._timer = timer if timer is not None else _MicroTimer()
        self._records: List[_Record] = []  # newest first
        self._stack: List[_Record] = []  # innermost last

    def measure(self, kind: str, start: bool) -> None:
        """Start (``start`` true) or stop the measurement of ``kind``.

        Stopping a section unwinds every section started inside it that was
        not stopped, counting an error for each of them.
        """
        if start:
            now = self._timer()
            record = next(
                (r for r in self._records if r.kind == kind and r.starttime is None),
                None,
            )
            if record is None:
                record = _Record(kind)
                self._records.insert(0, record)
            record.ncalls += 1
            self._stack.append(record)
            record.starttime = now
            return

        while self._stack:
            record = self._stack[-1]
            if record.kind == kind:
                break
            self._stack.pop()
            record.nerrors += 1
            record.starttime = None
        else:
            return

        record = self._stack.pop()
        delta = self._timer() - (record.starttime or 0)
        record.totaltime += delta
        if self._stack:
            self._stack[-1].subtime += delta
        record.starttime = None

    def build(self) -> List[StatEntry]:
        """Merge records of the same kind and return rows, longest total first."""
        merged: List[_Record] = []
        by_kind: dict[str, _Record] = {}
        for record in self._records:
            first = by_kind.get(record.kind)
            if first is None:
                by_kind[record.kind] = record
                merged.append(record)
            else:
                first.nerrors += record.nerrors
                first.ncalls += record.ncalls
                first.totaltime += record.totaltime
                first.subtime += record.subtime
        merged.sort(key=lambda r: (r.totaltime, -r.ncalls))
        self._records = merged
        return [
            StatEntry(r.kind, r.totaltime, r.totaltime - r.subtime, r.ncalls, r.nerrors)
            for r in reversed(merged)
        ]

    def format_report(self) -> str:
        """Return the tab-separated report of :meth:`build`."""
        lines = ["TOT\tTIME\tCOUNT\tNAME\n"]
        for entry in self.build():
            line = "%d\t%d\t%d\t%s" % (entry.total_time, entry.self_time, entry.calls, entry.kind)
            if entry.errors:
                line += " ERRORS=%d\n" % entry.errors
            else:
                line += "\n"
            lines.append(line)
        return "".join(lines)