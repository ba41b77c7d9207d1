import pytest

from nekovm.stats import StatEntry, Stats


class Clock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return Clock()


def test_single_measure(clock):
    stats = Stats(clock)
    clock.now = 5
    stats.measure("run", True)
    clock.now = 45
    stats.measure("run", False)
    assert stats.build() == [StatEntry("run", 45 - 5, 45 - 5, 1, 0)]


def test_nested_subtime(clock):
    stats = Stats(clock)
    stats.measure("outer", True)
    clock.now = 10
    stats.measure("inner", True)
    clock.now = 30
    stats.measure("inner", False)
    clock.now = 100
    stats.measure("outer", False)
    rows = stats.build()
    assert [r.kind for r in rows] == ["outer", "inner"]
    outer, inner = rows
    assert outer.total_time == 100
    assert inner.total_time == 30 - 10
    assert outer.self_time == outer.total_time - inner.total_time
    assert inner.self_time == inner.total_time


def test_unfinished_section_counts_error(clock):
    stats = Stats(clock)
    stats.measure("a", True)
    stats.measure("b", True)
    clock.now = 7
    stats.measure("a", False)
    rows = {r.kind: r for r in stats.build()}
    assert rows["b"].errors == 1
    assert rows["a"].errors == 0
    assert rows["b"].total_time == 0


def test_stop_unknown_unwinds_all(clock):
    stats = Stats(clock)
    stats.measure("a", True)
    stats.measure("b", True)
    stats.measure("zzz", False)
    rows = {r.kind: r for r in stats.build()}
    assert rows["a"].errors == 1
    assert rows["b"].errors == 1


def test_recursive_entries_merged(clock):
    stats = Stats(clock)
    stats.measure("f", True)
    clock.now = 2
    stats.measure("f", True)
    clock.now = 6
    stats.measure("f", False)
    clock.now = 10
    stats.measure("f", False)
    rows = stats.build()
    assert len(rows) == 1
    row = rows[0]
    assert row.calls == 2
    assert row.total_time == (6 - 2) + 10
    assert row.self_time == 10


def test_record_reused_after_stop(clock):
    stats = Stats(clock)
    for _ in range(3):
        stats.measure("x", True)
        clock.now += 1
        stats.measure("x", False)
    rows = stats.build()
    assert len(rows) == 1
    assert rows[0].calls == 3
    assert rows[0].total_time == 3


def test_order_descending_total(clock):
    stats = Stats(clock)
    for kind, length in (("short", 1), ("long", 50), ("mid", 10)):
        stats.measure(kind, True)
        clock.now += length
        stats.measure(kind, False)
    rows = stats.build()
    totals = [r.total_time for r in rows]
    assert totals == sorted(totals, reverse=True)
    assert rows[0].kind == "long"


def test_format_report(clock):
    stats = Stats(clock)
    stats.measure("total", True)
    stats.measure("sub", True)
    clock.now = 3
    stats.measure("total", False)
    report = stats.format_report()
    lines = report.splitlines()
    assert lines[0] == "TOT\tTIME\tCOUNT\tNAME"
    assert "total" in lines[1]
    assert lines[2].endswith("sub ERRORS=1")
    assert report.endswith("\n")


def test_empty_build():
    stats = Stats()
    assert stats.build() == []
    assert stats.format_report() == "TOT\tTIME\tCOUNT\tNAME\n"


def test_default_timer_nonnegative():
    stats = Stats()
    stats.measure("x", True)
    stats.measure("x", False)
    rows = stats.build()
    assert rows[0].total_time >= 0
    assert rows[0].calls == 1