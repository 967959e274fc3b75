# ABOUTME: Tests cumulative XP aggregation by calendar month.
# ABOUTME: Ensures ordering, cumulative totals, growth and empty-input handling.

from datetime import datetime, timezone

import pytest

from src.aggregators.xp_timeline import aggregate_xp, xp_growth
from src.common.errors import MalformedRecordError
from src.common.schemas import TimelinePoint, Transaction, TransactionKind


def _xp(amount: int, date: str, path: str = "/bahrain/project") -> Transaction:
    return Transaction(
        kind=TransactionKind.XP,
        magnitude=amount,
        occurred_at=datetime.fromisoformat(date).replace(tzinfo=timezone.utc),
        subject_path=path,
    )


def test_aggregate_xp_cumulative_by_month():
    summary = aggregate_xp([_xp(100, "2024-01-05"), _xp(50, "2024-01-20"), _xp(200, "2024-02-01")])

    assert summary.total == 350
    assert summary.timeline == (
        TimelinePoint(period="2024-01", cumulative_xp=150),
        TimelinePoint(period="2024-02", cumulative_xp=350),
    )


def test_aggregate_xp_sorts_unordered_input():
    summary = aggregate_xp([_xp(200, "2024-03-01"), _xp(10, "2023-12-31"), _xp(40, "2024-01-15")])

    assert [p.period for p in summary.timeline] == ["2023-12", "2024-01", "2024-03"]
    assert [p.cumulative_xp for p in summary.timeline] == [10, 50, 250]
    assert summary.timeline[-1].cumulative_xp == summary.total


def test_aggregate_xp_timeline_is_monotonic_and_deltas_sum_to_total():
    txns = [_xp(amount, f"2024-{month:02d}-10") for month, amount in zip(range(1, 13), [5, 0, 40, 3, 99, 1, 0, 7, 8, 12, 600, 2])]
    summary = aggregate_xp(txns)

    values = [p.cumulative_xp for p in summary.timeline]
    assert values == sorted(values)
    deltas = [b - a for a, b in zip([0] + values[:-1], values)]
    assert sum(deltas) == summary.total == sum(t.magnitude for t in txns)


def test_aggregate_xp_ignores_other_kinds():
    skill = Transaction(kind=TransactionKind.SKILL, magnitude=999, occurred_at=None, subject_path="", skill_tag="skill_go")
    summary = aggregate_xp([skill, _xp(10, "2024-01-01")])
    assert summary.total == 10


def test_aggregate_xp_empty_input():
    summary = aggregate_xp([])
    assert summary.total == 0
    assert summary.timeline == ()
    assert summary.growth == 0.0


def test_aggregate_xp_requires_timestamps():
    broken = Transaction(kind=TransactionKind.XP, magnitude=10, occurred_at=None, subject_path="")
    with pytest.raises(MalformedRecordError):
        aggregate_xp([broken])


def test_xp_growth_between_last_two_periods():
    summary = aggregate_xp([_xp(100, "2024-01-05"), _xp(50, "2024-01-20"), _xp(200, "2024-02-01")])
    assert summary.growth == 133.3


def test_xp_growth_guards():
    assert xp_growth([]) == 0.0
    assert xp_growth([TimelinePoint("2024-01", 100)]) == 0.0
    assert xp_growth([TimelinePoint("2024-01", 0), TimelinePoint("2024-02", 0)]) == 0.0
    assert xp_growth([TimelinePoint("2024-01", 200), TimelinePoint("2024-02", 200)]) == 0.0
