# ABOUTME: Aggregates XP transactions into a running total and a cumulative month-by-month timeline.
# ABOUTME: Also derives the month-over-month growth shown next to the XP total.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import pandas as pd

from src.common.errors import MalformedRecordError
from src.common.ratios import percentage, round_half_up
from src.common.schemas import TimelinePoint, Transaction, TransactionKind

PERIOD_FORMAT = "%Y-%m"


@dataclass(frozen=True)
class XpSummary:
    total: int
    timeline: Tuple[TimelinePoint, ...]
    growth: float


def aggregate_xp(transactions: Iterable[Transaction]) -> XpSummary:
    """
    Build the cumulative XP timeline.

    Steps:
    - Keep xp-kind transactions and sort them by timestamp (stable, so ties keep input order).
    - Accumulate a running total.
    - Bucket by calendar month (UTC) and keep the running total as of each month's last transaction.
    """

    frame = _xp_frame(transactions)
    if frame.empty:
        return XpSummary(total=0, timeline=(), growth=0.0)

    frame = frame.sort_values("occurred_at", kind="mergesort").reset_index(drop=True)
    frame["running_total"] = frame["magnitude"].cumsum()
    frame["period"] = frame["occurred_at"].dt.strftime(PERIOD_FORMAT)

    by_period = frame.groupby("period", sort=True)["running_total"].last()
    timeline = tuple(
        TimelinePoint(period=str(period), cumulative_xp=int(value)) for period, value in by_period.items()
    )
    return XpSummary(total=int(frame["magnitude"].sum()), timeline=timeline, growth=xp_growth(timeline))


def xp_growth(timeline: Sequence[TimelinePoint]) -> float:
    """Percent change between the last two periods; 0.0 when undefined."""

    if len(timeline) < 2:
        return 0.0
    previous = timeline[-2].cumulative_xp
    latest = timeline[-1].cumulative_xp
    return round_half_up(percentage(latest - previous, previous), 1)


def _xp_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = []
    for txn in transactions:
        if txn.kind is not TransactionKind.XP:
            continue
        if txn.occurred_at is None:
            raise MalformedRecordError("occurred_at", "is required for xp transactions")
        rows.append({"occurred_at": txn.occurred_at, "magnitude": txn.magnitude})

    if not rows:
        return pd.DataFrame(columns=["occurred_at", "magnitude"])

    frame = pd.DataFrame(rows)
    frame["occurred_at"] = pd.to_datetime(frame["occurred_at"], utc=True)
    frame["magnitude"] = frame["magnitude"].astype("int64")
    return frame
