# ABOUTME: Classifies finished progress records as passed or failed and summarizes them.
# ABOUTME: Produces pass/fail counts, the success rate, and the recent-projects list with earned XP.

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from src.common.ratios import percentage, round_half_up_int
from src.common.schemas import (
    ClassifiedOutcome,
    PassFailCounts,
    ProgressRecord,
    Transaction,
    TransactionKind,
)

PASSED = "passed"
FAILED = "failed"
DEFAULT_RECENT_LIMIT = 10


@dataclass(frozen=True)
class OutcomeSummary:
    projects_done: int
    counts: PassFailCounts
    success_rate: int
    recent: Tuple[ClassifiedOutcome, ...]


def classify(record: ProgressRecord) -> str:
    return PASSED if record.passed else FAILED


def classify_outcomes(
    records: Iterable[ProgressRecord],
    xp_transactions: Iterable[Transaction] = (),
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> OutcomeSummary:
    """
    Summarize done progress records.

    Records that are not done are ignored. The recent view holds the newest
    `recent_limit` records by `updated_at`, each joined with the XP earned on
    its subject path.
    """

    eligible = [record for record in records if record.done]
    passed = sum(1 for record in eligible if record.passed)
    counts = PassFailCounts(passed=passed, failed=len(eligible) - passed)

    recent_records = most_recent(eligible, recent_limit)
    xp_lookup = subject_xp_lookup(xp_transactions, {record.subject_path for record in recent_records})
    recent = tuple(
        ClassifiedOutcome(
            id=record.id,
            name=record.subject_name,
            status=classify(record),
            grade=record.outcome_grade,
            updated_at=record.updated_at,
            subject_path=record.subject_path,
            xp=xp_lookup.get(record.subject_path, 0),
        )
        for record in recent_records
    )

    return OutcomeSummary(
        projects_done=len(eligible),
        counts=counts,
        success_rate=success_rate(counts),
        recent=recent,
    )


def success_rate(counts: PassFailCounts) -> int:
    """Passed share as a whole percentage; 0 when nothing is eligible."""

    return round_half_up_int(percentage(counts.passed, counts.total))


def most_recent(records: Sequence[ProgressRecord], limit: int) -> List[ProgressRecord]:
    # sorted() is stable with reverse=True, so equal timestamps keep input order.
    ordered = sorted(records, key=lambda record: record.updated_at, reverse=True)
    return ordered[: max(limit, 0)]


def subject_xp_lookup(transactions: Iterable[Transaction], paths: AbstractSet[str]) -> Dict[str, int]:
    """Sum xp transactions per subject path, restricted to `paths`."""

    if not paths:
        return {}
    rows = [
        {"subject_path": txn.subject_path, "magnitude": txn.magnitude}
        for txn in transactions
        if txn.kind is TransactionKind.XP and txn.subject_path in paths
    ]
    if not rows:
        return {}

    totals = pd.DataFrame(rows).groupby("subject_path")["magnitude"].sum()
    return {str(path): int(total) for path, total in totals.items()}
