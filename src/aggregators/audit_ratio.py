# ABOUTME: Derives the audit ratio and audit counts from a precomputed ratio or up/down sums.
# ABOUTME: Zero received XP yields a ratio of 0; counts fall back to a fixed-divisor estimate.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from src.common.ratios import percentage, round_half_up, round_half_up_int, safe_ratio
from src.common.schemas import AuditCounts, AuditInput

DEFAULT_COUNT_DIVISOR = 1000

BALANCED = "balanced"
ABOVE = "above"
BELOW = "below"
PERFORMANCE_LABELS = {
    BALANCED: "Balanced performance",
    ABOVE: "Above average performance",
    BELOW: "Below average performance",
}


@dataclass(frozen=True)
class AuditSummary:
    ratio: float
    counts: AuditCounts


def compute_audit_ratio(audit_input: AuditInput, count_divisor: int = DEFAULT_COUNT_DIVISOR) -> AuditSummary:
    """
    Resolve the audit ratio (rounded to 2 decimals) and the given/received counts.

    A defined precomputed ratio wins; otherwise up / down is used.
    """

    return AuditSummary(
        ratio=round_half_up(resolve_ratio(audit_input), 2),
        counts=audit_counts(audit_input, count_divisor),
    )


def resolve_ratio(audit_input: AuditInput) -> float:
    precomputed = audit_input.precomputed_ratio
    if precomputed is not None and math.isfinite(precomputed) and precomputed >= 0:
        return float(precomputed)
    return safe_ratio(audit_input.up_total or 0, audit_input.down_total or 0)


def audit_counts(audit_input: AuditInput, count_divisor: int = DEFAULT_COUNT_DIVISOR) -> AuditCounts:
    """
    Exact counts when the backend supplied them.

    Otherwise each total is divided by `count_divisor` and rounded, and the
    result is flagged `approximate`.
    """

    if audit_input.up_count is not None and audit_input.down_count is not None:
        return AuditCounts(given=audit_input.up_count, received=audit_input.down_count)
    if count_divisor <= 0:
        raise ValueError("count_divisor must be positive.")
    return AuditCounts(
        given=round_half_up_int((audit_input.up_total or 0) / count_divisor),
        received=round_half_up_int((audit_input.down_total or 0) / count_divisor),
        approximate=True,
    )


def audit_performance(ratio: float, balanced_low: float = 0.9, balanced_high: float = 1.1) -> str:
    if balanced_low <= ratio <= balanced_high:
        return BALANCED
    if ratio > balanced_high:
        return ABOVE
    return BELOW


def audit_shares(counts: AuditCounts) -> Tuple[float, float]:
    """Given and received as percentages of all audits, one decimal each."""

    total = counts.given + counts.received
    return (
        round_half_up(percentage(counts.given, total), 1),
        round_half_up(percentage(counts.received, total), 1),
    )
