# ABOUTME: Tests audit ratio resolution, count derivation and the performance labels.
# ABOUTME: Ensures zero received XP yields 0 and divisor-derived counts are flagged.

import math

import pytest

from src.aggregators.audit_ratio import (
    ABOVE,
    BALANCED,
    BELOW,
    audit_counts,
    audit_performance,
    audit_shares,
    compute_audit_ratio,
)
from src.common.schemas import AuditCounts, AuditInput


def test_zero_up_and_down_yields_zero_ratio():
    summary = compute_audit_ratio(AuditInput(up_total=0, down_total=0))
    assert summary.ratio == 0
    assert not math.isnan(summary.ratio)
    assert not math.isinf(summary.ratio)


def test_zero_down_yields_zero_ratio():
    assert compute_audit_ratio(AuditInput(up_total=5000, down_total=0)).ratio == 0


def test_equal_up_and_down_yields_one():
    assert compute_audit_ratio(AuditInput(up_total=4200, down_total=4200)).ratio == 1.0


def test_ratio_rounded_to_two_decimals():
    assert compute_audit_ratio(AuditInput(up_total=2000, down_total=3000)).ratio == 0.67
    assert compute_audit_ratio(AuditInput(up_total=1005, down_total=1000)).ratio == 1.01


def test_precomputed_ratio_is_preferred():
    summary = compute_audit_ratio(AuditInput(precomputed_ratio=1.2345, up_total=1, down_total=100))
    assert summary.ratio == 1.23


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), -1.0])
def test_undefined_precomputed_ratio_falls_back_to_sums(bad):
    summary = compute_audit_ratio(AuditInput(precomputed_ratio=bad, up_total=300, down_total=200))
    assert summary.ratio == 1.5


def test_exact_counts_when_supplied():
    counts = audit_counts(AuditInput(up_total=30000, down_total=20000, up_count=12, down_count=9))
    assert counts == AuditCounts(given=12, received=9, approximate=False)


def test_counts_fall_back_to_fixed_divisor_and_are_flagged():
    counts = audit_counts(AuditInput(precomputed_ratio=1.25, up_total=1_500_499, down_total=1_200_500))
    assert counts == AuditCounts(given=1500, received=1201, approximate=True)

    empty = audit_counts(AuditInput(precomputed_ratio=1.0))
    assert empty == AuditCounts(given=0, received=0, approximate=True)


def test_invalid_divisor_is_rejected():
    with pytest.raises(ValueError):
        audit_counts(AuditInput(up_total=1, down_total=1), count_divisor=0)


def test_audit_performance_bands():
    assert audit_performance(1.0) == BALANCED
    assert audit_performance(0.9) == BALANCED
    assert audit_performance(1.1) == BALANCED
    assert audit_performance(1.35) == ABOVE
    assert audit_performance(0.4) == BELOW
    assert audit_performance(0.0) == BELOW


def test_audit_shares():
    assert audit_shares(AuditCounts(given=3, received=1)) == (75.0, 25.0)
    assert audit_shares(AuditCounts(given=1, received=2)) == (33.3, 66.7)
    assert audit_shares(AuditCounts(given=0, received=0)) == (0.0, 0.0)
