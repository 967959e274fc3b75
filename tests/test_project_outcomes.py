# ABOUTME: Tests pass/fail classification of finished progress records.
# ABOUTME: Ensures counts, success rate, recent ordering and per-project XP joins.

from datetime import datetime, timedelta, timezone

from src.aggregators.project_outcomes import classify_outcomes, subject_xp_lookup, success_rate
from src.common.schemas import PassFailCounts, ProgressRecord, Transaction, TransactionKind

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _progress(record_id, grade, days=0, done=True, path=None, name=None) -> ProgressRecord:
    path = path or f"/bahrain/bh-module/p{record_id}"
    return ProgressRecord(
        id=record_id,
        outcome_grade=grade,
        subject_path=path,
        subject_name=name or path.rsplit("/", 1)[-1],
        updated_at=BASE + timedelta(days=days),
        done=done,
    )


def _xp(amount, path) -> Transaction:
    return Transaction(kind=TransactionKind.XP, magnitude=amount, occurred_at=BASE, subject_path=path)


def test_classify_outcomes_counts_and_success_rate():
    summary = classify_outcomes([_progress(1, 1), _progress(2, 0), _progress(3, 1)])

    assert summary.counts == PassFailCounts(passed=2, failed=1)
    assert summary.success_rate == 67
    assert summary.projects_done == 3


def test_classify_outcomes_ignores_unfinished_records():
    records = [_progress(1, 1, days=1), _progress(2, 0, days=5, done=False), _progress(3, 0.5, days=3)]
    summary = classify_outcomes(records)

    assert summary.counts.passed + summary.counts.failed == sum(1 for r in records if r.done)
    assert summary.counts == PassFailCounts(passed=1, failed=1)
    assert [o.id for o in summary.recent] == [3, 1]


def test_classify_outcomes_recent_is_bounded_and_newest_first():
    records = [_progress(i, 1, days=i) for i in range(15)]
    summary = classify_outcomes(records, recent_limit=10)

    assert len(summary.recent) == 10
    assert [o.id for o in summary.recent] == list(range(14, 4, -1))
    assert summary.counts.passed == 15


def test_classify_outcomes_equal_timestamps_keep_input_order():
    summary = classify_outcomes([_progress("a", 1), _progress("b", 0), _progress("c", 1)])
    assert [o.id for o in summary.recent] == ["a", "b", "c"]
    assert [o.status for o in summary.recent] == ["passed", "failed", "passed"]


def test_classify_outcomes_attaches_project_xp():
    records = [_progress(1, 1, days=2, path="/m/graphql"), _progress(2, 0, days=1, path="/m/forum")]
    xp = [_xp(300, "/m/graphql"), _xp(200, "/m/graphql"), _xp(40, "/m/other")]
    summary = classify_outcomes(records, xp)

    assert [(o.name, o.xp) for o in summary.recent] == [("graphql", 500), ("forum", 0)]


def test_subject_xp_lookup_restricted_to_paths():
    xp = [_xp(10, "/a"), _xp(20, "/b"), _xp(5, "/a")]
    assert subject_xp_lookup(xp, {"/a"}) == {"/a": 15}
    assert subject_xp_lookup(xp, set()) == {}


def test_success_rate_without_records_is_zero():
    assert success_rate(PassFailCounts(0, 0)) == 0
    summary = classify_outcomes([])
    assert summary.success_rate == 0
    assert summary.recent == ()
