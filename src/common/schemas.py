# ABOUTME: Defines canonical data structures shared by the normalizer, aggregators and report builder.
# ABOUTME: Centralizes transaction, progress, user, skill and report schema definitions.

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

RecordId = Union[int, str]


class TransactionKind(Enum):
    XP = "xp"
    AUDIT_UP = "audit-up"
    AUDIT_DOWN = "audit-down"
    SKILL = "skill"


@dataclass(frozen=True)
class Transaction:
    """Canonical transaction row produced by the normalizer."""

    kind: TransactionKind
    magnitude: int
    occurred_at: Optional[datetime]
    subject_path: str
    skill_tag: Optional[str] = None
    subject_name: Optional[str] = None


@dataclass(frozen=True)
class ProgressRecord:
    """A graded attempt at a project or exercise."""

    id: RecordId
    outcome_grade: float
    subject_path: str
    subject_name: str
    updated_at: datetime
    done: bool

    @property
    def passed(self) -> bool:
        return self.outcome_grade >= 1


@dataclass(frozen=True)
class UserProfile:
    id: RecordId
    login: str
    email: str
    created_at: Optional[datetime] = None
    audit_ratio: Optional[float] = None
    total_up: Optional[int] = None
    total_down: Optional[int] = None


@dataclass(frozen=True)
class AuditInput:
    """Either a precomputed ratio, aggregate sums, or both."""

    precomputed_ratio: Optional[float] = None
    up_total: Optional[int] = None
    down_total: Optional[int] = None
    up_count: Optional[int] = None
    down_count: Optional[int] = None


@dataclass(frozen=True)
class SkillAggregate:
    display_name: str
    accumulated_magnitude: int
    normalized_level: int


@dataclass(frozen=True)
class TimelinePoint:
    period: str
    cumulative_xp: int


@dataclass(frozen=True)
class PassFailCounts:
    passed: int
    failed: int

    @property
    def total(self) -> int:
        return self.passed + self.failed


@dataclass(frozen=True)
class ClassifiedOutcome:
    """A done progress record with its pass/fail status and earned XP."""

    id: RecordId
    name: str
    status: str
    grade: float
    updated_at: datetime
    subject_path: str
    xp: int = 0


@dataclass(frozen=True)
class AuditCounts:
    """Audits given and received. `approximate` marks divisor-derived counts."""

    given: int
    received: int
    approximate: bool = False


@dataclass(frozen=True)
class ReportInputs:
    """
    The five normalized collections the report builder consumes.

    A collection left as None is treated as absent; `skipped_records` counts
    raw records the normalizer dropped per collection.
    """

    user: Optional[UserProfile] = None
    xp_transactions: Optional[Tuple[Transaction, ...]] = None
    progress_records: Optional[Tuple[ProgressRecord, ...]] = None
    audit_input: Optional[AuditInput] = None
    skill_transactions: Optional[Tuple[Transaction, ...]] = None
    skipped_records: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "skipped_records", _frozen_counts(self.skipped_records))


@dataclass(frozen=True)
class Report:
    """Combined dashboard report consumed by the rendering layer."""

    user: UserProfile
    total_xp: int
    xp_timeline: Tuple[TimelinePoint, ...]
    xp_growth: float
    projects_done: int
    pass_fail_counts: PassFailCounts
    success_rate: int
    recent_outcomes: Tuple[ClassifiedOutcome, ...]
    skills: Tuple[SkillAggregate, ...]
    audit_ratio: float
    audit_counts: AuditCounts
    skipped_records: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "skipped_records", _frozen_counts(self.skipped_records))


def _frozen_counts(counts: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(sorted(counts.items())))
