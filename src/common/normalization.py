# ABOUTME: Maps raw GraphQL records into canonical transactions, progress records and user profiles.
# ABOUTME: Resolves optional fields to defaults once and rejects structurally broken records.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .errors import MalformedRecordError
from .ratios import round_half_up_int
from .schemas import (
    AuditInput,
    ProgressRecord,
    RecordId,
    ReportInputs,
    Transaction,
    TransactionKind,
    UserProfile,
)
from .settings import DashboardConfig

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "Unknown Project"
MISSING_EMAIL = "N/A"
SKILL_TYPE_PREFIX = "skill_"
TIMESTAMPED_KINDS = {TransactionKind.XP, TransactionKind.AUDIT_UP, TransactionKind.AUDIT_DOWN}


@dataclass(frozen=True)
class SkippedRecord:
    index: int
    field: str
    reason: str


@dataclass(frozen=True)
class NormalizedBatch:
    records: Tuple[Any, ...]
    skipped: Tuple[SkippedRecord, ...] = ()


def transaction_kind(type_name: Any) -> TransactionKind:
    """Map a backend transaction `type` onto a TransactionKind."""

    if not isinstance(type_name, str) or not type_name.strip():
        raise MalformedRecordError("type", "is missing")
    normalized = type_name.strip().lower()
    if normalized == "xp":
        return TransactionKind.XP
    if normalized == "up":
        return TransactionKind.AUDIT_UP
    if normalized == "down":
        return TransactionKind.AUDIT_DOWN
    if normalized.startswith(SKILL_TYPE_PREFIX):
        return TransactionKind.SKILL
    raise MalformedRecordError("type", f"has unsupported value {type_name!r}")


def normalize_transaction(raw: Mapping[str, Any], kind: Optional[TransactionKind] = None) -> Transaction:
    """
    Build a Transaction from a raw `transaction` row.

    `kind` overrides the row's `type`; queries filtered to a single type
    (the XP query, for instance) do not select it.
    """

    record = _require_mapping(raw)
    raw_type = record.get("type")
    resolved_kind = kind if kind is not None else transaction_kind(raw_type)

    occurred_at = _timestamp(
        record.get("createdAt"), "createdAt", required=resolved_kind in TIMESTAMPED_KINDS
    )
    skill_tag = None
    if resolved_kind is TransactionKind.SKILL and isinstance(raw_type, str) and raw_type.strip():
        skill_tag = raw_type.strip()

    return Transaction(
        kind=resolved_kind,
        magnitude=_magnitude(record.get("amount")),
        occurred_at=occurred_at,
        subject_path=_optional_str(record.get("path")) or "",
        skill_tag=skill_tag,
        subject_name=_optional_str(_nested(record, "object", "name")),
    )


def normalize_progress(
    raw: Mapping[str, Any],
    unknown_name: str = UNKNOWN_PROJECT,
    assume_done: bool = True,
) -> ProgressRecord:
    record = _require_mapping(raw)
    path = _optional_str(record.get("path")) or ""

    done = record.get("isDone")
    if done is None:
        done = assume_done
    elif not isinstance(done, bool):
        raise MalformedRecordError("isDone", f"must be a boolean, got {type(done).__name__}")

    return ProgressRecord(
        id=_record_id(record.get("id")),
        outcome_grade=_grade(record.get("grade")),
        subject_path=path,
        subject_name=resolve_subject_name(_nested(record, "object", "name"), path, unknown_name),
        updated_at=_timestamp(record.get("updatedAt"), "updatedAt", required=True),
        done=done,
    )


def resolve_subject_name(name: Any, path: str, unknown_name: str = UNKNOWN_PROJECT) -> str:
    """Prefer the object's name, then the last path segment, then the placeholder."""

    resolved = _optional_str(name)
    if resolved:
        return resolved
    segments = [segment for segment in (path or "").split("/") if segment.strip()]
    if segments:
        return segments[-1].strip()
    return unknown_name


def normalize_user(raw: Any, missing_email: str = MISSING_EMAIL) -> UserProfile:
    """Build a UserProfile from a `user` row (GraphQL returns a one-element list)."""

    record = _require_mapping(_first_row(raw, "user"))
    login = record.get("login")
    if not isinstance(login, str) or not login.strip():
        raise MalformedRecordError("login", "is missing")

    attrs = record.get("attrs")
    email = _optional_str(attrs.get("email")) if isinstance(attrs, Mapping) else None

    return UserProfile(
        id=_record_id(record.get("id")),
        login=login.strip(),
        email=email or missing_email,
        created_at=_timestamp(record.get("createdAt"), "createdAt", required=False),
        audit_ratio=_optional_number(record.get("auditRatio"), "auditRatio"),
        total_up=_optional_count(record.get("totalUp"), "totalUp"),
        total_down=_optional_count(record.get("totalDown"), "totalDown"),
    )


def normalize_audit_input(raw: Any) -> AuditInput:
    """
    Accept any of the audit shapes the backend produces.

    - user fields: {"auditRatio", "totalUp", "totalDown"}
    - aggregates: {"upTransactions": {"aggregate": {"sum": {"amount"}, "count"}}, "downTransactions": ...}
    - plain sums: {"up", "down", "upCount", "downCount"}
    """

    if isinstance(raw, AuditInput):
        return raw
    if isinstance(raw, UserProfile):
        return AuditInput(precomputed_ratio=raw.audit_ratio, up_total=raw.total_up, down_total=raw.total_down)

    record = _require_mapping(_first_row(raw, "audit"))
    if "auditRatio" in record or "totalUp" in record or "totalDown" in record:
        return AuditInput(
            precomputed_ratio=_optional_number(record.get("auditRatio"), "auditRatio"),
            up_total=_optional_count(record.get("totalUp"), "totalUp"),
            down_total=_optional_count(record.get("totalDown"), "totalDown"),
        )

    up_node = record.get("upTransactions", record.get("transaction_aggregate"))
    down_node = record.get("downTransactions")
    if up_node is not None or down_node is not None:
        up_total, up_count = _aggregate_node(up_node, "upTransactions")
        down_total, down_count = _aggregate_node(down_node, "downTransactions")
        return AuditInput(up_total=up_total, down_total=down_total, up_count=up_count, down_count=down_count)

    if "up" in record or "down" in record:
        return AuditInput(
            up_total=_optional_count(record.get("up"), "up") or 0,
            down_total=_optional_count(record.get("down"), "down") or 0,
            up_count=_optional_count(record.get("upCount"), "upCount"),
            down_count=_optional_count(record.get("downCount"), "downCount"),
        )

    raise MalformedRecordError("audit", "has neither a ratio nor aggregate sums")


def audit_input_from_transactions(transactions: Iterable[Transaction]) -> AuditInput:
    """Derive exact audit sums and counts from audit-up/audit-down transactions."""

    up_total = down_total = up_count = down_count = 0
    for txn in transactions:
        if txn.kind is TransactionKind.AUDIT_UP:
            up_total += txn.magnitude
            up_count += 1
        elif txn.kind is TransactionKind.AUDIT_DOWN:
            down_total += txn.magnitude
            down_count += 1
    return AuditInput(up_total=up_total, down_total=down_total, up_count=up_count, down_count=down_count)


def normalize_collection(
    raws: Sequence[Any],
    normalizer: Callable[[Any], Any],
    on_error: str = "skip",
) -> NormalizedBatch:
    """
    Normalize every raw record, either skipping or raising on malformed ones.

    Skipped records are logged and returned so callers can report them.
    """

    if on_error not in ("skip", "raise"):
        raise ValueError(f"Unsupported on_error '{on_error}'. Expected 'skip' or 'raise'.")
    if raws is None or isinstance(raws, (str, bytes, Mapping)):
        raise MalformedRecordError("collection", "must be a list of records")

    records: List[Any] = []
    skipped: List[SkippedRecord] = []
    for index, raw in enumerate(raws):
        try:
            records.append(normalizer(raw))
        except MalformedRecordError as exc:
            if on_error == "raise":
                raise exc.at(index) from exc
            logger.warning("Skipping malformed record %d: %s", index, exc)
            skipped.append(SkippedRecord(index=index, field=exc.field, reason=exc.reason))
    return NormalizedBatch(records=tuple(records), skipped=tuple(skipped))


def normalize_payload(
    payload: Mapping[str, Any],
    config: Optional[DashboardConfig] = None,
    on_error: str = "skip",
) -> ReportInputs:
    """
    Normalize the five raw collections into ReportInputs.

    Absent collections stay None so the report builder can name them.
    """

    config = config or DashboardConfig()
    skipped: Dict[str, int] = {}

    def _batch(key: str, normalizer: Callable[[Any], Any]) -> Optional[Tuple[Any, ...]]:
        raws = payload.get(key)
        if raws is None:
            return None
        batch = normalize_collection(raws, normalizer, on_error=on_error)
        if batch.skipped:
            skipped[key] = len(batch.skipped)
        return batch.records

    raw_user = payload.get("user")
    raw_audit = payload.get("audit_input")

    return ReportInputs(
        user=normalize_user(raw_user, config.missing_email) if raw_user is not None else None,
        xp_transactions=_batch("xp_transactions", lambda r: normalize_transaction(r, TransactionKind.XP)),
        progress_records=_batch(
            "progress_records",
            lambda r: normalize_progress(r, config.unknown_project_name, config.assume_done_when_missing),
        ),
        audit_input=normalize_audit_input(raw_audit) if raw_audit is not None else None,
        skill_transactions=_batch("skill_transactions", lambda r: normalize_transaction(r, TransactionKind.SKILL)),
        skipped_records=skipped,
    )


def _require_mapping(raw: Any) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise MalformedRecordError("record", f"must be an object, got {type(raw).__name__}")
    return raw


def _first_row(raw: Any, name: str) -> Any:
    if isinstance(raw, (list, tuple)):
        if not raw:
            raise MalformedRecordError(name, "is empty")
        return raw[0]
    return raw


def _nested(record: Mapping[str, Any], *keys: str) -> Any:
    value: Any = record
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _record_id(value: Any) -> RecordId:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedRecordError("id", "is missing")
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise MalformedRecordError("id", f"must be an integer or string, got {type(value).__name__}")
    return value.strip() if isinstance(value, str) else value


def _magnitude(value: Any) -> int:
    if value is None:
        raise MalformedRecordError("amount", "is missing")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRecordError("amount", f"must be an integer, got {type(value).__name__}")
    if value < 0:
        raise MalformedRecordError("amount", f"must be non-negative, got {value}")
    return value


def _grade(value: Any) -> float:
    # Ungraded done records count as not passed.
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedRecordError("grade", f"must be a number, got {type(value).__name__}")
    return float(value)


def _optional_number(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedRecordError(field, f"must be a number, got {type(value).__name__}")
    return float(value)


def _optional_count(value: Any, field: str) -> Optional[int]:
    number = _optional_number(value, field)
    if number is None:
        return None
    if not math.isfinite(number):
        raise MalformedRecordError(field, f"must be finite, got {value}")
    if number < 0:
        raise MalformedRecordError(field, f"must be non-negative, got {value}")
    return round_half_up_int(number)


def _aggregate_node(node: Any, field: str) -> Tuple[int, Optional[int]]:
    if node is None:
        return 0, None
    aggregate = _nested(node, "aggregate") if isinstance(node, Mapping) else None
    if not isinstance(aggregate, Mapping):
        raise MalformedRecordError(field, "has no aggregate block")
    # An empty aggregation sums to null.
    total = _optional_count(_nested(aggregate, "sum", "amount"), f"{field}.sum.amount") or 0
    count = _optional_count(aggregate.get("count"), f"{field}.count")
    return total, count


def _timestamp(value: Any, field: str, required: bool) -> Optional[datetime]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise MalformedRecordError(field, "is missing")
        return None
    if not isinstance(value, (str, datetime)):
        raise MalformedRecordError(field, f"must be an ISO timestamp, got {type(value).__name__}")
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(field, f"is not a valid timestamp: {value!r}") from exc
    if pd.isna(ts):
        raise MalformedRecordError(field, f"is not a valid timestamp: {value!r}")
    ts = ts.tz_localize(timezone.utc) if ts.tzinfo is None else ts.tz_convert(timezone.utc)
    return ts.to_pydatetime()
