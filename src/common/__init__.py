# ABOUTME: Makes the shared common package importable across aggregators and the report builder.
# ABOUTME: Re-exports schema types, errors and the record normalizer for convenience.

from .errors import CollectionFetchError, DashboardError, IncompleteInputError, MalformedRecordError
from .normalization import normalize_payload, normalize_progress, normalize_transaction, normalize_user
from .schemas import (
    AuditInput,
    ProgressRecord,
    Report,
    ReportInputs,
    SkillAggregate,
    Transaction,
    TransactionKind,
    UserProfile,
)
from .settings import DashboardConfig, load_config

__all__ = [
    "AuditInput",
    "CollectionFetchError",
    "DashboardConfig",
    "DashboardError",
    "IncompleteInputError",
    "MalformedRecordError",
    "ProgressRecord",
    "Report",
    "ReportInputs",
    "SkillAggregate",
    "Transaction",
    "TransactionKind",
    "UserProfile",
    "load_config",
    "normalize_payload",
    "normalize_progress",
    "normalize_transaction",
    "normalize_user",
]
