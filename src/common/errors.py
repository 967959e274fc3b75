# ABOUTME: Exception hierarchy raised by the normalizer, the report builder and the collection join.
# ABOUTME: Zero denominators never raise; ratio helpers resolve them to 0 instead.

from typing import Optional


class DashboardError(Exception):
    """Base class for every failure the aggregation core reports."""


class MalformedRecordError(DashboardError, ValueError):
    """A structurally required field is missing or has the wrong primitive type."""

    def __init__(self, field: str, reason: str, index: Optional[int] = None) -> None:
        self.field = field
        self.reason = reason
        self.index = index
        location = f" (record {index})" if index is not None else ""
        super().__init__(f"Malformed record{location}: field '{field}' {reason}")

    def at(self, index: int) -> "MalformedRecordError":
        return MalformedRecordError(self.field, self.reason, index)


class IncompleteInputError(DashboardError, ValueError):
    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Missing required input collection '{collection}'")


class CollectionFetchError(DashboardError, RuntimeError):
    def __init__(self, collection: str, cause: Optional[BaseException] = None) -> None:
        self.collection = collection
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to fetch collection '{collection}'{detail}")
