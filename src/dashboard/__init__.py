# ABOUTME: Exposes the report builder, the concurrent collection join and report export helpers.
# ABOUTME: This is the only package that knows about every aggregator.

from .collect import (
    build_dashboard_report,
    build_dashboard_report_sync,
    collect_collections,
    collect_collections_sync,
    static_source,
)
from .export import format_xp, report_to_dict, write_report_json
from .report import REQUIRED_COLLECTIONS, build_report

__all__ = [
    "REQUIRED_COLLECTIONS",
    "build_dashboard_report",
    "build_dashboard_report_sync",
    "build_report",
    "collect_collections",
    "collect_collections_sync",
    "format_xp",
    "report_to_dict",
    "static_source",
    "write_report_json",
]
