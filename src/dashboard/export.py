# ABOUTME: Converts a Report into JSON-ready dictionaries for the rendering layer.
# ABOUTME: Provides the display formatters used by the dashboard cards (XP sizes, dates, audit labels).

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from src.aggregators.audit_ratio import PERFORMANCE_LABELS, audit_performance, audit_shares
from src.common.schemas import Report
from src.common.settings import DashboardConfig

_XP_UNITS = ("KB", "MB", "GB")


def format_xp(amount: int) -> str:
    """
    Render an XP amount the way the platform does (base 1000 byte units).

    0 -> "0 KB", 1500 -> "1.5 KB", 2_400_000 -> "2.4 MB".
    """

    if amount == 0:
        return "0 KB"
    value = amount / 1000
    for unit in _XP_UNITS[:-1]:
        if value < 1000:
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{value:.1f} {_XP_UNITS[-1]}"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "N/A"
    return f"{value:%b} {value.day}, {value.year}"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def report_to_dict(report: Report, config: Optional[DashboardConfig] = None) -> Dict[str, Any]:
    config = config or DashboardConfig()
    performance = audit_performance(report.audit_ratio, config.audit_balanced_low, config.audit_balanced_high)
    given_pct, received_pct = audit_shares(report.audit_counts)
    user = report.user

    return {
        "user": {
            "id": user.id,
            "login": user.login,
            "email": user.email,
            "created_at": _iso(user.created_at),
        },
        "total_xp": report.total_xp,
        "xp_growth": report.xp_growth,
        "xp_timeline": [{"period": p.period, "xp": p.cumulative_xp} for p in report.xp_timeline],
        "projects_done": report.projects_done,
        "pass_fail": {
            "passed": report.pass_fail_counts.passed,
            "failed": report.pass_fail_counts.failed,
        },
        "success_rate": report.success_rate,
        "recent_projects": [
            {
                "id": outcome.id,
                "name": outcome.name,
                "status": outcome.status,
                "grade": outcome.grade,
                "date": _iso(outcome.updated_at),
                "path": outcome.subject_path,
                "xp": outcome.xp,
            }
            for outcome in report.recent_outcomes
        ],
        "skills": [
            {"name": skill.display_name, "xp": skill.accumulated_magnitude, "level": skill.normalized_level}
            for skill in report.skills
        ],
        "audit": {
            "ratio": report.audit_ratio,
            "given": report.audit_counts.given,
            "received": report.audit_counts.received,
            "counts_approximate": report.audit_counts.approximate,
            "given_pct": given_pct,
            "received_pct": received_pct,
            "performance": performance,
            "performance_label": PERFORMANCE_LABELS[performance],
        },
        "skipped_records": dict(report.skipped_records),
    }


def write_report_json(report: Report, output_path: Path, config: Optional[DashboardConfig] = None) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(report_to_dict(report, config), indent=2), encoding="utf-8")
