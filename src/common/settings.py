# ABOUTME: Loads dashboard aggregation settings from YAML into a frozen config object.
# ABOUTME: Defaults mirror configs/dashboard.yaml so callers may skip the file entirely.

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "dashboard.yaml"
DEFAULT_SKILL_TABLE_PATH = PROJECT_ROOT / "configs" / "skill_names.yaml"


@dataclass(frozen=True)
class DashboardConfig:
    """Tunable limits, thresholds and placeholder strings for report building."""

    recent_limit: int = 10
    top_skills: int = 8
    audit_count_divisor: int = 1000
    audit_balanced_low: float = 0.9
    audit_balanced_high: float = 1.1
    unknown_project_name: str = "Unknown Project"
    missing_email: str = "N/A"
    assume_done_when_missing: bool = True
    skill_table_path: Path = DEFAULT_SKILL_TABLE_PATH

    def __post_init__(self) -> None:
        if self.recent_limit < 0 or self.top_skills < 0:
            raise ValueError("recent_limit and top_skills must be non-negative.")
        if self.audit_count_divisor <= 0:
            raise ValueError("audit_count_divisor must be positive.")
        path = Path(self.skill_table_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        object.__setattr__(self, "skill_table_path", path)


def load_config(config_path: Optional[Path] = None) -> DashboardConfig:
    """
    Read the `dashboard` section of a YAML config file.

    Unknown keys are rejected so typos surface instead of being ignored.
    """

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    with open(path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    section = cfg.get("dashboard", {}) or {}
    known = {f.name for f in fields(DashboardConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown dashboard config keys: {', '.join(unknown)}")
    return DashboardConfig(**section)
