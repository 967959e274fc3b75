# ABOUTME: Assembles the combined dashboard report from the five normalized input collections.
# ABOUTME: Fails fast on absent collections so a report is never partially filled.

from __future__ import annotations

from typing import Optional

from src.aggregators.audit_ratio import compute_audit_ratio
from src.aggregators.project_outcomes import classify_outcomes
from src.aggregators.skill_ranking import rank_skills
from src.aggregators.xp_timeline import aggregate_xp
from src.common.errors import IncompleteInputError
from src.common.schemas import Report, ReportInputs
from src.common.settings import DashboardConfig
from src.common.skill_names import load_skill_table

REQUIRED_COLLECTIONS = (
    "user",
    "xp_transactions",
    "progress_records",
    "audit_input",
    "skill_transactions",
)


def build_report(inputs: ReportInputs, config: Optional[DashboardConfig] = None) -> Report:
    """
    Build one Report from already-normalized collections.

    Every aggregator runs on its own collection; errors propagate unchanged.
    """

    missing = missing_collections(inputs)
    if missing:
        raise IncompleteInputError(missing[0])

    config = config or DashboardConfig()
    xp = aggregate_xp(inputs.xp_transactions)
    outcomes = classify_outcomes(inputs.progress_records, inputs.xp_transactions, config.recent_limit)
    skills = rank_skills(
        inputs.skill_transactions,
        top_n=config.top_skills,
        table=load_skill_table(config.skill_table_path),
    )
    audit = compute_audit_ratio(inputs.audit_input, config.audit_count_divisor)

    return Report(
        user=inputs.user,
        total_xp=xp.total,
        xp_timeline=xp.timeline,
        xp_growth=xp.growth,
        projects_done=outcomes.projects_done,
        pass_fail_counts=outcomes.counts,
        success_rate=outcomes.success_rate,
        recent_outcomes=outcomes.recent,
        skills=skills,
        audit_ratio=audit.ratio,
        audit_counts=audit.counts,
        skipped_records=inputs.skipped_records,
    )


def missing_collections(inputs: ReportInputs) -> list:
    return [name for name in REQUIRED_COLLECTIONS if getattr(inputs, name) is None]
