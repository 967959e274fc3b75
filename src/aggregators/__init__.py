# ABOUTME: Exposes the per-domain aggregators consumed by the report builder.
# ABOUTME: Groups XP timeline, project outcome, skill ranking and audit ratio logic.

from .audit_ratio import AuditSummary, audit_performance, audit_shares, compute_audit_ratio
from .project_outcomes import OutcomeSummary, classify_outcomes
from .skill_ranking import rank_skills
from .xp_timeline import XpSummary, aggregate_xp

__all__ = [
    "AuditSummary",
    "OutcomeSummary",
    "XpSummary",
    "aggregate_xp",
    "audit_performance",
    "audit_shares",
    "classify_outcomes",
    "compute_audit_ratio",
    "rank_skills",
]
