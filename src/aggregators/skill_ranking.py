# ABOUTME: Ranks skill transactions into the top skills shown on the dashboard.
# ABOUTME: Groups by canonical skill name, sums XP, keeps the top N and scales levels against the leader.

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from src.common.ratios import round_half_up_int, safe_ratio
from src.common.schemas import SkillAggregate, Transaction, TransactionKind
from src.common.skill_names import SkillNameTable, canonical_skill_name, load_skill_table

DEFAULT_TOP_SKILLS = 8
MAX_LEVEL = 100


def skill_source(txn: Transaction, table: SkillNameTable) -> str:
    """Pick the raw identifier to canonicalize: the type tag, or the path for generic tags."""

    tag = txn.skill_tag
    if tag and tag.lower() not in table.generic_tags:
        return tag
    return txn.subject_path or tag or ""


def rank_skills(
    transactions: Iterable[Transaction],
    top_n: int = DEFAULT_TOP_SKILLS,
    table: Optional[SkillNameTable] = None,
) -> Tuple[SkillAggregate, ...]:
    """
    Rank skills by accumulated XP.

    Levels are relative to the top skill (which scores 100); ties in XP keep
    the order in which the skill first appeared.
    """

    table = table or load_skill_table()
    rows = [
        {"display_name": canonical_skill_name(skill_source(txn, table), table), "magnitude": txn.magnitude}
        for txn in transactions
        if txn.kind is TransactionKind.SKILL
    ]
    if not rows or top_n <= 0:
        return ()

    totals = pd.DataFrame(rows).groupby("display_name", sort=False)["magnitude"].sum()
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:top_n]
    levels = normalize_levels([int(total) for _, total in ranked])

    return tuple(
        SkillAggregate(display_name=str(name), accumulated_magnitude=int(total), normalized_level=level)
        for (name, total), level in zip(ranked, levels)
    )


def normalize_levels(magnitudes: Sequence[int]) -> List[int]:
    """Scale each magnitude to [0, 100] relative to the largest; all zero when the largest is 0."""

    if not magnitudes:
        return []
    top = max(magnitudes)
    return [round_half_up_int(safe_ratio(value, top) * MAX_LEVEL) for value in magnitudes]
