# ABOUTME: Canonicalizes raw skill identifiers into display names.
# ABOUTME: Backed by the versioned lookup table in configs/skill_names.yaml with a title-case fallback.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, Mapping, Optional

import yaml

from .settings import DEFAULT_SKILL_TABLE_PATH

UNKNOWN_SKILL = "Unknown"
_SEPARATORS = re.compile(r"[_\-\s]+")


@dataclass(frozen=True)
class SkillNameTable:
    """Known skill identifiers mapped to their display names."""

    version: int
    prefix: str = "skill_"
    names: Mapping[str, str] = field(default_factory=dict)
    generic_tags: FrozenSet[str] = frozenset()

    def lookup(self, identifier: str) -> Optional[str]:
        return self.names.get(identifier.lower())


def load_skill_table(path: Optional[Path] = None) -> SkillNameTable:
    """Load a skill name table; the default table is parsed once per process."""

    resolved = Path(path).resolve() if path is not None else DEFAULT_SKILL_TABLE_PATH
    return _load_skill_table(str(resolved))


@lru_cache(maxsize=8)
def _load_skill_table(path: str) -> SkillNameTable:
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if "version" not in raw:
        raise ValueError(f"Skill table {path} has no 'version' key.")
    names = {str(key).strip().lower(): str(value) for key, value in (raw.get("names") or {}).items()}
    return SkillNameTable(
        version=int(raw["version"]),
        prefix=str(raw.get("prefix", "skill_")),
        names=names,
        generic_tags=frozenset(str(tag).lower() for tag in raw.get("generic_tags") or []),
    )


def skill_identifier(raw: str, prefix: str = "skill_") -> str:
    """
    Reduce a raw tag or path to a space-separated skill identifier.

    "skill_go" -> "go", "/bahrain/skills/prog-basics" -> "prog basics".
    """

    text = (raw or "").strip()
    if "/" in text:
        segments = [segment for segment in text.split("/") if segment]
        text = segments[-1] if segments else ""
    if prefix and text.lower().startswith(prefix.lower()):
        text = text[len(prefix):]
    return _SEPARATORS.sub(" ", text).strip()


def canonical_skill_name(raw: str, table: Optional[SkillNameTable] = None) -> str:
    table = table or load_skill_table()
    identifier = skill_identifier(raw, table.prefix)
    if not identifier:
        return UNKNOWN_SKILL

    known = table.lookup(identifier)
    if known is not None:
        return known
    return " ".join(word[:1].upper() + word[1:] for word in identifier.split(" "))
