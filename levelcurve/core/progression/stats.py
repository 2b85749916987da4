"""
LEVELCURVE - LEVEL STATS
========================

Base stats plus linear per-level growth (a × (level-1) + b) for
hp, sp, attack, defense and speed, and formula-driven stat previews.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .evaluator import stat_growth
from .expression import try_evaluate
from .segments import StatGrowthFormula


STAT_NAMES = ("hp", "sp", "attack", "defense", "speed")


@dataclass(frozen=True)
class LevelStatsProfile:
    """
    Base stats and growth formulas for one character kind.

    Attributes:
        base: Stat values at level 1, keyed by STAT_NAMES
        growth: StatGrowthFormula per stat
    """
    base: Dict[str, float] = field(default_factory=dict)
    growth: Dict[str, StatGrowthFormula] = field(default_factory=dict)

    def formula(self, stat: str) -> StatGrowthFormula:
        return self.growth.get(stat, StatGrowthFormula(0, 0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": dict(self.base),
            "growth": {name: f.to_dict() for name, f in self.growth.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LevelStatsProfile":
        return cls(
            base=dict(data.get("base") or {}),
            growth={
                name: StatGrowthFormula.from_dict(f)
                for name, f in (data.get("growth") or {}).items()
            },
        )


def level_stats(profile: LevelStatsProfile, level: int) -> Dict[str, float]:
    """
    Stats at level: base plus every growth step from level 2 to level.

    Example:
        base hp 100, hp growth {a: 0, b: 20} → level 3 hp = 140
    """
    stats: Dict[str, float] = {"level": level}
    for name in STAT_NAMES:
        total = sum(stat_growth(lv, profile.formula(name)) for lv in range(2, level + 1))
        stats[name] = profile.base.get(name, 0) + total
    return stats


def stats_table(profile: LevelStatsProfile, start_level: int = 1, end_level: int = 20) -> List[Dict[str, float]]:
    """
    Rows of {level, hp, hpGrowth, sp, spGrowth, ...}.

    The *Growth column is the increase gained on reaching that level
    (0 at level 1).
    """
    rows = []
    for level in range(start_level, end_level + 1):
        row = level_stats(profile, level)
        for name in STAT_NAMES:
            row[f"{name}Growth"] = stat_growth(level, profile.formula(name))
        rows.append(row)
    return rows


def preview_stat_formula(formula: str, level: int, size: float) -> Optional[float]:
    """Live preview of a stat formula; None when undefined."""
    if not formula or not formula.strip():
        return None
    return try_evaluate(formula, {"level": level, "size": size})
