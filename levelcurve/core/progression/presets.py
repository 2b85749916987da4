"""
LEVELCURVE - BUILT-IN PRESETS
=============================

Default player and monster configurations.

Both share:
- max level 100
- formula curve "100 * 1.5^(x-1)" over [1, 10] and [10, 20]
- Bezier curve (100 → 1500) over [1, 10], (1500 → 10000) over [10, 20],
  control points (0.33, 0.1) / (0.67, 0.9)

They differ in stat growth (hp/sp/attack/defense/speed):
- player:  b = 20/5/5/3/2, base 100/50/50/20/150
- monster: b = 15/3/4/2/1, base 80/30/40/15/60
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from .leveling import DEFAULT_MAX_LEVEL
from .segments import BezierPoint, BezierSegment, CurveConfig, ExpGrowthFormula, FormulaSegment, StatGrowthFormula
from .stats import STAT_NAMES, LevelStatsProfile


@dataclass(frozen=True)
class ProgressionPreset:
    name: str
    max_level: int
    curve: CurveConfig
    stats: LevelStatsProfile
    legacy_formula: ExpGrowthFormula = field(default_factory=ExpGrowthFormula)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "maxLevel": self.max_level,
            "curve": self.curve.to_dict(),
            "stats": self.stats.to_dict(),
            "expGrowth": self.legacy_formula.to_dict(),
        }


def default_curve() -> CurveConfig:
    control1 = BezierPoint(0.33, 0.1)
    control2 = BezierPoint(0.67, 0.9)

    return CurveConfig(
        segments=(
            FormulaSegment("1", 1, 10, "100 * 1.5^(x-1)"),
            FormulaSegment("2", 10, 20, "100 * 1.5^(x-1)"),
        ),
        bezier_segments=(
            BezierSegment("1", 1, 10, 100, 1500, control1, control2),
            BezierSegment("2", 10, 20, 1500, 10000, control1, control2),
        ),
        use_bezier=False,
    )


def _stats(base, growth_b) -> LevelStatsProfile:
    return LevelStatsProfile(
        base=dict(zip(STAT_NAMES, base)),
        growth={name: StatGrowthFormula(a=0, b=b) for name, b in zip(STAT_NAMES, growth_b)},
    )


PLAYER_PRESET = ProgressionPreset(
    name="player",
    max_level=DEFAULT_MAX_LEVEL,
    curve=default_curve(),
    stats=_stats((100, 50, 50, 20, 150), (20, 5, 5, 3, 2)),
)

MONSTER_PRESET = ProgressionPreset(
    name="monster",
    max_level=DEFAULT_MAX_LEVEL,
    curve=default_curve(),
    stats=_stats((80, 30, 40, 15, 60), (15, 3, 4, 2, 1)),
)

PRESETS: Dict[str, ProgressionPreset] = {
    PLAYER_PRESET.name: PLAYER_PRESET,
    MONSTER_PRESET.name: MONSTER_PRESET,
}


def get_preset(name: str) -> ProgressionPreset:
    """
    Raises:
        KeyError: Unknown preset name
    """
    return PRESETS[name]
