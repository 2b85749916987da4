"""
LEVELCURVE - CHART TABLE PROJECTION
===================================

Derived per-level tables for display and testing.

Rows are materialized (ranges are a few hundred levels at most), so a
projection can be re-read or re-sliced freely.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .evaluator import required_exp
from .segments import CurveConfig


@dataclass(frozen=True)
class ExpTableRow:
    """
    One level of the exp table.

    exp is None when the level's formula is undefined; such rows add
    nothing to cumulative_exp and report no growth.
    """
    level: int
    exp: Optional[int]
    cumulative_exp: int
    growth: int = 0
    growth_pct: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "exp": self.exp,
            "cumulativeExp": self.cumulative_exp,
            "growth": self.growth,
            "growthPct": self.growth_pct,
        }


def project(curve: Optional[CurveConfig], start_level: int = 1, end_level: int = 20) -> List[ExpTableRow]:
    """
    Fold required_exp over [start_level, end_level].

    Args:
        curve: Segmented curve (None → default curve)
        start_level: First level (inclusive)
        end_level: Last level (inclusive)

    Returns:
        Rows with exp, running cumulative exp and growth vs. previous level

    Example:
        >>> [r.exp for r in project(None, 1, 3)]
        [100, 150, 225]
    """
    rows: List[ExpTableRow] = []
    cumulative = 0
    previous: Optional[int] = None

    for level in range(start_level, end_level + 1):
        exp = required_exp(curve, level)

        growth = 0
        growth_pct = 0.0
        if exp is not None:
            cumulative += exp
            if previous is not None:
                growth = exp - previous
                if previous > 0:
                    growth_pct = round(growth / previous * 100, 1)

        rows.append(ExpTableRow(level, exp, cumulative, growth, growth_pct))
        previous = exp

    return rows
