"""
LEVELCURVE - CURVE EVALUATOR
============================

Maps (curve, level) → required experience.

Dispatch:
- Bezier mode: closed-form Bezier math on the matching segment
- Formula mode: the segment's formula with x bound to the level
- No matching segment: default curve floor(100 × 1.5^(level-1))

Also hosts the legacy single-formula curve and the small per-level
helpers (stat growth, exp rewards, progress percentage).
"""
from __future__ import annotations

import math
import sys
from typing import Optional

from .bezier import bezier_segment_exp
from .errors import EvaluationError, NoMatchingSegment
from .expression import evaluate
from .segments import BezierSegment, CurveConfig, ExpGrowthFormula, StatGrowthFormula, find_segment


DEFAULT_BASE_EXP = 100
DEFAULT_GROWTH_RATE = 1.5

# Requirements past float range saturate here; such levels are effectively unreachable
MAX_REQUIRED_EXP = int(sys.float_info.max)


def _saturate(value: float) -> int:
    """Floor value into [-MAX_REQUIRED_EXP, MAX_REQUIRED_EXP]."""
    if value >= MAX_REQUIRED_EXP:
        return MAX_REQUIRED_EXP
    if value <= -MAX_REQUIRED_EXP:
        return -MAX_REQUIRED_EXP
    return int(math.floor(value))


def _growth(base: float, rate: float, level: int) -> int:
    """floor(base × rate^(level-1)), saturated instead of overflowing."""
    try:
        return _saturate(base * rate ** (level - 1))
    except OverflowError:
        if base == 0:
            return 0
        return MAX_REQUIRED_EXP if base > 0 else -MAX_REQUIRED_EXP


def default_required_exp(level: int) -> int:
    """Fallback curve: floor(100 × 1.5^(level-1)), saturating at MAX_REQUIRED_EXP."""
    return _growth(DEFAULT_BASE_EXP, DEFAULT_GROWTH_RATE, level)


def segment_required_exp(curve: CurveConfig, level: int) -> int:
    """
    Required exp from the matching segment of the active sequence.

    Raises:
        NoMatchingSegment: No segment covers level
        EvaluationError: Formula segment failed to evaluate
    """
    segment = find_segment(curve, level)
    if segment is None:
        raise NoMatchingSegment(level)

    if isinstance(segment, BezierSegment):
        return bezier_segment_exp(level, segment)

    value = evaluate(segment.formula, {"level": level})
    return _saturate(value)


def required_exp(curve: Optional[CurveConfig], level: int) -> Optional[int]:
    """
    Experience needed to advance from level to level + 1.

    Args:
        curve: Segmented curve (None → default curve)
        level: Current level (>= 1)

    Returns:
        Required exp, or None when the covering formula is undefined
        (syntax/domain error). Callers render None as a sentinel rather
        than zero so a broken curve stays visible.
    """
    if curve is None:
        return default_required_exp(level)

    try:
        return segment_required_exp(curve, level)
    except NoMatchingSegment:
        return default_required_exp(level)
    except EvaluationError:
        return None


def legacy_required_exp(level: int, formula: Optional[ExpGrowthFormula] = None) -> int:
    """
    Single-formula curve used when no segmented curve is configured.

    linear:      floor(a × level + b)
    exponential: floor(a × b^(level-1))
    """
    if formula is None:
        return default_required_exp(level)

    if formula.type == "linear":
        return _saturate(formula.a * level + formula.b)
    return _growth(formula.a, formula.b, level)


def has_segmented_curve(curve: Optional[CurveConfig]) -> bool:
    """A curve counts as configured once its active sequence has segments."""
    return curve is not None and len(curve.active_segments) > 0


# ============================================================================
# PER-LEVEL HELPERS
# ============================================================================

def stat_growth(level: int, formula: StatGrowthFormula) -> int:
    """
    Stat increase gained on reaching level.

    Level 1: 0 (no prior transition)
    Level L: floor(a × (L-1) + b)
    """
    if level <= 1:
        return 0
    return int(math.floor(formula.a * (level - 1) + formula.b))


def exp_reward(monster_level: int) -> int:
    """
    Exp granted for defeating a monster.

    Example:
        level 1 → 20, level 2 → 30, level 5 → 60
    """
    return int(math.floor(20 * (1 + (monster_level - 1) * 0.5)))
