"""
LEVELCURVE - PROGRESSION STATE MACHINE
======================================

Consumes experience grants against a character's level/exp state.

States:
- Active (level < max_level): grants accumulate, level-ups consume exp
- Capped (level == max_level): exp pinned to 0, grants discarded (terminal)

A single grant may cross several levels. The loop subtracts the current
requirement, advances one level, looks up the next requirement and repeats
until the remaining exp no longer covers it or the cap is hit. Exp left
over at the cap is discarded, not banked.

Pure: every call returns a new ProgressionState.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .evaluator import (
    default_required_exp,
    has_segmented_curve,
    legacy_required_exp,
    required_exp,
)
from .segments import CurveConfig, ExpGrowthFormula


DEFAULT_MAX_LEVEL = 100


@dataclass(frozen=True)
class ProgressionState:
    """
    Immutable progression snapshot for one character.

    Attributes:
        level: Current level ∈ [1, max_level]
        exp: Exp accumulated toward the next level
        exp_to_next: Exp needed to leave the current level
        max_level: Level cap
    """
    level: int = 1
    exp: float = 0
    exp_to_next: float = 100
    max_level: int = DEFAULT_MAX_LEVEL

    def __post_init__(self):
        if self.max_level < 1:
            raise ValueError(f"max_level must be >= 1, got {self.max_level}")
        if not (1 <= self.level <= self.max_level):
            raise ValueError(f"level must be in [1, {self.max_level}], got {self.level}")
        if self.exp < 0:
            raise ValueError(f"exp must be >= 0, got {self.exp}")

    @property
    def is_capped(self) -> bool:
        return self.level >= self.max_level

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "exp": self.exp,
            "expToNext": self.exp_to_next,
            "maxLevel": self.max_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressionState":
        return cls(
            level=int(data.get("level", 1)),
            exp=data.get("exp", 0),
            exp_to_next=data.get("expToNext", 100),
            max_level=int(data.get("maxLevel", DEFAULT_MAX_LEVEL)),
        )


@dataclass(frozen=True)
class LevelUpResult:
    state: ProgressionState
    leveled_up: bool
    levels_gained: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.to_dict(),
            "leveledUp": self.leveled_up,
            "levelsGained": self.levels_gained,
        }


def next_requirement(
    level: int,
    curve: Optional[CurveConfig] = None,
    legacy_formula: Optional[ExpGrowthFormula] = None
) -> int:
    """
    Requirement used by the level-up loop.

    Segmented curve when configured, otherwise the legacy formula. An
    undefined formula result falls back to the default curve so a broken
    formula can never stall or corrupt progression. Negative results are
    treated as 0.
    """
    if has_segmented_curve(curve):
        value = required_exp(curve, level)
        if value is None:
            value = default_required_exp(level)
    else:
        value = legacy_required_exp(level, legacy_formula)

    return max(0, value)


def new_progression(
    curve: Optional[CurveConfig] = None,
    max_level: int = DEFAULT_MAX_LEVEL,
    legacy_formula: Optional[ExpGrowthFormula] = None
) -> ProgressionState:
    """Fresh character state: level 1, exp 0."""
    if max_level <= 1:
        return ProgressionState(level=1, exp=0, exp_to_next=0, max_level=max(1, max_level))
    return ProgressionState(
        level=1,
        exp=0,
        exp_to_next=next_requirement(1, curve, legacy_formula),
        max_level=max_level
    )


def add_experience(
    state: ProgressionState,
    curve: Optional[CurveConfig],
    exp_gained: float,
    legacy_formula: Optional[ExpGrowthFormula] = None
) -> LevelUpResult:
    """
    Apply an experience grant.

    Args:
        state: Current progression state
        curve: Segmented curve (None → legacy_formula path)
        exp_gained: Non-negative grant
        legacy_formula: Single-formula curve for unsegmented configs

    Returns:
        LevelUpResult with the new state and the number of levels gained

    Raises:
        ValueError: If exp_gained is negative

    Example:
        # Default curve, 250 exp from level 1: 100 then 150 consumed
        result = add_experience(ProgressionState(1, 0, 100), curve, 250)
        result.state.level      # 3
        result.levels_gained    # 2
    """
    if exp_gained < 0:
        raise ValueError(f"exp_gained must be >= 0, got {exp_gained}")

    if state.is_capped:
        # Terminal: gains are discarded
        return LevelUpResult(state=replace(state, exp=0), leveled_up=False, levels_gained=0)

    level = state.level
    exp = state.exp + exp_gained
    exp_to_next = state.exp_to_next
    levels_gained = 0

    while exp >= exp_to_next and level < state.max_level:
        exp -= exp_to_next
        level += 1
        levels_gained += 1
        exp_to_next = next_requirement(level, curve, legacy_formula)

        if level >= state.max_level:
            exp = 0
            break

    new_state = replace(state, level=level, exp=exp, exp_to_next=exp_to_next)
    return LevelUpResult(
        state=new_state,
        leveled_up=levels_gained > 0,
        levels_gained=levels_gained
    )


def level_progress(state: ProgressionState) -> float:
    """Percentage of the way to the next level (0 when capped)."""
    if state.is_capped or state.exp_to_next <= 0:
        return 0.0
    return state.exp / state.exp_to_next * 100
