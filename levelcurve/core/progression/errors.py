"""
LEVELCURVE - PROGRESSION ERRORS
===============================

Error hierarchy for the progression curve engine.

Propagation:
- Formula errors are recovered locally (undefined sentinel), they never
  abort the level-up loop.
- Segment-range errors are raised by editing operations; the caller keeps
  its previous CurveConfig, so a failed edit is a no-op.
"""
from __future__ import annotations

from typing import Optional, Dict, Any


class ProgressionError(Exception):
    """Base class for all progression engine errors."""

    code: str = "progression_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API error bodies."""
        return {"error": self.code, "message": self.message}


# ============================================================================
# FORMULA ERRORS
# ============================================================================

class EvaluationError(ProgressionError):
    """
    Formula could not be turned into a number.

    Attributes:
        formula: Offending formula string
        position: Character offset of the failure (None if not positional)
    """

    code = "evaluation_error"

    def __init__(self, message: str, formula: str = "", position: Optional[int] = None):
        super().__init__(message)
        self.formula = formula
        self.position = position

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["details"] = {"formula": self.formula, "position": self.position}
        return data


class FormulaSyntaxError(EvaluationError):
    """Unparseable formula or identifier outside the grammar."""

    code = "formula_syntax"


class FormulaDomainError(EvaluationError):
    """Division by zero, non-finite or NaN result."""

    code = "formula_domain"


# ============================================================================
# SEGMENT ERRORS
# ============================================================================

class InvalidSegmentRange(ProgressionError):
    """startLevel >= endLevel, or range outside [1, maxLevel]."""

    code = "invalid_segment_range"

    def __init__(self, message: str, start_level: Optional[int] = None, end_level: Optional[int] = None):
        super().__init__(message)
        self.start_level = start_level
        self.end_level = end_level

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["details"] = {"start_level": self.start_level, "end_level": self.end_level}
        return data


class NoMatchingSegment(ProgressionError):
    """Level not covered by any segment (callers fall back to the default formula)."""

    code = "no_matching_segment"

    def __init__(self, level: int):
        super().__init__(f"No segment covers level {level}")
        self.level = level


class SegmentNotFound(ProgressionError):
    code = "segment_not_found"

    def __init__(self, segment_id: str):
        super().__init__(f"Segment '{segment_id}' not found")
        self.segment_id = segment_id
