"""
LEVELCURVE - CURVE SEGMENT MODEL
================================

Immutable data model for segmented experience curves.

A CurveConfig holds two ordered sequences:
- segments: formula segments ("100 * 1.5^(x-1)" over [1, 10], ...)
- bezier_segments: cubic Bezier segments over level ranges

use_bezier selects the authoritative sequence. The other one is kept so a
designer can switch modes without losing work.

Serialized form uses the editor's field names (startLevel, endExp,
controlPoint1, useBezier, ...), so configs round-trip through the UI
layer as plain dicts.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union


CONTINUITY_EPSILON = 1.0


@dataclass(frozen=True)
class StatGrowthFormula:
    """
    Linear per-level stat growth: a * (level - 1) + b.

    Attributes:
        a: Slope (growth acceleration per level)
        b: Base increase per level
    """
    a: float
    b: float

    def to_dict(self) -> Dict[str, float]:
        return {"a": self.a, "b": self.b}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatGrowthFormula":
        return cls(a=data.get("a", 0), b=data.get("b", 0))


@dataclass(frozen=True)
class ExpGrowthFormula:
    """
    Legacy single-formula experience curve.

    type="linear":      a * level + b
    type="exponential": a * b^(level - 1)
    """
    type: str = "exponential"
    a: float = 100
    b: float = 1.5

    def __post_init__(self):
        if self.type not in ("linear", "exponential"):
            raise ValueError(f"type must be 'linear' or 'exponential', got {self.type!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "a": self.a, "b": self.b}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExpGrowthFormula":
        return cls(type=data.get("type", "exponential"), a=data.get("a", 100), b=data.get("b", 1.5))


# ============================================================================
# SEGMENTS
# ============================================================================

@dataclass(frozen=True)
class FormulaSegment:
    """
    Level range whose requirement is a user formula in x (the level).

    Example:
        FormulaSegment("1", 1, 10, "100 * 1.5^(x-1)")
    """
    id: str
    start_level: int
    end_level: int
    formula: str

    def covers(self, level: int) -> bool:
        return self.start_level <= level <= self.end_level

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startLevel": self.start_level,
            "endLevel": self.end_level,
            "formula": self.formula,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormulaSegment":
        return cls(
            id=str(data["id"]),
            start_level=int(data["startLevel"]),
            end_level=int(data["endLevel"]),
            formula=str(data["formula"]),
        )


@dataclass(frozen=True)
class BezierPoint:
    """
    Control point as ratios of its segment.

    Attributes:
        x: Position along the level span (only drives the editor handle)
        y: Position along the exp range, may overshoot [0, 1]
    """
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Union[Dict[str, Any], "BezierPoint"]) -> "BezierPoint":
        if isinstance(data, BezierPoint):
            return data
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass(frozen=True)
class BezierSegment:
    """
    Level range whose requirement follows a cubic Bezier between
    start_exp (at start_level) and end_exp (at end_level).
    """
    id: str
    start_level: int
    end_level: int
    start_exp: float
    end_exp: float
    control_point1: BezierPoint = BezierPoint(0.33, 0.1)
    control_point2: BezierPoint = BezierPoint(0.67, 0.9)

    def covers(self, level: int) -> bool:
        return self.start_level <= level <= self.end_level

    @property
    def exp_range(self) -> float:
        return self.end_exp - self.start_exp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startLevel": self.start_level,
            "endLevel": self.end_level,
            "startExp": self.start_exp,
            "endExp": self.end_exp,
            "controlPoint1": self.control_point1.to_dict(),
            "controlPoint2": self.control_point2.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BezierSegment":
        return cls(
            id=str(data["id"]),
            start_level=int(data["startLevel"]),
            end_level=int(data["endLevel"]),
            start_exp=float(data["startExp"]),
            end_exp=float(data["endExp"]),
            control_point1=BezierPoint.from_dict(data.get("controlPoint1", {"x": 0.33, "y": 0.1})),
            control_point2=BezierPoint.from_dict(data.get("controlPoint2", {"x": 0.67, "y": 0.9})),
        )


Segment = Union[FormulaSegment, BezierSegment]


# ============================================================================
# CURVE CONFIG
# ============================================================================

@dataclass(frozen=True)
class CurveConfig:
    """
    Complete segmented experience curve.

    y_axis_max is cached editor display scale. Evaluation never reads it.
    """
    segments: Tuple[FormulaSegment, ...] = ()
    bezier_segments: Tuple[BezierSegment, ...] = ()
    use_bezier: bool = False
    y_axis_max: Optional[float] = None

    def __post_init__(self):
        # Accept lists from callers but store tuples so the config stays hashable/immutable
        object.__setattr__(self, "segments", tuple(self.segments))
        object.__setattr__(self, "bezier_segments", tuple(self.bezier_segments))

    @property
    def active_segments(self) -> Tuple[Segment, ...]:
        """Sequence selected by use_bezier."""
        return self.bezier_segments if self.use_bezier else self.segments

    def with_active(self, segments: List[Segment]) -> "CurveConfig":
        """Copy with the active sequence replaced."""
        if self.use_bezier:
            return replace(self, bezier_segments=tuple(segments))
        return replace(self, segments=tuple(segments))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "segments": [s.to_dict() for s in self.segments],
            "bezierSegments": [s.to_dict() for s in self.bezier_segments],
            "useBezier": self.use_bezier,
        }
        if self.y_axis_max is not None:
            data["yAxisMax"] = self.y_axis_max
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurveConfig":
        return cls(
            segments=tuple(FormulaSegment.from_dict(s) for s in data.get("segments") or []),
            bezier_segments=tuple(BezierSegment.from_dict(s) for s in data.get("bezierSegments") or []),
            use_bezier=bool(data.get("useBezier", False)),
            y_axis_max=data.get("yAxisMax"),
        )


# ============================================================================
# LOOKUP & INSPECTION
# ============================================================================

def find_segment(curve: CurveConfig, level: int) -> Optional[Segment]:
    """
    First segment of the active sequence with start <= level <= end.

    Boundary levels shared by two segments belong to the earlier one.
    """
    for segment in curve.active_segments:
        if segment.covers(level):
            return segment
    return None


def find_index(segments: Tuple[Segment, ...], segment_id: str) -> int:
    for index, segment in enumerate(segments):
        if segment.id == segment_id:
            return index
    return -1


@dataclass(frozen=True)
class ContinuityIssue:
    """
    Break between two adjacent segments.

    kind: "level_gap" (next starts after previous ends),
          "level_overlap" (next starts before previous ends),
          "exp_jump" (Bezier start/end exp differ by more than epsilon)
    """
    kind: str
    previous_id: str
    segment_id: str
    expected: float
    actual: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "previousId": self.previous_id,
            "segmentId": self.segment_id,
            "expected": self.expected,
            "actual": self.actual,
        }


def continuity_issues(
    curve: CurveConfig,
    epsilon: float = CONTINUITY_EPSILON
) -> List[ContinuityIssue]:
    """Flag (never fix) continuity breaks in the active sequence."""
    issues: List[ContinuityIssue] = []
    segments = curve.active_segments

    for prev, seg in zip(segments, segments[1:]):
        if seg.start_level > prev.end_level:
            issues.append(ContinuityIssue("level_gap", prev.id, seg.id, prev.end_level, seg.start_level))
        elif seg.start_level < prev.end_level:
            issues.append(ContinuityIssue("level_overlap", prev.id, seg.id, prev.end_level, seg.start_level))

        if isinstance(prev, BezierSegment) and isinstance(seg, BezierSegment):
            if abs(prev.end_exp - seg.start_exp) > epsilon:
                issues.append(ContinuityIssue("exp_jump", prev.id, seg.id, prev.end_exp, seg.start_exp))

    return issues


def is_continuous(curve: CurveConfig, epsilon: float = CONTINUITY_EPSILON) -> bool:
    return not continuity_issues(curve, epsilon)


def overlapping_segments(curve: CurveConfig) -> List[Tuple[str, str]]:
    """
    Pairs of segments (any order) sharing more than a single boundary level.

    A shared boundary (a.end == b.start) is normal continuity and not reported.
    """
    pairs: List[Tuple[str, str]] = []
    segments = curve.active_segments

    for i, a in enumerate(segments):
        for b in segments[i + 1:]:
            shared = min(a.end_level, b.end_level) - max(a.start_level, b.start_level)
            if shared > 0:
                pairs.append((a.id, b.id))

    return pairs
