"""
LEVELCURVE - BEZIER EXPERIENCE CURVES
=====================================

Closed-form cubic Bezier evaluation for experience segments.

Mathematical Foundation:
- Cubic Bezier: B(t) = (1-t)³P₀ + 3(1-t)²t P₁ + 3(1-t)t² P₂ + t³ P₃
- t ∈ [0, 1]: position of the level inside its segment (linear in level)
- P₀ = startExp, P₃ = endExp
- P₁, P₂ = startExp + controlPoint.y × (endExp - startExp)

The control points' x ratios never enter the level → t mapping. They only
place the tangent handles in the editor. The shape along the exp axis is
fully determined by the y ratios.
"""
from __future__ import annotations

import math
from typing import List, Tuple

from .segments import BezierSegment


def cubic_bezier(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
    """
    Evaluate a 1-D cubic Bezier at parameter t.

    Args:
        t: Curve parameter ∈ [0, 1]
        p0, p1, p2, p3: Control values

    Returns:
        Interpolated value
    """
    u = 1 - t

    # Bernstein polynomial coefficients
    b0 = u ** 3
    b1 = 3 * u ** 2 * t
    b2 = 3 * u * t ** 2
    b3 = t ** 3

    return b0 * p0 + b1 * p1 + b2 * p2 + b3 * p3


class CubicBezier:
    """
    Cubic Bezier over four scalar control values.

    Usage:
        curve = CubicBezier.from_segment(segment)
        exp = curve.evaluate(0.5)  # Halfway through the segment
    """

    def __init__(self, p0: float, p1: float, p2: float, p3: float):
        self.points: Tuple[float, float, float, float] = (p0, p1, p2, p3)

    def evaluate(self, t: float) -> float:
        # Clamp t to [0, 1]
        t = max(0.0, min(1.0, t))
        return cubic_bezier(t, *self.points)

    @classmethod
    def from_segment(cls, segment: BezierSegment) -> "CubicBezier":
        """
        Scale the segment's control ratios into absolute exp values.

        Example:
            startExp=100, endExp=1500, cp1.y=0.1, cp2.y=0.9
            → (100, 240, 1360, 1500)
        """
        exp_range = segment.exp_range
        p1 = segment.start_exp + segment.control_point1.y * exp_range
        p2 = segment.start_exp + segment.control_point2.y * exp_range
        return cls(segment.start_exp, p1, p2, segment.end_exp)


def level_to_t(level: float, segment: BezierSegment) -> float:
    """
    Normalized position of level inside the segment, clamped to [0, 1].

    A degenerate segment (start == end) maps everything to 0.
    """
    span = segment.end_level - segment.start_level
    if span <= 0:
        return 0.0
    return max(0.0, min(1.0, (level - segment.start_level) / span))


def bezier_segment_exp(level: float, segment: BezierSegment) -> int:
    """
    Required exp for level inside a Bezier segment.

    Floored and clamped to >= 0. The endpoints come back exactly:
    t=0 → startExp, t=1 → endExp.
    """
    t = level_to_t(level, segment)
    exp = CubicBezier.from_segment(segment).evaluate(t)
    return int(math.floor(max(0.0, exp)))


def sample_segment(segment: BezierSegment, num_points: int = 20) -> List[Tuple[float, float]]:
    """
    Sample (level, exp) pairs evenly along the segment.

    Used for editor previews between integer levels.

    Raises:
        ValueError: If num_points < 2
    """
    if num_points < 2:
        raise ValueError("num_points must be >= 2")

    curve = CubicBezier.from_segment(segment)
    span = segment.end_level - segment.start_level

    samples = []
    for i in range(num_points):
        t = i / (num_points - 1)  # Linspace [0, 1]
        samples.append((segment.start_level + t * span, curve.evaluate(t)))

    return samples
