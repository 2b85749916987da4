"""
LEVELCURVE - SEGMENT EDITING OPERATIONS
=======================================

Pure editing operations over CurveConfig, consumed by the curve editor.

Every operation returns a new CurveConfig and works on the active
sequence (Bezier segments when use_bezier, formula segments otherwise).

Failure policy:
- Cap reached / unknown id on delete → the input config is returned as is
- Range violations → InvalidSegmentRange, caller keeps its previous config
- Drag never fails on range: proposed points are clamped instead

Continuity is not enforced here except by snapping in drag_update_boundary
and by redistribute. See segments.continuity_issues for detection.
"""
from __future__ import annotations

import math
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Tuple

from .errors import InvalidSegmentRange, SegmentNotFound
from .evaluator import DEFAULT_BASE_EXP
from .segments import (
    CONTINUITY_EPSILON,
    BezierPoint,
    BezierSegment,
    CurveConfig,
    FormulaSegment,
    Segment,
    find_index,
)


MAX_SEGMENTS = 10
APPEND_SPAN = 10
APPEND_EXP_GROWTH = 1.1
SNAP_LEVEL_THRESHOLD = 1
SNAP_EXP_RATIO = 0.05
DEFAULT_FORMULA = "100 * 1.5^(x-1)"

# Control-point y ratios stay within this band while dragging
CONTROL_Y_MIN = -0.5
CONTROL_Y_MAX = 3.0


class EndpointKind(str, Enum):
    START = "start"
    END = "end"
    CONTROL_POINT1 = "controlPoint1"
    CONTROL_POINT2 = "controlPoint2"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_level(level: float) -> int:
    # Half-up, as the editor rounds handle positions
    return int(math.floor(level + 0.5))


def _next_id(segments: Tuple[Segment, ...]) -> str:
    numeric = [int(s.id) for s in segments if s.id.isdigit()]
    candidate = max(numeric, default=0) + 1
    taken = {s.id for s in segments}
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def validate_range(start_level: int, end_level: int, max_level: int) -> None:
    """
    Raises:
        InvalidSegmentRange: start >= end, or range outside [1, max_level]
    """
    if start_level >= end_level:
        raise InvalidSegmentRange(
            f"startLevel ({start_level}) must be lower than endLevel ({end_level})",
            start_level, end_level
        )
    if start_level < 1 or end_level > max_level:
        raise InvalidSegmentRange(
            f"Range [{start_level}, {end_level}] outside [1, {max_level}]",
            start_level, end_level
        )


def validate_curve(curve: CurveConfig, max_level: int) -> None:
    """
    Check every active segment against max_level.

    Raises:
        InvalidSegmentRange: First segment whose range is invalid
    """
    for segment in curve.active_segments:
        validate_range(segment.start_level, segment.end_level, max_level)


def _locate(curve: CurveConfig, segment_id: str) -> Tuple[List[Segment], int]:
    segments = list(curve.active_segments)
    index = find_index(curve.active_segments, segment_id)
    if index < 0:
        raise SegmentNotFound(segment_id)
    return segments, index


# ============================================================================
# APPEND / DELETE
# ============================================================================

def append_segment(
    curve: CurveConfig,
    max_level: int,
    segment: Optional[Segment] = None,
    *,
    max_segments: int = MAX_SEGMENTS,
    span: int = APPEND_SPAN,
    exp_growth: float = APPEND_EXP_GROWTH
) -> CurveConfig:
    """
    Append a segment to the active sequence.

    Without an explicit segment, the new one continues from the last one:
    startLevel = previous endLevel (1 if first), endLevel = start + span
    clamped to max_level, and for Bezier segments endExp = startExp × 1.1
    with nearly flat control points.

    Returns:
        New config, or curve unchanged once max_segments is reached

    Raises:
        InvalidSegmentRange: No room left before max_level, or the explicit
            segment's range is invalid, or its kind does not match the
            curve mode
    """
    existing = curve.active_segments
    if len(existing) >= max_segments:
        return curve

    if segment is None:
        segment = _default_segment(curve, max_level, span, exp_growth)
    elif find_index(existing, segment.id) >= 0:
        segment = replace(segment, id=_next_id(existing))

    if isinstance(segment, BezierSegment) != curve.use_bezier:
        mode = "Bezier" if curve.use_bezier else "formula"
        raise InvalidSegmentRange(
            f"Segment {segment.id!r} does not match the curve's {mode} mode",
            segment.start_level, segment.end_level
        )

    validate_range(segment.start_level, segment.end_level, max_level)
    return curve.with_active(list(existing) + [segment])


def _default_segment(curve: CurveConfig, max_level: int, span: int, exp_growth: float) -> Segment:
    existing = curve.active_segments
    last = existing[-1] if existing else None

    start_level = last.end_level if last else 1
    end_level = min(start_level + span, max_level)
    new_id = _next_id(existing)

    if curve.use_bezier:
        start_exp = last.end_exp if last else float(DEFAULT_BASE_EXP)
        return BezierSegment(
            id=new_id,
            start_level=start_level,
            end_level=end_level,
            start_exp=start_exp,
            end_exp=start_exp * exp_growth,
            control_point1=BezierPoint(0.33, 0.05),
            control_point2=BezierPoint(0.67, 0.05),
        )

    return FormulaSegment(
        id=new_id,
        start_level=start_level,
        end_level=end_level,
        formula=last.formula if last else DEFAULT_FORMULA,
    )


def delete_segment(curve: CurveConfig, segment_id: str) -> CurveConfig:
    """
    Remove a segment from the active sequence.

    Neighbours are not re-linked; run redistribute or repair manually.
    Unknown ids leave the curve unchanged.
    """
    existing = curve.active_segments
    if find_index(existing, segment_id) < 0:
        return curve
    return curve.with_active([s for s in existing if s.id != segment_id])


# ============================================================================
# REDISTRIBUTE
# ============================================================================

def redistribute(curve: CurveConfig, max_level: int) -> CurveConfig:
    """
    Evenly partition [1, max_level] across the active segments, in order.

    Each segment spans floor((max_level-1)/n) levels; the remainder goes
    one level each to the trailing segments. Exp values and control points
    are preserved, only startLevel/endLevel are rewritten.

    Extra levels go to the trailing segments, not the leading ones: leading
    would split 2 segments over max_level=20 as [1, 11], [11, 20] instead
    of the [1, 10], [10, 20] editors expect. Keep it trailing.

    Example:
        2 segments, max_level=20 → [1, 10], [10, 20]

    Raises:
        InvalidSegmentRange: Fewer than one level per segment
    """
    existing = curve.active_segments
    count = len(existing)
    if count == 0:
        return curve

    total = max_level - 1
    if total < count:
        raise InvalidSegmentRange(
            f"Cannot fit {count} segments into [1, {max_level}]",
            1, max_level
        )

    base, remainder = divmod(total, count)
    first_long = count - remainder

    redistributed: List[Segment] = []
    start_level = 1
    for index, segment in enumerate(existing):
        span = base + (1 if index >= first_long else 0)
        end_level = start_level + span
        redistributed.append(replace(segment, start_level=start_level, end_level=end_level))
        start_level = end_level

    return curve.with_active(redistributed)


# ============================================================================
# DRAG
# ============================================================================

def _within_snap(
    level: float,
    exp: Optional[float],
    target_level: int,
    target_exp: Optional[float],
    level_threshold: float,
    exp_ratio: float
) -> bool:
    if abs(level - target_level) > level_threshold:
        return False
    if exp is None or target_exp is None:
        return True
    exp_threshold = max(CONTINUITY_EPSILON, exp_ratio * abs(target_exp))
    return abs(exp - target_exp) <= exp_threshold


def drag_update_boundary(
    curve: CurveConfig,
    segment_id: str,
    endpoint: EndpointKind,
    proposed_level: float,
    proposed_exp: float,
    max_level: int,
    *,
    snap_level_threshold: float = SNAP_LEVEL_THRESHOLD,
    snap_exp_ratio: float = SNAP_EXP_RATIO
) -> CurveConfig:
    """
    Move one handle of a segment to a proposed (level, exp) point.

    start/end:
        Level rounded and clamped so start < end ≤ max_level, exp >= 0.
        Within the snap threshold of the neighbour's shared boundary, the
        point snaps exactly onto it.
    controlPoint1/controlPoint2 (Bezier only):
        Converted into segment ratios, x ∈ [0, 1], y ∈ [-0.5, 3].

    Raises:
        SegmentNotFound: Unknown segment id
        InvalidSegmentRange: Segment leaves no room for a 1-level span, or
            control points on a formula segment
    """
    endpoint = EndpointKind(endpoint)
    segments, index = _locate(curve, segment_id)
    segment = segments[index]

    if endpoint in (EndpointKind.CONTROL_POINT1, EndpointKind.CONTROL_POINT2):
        if not isinstance(segment, BezierSegment):
            raise InvalidSegmentRange(
                "Formula segments have no control points",
                segment.start_level, segment.end_level
            )
        updated: Segment = _drag_control_point(segment, endpoint, proposed_level, proposed_exp)
    elif endpoint == EndpointKind.START:
        previous = segments[index - 1] if index > 0 else None
        updated = _drag_start(
            segment, previous, proposed_level, proposed_exp, max_level,
            snap_level_threshold, snap_exp_ratio
        )
    else:
        following = segments[index + 1] if index + 1 < len(segments) else None
        updated = _drag_end(
            segment, following, proposed_level, proposed_exp, max_level,
            snap_level_threshold, snap_exp_ratio
        )

    segments[index] = updated
    return curve.with_active(segments)


def _drag_start(segment, previous, level, exp, max_level, level_threshold, exp_ratio) -> Segment:
    upper = min(segment.end_level, max_level) - 1
    if upper < 1:
        raise InvalidSegmentRange(
            f"Segment ending at {segment.end_level} leaves no room for its start",
            segment.start_level, segment.end_level
        )

    new_level = int(_clamp(_round_level(level), 1, upper))
    is_bezier = isinstance(segment, BezierSegment)
    new_exp = max(0.0, exp) if is_bezier else None

    if previous is not None:
        prev_exp = previous.end_exp if isinstance(previous, BezierSegment) else None
        if (
            _within_snap(level, new_exp, previous.end_level, prev_exp, level_threshold, exp_ratio)
            and 1 <= previous.end_level <= upper
        ):
            new_level = previous.end_level
            if prev_exp is not None and is_bezier:
                new_exp = prev_exp

    if is_bezier:
        return replace(segment, start_level=new_level, start_exp=new_exp)
    return replace(segment, start_level=new_level)


def _drag_end(segment, following, level, exp, max_level, level_threshold, exp_ratio) -> Segment:
    lower = segment.start_level + 1
    if lower > max_level:
        raise InvalidSegmentRange(
            f"Segment starting at {segment.start_level} leaves no room below max level {max_level}",
            segment.start_level, segment.end_level
        )

    new_level = int(_clamp(_round_level(level), lower, max_level))
    is_bezier = isinstance(segment, BezierSegment)
    new_exp = max(0.0, exp) if is_bezier else None

    if following is not None:
        next_exp = following.start_exp if isinstance(following, BezierSegment) else None
        if (
            _within_snap(level, new_exp, following.start_level, next_exp, level_threshold, exp_ratio)
            and lower <= following.start_level <= max_level
        ):
            new_level = following.start_level
            if next_exp is not None and is_bezier:
                new_exp = next_exp

    if is_bezier:
        return replace(segment, end_level=new_level, end_exp=new_exp)
    return replace(segment, end_level=new_level)


def _drag_control_point(
    segment: BezierSegment,
    endpoint: EndpointKind,
    level: float,
    exp: float
) -> BezierSegment:
    first = endpoint == EndpointKind.CONTROL_POINT1
    span = segment.end_level - segment.start_level
    exp_range = segment.exp_range

    if span != 0:
        x = _clamp((level - segment.start_level) / span, 0.0, 1.0)
    else:
        x = 0.33 if first else 0.67

    if exp_range != 0:
        y = _clamp((exp - segment.start_exp) / exp_range, CONTROL_Y_MIN, CONTROL_Y_MAX)
    else:
        y = 0.25 if first else 0.75

    point = BezierPoint(x, y)
    if first:
        return replace(segment, control_point1=point)
    return replace(segment, control_point2=point)


# ============================================================================
# MANUAL EDITS & DISPLAY STATE
# ============================================================================

def update_range(
    curve: CurveConfig,
    segment_id: str,
    start_level: int,
    end_level: int,
    max_level: int
) -> CurveConfig:
    """
    Set a segment's level range from numeric input.

    Raises:
        SegmentNotFound: Unknown segment id
        InvalidSegmentRange: start >= end or outside [1, max_level]
    """
    segments, index = _locate(curve, segment_id)
    validate_range(start_level, end_level, max_level)
    segments[index] = replace(segments[index], start_level=start_level, end_level=end_level)
    return curve.with_active(segments)


def with_mode(curve: CurveConfig, use_bezier: bool) -> CurveConfig:
    """Switch the authoritative sequence; both sequences are kept."""
    return replace(curve, use_bezier=use_bezier)


def auto_y_axis_max(curve: CurveConfig) -> float:
    """Editor scale: 30% headroom above the highest endExp, at least 1000."""
    if not curve.bezier_segments:
        return 10000.0
    highest = max(s.end_exp for s in curve.bezier_segments)
    return max(highest * 1.3, 1000.0)


def reset_y_axis(curve: CurveConfig) -> CurveConfig:
    return replace(curve, y_axis_max=auto_y_axis_max(curve))
