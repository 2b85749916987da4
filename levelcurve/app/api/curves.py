"""
LEVELCURVE - CURVES & FORMULAS API
==================================

Endpoints for curve profiles, curve evaluation, segment editing and
live formula previews.

Editing endpoints apply one pure editing operation to the published
curve and publish the result. A failed edit raises before publishing, so
the previously published curve stays in place.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import Settings, get_settings
from app.models import (
    AppendSegmentRequest,
    ContinuityIssueModel,
    CurveConfigModel,
    CurveListResponse,
    CurveProfileResponse,
    DragRequest,
    ExpTableResponse,
    ExpTableRowModel,
    FormulaEvaluateRequest,
    FormulaEvaluateResponse,
    FormulaValidateRequest,
    FormulaValidateResponse,
    ModeRequest,
    PublishCurveRequest,
    RangeUpdateRequest,
    RedistributeRequest,
    RequiredExpResponse,
)
from core.progression import (
    EvaluationError,
    append_segment,
    continuity_issues,
    delete_segment,
    drag_update_boundary,
    evaluate,
    find_segment,
    overlapping_segments,
    project,
    redistribute,
    required_exp,
    reset_y_axis,
    update_range,
    validate_formula,
    with_mode,
)
from services import CurveProfile, CurveRegistry, get_registry


router = APIRouter(tags=["curves"])

MAX_TABLE_ROWS = 1000


# ============================================================================
# HELPERS
# ============================================================================

def _require_profile(registry: CurveRegistry, name: str) -> CurveProfile:
    profile = registry.get(name)
    if profile is None:
        raise HTTPException(
            status_code=404,
            detail=f"Curve profile '{name}' not found"
        )
    return profile


def _profile_response(profile: CurveProfile, settings: Settings) -> CurveProfileResponse:
    curve = profile.curve
    return CurveProfileResponse(
        name=profile.name,
        version=profile.version,
        max_level=profile.max_level,
        curve=CurveConfigModel.from_core(curve),
        continuity=[
            ContinuityIssueModel.from_core(issue)
            for issue in continuity_issues(curve, settings.continuity_epsilon)
        ],
        overlaps=[list(pair) for pair in overlapping_segments(curve)],
    )


# ============================================================================
# PROFILE ENDPOINTS
# ============================================================================

@router.get("/curves", response_model=CurveListResponse)
async def list_curves(registry: CurveRegistry = Depends(get_registry)):
    """
    List published curve profiles.

    Returns:
        {
            "profiles": [
                {"name": "monster", "version": 1, "maxLevel": 100, "useBezier": false},
                {"name": "player", "version": 1, "maxLevel": 100, "useBezier": false}
            ]
        }
    """
    return CurveListResponse(profiles=[
        {
            "name": p.name,
            "version": p.version,
            "maxLevel": p.max_level,
            "useBezier": p.curve.use_bezier,
        }
        for p in registry.list_profiles()
    ])


@router.get("/curves/{name}", response_model=CurveProfileResponse)
async def get_curve(
    name: str,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    return _profile_response(_require_profile(registry, name), settings)


@router.put("/curves/{name}", response_model=CurveProfileResponse)
async def publish_curve(
    name: str,
    request: PublishCurveRequest,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """
    Publish a curve under name (creates the profile if missing).

    Example:
        PUT /curves/boss
        {"curve": {"segments": [...], "useBezier": false}, "maxLevel": 60}
    """
    current = registry.get(name)
    max_level = request.max_level or (current.max_level if current else settings.default_max_level)

    if current is None:
        profile = CurveProfile(name=name, curve=request.curve.to_core(), max_level=max_level)
    else:
        profile = CurveProfile(
            name=name,
            curve=request.curve.to_core(),
            max_level=max_level,
            stats=current.stats,
            legacy_formula=current.legacy_formula,
        )

    stored = await registry.publish(profile)
    return _profile_response(stored, settings)


# ============================================================================
# EVALUATION ENDPOINTS
# ============================================================================

@router.get("/curves/{name}/required-exp/{level}", response_model=RequiredExpResponse)
async def get_required_exp(
    name: str,
    level: int,
    registry: CurveRegistry = Depends(get_registry)
):
    """
    Experience needed to go from level to level + 1.

    Example:
        GET /curves/player/required-exp/2

    Returns:
        {"level": 2, "exp": 150, "segmentId": "1", "undefined": false}
    """
    if level < 1:
        raise HTTPException(status_code=422, detail="level must be >= 1")

    profile = _require_profile(registry, name)
    exp = required_exp(profile.curve, level)
    segment = find_segment(profile.curve, level)

    return RequiredExpResponse(
        level=level,
        exp=exp,
        segment_id=segment.id if segment else None,
        undefined=exp is None
    )


@router.get("/curves/{name}/table", response_model=ExpTableResponse)
async def get_exp_table(
    name: str,
    start: int = Query(1, ge=1),
    end: int = Query(20, ge=1),
    registry: CurveRegistry = Depends(get_registry)
):
    """
    Level → exp / cumulative exp / growth table.

    Example:
        GET /curves/player/table?start=1&end=3

    Returns:
        {
            "name": "player",
            "rows": [
                {"level": 1, "exp": 100, "cumulativeExp": 100, "growth": 0, "growthPct": 0.0},
                {"level": 2, "exp": 150, "cumulativeExp": 250, "growth": 50, "growthPct": 50.0},
                ...
            ]
        }
    """
    if end < start or end - start + 1 > MAX_TABLE_ROWS:
        raise HTTPException(
            status_code=422,
            detail=f"Range must be non-empty and at most {MAX_TABLE_ROWS} levels"
        )

    profile = _require_profile(registry, name)
    rows = project(profile.curve, start, end)
    return ExpTableResponse(name=name, rows=[ExpTableRowModel.from_core(r) for r in rows])


@router.get("/curves/{name}/continuity")
async def get_continuity(
    name: str,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """
    Continuity report for the active sequence.

    Returns:
        {"continuous": true, "issues": [], "overlaps": []}
    """
    profile = _require_profile(registry, name)
    issues = continuity_issues(profile.curve, settings.continuity_epsilon)
    overlaps = overlapping_segments(profile.curve)

    return {
        "continuous": not issues,
        "issues": [issue.to_dict() for issue in issues],
        "overlaps": [list(pair) for pair in overlaps],
    }


# ============================================================================
# EDITING ENDPOINTS
# ============================================================================

@router.post("/curves/{name}/segments", response_model=CurveProfileResponse)
async def append_curve_segment(
    name: str,
    request: AppendSegmentRequest,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """
    Append a segment to the active sequence (no-op past the segment cap).
    """
    profile = _require_profile(registry, name)
    segment = request.segment.to_core() if request.segment else None

    curve = append_segment(
        profile.curve,
        profile.max_level,
        segment,
        max_segments=settings.max_segments,
        span=settings.append_span,
        exp_growth=settings.append_exp_growth
    )
    if curve is profile.curve:
        return _profile_response(profile, settings)

    stored = await registry.publish_curve(name, curve)
    return _profile_response(stored, settings)


@router.delete("/curves/{name}/segments/{segment_id}", response_model=CurveProfileResponse)
async def delete_curve_segment(
    name: str,
    segment_id: str,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    profile = _require_profile(registry, name)
    curve = delete_segment(profile.curve, segment_id)
    if curve is profile.curve:
        raise HTTPException(
            status_code=404,
            detail=f"Segment '{segment_id}' not found"
        )

    stored = await registry.publish_curve(name, curve)
    return _profile_response(stored, settings)


@router.post("/curves/{name}/redistribute", response_model=CurveProfileResponse)
async def redistribute_curve(
    name: str,
    request: RedistributeRequest,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """
    Evenly re-partition [1, maxLevel] across the active segments.

    Example:
        POST /curves/player/redistribute
        {"maxLevel": 20}
    """
    profile = _require_profile(registry, name)
    curve = redistribute(profile.curve, request.max_level or profile.max_level)

    stored = await registry.publish_curve(name, curve)
    return _profile_response(stored, settings)


@router.post("/curves/{name}/drag", response_model=CurveProfileResponse)
async def drag_curve_handle(
    name: str,
    request: DragRequest,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """
    Move a segment handle (start, end, controlPoint1, controlPoint2) in
    level/exp units, with clamping and neighbour snapping.
    """
    profile = _require_profile(registry, name)
    curve = drag_update_boundary(
        profile.curve,
        request.segment_id,
        request.endpoint,
        request.level,
        request.exp,
        profile.max_level,
        snap_level_threshold=settings.snap_level_threshold,
        snap_exp_ratio=settings.snap_exp_ratio
    )

    stored = await registry.publish_curve(name, curve)
    return _profile_response(stored, settings)


@router.patch("/curves/{name}/segments/{segment_id}/range", response_model=CurveProfileResponse)
async def update_segment_range(
    name: str,
    segment_id: str,
    request: RangeUpdateRequest,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    profile = _require_profile(registry, name)
    curve = update_range(
        profile.curve,
        segment_id,
        request.start_level,
        request.end_level,
        profile.max_level
    )

    stored = await registry.publish_curve(name, curve)
    return _profile_response(stored, settings)


@router.post("/curves/{name}/mode", response_model=CurveProfileResponse)
async def switch_curve_mode(
    name: str,
    request: ModeRequest,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    profile = _require_profile(registry, name)
    stored = await registry.publish_curve(name, with_mode(profile.curve, request.use_bezier))
    return _profile_response(stored, settings)


@router.post("/curves/{name}/y-axis/reset", response_model=CurveProfileResponse)
async def reset_curve_y_axis(
    name: str,
    registry: CurveRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    profile = _require_profile(registry, name)
    stored = await registry.publish_curve(name, reset_y_axis(profile.curve))
    return _profile_response(stored, settings)


# ============================================================================
# FORMULA PREVIEW ENDPOINTS
# ============================================================================

@router.post("/formulas/evaluate", response_model=FormulaEvaluateResponse, tags=["formulas"])
async def evaluate_formula(request: FormulaEvaluateRequest):
    """
    Live formula preview.

    Example:
        POST /formulas/evaluate
        {"formula": "level^2 + 1", "level": 4}

    Returns:
        {"formula": "level^2 + 1", "value": 17.0, "error": null}

    Undefined formulas return value=null with the error instead of failing.
    """
    try:
        value = evaluate(request.formula, {"level": request.level, "size": request.size})
        return FormulaEvaluateResponse(formula=request.formula, value=value)
    except EvaluationError as e:
        return FormulaEvaluateResponse(formula=request.formula, value=None, error=e.to_dict())


@router.post("/formulas/validate", response_model=FormulaValidateResponse, tags=["formulas"])
async def validate_formula_syntax(request: FormulaValidateRequest):
    valid, error = validate_formula(request.formula)
    return FormulaValidateResponse(valid=valid, error=error)
