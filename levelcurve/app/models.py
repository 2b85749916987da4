"""
LEVELCURVE - API MODELS
=======================

Pydantic models for request/response validation.

Wire format uses the editor's camelCase field names (startLevel,
bezierSegments, expToNext, ...); Python code uses snake_case attributes.
Response models are immutable (frozen=True).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from core.progression import (
    BezierPoint,
    BezierSegment,
    ContinuityIssue,
    CurveConfig,
    EndpointKind,
    ExpTableRow,
    FormulaSegment,
    ProgressionState,
)


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# CURVE MODELS
# ============================================================================

class BezierPointModel(CamelModel):
    x: float
    y: float


class _RangeModel(CamelModel):
    id: str = Field(..., min_length=1)
    start_level: int = Field(..., ge=1)
    end_level: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _check_range(self):
        if self.start_level >= self.end_level:
            raise ValueError(f"startLevel ({self.start_level}) must be lower than endLevel ({self.end_level})")
        return self


class FormulaSegmentModel(_RangeModel):
    """
    Example:
        {"id": "1", "startLevel": 1, "endLevel": 10, "formula": "100 * 1.5^(x-1)"}
    """
    formula: str = Field(..., min_length=1, max_length=1000)

    def to_core(self) -> FormulaSegment:
        return FormulaSegment(self.id, self.start_level, self.end_level, self.formula)


class BezierSegmentModel(_RangeModel):
    """
    Example:
        {
            "id": "1", "startLevel": 1, "endLevel": 10,
            "startExp": 100, "endExp": 1500,
            "controlPoint1": {"x": 0.33, "y": 0.1},
            "controlPoint2": {"x": 0.67, "y": 0.9}
        }
    """
    start_exp: float = Field(..., ge=0)
    end_exp: float = Field(..., ge=0)
    control_point1: BezierPointModel = Field(default_factory=lambda: BezierPointModel(x=0.33, y=0.1))
    control_point2: BezierPointModel = Field(default_factory=lambda: BezierPointModel(x=0.67, y=0.9))

    def to_core(self) -> BezierSegment:
        return BezierSegment(
            id=self.id,
            start_level=self.start_level,
            end_level=self.end_level,
            start_exp=self.start_exp,
            end_exp=self.end_exp,
            control_point1=BezierPoint(self.control_point1.x, self.control_point1.y),
            control_point2=BezierPoint(self.control_point2.x, self.control_point2.y),
        )


class CurveConfigModel(CamelModel):
    segments: List[FormulaSegmentModel] = Field(default_factory=list)
    bezier_segments: List[BezierSegmentModel] = Field(default_factory=list)
    use_bezier: bool = False
    y_axis_max: Optional[float] = Field(None, description="Display-only editor scale")

    def to_core(self) -> CurveConfig:
        return CurveConfig(
            segments=tuple(s.to_core() for s in self.segments),
            bezier_segments=tuple(s.to_core() for s in self.bezier_segments),
            use_bezier=self.use_bezier,
            y_axis_max=self.y_axis_max,
        )

    @classmethod
    def from_core(cls, curve: CurveConfig) -> "CurveConfigModel":
        return cls.model_validate(curve.to_dict())


class ContinuityIssueModel(CamelModel):
    kind: str
    previous_id: str
    segment_id: str
    expected: float
    actual: float

    @classmethod
    def from_core(cls, issue: ContinuityIssue) -> "ContinuityIssueModel":
        return cls.model_validate(issue.to_dict())


class CurveProfileResponse(CamelModel):
    """
    Published curve profile with continuity diagnostics.

    Example:
        {
            "name": "player",
            "version": 3,
            "maxLevel": 100,
            "curve": {...},
            "continuity": [],
            "overlaps": []
        }
    """
    name: str
    version: int
    max_level: int
    curve: CurveConfigModel
    continuity: List[ContinuityIssueModel] = Field(default_factory=list)
    overlaps: List[List[str]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CurveListResponse(CamelModel):
    profiles: List[Dict[str, Any]]

    model_config = ConfigDict(frozen=True)


class PublishCurveRequest(CamelModel):
    curve: CurveConfigModel
    max_level: Optional[int] = Field(None, ge=1, le=10000)


class RequiredExpResponse(CamelModel):
    """
    exp is null when the covering formula is undefined.
    """
    level: int
    exp: Optional[int]
    segment_id: Optional[str] = None
    undefined: bool = False

    model_config = ConfigDict(frozen=True)


class ExpTableRowModel(CamelModel):
    level: int
    exp: Optional[int]
    cumulative_exp: int
    growth: int = 0
    growth_pct: float = 0.0

    @classmethod
    def from_core(cls, row: ExpTableRow) -> "ExpTableRowModel":
        return cls.model_validate(row.to_dict())


class ExpTableResponse(CamelModel):
    name: str
    rows: List[ExpTableRowModel]

    model_config = ConfigDict(frozen=True)


# ============================================================================
# EDITING MODELS
# ============================================================================

class AppendSegmentRequest(CamelModel):
    """
    Omit segment to continue from the last segment with default span/exp.
    """
    segment: Optional[Union[BezierSegmentModel, FormulaSegmentModel]] = None


class RedistributeRequest(CamelModel):
    max_level: Optional[int] = Field(None, ge=2)


class DragRequest(CamelModel):
    """
    Example:
        {"segmentId": "2", "endpoint": "start", "level": 10.4, "exp": 1490}
    """
    segment_id: str
    endpoint: EndpointKind
    level: float
    exp: float


class RangeUpdateRequest(CamelModel):
    start_level: int
    end_level: int


class ModeRequest(CamelModel):
    use_bezier: bool


# ============================================================================
# FORMULA MODELS
# ============================================================================

class FormulaEvaluateRequest(CamelModel):
    """
    Example:
        {"formula": "MAX(10, level*2)", "level": 3, "size": 20}
    """
    formula: str = Field(..., max_length=1000)
    level: float = 1
    size: float = 0


class FormulaEvaluateResponse(CamelModel):
    """
    value is null when the formula is undefined; error explains why.
    """
    formula: str
    value: Optional[float]
    error: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True)


class FormulaValidateRequest(CamelModel):
    formula: str = Field(..., max_length=1000)


class FormulaValidateResponse(CamelModel):
    valid: bool
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ============================================================================
# PROGRESSION MODELS
# ============================================================================

class ProgressionStateModel(CamelModel):
    level: int
    exp: float
    exp_to_next: float
    max_level: int

    @classmethod
    def from_core(cls, state: ProgressionState) -> "ProgressionStateModel":
        return cls.model_validate(state.to_dict())


class CharacterCreateRequest(CamelModel):
    profile: str = Field("player", description="Curve profile name")
    character_id: Optional[str] = Field(None, description="Generated if omitted")


class CharacterResponse(CamelModel):
    character_id: str
    profile: str
    state: ProgressionStateModel
    progress_pct: float = 0.0

    model_config = ConfigDict(frozen=True)


class ExperienceRequest(CamelModel):
    exp: float = Field(..., ge=0, description="Experience granted")


class ExperienceResponse(CamelModel):
    """
    Example:
        {
            "characterId": "abc",
            "state": {"level": 3, "exp": 0, "expToNext": 225, "maxLevel": 100},
            "leveledUp": true,
            "levelsGained": 2
        }
    """
    character_id: str
    state: ProgressionStateModel
    leveled_up: bool
    levels_gained: int

    model_config = ConfigDict(frozen=True)


class CharacterStatsResponse(CamelModel):
    character_id: str
    level: int
    stats: Dict[str, float]

    model_config = ConfigDict(frozen=True)


# ============================================================================
# SYSTEM MODELS
# ============================================================================

class HealthResponse(CamelModel):
    status: str = Field(..., description="healthy or unhealthy")
    profiles: int
    version: str
    uptime_seconds: float = 0.0

    model_config = ConfigDict(frozen=True)


class ErrorResponse(BaseModel):
    """
    Standard error response.

    Example:
        {
            "error": "formula_syntax",
            "message": "Unknown identifier 'foo' at position 0",
            "details": {"formula": "foo + 1", "position": 0}
        }
    """
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional context")

    model_config = ConfigDict(frozen=True)
