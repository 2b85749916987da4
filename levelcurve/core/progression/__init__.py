"""
Progression curve engine.

Exports:
- evaluate / try_evaluate / validate_formula: restricted formula evaluator
- CurveConfig and segment types: curve data model
- required_exp: (curve, level) → required experience
- append_segment / delete_segment / redistribute / drag_update_boundary: editing
- add_experience: level-up state machine
- project: exp table projection
"""
from .errors import (
    ProgressionError,
    EvaluationError,
    FormulaSyntaxError,
    FormulaDomainError,
    InvalidSegmentRange,
    NoMatchingSegment,
    SegmentNotFound
)
from .expression import evaluate, try_evaluate, validate_formula
from .segments import (
    StatGrowthFormula,
    ExpGrowthFormula,
    FormulaSegment,
    BezierPoint,
    BezierSegment,
    CurveConfig,
    ContinuityIssue,
    find_segment,
    continuity_issues,
    is_continuous,
    overlapping_segments
)
from .bezier import CubicBezier, cubic_bezier, bezier_segment_exp, sample_segment
from .evaluator import (
    required_exp,
    default_required_exp,
    MAX_REQUIRED_EXP,
    legacy_required_exp,
    stat_growth,
    exp_reward
)
from .editing import (
    EndpointKind,
    append_segment,
    delete_segment,
    redistribute,
    validate_curve,
    drag_update_boundary,
    update_range,
    with_mode,
    auto_y_axis_max,
    reset_y_axis
)
from .leveling import (
    ProgressionState,
    LevelUpResult,
    add_experience,
    new_progression,
    level_progress
)
from .table import ExpTableRow, project
from .stats import LevelStatsProfile, level_stats, stats_table, preview_stat_formula
from .presets import ProgressionPreset, PRESETS, get_preset, default_curve

__all__ = [
    'ProgressionError',
    'EvaluationError',
    'FormulaSyntaxError',
    'FormulaDomainError',
    'InvalidSegmentRange',
    'NoMatchingSegment',
    'SegmentNotFound',
    'evaluate',
    'try_evaluate',
    'validate_formula',
    'StatGrowthFormula',
    'ExpGrowthFormula',
    'FormulaSegment',
    'BezierPoint',
    'BezierSegment',
    'CurveConfig',
    'ContinuityIssue',
    'find_segment',
    'continuity_issues',
    'is_continuous',
    'overlapping_segments',
    'CubicBezier',
    'cubic_bezier',
    'bezier_segment_exp',
    'sample_segment',
    'required_exp',
    'default_required_exp',
    'MAX_REQUIRED_EXP',
    'legacy_required_exp',
    'stat_growth',
    'exp_reward',
    'EndpointKind',
    'append_segment',
    'delete_segment',
    'redistribute',
    'validate_curve',
    'drag_update_boundary',
    'update_range',
    'with_mode',
    'auto_y_axis_max',
    'reset_y_axis',
    'ProgressionState',
    'LevelUpResult',
    'add_experience',
    'new_progression',
    'level_progress',
    'ExpTableRow',
    'project',
    'LevelStatsProfile',
    'level_stats',
    'stats_table',
    'preview_stat_formula',
    'ProgressionPreset',
    'PRESETS',
    'get_preset',
    'default_curve'
]
