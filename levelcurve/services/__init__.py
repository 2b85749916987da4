"""
Services package for LevelCurve.

Exports:
- CurveRegistry: Published, read-only curve profiles
- ProgressionLedger: Single-writer character progression
"""
from .registry import (
    CurveProfile,
    CurveRegistry,
    CharacterRecord,
    ProgressionLedger,
    get_registry,
    get_ledger,
    close_registry
)

__all__ = [
    'CurveProfile',
    'CurveRegistry',
    'CharacterRecord',
    'ProgressionLedger',
    'get_registry',
    'get_ledger',
    'close_registry'
]
