"""
Pytest configuration and shared fixtures for the LevelCurve test suite.

Fixtures
--------
- formula_curve / bezier_curve: the built-in default curve in each mode
- reset_singletons (autouse): fresh registry, ledger and settings per test
- client: FastAPI TestClient with the application lifespan running
"""
from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.config import reset_settings
from core.progression import BezierSegment, CurveConfig, FormulaSegment, default_curve, with_mode
from services import close_registry


# ============================================================================
# CURVE FIXTURES
# ============================================================================

@pytest.fixture
def formula_curve() -> CurveConfig:
    """Default curve: "100 * 1.5^(x-1)" over [1, 10] and [10, 20]."""
    return default_curve()


@pytest.fixture
def bezier_curve() -> CurveConfig:
    """Default curve in Bezier mode: 100 → 1500 → 10000 over [1, 10], [10, 20]."""
    return with_mode(default_curve(), True)


@pytest.fixture
def make_formula_curve():
    """Factory: formula-mode curve from (start, end) tuples, ids "1", "2", ..."""
    def build(*ranges, formula: str = "100 * 1.5^(x-1)") -> CurveConfig:
        return CurveConfig(segments=tuple(
            FormulaSegment(str(i), start, end, formula)
            for i, (start, end) in enumerate(ranges, start=1)
        ))
    return build


@pytest.fixture
def make_bezier_curve():
    """Factory: Bezier-mode curve from (start, end, start_exp, end_exp) tuples."""
    def build(*rows) -> CurveConfig:
        return CurveConfig(
            bezier_segments=tuple(
                BezierSegment(str(i), start, end, start_exp, end_exp)
                for i, (start, end, start_exp, end_exp) in enumerate(rows, start=1)
            ),
            use_bezier=True,
        )
    return build


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def reset_singletons():
    """Each test starts with a freshly seeded registry and default settings."""
    asyncio.run(close_registry())
    reset_settings()
    yield
    asyncio.run(close_registry())
    reset_settings()


@pytest.fixture
def client():
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
