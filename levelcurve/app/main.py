"""
LEVELCURVE - MAIN API SERVER
============================

FastAPI application for the progression curve engine.

Features:
- Curve profiles: publish, evaluate, project exp tables
- Segment editing (append, delete, redistribute, drag, range, mode)
- Live formula previews
- Character progression (experience grants, stats)
- Health checks

Usage:
    uvicorn app.main:app --reload --port 8000
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import curves, progression
from app.config import get_settings
from app.models import HealthResponse, ErrorResponse
from core.progression import (
    ProgressionError,
    SegmentNotFound,
)
from services import get_registry, get_ledger, close_registry


VERSION = "1.0.0"


# ============================================================================
# APPLICATION LIFECYCLE
# ============================================================================

# Global startup time for uptime tracking
_startup_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.

    Startup:
    - Load configuration
    - Seed curve registry with presets

    Shutdown:
    - Drop registry and character ledger
    """
    global _startup_time

    # STARTUP
    print("="*80)
    print(" LEVELCURVE - STARTING")
    print("="*80)

    _startup_time = time.time()

    settings = get_settings()
    print(f"[Startup] Config loaded: max level {settings.default_max_level}, "
          f"{settings.max_segments} segments max")

    registry = await get_registry()
    await get_ledger()
    print(f"[Startup] Registry ready: {len(registry.list_profiles())} profiles")

    print("="*80)
    print(" LEVELCURVE - READY")
    print(f" API Documentation: http://localhost:{settings.port}/docs")
    print("="*80)

    yield  # Application runs here

    # SHUTDOWN
    print("\n" + "="*80)
    print(" LEVELCURVE - SHUTTING DOWN")
    print("="*80)

    print("[Shutdown] Clearing registry...")
    await close_registry()

    print("[Shutdown] Cleanup complete")
    print("="*80)


# ============================================================================
# APPLICATION SETUP
# ============================================================================

app = FastAPI(
    title="LevelCurve API",
    description="Segmented experience curves, Bezier editing and level progression",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS Middleware (editor runs in the browser)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# MIDDLEWARE (Request Logging)
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log all HTTP requests with timing.

    Format: [METHOD] /path - 200 (1.2ms)
    """
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    print(f"[{request.method}] {request.url.path} - {response.status_code} ({duration_ms:.1f}ms)")

    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(ProgressionError)
async def progression_error_handler(request: Request, exc: ProgressionError):
    """
    Domain errors: unknown segment → 404, everything else → 422.

    The published curve is untouched when an edit fails.
    """
    status_code = 404 if isinstance(exc, SegmentNotFound) else 422
    payload = exc.to_dict()

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=payload["error"],
            message=payload["message"],
            details=payload.get("details")
        ).model_dump()
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    """Handle 404 Not Found (unknown route or resource)."""
    detail = getattr(exc, "detail", None)
    if not detail or detail == "Not Found":
        detail = f"Endpoint {request.url.path} not found"

    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error="not_found",
            message=detail
        ).model_dump()
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    """Handle 500 Internal Server Error."""
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_error",
            message="An unexpected error occurred",
            details={"exception": str(exc)}
        ).model_dump()
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(curves.router)
app.include_router(progression.router)


@app.get("/api", tags=["system"])
async def api_root():
    """
    Root endpoint with API information.

    Returns:
        {
            "service": "LevelCurve API",
            "version": "1.0.0",
            "docs": "/docs"
        }
    """
    return {
        "service": "LevelCurve API",
        "version": VERSION,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "curves": "/curves",
            "formulas": "/formulas/evaluate",
            "characters": "/characters",
            "health": "/health"
        }
    }


@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check():
    """
    Health check.

    Example:
        GET /health

    Returns:
        {
            "status": "healthy",
            "profiles": 2,
            "version": "1.0.0",
            "uptimeSeconds": 3600.5
        }
    """
    registry = await get_registry()
    profiles = len(registry.list_profiles())

    uptime = time.time() - _startup_time if _startup_time else 0.0

    return HealthResponse(
        status="healthy" if profiles else "unhealthy",
        profiles=profiles,
        version=VERSION,
        uptime_seconds=uptime
    )


# ============================================================================
# MAIN (for direct execution)
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,  # Dev mode
        log_level="info"
    )
