"""
LEVELCURVE - CHARACTER PROGRESSION API
======================================

Endpoints for character creation, experience grants and stat lookup.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.models import (
    CharacterCreateRequest,
    CharacterResponse,
    CharacterStatsResponse,
    ExperienceRequest,
    ExperienceResponse,
    ProgressionStateModel,
)
from core.progression import level_progress, level_stats
from services import CharacterRecord, ProgressionLedger, get_ledger


router = APIRouter(tags=["progression"])


def _require_character(ledger: ProgressionLedger, character_id: str) -> CharacterRecord:
    record = ledger.get(character_id)
    if record is None:
        raise HTTPException(
            status_code=404,
            detail=f"Character '{character_id}' not found"
        )
    return record


def _character_response(record: CharacterRecord) -> CharacterResponse:
    return CharacterResponse(
        character_id=record.character_id,
        profile=record.profile,
        state=ProgressionStateModel.from_core(record.state),
        progress_pct=round(level_progress(record.state), 2)
    )


# ============================================================================
# CHARACTER ENDPOINTS
# ============================================================================

@router.post("/characters", response_model=CharacterResponse)
async def create_character(
    request: CharacterCreateRequest,
    ledger: ProgressionLedger = Depends(get_ledger)
):
    """
    Register a character at level 1 on a curve profile.

    Example:
        POST /characters
        {"profile": "player", "characterId": "hero-1"}

    Returns:
        {
            "characterId": "hero-1",
            "profile": "player",
            "state": {"level": 1, "exp": 0, "expToNext": 100, "maxLevel": 100},
            "progressPct": 0.0
        }
    """
    if request.character_id and ledger.get(request.character_id) is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Character '{request.character_id}' already exists"
        )

    try:
        record = ledger.create(request.profile, request.character_id)
    except KeyError:
        raise HTTPException(
            status_code=400,
            detail=f"Profile '{request.profile}' not found"
        )

    return _character_response(record)


@router.get("/characters/{character_id}", response_model=CharacterResponse)
async def get_character(
    character_id: str,
    ledger: ProgressionLedger = Depends(get_ledger)
):
    return _character_response(_require_character(ledger, character_id))


@router.post("/characters/{character_id}/experience", response_model=ExperienceResponse)
async def grant_experience(
    character_id: str,
    request: ExperienceRequest,
    ledger: ProgressionLedger = Depends(get_ledger)
):
    """
    Grant experience; may cross several levels at once.

    Example:
        POST /characters/hero-1/experience
        {"exp": 250}

    Returns:
        {
            "characterId": "hero-1",
            "state": {"level": 3, "exp": 0, "expToNext": 225, "maxLevel": 100},
            "leveledUp": true,
            "levelsGained": 2
        }
    """
    _require_character(ledger, character_id)

    try:
        result = await ledger.grant(character_id, request.exp)
    except KeyError:
        raise HTTPException(
            status_code=404,
            detail=f"Curve profile for '{character_id}' no longer exists"
        )

    return ExperienceResponse(
        character_id=character_id,
        state=ProgressionStateModel.from_core(result.state),
        leveled_up=result.leveled_up,
        levels_gained=result.levels_gained
    )


@router.get("/characters/{character_id}/stats", response_model=CharacterStatsResponse)
async def get_character_stats(
    character_id: str,
    ledger: ProgressionLedger = Depends(get_ledger)
):
    """
    Stats at the character's current level.

    Returns:
        {"characterId": "hero-1", "level": 3, "stats": {"level": 3, "hp": 140, ...}}
    """
    record = _require_character(ledger, character_id)
    profile = ledger.registry.get(record.profile)
    if profile is None:
        raise HTTPException(
            status_code=404,
            detail=f"Curve profile '{record.profile}' not found"
        )

    return CharacterStatsResponse(
        character_id=character_id,
        level=record.state.level,
        stats=level_stats(profile.stats, record.state.level)
    )
