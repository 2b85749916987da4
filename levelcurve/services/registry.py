"""
LEVELCURVE - CURVE REGISTRY & PROGRESSION LEDGER
================================================

In-memory owners of shared progression state.

CurveRegistry:
- Named curve profiles (curve + max level + stat growth)
- Profiles are immutable; publishing swaps the reference in one step, so
  readers never observe a half-edited curve
- Seeded with the built-in player/monster presets

ProgressionLedger:
- One ProgressionState per character
- Single writer per character (per-character asyncio.Lock)
- Grants read a snapshot of the character's curve profile

Persistence is left to the host: profiles and states serialize to plain
dicts via to_dict().
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from core.progression import (
    CurveConfig,
    ExpGrowthFormula,
    LevelStatsProfile,
    LevelUpResult,
    PRESETS,
    ProgressionState,
    add_experience,
    new_progression,
    validate_curve,
)


# ============================================================================
# CURVE REGISTRY
# ============================================================================

@dataclass(frozen=True)
class CurveProfile:
    """
    Published, read-only curve profile.

    Attributes:
        name: Profile identifier (e.g., "player")
        curve: Segmented exp curve
        max_level: Level cap for characters on this profile
        stats: Base stats and growth formulas
        legacy_formula: Single-formula curve when the curve has no segments
        version: Incremented on every publish
    """
    name: str
    curve: CurveConfig
    max_level: int = 100
    stats: LevelStatsProfile = field(default_factory=LevelStatsProfile)
    legacy_formula: ExpGrowthFormula = field(default_factory=ExpGrowthFormula)
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "curve": self.curve.to_dict(),
            "maxLevel": self.max_level,
            "stats": self.stats.to_dict(),
            "expGrowth": self.legacy_formula.to_dict(),
            "version": self.version,
        }


class CurveRegistry:
    """
    Registry of published curve profiles.

    Usage:
        registry = await get_registry()
        profile = registry.get("player")
        await registry.publish(replace(profile, curve=edited_curve))
    """

    def __init__(self):
        self._profiles: Dict[str, CurveProfile] = {}
        self._write_lock = asyncio.Lock()

    def seed_presets(self) -> None:
        for preset in PRESETS.values():
            self._profiles[preset.name] = CurveProfile(
                name=preset.name,
                curve=preset.curve,
                max_level=preset.max_level,
                stats=preset.stats,
                legacy_formula=preset.legacy_formula,
            )
        print(f"[Registry] Seeded presets: {', '.join(sorted(self._profiles))}")

    def get(self, name: str) -> Optional[CurveProfile]:
        return self._profiles.get(name)

    def list_profiles(self) -> List[CurveProfile]:
        return sorted(self._profiles.values(), key=lambda p: p.name)

    async def publish(self, profile: CurveProfile) -> CurveProfile:
        """
        Publish a profile, replacing any previous version atomically.

        Returns:
            Stored profile (with bumped version)

        Raises:
            InvalidSegmentRange: An active segment lies outside [1, max_level];
                the previous version stays published
        """
        validate_curve(profile.curve, profile.max_level)

        async with self._write_lock:
            previous = self._profiles.get(profile.name)
            version = previous.version + 1 if previous else 1
            stored = replace(profile, version=version)
            self._profiles[profile.name] = stored

        print(f"[Registry] Published '{stored.name}' v{stored.version} "
              f"({len(stored.curve.active_segments)} active segments)")
        return stored

    async def publish_curve(self, name: str, curve: CurveConfig) -> CurveProfile:
        """
        Replace only the curve of an existing profile.

        Raises:
            KeyError: Unknown profile
        """
        current = self._profiles.get(name)
        if current is None:
            raise KeyError(name)
        return await self.publish(replace(current, curve=curve))


# ============================================================================
# PROGRESSION LEDGER
# ============================================================================

@dataclass(frozen=True)
class CharacterRecord:
    character_id: str
    profile: str
    state: ProgressionState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "characterId": self.character_id,
            "profile": self.profile,
            "state": self.state.to_dict(),
        }


class ProgressionLedger:
    """
    Character progression states with single-writer updates.

    Each grant runs under the character's own lock, so concurrent grants
    to one character are serialized while different characters level up
    independently.
    """

    def __init__(self, registry: CurveRegistry):
        self.registry = registry
        self._records: Dict[str, CharacterRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _profile(self, name: str) -> CurveProfile:
        profile = self.registry.get(name)
        if profile is None:
            raise KeyError(name)
        return profile

    def create(self, profile_name: str, character_id: Optional[str] = None) -> CharacterRecord:
        """
        Register a new character at level 1 / exp 0.

        Raises:
            KeyError: Unknown profile
        """
        profile = self._profile(profile_name)
        character_id = character_id or str(uuid.uuid4())

        state = new_progression(
            curve=profile.curve,
            max_level=profile.max_level,
            legacy_formula=profile.legacy_formula
        )
        record = CharacterRecord(character_id, profile.name, state)
        self._records[character_id] = record
        self._locks[character_id] = asyncio.Lock()
        return record

    def get(self, character_id: str) -> Optional[CharacterRecord]:
        return self._records.get(character_id)

    async def grant(self, character_id: str, exp_gained: float) -> LevelUpResult:
        """
        Apply an experience grant to one character.

        Raises:
            KeyError: Unknown character or profile
            ValueError: Negative grant
        """
        lock = self._locks.get(character_id)
        if lock is None:
            raise KeyError(character_id)

        async with lock:
            record = self._records[character_id]
            # Snapshot: a publish during this grant does not affect it
            profile = self._profile(record.profile)

            result = add_experience(
                record.state,
                profile.curve,
                exp_gained,
                legacy_formula=profile.legacy_formula
            )
            self._records[character_id] = replace(record, state=result.state)

        if result.leveled_up:
            print(f"[Ledger] {character_id} +{result.levels_gained} level(s) → {result.state.level}")
        return result


# ============================================================================
# SINGLETON INSTANCES (Dependency Injection ready)
# ============================================================================

_registry_instance: Optional[CurveRegistry] = None
_ledger_instance: Optional[ProgressionLedger] = None


async def get_registry() -> CurveRegistry:
    """
    Get or create the registry (singleton pattern), seeded with presets.

    Usage:
        registry = await get_registry()
        profile = registry.get("player")
    """
    global _registry_instance

    if _registry_instance is None:
        _registry_instance = CurveRegistry()
        _registry_instance.seed_presets()

    return _registry_instance


async def get_ledger() -> ProgressionLedger:
    global _ledger_instance

    if _ledger_instance is None:
        _ledger_instance = ProgressionLedger(await get_registry())

    return _ledger_instance


async def close_registry() -> None:
    """
    Drop registry and ledger (cleanup).

    Call on application shutdown, or between tests.
    """
    global _registry_instance, _ledger_instance
    _registry_instance = None
    _ledger_instance = None
    print("[Registry] Cleared")
