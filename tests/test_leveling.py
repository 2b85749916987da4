"""
Tests for the progression state machine.
"""
from __future__ import annotations

import random

import pytest

from core.progression import (
    ExpGrowthFormula,
    MAX_REQUIRED_EXP,
    ProgressionState,
    add_experience,
    level_progress,
    new_progression,
    required_exp,
)


class TestNewProgression:
    def test_starts_at_level_one(self, formula_curve):
        state = new_progression(formula_curve)

        assert (state.level, state.exp, state.exp_to_next) == (1, 0, 100)

    def test_undefined_formula_falls_back_to_default(self, make_formula_curve):
        curve = make_formula_curve((1, 20), formula="1 / 0")

        assert new_progression(curve).exp_to_next == 100

    def test_single_level_cap(self):
        state = new_progression(max_level=1)

        assert state.is_capped
        assert state.exp_to_next == 0


class TestAddExperience:
    def test_single_grant_crosses_two_levels(self, formula_curve):
        # Arrange
        state = new_progression(formula_curve)

        # Act
        result = add_experience(state, formula_curve, 250)

        # Assert
        assert result.state.level == 3
        assert result.state.exp == 0
        assert result.state.exp_to_next == 225
        assert result.leveled_up is True
        assert result.levels_gained == 2

    def test_partial_grant_accumulates(self, formula_curve):
        result = add_experience(new_progression(formula_curve), formula_curve, 50)

        assert result.state.level == 1
        assert result.state.exp == 50
        assert result.leveled_up is False
        assert result.levels_gained == 0

    def test_split_grants_match_single_grant(self, formula_curve):
        state = new_progression(formula_curve)

        once = add_experience(state, formula_curve, 1000).state
        split = state
        for amount in (100, 300, 1, 599):
            split = add_experience(split, formula_curve, amount).state

        assert split == once

    def test_cap_discards_leftover_exp(self, formula_curve):
        state = new_progression(formula_curve, max_level=3)

        result = add_experience(state, formula_curve, 1_000_000)

        assert result.state.level == 3
        assert result.state.exp == 0
        assert result.levels_gained == 2

    def test_capped_state_is_terminal(self, formula_curve):
        capped = ProgressionState(level=3, exp=0, exp_to_next=225, max_level=3)

        result = add_experience(capped, formula_curve, 500)

        assert result.state.level == 3
        assert result.state.exp == 0
        assert result.leveled_up is False

    def test_negative_grant_rejected(self, formula_curve):
        with pytest.raises(ValueError):
            add_experience(new_progression(formula_curve), formula_curve, -1)

    def test_negative_requirement_is_treated_as_zero(self, make_formula_curve):
        curve = make_formula_curve((1, 20), formula="level - 1000")
        state = new_progression(curve, max_level=5)

        result = add_experience(state, curve, 0)

        assert state.exp_to_next == 0
        assert result.state.level == 5

    def test_bezier_curve(self, bezier_curve):
        state = new_progression(bezier_curve)

        result = add_experience(state, bezier_curve, 100)

        assert result.state.level == 2
        assert result.state.exp == 0
        assert result.state.exp_to_next == required_exp(bezier_curve, 2)

    def test_legacy_formula_without_segments(self):
        legacy = ExpGrowthFormula(type="linear", a=10, b=0)
        state = new_progression(None, legacy_formula=legacy)

        result = add_experience(state, None, 30, legacy_formula=legacy)

        assert state.exp_to_next == 10
        assert result.state.level == 3
        assert result.state.exp == 0


class TestProgressionState:
    @pytest.mark.parametrize("kwargs", [
        {"level": 0},
        {"level": 5, "max_level": 4},
        {"exp": -1},
        {"max_level": 0, "level": 1},
    ])
    def test_invalid_states_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ProgressionState(**kwargs)

    def test_serialized_form(self):
        state = ProgressionState(level=2, exp=10, exp_to_next=150)

        data = state.to_dict()

        assert data == {"level": 2, "exp": 10, "expToNext": 150, "maxLevel": 100}
        assert ProgressionState.from_dict(data) == state

    def test_level_progress(self):
        assert level_progress(ProgressionState(level=1, exp=50, exp_to_next=100)) == 50.0
        assert level_progress(ProgressionState(level=3, exp=0, exp_to_next=10, max_level=3)) == 0.0


class TestLevelUpInvariants:
    @pytest.mark.parametrize("curve_name", ["formula_curve", "bezier_curve"])
    @pytest.mark.parametrize("start_level, levels", [(1, 1), (1, 5), (4, 7), (9, 3), (15, 10)])
    def test_exact_sum_of_requirements_gains_that_many_levels(self, request, curve_name, start_level, levels):
        curve = request.getfixturevalue(curve_name)
        state = ProgressionState(level=start_level, exp=0, exp_to_next=required_exp(curve, start_level))
        grant = sum(required_exp(curve, start_level + i) for i in range(levels))

        result = add_experience(state, curve, grant)

        assert result.levels_gained == levels
        assert result.state.level == start_level + levels
        assert result.state.exp == 0
        assert result.state.exp_to_next == required_exp(curve, start_level + levels)

    @pytest.mark.parametrize("seed", range(5))
    def test_random_grant_sequences_stay_in_bounds(self, formula_curve, seed):
        rng = random.Random(seed)
        state = new_progression(formula_curve, max_level=15)

        for _ in range(80):
            before = state.level
            result = add_experience(state, formula_curve, rng.randint(0, 5000))
            state = result.state

            assert 1 <= state.level <= state.max_level
            assert state.exp >= 0
            assert result.levels_gained == state.level - before
            if state.is_capped:
                assert state.exp == 0
            else:
                assert state.exp < state.exp_to_next

        assert state.is_capped

    def test_grant_past_saturated_requirement(self, formula_curve):
        state = ProgressionState(level=1800, exp=0, exp_to_next=MAX_REQUIRED_EXP, max_level=3000)

        small = add_experience(state, formula_curve, 10 ** 6)
        huge = add_experience(state, formula_curve, MAX_REQUIRED_EXP)

        assert (small.state.level, small.state.exp) == (1800, 10 ** 6)
        assert (huge.state.level, huge.state.exp) == (1801, 0)
        assert huge.state.exp_to_next == MAX_REQUIRED_EXP
