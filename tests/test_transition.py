"""Tests for gather/morph progress tracking."""

import math

import numpy as np
import pytest

from sonosphere.core.transition import (
    TransitionState,
    advance_gather,
    advance_morph,
    begin_morph,
    ease_in_out_cubic,
    morph_targets,
    step_size,
)


class TestEasing:
    def test_endpoints(self):
        assert ease_in_out_cubic(0.0) == 0.0
        assert ease_in_out_cubic(1.0) == 1.0
        assert ease_in_out_cubic(0.5) == pytest.approx(0.5)

    def test_branches(self):
        assert ease_in_out_cubic(0.25) == pytest.approx(4 * 0.25 ** 3)
        assert ease_in_out_cubic(0.75) == pytest.approx(1 - (-2 * 0.75 + 2) ** 3 / 2)

    def test_monotonic(self):
        ts = np.linspace(0, 1, 101)
        eased = [ease_in_out_cubic(t) for t in ts]
        assert np.all(np.diff(eased) >= 0)


class TestStepSize:
    def test_fixed(self):
        assert step_size(2.0, 0.5, "fixed") == pytest.approx(1 / 120)

    def test_delta(self):
        assert step_size(2.0, 0.5, "delta") == pytest.approx(0.25)

    def test_modes_agree_at_sixty(self):
        assert step_size(1.5, 1 / 60, "delta") == pytest.approx(step_size(1.5, 0.0, "fixed"))

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            step_size(1.0, 0.1, "wallclock")


class TestGather:
    @pytest.mark.parametrize("duration", [0.5, 2.0, 3.3])
    def test_reaches_one_within_budget(self, duration):
        state = TransitionState()
        step = step_size(duration, 1 / 60, "delta")
        ticks = math.ceil(duration * 60)
        for _ in range(ticks):
            state = advance_gather(state, True, step)
            assert 0.0 <= state.gather <= 1.0
        assert state.gather == 1.0

    def test_reverses_to_zero(self):
        state = TransitionState(gather=1.0)
        step = step_size(2.0, 0.0, "fixed")
        for _ in range(120):
            state = advance_gather(state, False, step)
            assert 0.0 <= state.gather <= 1.0
        assert state.gather == 0.0

    def test_stays_scattered_when_inactive(self):
        state = TransitionState()
        for _ in range(30):
            state = advance_gather(state, False, 0.1)
        assert state.gather == 0.0

    def test_large_step_clamps(self):
        state = advance_gather(TransitionState(), True, 5.0)
        assert state.gather == 1.0


class TestMorph:
    def test_starts_idle(self):
        state = TransitionState()
        assert state.morph == 1.0
        assert not state.morphing

    def test_begin_resets_and_snapshots(self):
        outgoing = np.arange(6, dtype=np.float32)
        state = begin_morph(TransitionState(), outgoing)
        assert state.morph == 0.0
        np.testing.assert_array_equal(state.previous, outgoing)
        assert state.previous is not outgoing

    def test_progress_monotonic_to_one(self):
        state = begin_morph(TransitionState(), np.zeros(3, dtype=np.float32))
        step = step_size(1.5, 1 / 60, "delta")
        values = []
        for _ in range(90):
            state = advance_morph(state, step)
            values.append(state.morph)
        assert np.all(np.diff(values) > 0)
        assert values[-1] == 1.0
        state = advance_morph(state, step)
        assert state.morph == 1.0

    def test_targets_blend(self):
        prev = np.zeros(3, dtype=np.float32)
        cur = np.full(3, 2.0, dtype=np.float32)
        state = TransitionState(morph=0.5, previous=prev)
        np.testing.assert_allclose(morph_targets(state, cur), 1.0)

    def test_targets_pass_through_when_idle(self):
        cur = np.ones(3, dtype=np.float32)
        assert morph_targets(TransitionState(), cur) is cur

    def test_completed_policy_keeps_stale_snapshot(self):
        first = np.zeros(3, dtype=np.float32)
        state = begin_morph(TransitionState(), first, "completed")
        state = advance_morph(state, 0.3)
        second = np.ones(3, dtype=np.float32)
        state = begin_morph(state, second, "completed")
        assert state.morph == 0.0
        np.testing.assert_array_equal(state.previous, first)

    def test_blended_policy_snapshots_visible_blend(self):
        first = np.zeros(3, dtype=np.float32)
        state = begin_morph(TransitionState(), first, "blended")
        state = advance_morph(state, 0.5)
        second = np.full(3, 4.0, dtype=np.float32)
        state = begin_morph(state, second, "blended")
        np.testing.assert_allclose(state.previous, 2.0)

    def test_snapshot_after_completion(self):
        state = begin_morph(TransitionState(), np.zeros(3, dtype=np.float32))
        state = advance_morph(state, 0.995)
        outgoing = np.full(3, 7.0, dtype=np.float32)
        state = begin_morph(state, outgoing, "completed")
        np.testing.assert_array_equal(state.previous, outgoing)

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            begin_morph(TransitionState(), np.zeros(3), "latest")
