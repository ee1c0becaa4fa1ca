"""Tests for keepsake.atmosphere — world mood targets, tint blending, pushes."""

from __future__ import annotations

import pytest

from keepsake.atmosphere import Atmosphere, blend_tints
from keepsake.config import AtmosphereConfig
from keepsake.types import WHITE, MemoryCategory, MemoryDefinition, MemoryRecord, Tint

RED = Tint(1.0, 0.0, 0.0, 1.0)
BLUE = Tint(0.0, 0.0, 1.0, 1.0)


def _definition(title: str, tint: Tint = WHITE, weight: float = 0.5) -> MemoryDefinition:
    return MemoryDefinition(
        title=title, category=MemoryCategory.WONDER, emotional_weight=weight, world_tint=tint
    )


@pytest.fixture()
def atmosphere(atmosphere_config, bus, store) -> Atmosphere:
    return Atmosphere(atmosphere_config, bus, store)


# ---------------------------------------------------------------------------
# Tint blending
# ---------------------------------------------------------------------------

class TestTintBlend:
    def test_empty_blend_is_white(self) -> None:
        assert blend_tints([]) == WHITE

    def test_single_memory_dominates(self) -> None:
        tint = blend_tints([MemoryRecord(_definition("Red", RED))])
        share = 0.5 / 0.501
        assert tint.as_tuple() == pytest.approx((1.0, 1.0 - share, 1.0 - share, 1.0))

    def test_blend_matches_weighted_average(self) -> None:
        red = MemoryRecord(_definition("Red", RED, weight=0.9))
        blue = MemoryRecord(_definition("Blue", BLUE, weight=0.3))
        total = 0.001 + 0.9 + 0.3
        expected = (
            (0.001 + 0.9) / total,
            0.001 / total,
            (0.001 + 0.3) / total,
            1.0,
        )
        assert blend_tints([red, blue]).as_tuple() == pytest.approx(expected)

    def test_blend_does_not_depend_on_order(self) -> None:
        red = MemoryRecord(_definition("Red", RED, weight=0.9))
        blue = MemoryRecord(_definition("Blue", BLUE, weight=0.3))
        forward = blend_tints([red, blue])
        backward = blend_tints([blue, red])
        assert forward.as_tuple() == pytest.approx(backward.as_tuple())

    def test_vividness_scales_contribution(self) -> None:
        fresh = MemoryRecord(_definition("Red", RED), vividness=1.0)
        faded = MemoryRecord(_definition("Blue", BLUE), vividness=0.2)
        tint = blend_tints([fresh, faded])
        assert tint.r > tint.b

    def test_zero_weights_stay_finite(self) -> None:
        tint = blend_tints([MemoryRecord(_definition("Nil", RED, weight=0.0))])
        assert tint == WHITE


# ---------------------------------------------------------------------------
# Target mood
# ---------------------------------------------------------------------------

class TestTargetMood:
    def test_starts_at_base(self, atmosphere) -> None:
        target = atmosphere.target
        assert target.saturation == -15.0
        assert target.contrast == 5.0
        assert target.bloom == 0.3
        assert target.vignette == 0.25
        assert target.tint == WHITE

    def test_fullness_interpolates(self, atmosphere, store) -> None:
        store.keep(_definition("One"))
        store.keep(_definition("Two"))
        store.keep(_definition("Three"))
        target = atmosphere.target
        assert target.saturation == pytest.approx(-15.0 + 35.0 * 0.5)
        assert target.contrast == pytest.approx(10.0)
        assert target.bloom == pytest.approx(0.55)
        assert target.vignette == pytest.approx(0.3)

    def test_full_store_reaches_peak(self, atmosphere, store) -> None:
        for i in range(store.capacity):
            store.keep(_definition(f"M{i}"))
        assert atmosphere.target.saturation == pytest.approx(20.0)

    def test_forgetting_everything_returns_to_base(self, atmosphere, store) -> None:
        record = store.keep(_definition("One", RED))
        store.forget(record)
        assert atmosphere.target.saturation == -15.0
        assert atmosphere.target.tint == WHITE

    def test_tint_blends_held_memories(self, atmosphere, store) -> None:
        red = store.keep(_definition("Red", RED))
        blue = store.keep(_definition("Blue", BLUE))
        expected = blend_tints([red, blue])
        assert atmosphere.target.tint.as_tuple() == pytest.approx(expected.as_tuple())

    def test_decay_pass_recalculates(self, atmosphere, store) -> None:
        store.keep(_definition("Red", RED))
        before = atmosphere.target.tint
        store.decay_vividness(0.5, 0.0)
        # Single memory: the share shrinks only slightly with its weight.
        assert atmosphere.target.tint.g > before.g


# ---------------------------------------------------------------------------
# Push-state and stepping
# ---------------------------------------------------------------------------

class TestPushAndStep:
    def test_push_raises_target_until_expired(self, atmosphere) -> None:
        atmosphere.push_state(saturation_delta=2.0, bloom_delta=0.1, duration_seconds=1.0)
        assert atmosphere.active_pushes == 1
        pushed = atmosphere.pushed_target()
        assert pushed.saturation == pytest.approx(-13.0)
        assert pushed.bloom == pytest.approx(0.4)

        # The duration starts counting from the step after the request.
        atmosphere.step(0.6)
        atmosphere.step(0.6)
        assert atmosphere.active_pushes == 1
        atmosphere.step(0.6)
        assert atmosphere.active_pushes == 0
        assert atmosphere.pushed_target().saturation == pytest.approx(-15.0)

    def test_pushes_stack(self, atmosphere) -> None:
        atmosphere.push_state(1.0, 0.0, 1.0)
        atmosphere.push_state(1.0, 0.0, 1.0)
        assert atmosphere.pushed_target().saturation == pytest.approx(-13.0)

    def test_non_positive_duration_ignored(self, atmosphere) -> None:
        atmosphere.push_state(5.0, 1.0, 0.0)
        atmosphere.push_state(5.0, 1.0, -1.0)
        assert atmosphere.active_pushes == 0

    def test_step_eases_toward_target(self, atmosphere, store) -> None:
        for i in range(store.capacity):
            store.keep(_definition(f"M{i}"))
        mood = atmosphere.step(0.25)
        # 0.8 * 0.25 = 20% of the way from -15 toward 20.
        assert mood.saturation == pytest.approx(-15.0 + 35.0 * 0.2)

    def test_large_step_snaps_to_target(self, atmosphere, store) -> None:
        store.keep(_definition("One"))
        atmosphere.step(5.0)
        atmosphere.step(5.0)
        assert atmosphere.current.saturation == pytest.approx(atmosphere.target.saturation)


# ---------------------------------------------------------------------------
# Moment pulse
# ---------------------------------------------------------------------------

class TestMomentPulse:
    def test_no_pulse_at_rest(self, atmosphere) -> None:
        assert atmosphere.pulse_bloom() == 0.0

    def test_pulse_peaks_midway_and_ends(self, atmosphere, store) -> None:
        store.keep(_definition("One"))
        assert atmosphere.pulse_bloom() == pytest.approx(0.0)

        atmosphere.step(0.9)
        assert atmosphere.pulse_bloom() == pytest.approx(1.5)
        base_bloom = atmosphere.current.bloom - atmosphere.pulse_bloom()
        assert atmosphere.current.bloom == pytest.approx(base_bloom + 1.5)

        atmosphere.step(0.9)
        assert atmosphere.pulse_bloom() == 0.0

    def test_zero_duration_disables_pulse(self, bus, store) -> None:
        atmosphere = Atmosphere(AtmosphereConfig(moment_bloom_duration=0.0), bus, store)
        store.keep(_definition("One"))
        atmosphere.step(0.1)
        assert atmosphere.pulse_bloom() == 0.0
