"""Tests for force models."""
from __future__ import annotations

import math

import numpy as np
import pytest

from orbitcore.core.forces import (
    atmospheric_drag,
    combine,
    constant_force,
    exponential_density,
    j2_perturbation,
    two_body_gravity,
)
from orbitcore.core.state import PhysicsState
from orbitcore.core.vectors import magnitude
from orbitcore.utils.constants import (
    DRAG_REFERENCE_DENSITY_KG_M3,
    EARTH_MU_KM3_S2,
    EARTH_RADIUS_KM,
)


class TestTwoBodyGravity:
    def test_inverse_square_magnitude(self) -> None:
        state = PhysicsState(position=(7000.0, 0, 0), velocity=(0, 7.5, 0), mass=3.0)
        force = two_body_gravity()(state)
        assert magnitude(force) == pytest.approx(EARTH_MU_KM3_S2 * 3.0 / 7000.0 ** 2)

    def test_points_toward_center(self) -> None:
        state = PhysicsState(position=(0, 0, 8000.0), velocity=(0, 0, 0))
        force = two_body_gravity()(state)
        assert force[2] < 0
        assert force[0] == 0 and force[1] == 0

    def test_zero_below_floor(self) -> None:
        state = PhysicsState(position=(0.5 * EARTH_RADIUS_KM, 0, 0), velocity=(0, 0, 0))
        np.testing.assert_array_equal(two_body_gravity()(state), [0, 0, 0])

    def test_floor_warning_logged_once(self, caplog: pytest.LogCaptureFixture) -> None:
        gravity = two_body_gravity()
        state = PhysicsState(position=(0.5 * EARTH_RADIUS_KM, 0, 0), velocity=(0, 0, 0))
        with caplog.at_level("DEBUG", logger="orbitcore.core.forces"):
            for _ in range(50):
                gravity(state)
        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 1
        assert "gravity floor" in warnings[0].getMessage()

        # A fresh model warns again
        caplog.clear()
        with caplog.at_level("WARNING", logger="orbitcore.core.forces"):
            two_body_gravity()(state)
        assert len(caplog.records) == 1

    def test_active_between_floor_and_surface(self) -> None:
        state = PhysicsState(position=(0.95 * EARTH_RADIUS_KM, 0, 0), velocity=(0, 0, 0))
        assert magnitude(two_body_gravity()(state)) > 0


class TestJ2:
    def test_equatorial_component_is_inward(self) -> None:
        # In the equatorial plane J2 adds an inward (negative radial) component
        state = PhysicsState(position=(7000.0, 0, 0), velocity=(0, 0, 0))
        force = j2_perturbation()(state)
        assert force[0] < 0
        assert force[2] == 0

    def test_much_smaller_than_central_gravity(self) -> None:
        state = PhysicsState(position=(5000.0, 0, 5000.0), velocity=(0, 0, 0))
        ratio = magnitude(j2_perturbation()(state)) / magnitude(two_body_gravity()(state))
        assert 1e-4 < ratio < 1e-2

    def test_zero_below_radius(self) -> None:
        state = PhysicsState(position=(6000.0, 0, 0), velocity=(0, 0, 0))
        np.testing.assert_array_equal(j2_perturbation()(state), [0, 0, 0])


class TestDrag:
    def test_density_at_reference_altitude(self) -> None:
        assert exponential_density(175.0) == pytest.approx(DRAG_REFERENCE_DENSITY_KG_M3)

    def test_density_decreases_with_altitude(self) -> None:
        assert exponential_density(300.0) < exponential_density(200.0)

    @pytest.mark.parametrize("altitude", [0.0, -10.0, 1000.1, 5000.0])
    def test_density_zero_outside_band(self, altitude: float) -> None:
        assert exponential_density(altitude) == 0.0

    def test_drag_opposes_velocity(self) -> None:
        state = PhysicsState(position=(EARTH_RADIUS_KM + 300.0, 0, 0), velocity=(0, 7.7, 0))
        force = atmospheric_drag()(state)
        assert force[1] < 0
        assert force[0] == 0 and force[2] == 0

    def test_drag_magnitude(self) -> None:
        bc = 50.0
        state = PhysicsState(position=(EARTH_RADIUS_KM + 300.0, 0, 0), velocity=(0, 7.7, 0))
        expected = 0.5 * exponential_density(300.0) * 7.7 ** 2 * 1e3 / bc
        assert magnitude(atmospheric_drag(bc)(state)) == pytest.approx(expected)

    def test_no_drag_above_model_ceiling(self) -> None:
        state = PhysicsState(position=(EARTH_RADIUS_KM + 2000.0, 0, 0), velocity=(0, 7.0, 0))
        np.testing.assert_array_equal(atmospheric_drag()(state), [0, 0, 0])


def test_combine_sums_forces() -> None:
    state = PhysicsState(position=(1, 0, 0), velocity=(0, 0, 0))
    total = combine(constant_force((1.0, 0, 0)), constant_force((0, 2.0, 0)))(state)
    np.testing.assert_allclose(total, [1.0, 2.0, 0.0])


def test_forces_scale_with_mass() -> None:
    light = PhysicsState(position=(7000.0, 0, 1000.0), velocity=(0, 7.5, 0), mass=1.0)
    heavy = PhysicsState(position=(7000.0, 0, 1000.0), velocity=(0, 7.5, 0), mass=10.0)
    model = combine(two_body_gravity(), j2_perturbation())
    np.testing.assert_allclose(model(heavy), 10.0 * np.asarray(model(light)), rtol=1e-12)
    assert math.isfinite(magnitude(model(heavy)))
