"""Force models for orbit propagation.

Each factory returns a function ``state -> force`` with force in kg·km/s².
Forces are summed before the integrator divides by mass once, so regimes are
assembled by plain vector addition (see :func:`combine`).
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from orbitcore.core.integrators import ForceFunction
from orbitcore.core.state import PhysicsState
from orbitcore.core.vectors import as_vector, magnitude, scale, zero3
from orbitcore.utils.constants import (
    DEFAULT_BALLISTIC_COEFFICIENT_KG_M2,
    DRAG_MAX_ALTITUDE_KM,
    DRAG_REFERENCE_ALTITUDE_KM,
    DRAG_REFERENCE_DENSITY_KG_M3,
    DRAG_SCALE_HEIGHT_KM,
    EARTH_J2,
    EARTH_MU_KM3_S2,
    EARTH_RADIUS_KM,
    GRAVITY_FLOOR_FRACTION,
)

logger = logging.getLogger(__name__)


def two_body_gravity(mu: float = EARTH_MU_KM3_S2, body_radius: float = EARTH_RADIUS_KM) -> ForceFunction:
    """Central-body gravity, ``F = -mu·m/r² · r_hat``.

    Below ``0.9 * body_radius`` the force is zero rather than diverging. This
    floor is a numerical guard, not a physical model of the interior.
    The first evaluation below the floor logs a warning; later ones log at
    debug level.

    Args:
        mu: Gravitational parameter in km³/s².
        body_radius: Central body radius in km.
    """
    floor = GRAVITY_FLOOR_FRACTION * body_radius
    warned = False

    def force(state: PhysicsState) -> NDArray[np.float64]:
        nonlocal warned
        r = magnitude(state.position)
        if r < floor:
            if warned:
                logger.debug("Body at r=%.1f km is below the gravity floor", r)
            else:
                logger.warning("Body at r=%.1f km is below the gravity floor (%.1f km)", r, floor)
                warned = True
            return zero3()
        return scale(state.position, -mu * state.mass / (r * r * r))

    return force


def j2_perturbation(
    mu: float = EARTH_MU_KM3_S2,
    j2: float = EARTH_J2,
    radius: float = EARTH_RADIUS_KM,
) -> ForceFunction:
    """Oblateness (J2) perturbation, Montenbruck & Gill Eq. 3.66.

    a = 3/2·J2·mu·R²/r⁵ · [x(5z²/r² − 1), y(5z²/r² − 1), z(5z²/r² − 3)]

    Zero below the reference radius.
    """

    def force(state: PhysicsState) -> NDArray[np.float64]:
        x, y, z = state.position
        r = magnitude(state.position)
        if r < radius:
            return zero3()
        r2 = r * r
        factor = 1.5 * j2 * mu * radius * radius / (r2 * r2 * r)
        k = 5.0 * z * z / r2
        accel = (
            factor * x * (k - 1.0),
            factor * y * (k - 1.0),
            factor * z * (k - 3.0),
        )
        return scale(as_vector(accel), state.mass)

    return force


def exponential_density(
    altitude_km: float,
    reference_density: float = DRAG_REFERENCE_DENSITY_KG_M3,
    reference_altitude_km: float = DRAG_REFERENCE_ALTITUDE_KM,
    scale_height_km: float = DRAG_SCALE_HEIGHT_KM,
) -> float:
    """Atmospheric density in kg/m³, ``rho0·exp(-(h - h_ref)/H)``.

    Returns 0 outside the modelled band ``(0, 1000] km``.
    """
    if not 0.0 < altitude_km <= DRAG_MAX_ALTITUDE_KM:
        return 0.0
    return reference_density * math.exp(-(altitude_km - reference_altitude_km) / scale_height_km)


def atmospheric_drag(
    ballistic_coefficient: float = DEFAULT_BALLISTIC_COEFFICIENT_KG_M2,
    body_radius: float = EARTH_RADIUS_KM,
) -> ForceFunction:
    """Drag from an exponential atmosphere, opposing the velocity.

    Acceleration magnitude is ``0.5·(1/BC)·rho·v²``. With rho in kg/m³, BC in
    kg/m² and v in km/s the result is converted to km/s².

    Args:
        ballistic_coefficient: m / (Cd·A) in kg/m².
        body_radius: Radius used to turn |r| into altitude, in km.
    """

    def force(state: PhysicsState) -> NDArray[np.float64]:
        altitude = magnitude(state.position) - body_radius
        rho = exponential_density(altitude)
        if rho == 0.0:
            return zero3()
        v = magnitude(state.velocity)
        if v == 0.0:
            return zero3()
        # (km/s)² -> (m/s)² is 1e6, m/s² -> km/s² is 1e-3
        accel_mag = 0.5 * (1.0 / ballistic_coefficient) * rho * v * v * 1e3
        return scale(state.velocity, -accel_mag * state.mass / v)

    return force


def constant_force(force_vector: NDArray | tuple[float, float, float]) -> ForceFunction:
    """A force that does not depend on state (thrust, uniform field)."""
    fixed = as_vector(force_vector)

    def force(state: PhysicsState) -> NDArray[np.float64]:
        return fixed

    return force


def combine(*forces: ForceFunction) -> ForceFunction:
    """Sum several force functions into one."""

    def force(state: PhysicsState) -> NDArray[np.float64]:
        total = np.zeros(3)
        for f in forces:
            total = total + f(state)
        return as_vector(total)

    return force
