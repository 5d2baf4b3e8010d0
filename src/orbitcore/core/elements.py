"""Conversions between Keplerian orbital elements and Cartesian state.

Follows Vallado, *Fundamentals of Astrodynamics and Applications* (2013):
elements are rotated from the perifocal frame into the inertial frame with
the 3-1-3 sequence ``R3(-Ω)·R1(-i)·R3(-ω)``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from orbitcore.core.coordinates import ECICoordinates, GeodeticCoordinates, eci_to_geodetic
from orbitcore.core.errors import InvalidOrbitError
from orbitcore.core.kepler import TWO_PI, normalize_angle
from orbitcore.core.state import PhysicsState
from orbitcore.core.vectors import (
    Vec3,
    apply,
    cross,
    dot,
    magnitude,
    rot1,
    rot3,
    vec3,
    zero3,
)
from orbitcore.utils.constants import (
    DEFAULT_ORBIT_PATH_POINTS,
    EARTH_MU_KM3_S2,
    EARTH_RADIUS_KM,
)

logger = logging.getLogger(__name__)

_SMALL = 1e-10


@dataclass(frozen=True)
class OrbitalElements:
    """Classical Keplerian elements.

    Attributes:
        semi_major_axis: Semi-major axis a in km (> 0 for ellipses).
        eccentricity: Eccentricity e in [0, 1) for ellipses.
        inclination: Inclination i in radians, [0, π].
        longitude_ascending_node: RAAN Ω in radians, [0, 2π).
        argument_of_periapsis: ω in radians, [0, 2π).
        true_anomaly: ν in radians, [0, 2π).
    """

    semi_major_axis: float
    eccentricity: float
    inclination: float = 0.0
    longitude_ascending_node: float = 0.0
    argument_of_periapsis: float = 0.0
    true_anomaly: float = 0.0

    @property
    def semi_latus_rectum(self) -> float:
        return self.semi_major_axis * (1.0 - self.eccentricity ** 2)

    @classmethod
    def from_degrees(
        cls,
        semi_major_axis: float,
        eccentricity: float,
        inclination_deg: float = 0.0,
        raan_deg: float = 0.0,
        arg_periapsis_deg: float = 0.0,
        true_anomaly_deg: float = 0.0,
    ) -> OrbitalElements:
        """Build elements from angles given in degrees."""
        return cls(
            semi_major_axis=semi_major_axis,
            eccentricity=eccentricity,
            inclination=math.radians(inclination_deg),
            longitude_ascending_node=math.radians(raan_deg),
            argument_of_periapsis=math.radians(arg_periapsis_deg),
            true_anomaly=math.radians(true_anomaly_deg),
        )

    def to_degrees(self) -> dict[str, float]:
        """Elements as a dict with angles in degrees (for display)."""
        return {
            "semi_major_axis": self.semi_major_axis,
            "eccentricity": self.eccentricity,
            "inclination_deg": math.degrees(self.inclination),
            "raan_deg": math.degrees(self.longitude_ascending_node),
            "arg_periapsis_deg": math.degrees(self.argument_of_periapsis),
            "true_anomaly_deg": math.degrees(self.true_anomaly),
        }

    def with_true_anomaly(self, true_anomaly: float) -> OrbitalElements:
        return OrbitalElements(
            self.semi_major_axis,
            self.eccentricity,
            self.inclination,
            self.longitude_ascending_node,
            self.argument_of_periapsis,
            true_anomaly,
        )


@dataclass(frozen=True)
class TransferOrbit:
    """Shape of a transfer ellipse: semi-major axis in km and eccentricity."""

    semi_major_axis: float
    eccentricity: float


@dataclass(frozen=True)
class HohmannTransfer:
    """Two-impulse transfer between coplanar circular orbits.

    Attributes:
        dv1: Departure burn in km/s.
        dv2: Arrival burn in km/s.
        total_delta_v: ``dv1 + dv2`` in km/s.
        transfer_time: Half the transfer-ellipse period, in seconds.
        transfer_orbit: The transfer ellipse.
    """

    dv1: float
    dv2: float
    total_delta_v: float
    transfer_time: float
    transfer_orbit: TransferOrbit


@dataclass(frozen=True)
class BiEllipticTransfer:
    """Three-impulse transfer through an intermediate apoapsis ``rb``.

    Burns are in km/s and times in seconds.
    """

    dv1: float
    dv2: float
    dv3: float
    total_delta_v: float
    transfer_time1: float
    transfer_time2: float
    total_time: float
    transfer_orbit1: TransferOrbit
    transfer_orbit2: TransferOrbit


def _perifocal_to_inertial(elements: OrbitalElements) -> NDArray[np.float64]:
    return (
        np.asarray(rot3(-elements.longitude_ascending_node))
        @ np.asarray(rot1(-elements.inclination))
        @ np.asarray(rot3(-elements.argument_of_periapsis))
    )


def position_at_true_anomaly(
    elements: OrbitalElements,
    true_anomaly: float,
    mu: float = EARTH_MU_KM3_S2,
) -> tuple[Vec3, Vec3]:
    """Closed-form inertial position and velocity at a given true anomaly.

    No validation is done; use :func:`elements_to_state` for checked output.

    Returns:
        Tuple of (position_km, velocity_km_s).
    """
    e = elements.eccentricity
    p = elements.semi_latus_rectum
    cos_nu = math.cos(true_anomaly)
    sin_nu = math.sin(true_anomaly)
    r = p / (1.0 + e * cos_nu)

    position_pqw = vec3(r * cos_nu, r * sin_nu, 0.0)
    mu_over_h = mu / math.sqrt(mu * p)
    velocity_pqw = vec3(-mu_over_h * sin_nu, mu_over_h * (e + cos_nu), 0.0)

    rotation = _perifocal_to_inertial(elements)
    return apply(rotation, position_pqw), apply(rotation, velocity_pqw)


def elements_to_state(
    elements: OrbitalElements,
    mu: float = EARTH_MU_KM3_S2,
    body_radius: float = EARTH_RADIUS_KM,
) -> PhysicsState:
    """Convert Keplerian elements to an inertial Cartesian state.

    Args:
        elements: Orbital elements (radians).
        mu: Gravitational parameter in km³/s².
        body_radius: Central body radius in km; states inside it are rejected.

    Returns:
        PhysicsState with unit mass at time 0.

    Raises:
        InvalidOrbitError: If the position or velocity is non-finite or the
            position lies below the body radius.
    """
    position, velocity = position_at_true_anomaly(elements, elements.true_anomaly, mu)
    r_mag = magnitude(position)
    v_mag = magnitude(velocity)

    if not math.isfinite(r_mag) or not math.isfinite(v_mag) or r_mag < body_radius:
        logger.error("Invalid orbital state: r=%.2f km, v=%.2f km/s", r_mag, v_mag)
        raise InvalidOrbitError(f"Invalid orbital state: r={r_mag:.2f} km, v={v_mag:.2f} km/s")

    return PhysicsState(position=position, velocity=velocity, acceleration=zero3(), mass=1.0, time=0.0)


def state_to_elements(
    position: NDArray | PhysicsState,
    velocity: NDArray | None = None,
    mu: float = EARTH_MU_KM3_S2,
) -> OrbitalElements:
    """Recover Keplerian elements from an inertial position and velocity.

    Accepts either a PhysicsState or explicit position/velocity vectors.
    Undefined angles (node of an equatorial orbit, periapsis of a circular
    one) are reported as 0 and the remaining angle absorbs the rotation, as
    in Vallado's special cases.

    Raises:
        InvalidOrbitError: If the position is zero or the state has no angular
            momentum (a radial or stationary trajectory).
    """
    if isinstance(position, PhysicsState):
        position, velocity = position.position, position.velocity

    r = magnitude(position)
    v = magnitude(velocity)

    h = cross(position, velocity)
    h_mag = magnitude(h)
    if r == 0.0 or h_mag <= _SMALL * r * v:
        logger.error("Degenerate orbital state: r=%.2f km, v=%.4f km/s, |h|=%.3e", r, v, h_mag)
        raise InvalidOrbitError(
            f"State has zero angular momentum (radial trajectory): r={r:.2f} km, v={v:.4f} km/s"
        )

    e_vec = (np.cross(velocity, h) / mu) - (np.asarray(position) / r)
    eccentricity = magnitude(e_vec)

    energy = v * v / 2.0 - mu / r
    semi_major_axis = -mu / (2.0 * energy)

    inclination = math.acos(max(-1.0, min(1.0, h[2] / h_mag)))

    node = np.cross((0.0, 0.0, 1.0), h)
    n_mag = magnitude(node)

    raan = 0.0
    if n_mag > _SMALL:
        raan = math.acos(max(-1.0, min(1.0, node[0] / n_mag)))
        if node[1] < 0.0:
            raan = TWO_PI - raan

    radial_velocity = dot(position, velocity)

    if eccentricity > _SMALL:
        if n_mag > _SMALL:
            arg_periapsis = math.acos(max(-1.0, min(1.0, dot(node, e_vec) / (n_mag * eccentricity))))
            if e_vec[2] < 0.0:
                arg_periapsis = TWO_PI - arg_periapsis
        else:
            # Equatorial: longitude of periapsis measured from x
            arg_periapsis = math.atan2(e_vec[1], e_vec[0])
            if h[2] < 0.0:
                arg_periapsis = -arg_periapsis
        true_anomaly = math.acos(max(-1.0, min(1.0, dot(e_vec, position) / (eccentricity * r))))
        if radial_velocity < 0.0:
            true_anomaly = TWO_PI - true_anomaly
    else:
        arg_periapsis = 0.0
        if n_mag > _SMALL:
            # Argument of latitude from the node
            true_anomaly = math.acos(max(-1.0, min(1.0, dot(node, position) / (n_mag * r))))
            if position[2] < 0.0:
                true_anomaly = TWO_PI - true_anomaly
        else:
            # True longitude from x
            true_anomaly = math.atan2(position[1], position[0])
            if h[2] < 0.0:
                true_anomaly = -true_anomaly

    return OrbitalElements(
        semi_major_axis=semi_major_axis,
        eccentricity=eccentricity,
        inclination=inclination,
        longitude_ascending_node=normalize_angle(raan),
        argument_of_periapsis=normalize_angle(arg_periapsis),
        true_anomaly=normalize_angle(true_anomaly),
    )


def orbit_path(
    elements: OrbitalElements,
    num_points: int = DEFAULT_ORBIT_PATH_POINTS,
    mu: float = EARTH_MU_KM3_S2,
) -> list[Vec3]:
    """Sample positions at ``num_points`` uniform true-anomaly steps.

    The first point is appended again at the end to close the loop, so the
    result has ``num_points + 1`` entries (empty for ``num_points <= 0``).
    """
    path = [
        position_at_true_anomaly(elements, TWO_PI * k / num_points, mu)[0]
        for k in range(max(num_points, 0))
    ]
    if path:
        path.append(path[0])
    logger.debug("Sampled orbit path with %d points (a=%.1f km)", len(path), elements.semi_major_axis)
    return path


# --- Derived quantities ---

def orbital_period(semi_major_axis: float, mu: float = EARTH_MU_KM3_S2) -> float:
    """Period in seconds, ``2π·sqrt(a³/mu)``."""
    return TWO_PI * math.sqrt(semi_major_axis ** 3 / mu)


def mean_motion(semi_major_axis: float, mu: float = EARTH_MU_KM3_S2) -> float:
    """Mean motion in rad/s, ``sqrt(mu/a³)``."""
    return math.sqrt(mu / semi_major_axis ** 3)


def specific_energy(state: PhysicsState, mu: float = EARTH_MU_KM3_S2) -> float:
    """Specific orbital energy ``v²/2 - mu/r`` in km²/s²."""
    r = magnitude(state.position)
    v = magnitude(state.velocity)
    return v * v / 2.0 - mu / r


def specific_angular_momentum(state: PhysicsState) -> Vec3:
    """Specific angular momentum vector ``r × v`` in km²/s."""
    return cross(state.position, state.velocity)


def orbital_velocity(radius: float, semi_major_axis: float, mu: float = EARTH_MU_KM3_S2) -> float:
    """Speed from the vis-viva equation, in km/s."""
    return math.sqrt(mu * (2.0 / radius - 1.0 / semi_major_axis))


def escape_velocity(radius: float, mu: float = EARTH_MU_KM3_S2) -> float:
    """Escape speed at the given radius, in km/s."""
    return math.sqrt(2.0 * mu / radius)


def apsides(semi_major_axis: float, eccentricity: float) -> tuple[float, float]:
    """Return (periapsis radius, apoapsis radius) in km."""
    return semi_major_axis * (1.0 - eccentricity), semi_major_axis * (1.0 + eccentricity)


def _check_radii(**radii: float) -> None:
    for name, value in radii.items():
        if not (math.isfinite(value) and value > 0):
            logger.error("Transfer radius %s must be positive, got %s", name, value)
            raise ValueError(f"{name} must be a positive radius in km, got {value}")


def _half_period(semi_major_axis: float, mu: float) -> float:
    return math.pi * math.sqrt(semi_major_axis**3 / mu)


def _transfer_ellipse(ra: float, rb: float) -> TransferOrbit:
    return TransferOrbit(semi_major_axis=(ra + rb) / 2.0, eccentricity=abs(rb - ra) / (rb + ra))


def hohmann_transfer(r1: float, r2: float, mu: float = EARTH_MU_KM3_S2) -> HohmannTransfer:
    """Hohmann transfer between circular orbits of radius r1 and r2.

    Works in either direction; burns are reported as magnitudes.

    Args:
        r1: Initial orbit radius in km.
        r2: Target orbit radius in km.
        mu: Gravitational parameter in km^3/s^2.

    Raises:
        ValueError: If a radius is not positive.
    """
    _check_radii(r1=r1, r2=r2)
    orbit = _transfer_ellipse(r1, r2)
    dv1 = abs(orbital_velocity(r1, orbit.semi_major_axis, mu) - math.sqrt(mu / r1))
    dv2 = abs(math.sqrt(mu / r2) - orbital_velocity(r2, orbit.semi_major_axis, mu))
    return HohmannTransfer(
        dv1=dv1,
        dv2=dv2,
        total_delta_v=dv1 + dv2,
        transfer_time=_half_period(orbit.semi_major_axis, mu),
        transfer_orbit=orbit,
    )


def bi_elliptic_transfer(r1: float, r2: float, rb: float, mu: float = EARTH_MU_KM3_S2) -> BiEllipticTransfer:
    """Bi-elliptic transfer from r1 to r2 through an intermediate apoapsis rb (km).

    The first ellipse spans r1..rb and the second rb..r2. ``rb`` must be at
    least as large as both end radii.

    Raises:
        ValueError: If a radius is not positive or ``rb`` is below r1 or r2.
    """
    _check_radii(r1=r1, r2=r2, rb=rb)
    if rb < max(r1, r2):
        logger.error("Intermediate radius %.1f km is below the end radii (%.1f, %.1f)", rb, r1, r2)
        raise ValueError(f"rb must be at least max(r1, r2) = {max(r1, r2)} km, got {rb}")

    first = _transfer_ellipse(r1, rb)
    second = _transfer_ellipse(rb, r2)
    dv1 = abs(orbital_velocity(r1, first.semi_major_axis, mu) - math.sqrt(mu / r1))
    dv2 = abs(orbital_velocity(rb, second.semi_major_axis, mu) - orbital_velocity(rb, first.semi_major_axis, mu))
    dv3 = abs(math.sqrt(mu / r2) - orbital_velocity(r2, second.semi_major_axis, mu))
    t1 = _half_period(first.semi_major_axis, mu)
    t2 = _half_period(second.semi_major_axis, mu)
    return BiEllipticTransfer(
        dv1=dv1,
        dv2=dv2,
        dv3=dv3,
        total_delta_v=dv1 + dv2 + dv3,
        transfer_time1=t1,
        transfer_time2=t2,
        total_time=t1 + t2,
        transfer_orbit1=first,
        transfer_orbit2=second,
    )


def sub_satellite_point(position_eci_km: NDArray, time: datetime | float) -> GeodeticCoordinates:
    """Geodetic point directly below an inertial position.

    Unlike the coordinate conversions, any finite distance is accepted, so
    high orbits still get a ground track.

    Args:
        position_eci_km: Inertial position in km.
        time: Epoch of the position (datetime or Unix seconds).

    Returns:
        GeodeticCoordinates with altitude in metres.
    """
    x, y, z = (float(c) * 1000.0 for c in position_eci_km)
    return eci_to_geodetic(ECICoordinates(x, y, z), time, max_magnitude=math.inf)
