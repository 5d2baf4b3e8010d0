"""Per-satellite orbit propagation.

Two paths are available:

- The analytical path (:func:`step`) advances the mean anomaly of a
  :class:`PropagationSession` and rebuilds position and velocity from the
  orbital elements. It is fast and conserves energy exactly.
- The numerical path (:func:`propagate_state`, :func:`propagate_numerical`)
  integrates a force sum, so perturbations such as drag accumulate over time.

A :class:`PropagationSession` holds the scratch state of exactly one
satellite. Sessions never share mutable state, so independent satellites can
be stepped in any order or in parallel.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from orbitcore.core.coordinates import GeodeticCoordinates
from orbitcore.core.elements import (
    OrbitalElements,
    elements_to_state,
    orbital_period,
    sub_satellite_point,
)
from orbitcore.core.errors import InvalidOrbitError
from orbitcore.core.forces import atmospheric_drag, combine, j2_perturbation, two_body_gravity
from orbitcore.core.integrators import ForceFunction, integrate_euler, integrate_rk4
from orbitcore.core.kepler import TWO_PI, mean_from_true, normalize_angle, propagate_mean_anomaly, true_from_mean
from orbitcore.core.state import PhysicsState
from orbitcore.core.vectors import magnitude
from orbitcore.utils.constants import (
    DEFAULT_BALLISTIC_COEFFICIENT_KG_M2,
    DEFAULT_KEPLER_MAX_ITERATIONS,
    DEFAULT_KEPLER_TOLERANCE,
    EARTH_J2,
    EARTH_MU_KM3_S2,
    EARTH_RADIUS_KM,
)

if TYPE_CHECKING:
    from orbitcore.core.tle import TLE

logger = logging.getLogger(__name__)


class PropagatorType(Enum):
    """Force regime used by the propagator."""

    TWO_BODY = "two-body"
    J2 = "j2"
    HIGH_FIDELITY = "high-fidelity"


_OPTION_NAMES = {
    "propagatorType": "propagator_type",
    "propagator_type": "propagator_type",
    "timeMultiplier": "time_multiplier",
    "time_multiplier": "time_multiplier",
    "highPrecision": "high_precision",
    "high_precision": "high_precision",
    "tolerance": "tolerance",
    "maxIterations": "max_iterations",
    "max_iterations": "max_iterations",
}


@dataclass(frozen=True)
class PropagatorConfig:
    """Propagation options.

    Attributes:
        propagator_type: Force regime; also picks RK4 (high-fidelity) or
            semi-implicit Euler for the numerical path.
        time_multiplier: Simulation speed; every ``dt`` is scaled by it.
        high_precision: Use the exact Lagrange point solver.
        tolerance: Kepler solver step tolerance in radians.
        max_iterations: Kepler solver iteration cap.
    """

    propagator_type: PropagatorType = PropagatorType.TWO_BODY
    time_multiplier: float = 1.0
    high_precision: bool = False
    tolerance: float = DEFAULT_KEPLER_TOLERANCE
    max_iterations: int = DEFAULT_KEPLER_MAX_ITERATIONS

    def __post_init__(self) -> None:
        object.__setattr__(self, "propagator_type", _coerce_type(self.propagator_type))
        if not math.isfinite(self.time_multiplier) or self.time_multiplier <= 0:
            raise ValueError(f"time_multiplier must be positive, got {self.time_multiplier}")
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {self.max_iterations}")

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> PropagatorConfig:
        """Build a config from camelCase or snake_case option names.

        Raises:
            ValueError: On an unknown option name or an invalid value.
        """
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            try:
                kwargs[_OPTION_NAMES[key]] = value
            except KeyError:
                raise ValueError(f"Unknown propagator option: {key!r}") from None
        return cls(**kwargs)


def _coerce_type(value: PropagatorType | str) -> PropagatorType:
    if isinstance(value, PropagatorType):
        return value
    try:
        return PropagatorType(value)
    except ValueError:
        valid = ", ".join(t.value for t in PropagatorType)
        raise ValueError(f"Unknown propagator type {value!r} (expected one of: {valid})") from None


def _invalid(message: str) -> None:
    logger.error(message)
    raise InvalidOrbitError(message)


@dataclass(frozen=True)
class InitialOrbit:
    """Orbit definition a satellite starts from. Angles in degrees.

    Raises:
        InvalidOrbitError: If the semi-major axis is not positive, the
            eccentricity is outside [0, 1) or the inclination outside [0, 180].
    """

    id: str
    name: str
    semi_major_axis: float
    eccentricity: float
    inclination: float
    longitude_of_ascending_node: float = 0.0
    argument_of_periapsis: float = 0.0
    true_anomaly: float = 0.0

    def __post_init__(self) -> None:
        values = (
            self.semi_major_axis,
            self.eccentricity,
            self.inclination,
            self.longitude_of_ascending_node,
            self.argument_of_periapsis,
            self.true_anomaly,
        )
        if not all(math.isfinite(v) for v in values):
            _invalid(f"Orbit {self.id!r} has non-finite elements: {values}")
        if self.semi_major_axis <= 0:
            _invalid(f"Orbit {self.id!r}: semi-major axis must be positive, got {self.semi_major_axis}")
        if not 0.0 <= self.eccentricity < 1.0:
            _invalid(f"Orbit {self.id!r}: eccentricity must be in [0, 1), got {self.eccentricity}")
        if not 0.0 <= self.inclination <= 180.0:
            _invalid(f"Orbit {self.id!r}: inclination must be in [0, 180] degrees, got {self.inclination}")

    def to_elements(self) -> OrbitalElements:
        """Elements in radians with the angles wrapped to [0, 2π)."""
        return OrbitalElements(
            semi_major_axis=self.semi_major_axis,
            eccentricity=self.eccentricity,
            inclination=math.radians(self.inclination),
            longitude_ascending_node=normalize_angle(math.radians(self.longitude_of_ascending_node)),
            argument_of_periapsis=normalize_angle(math.radians(self.argument_of_periapsis)),
            true_anomaly=normalize_angle(math.radians(self.true_anomaly)),
        )


@dataclass(frozen=True, eq=False)
class SatelliteSnapshot:
    """Immutable per-tick output of a session.

    ``ground_track_point`` is only available when the session has an epoch.
    """

    id: str
    name: str
    state: PhysicsState
    elements: OrbitalElements | None = None
    ground_track_point: GeodeticCoordinates | None = None


@dataclass
class PropagationSession:
    """Scratch state of one satellite, owned by exactly one caller.

    Attributes:
        orbit: The orbit the session started from.
        config: Propagation options.
        elements: Elements at the session start (radians).
        epoch: UTC time of ``elapsed_time == 0``; ``None`` for a purely
            relative timeline.
        elapsed_time: Simulated seconds since the start.
        mean_anomaly: Current mean anomaly in radians, [0, 2π).
        period: Orbital period in seconds.
        mean_motion: ``2π / period`` in rad/s.
    """

    orbit: InitialOrbit
    config: PropagatorConfig
    elements: OrbitalElements
    epoch: datetime | None
    elapsed_time: float
    mean_anomaly: float
    period: float
    mean_motion: float
    mu: float = field(default=EARTH_MU_KM3_S2, repr=False)

    @classmethod
    def start(
        cls,
        orbit: InitialOrbit,
        config: PropagatorConfig | None = None,
        epoch: datetime | None = None,
        mu: float = EARTH_MU_KM3_S2,
    ) -> PropagationSession:
        """Initialise a session from an initial orbit.

        The initial state is built once so an orbit that starts below the
        surface is rejected here rather than on the first step.

        Raises:
            InvalidOrbitError: If the initial state is unusable.
        """
        config = config or PropagatorConfig()
        elements = orbit.to_elements()
        if elements.semi_latus_rectum <= 0:
            _invalid(f"Orbit {orbit.id!r} has a non-positive semi-latus rectum")
        elements_to_state(elements, mu)

        if epoch is not None and epoch.tzinfo is None:
            epoch = epoch.replace(tzinfo=timezone.utc)

        period = orbital_period(elements.semi_major_axis, mu)
        session = cls(
            orbit=orbit,
            config=config,
            elements=elements,
            epoch=epoch,
            elapsed_time=0.0,
            mean_anomaly=mean_from_true(elements.true_anomaly, elements.eccentricity),
            period=period,
            mean_motion=TWO_PI / period,
            mu=mu,
        )
        logger.debug(
            "Started session %s (a=%.1f km, e=%.4f, period=%.1f s)",
            orbit.id, elements.semi_major_axis, elements.eccentricity, period,
        )
        return session

    @classmethod
    def from_tle(cls, tle: TLE, config: PropagatorConfig | None = None) -> PropagationSession:
        """Start a session at the TLE epoch from its mean elements."""
        return cls.start(tle.to_initial_orbit(), config, epoch=tle.epoch)

    @property
    def current_time(self) -> datetime | None:
        if self.epoch is None:
            return None
        return self.epoch + timedelta(seconds=self.elapsed_time)


def step(session: PropagationSession, dt: float) -> SatelliteSnapshot:
    """Advance a session by ``dt * time_multiplier`` seconds on the analytical path.

    Only ``session`` is mutated; the returned snapshot is immutable.

    Args:
        session: The satellite's session.
        dt: Wall-clock or simulation step in seconds.

    Returns:
        Snapshot with the new state, elements and (with an epoch) ground point.

    Raises:
        InvalidOrbitError: If the orbit passes below the surface.
    """
    config = session.config
    effective_dt = dt * config.time_multiplier

    session.elapsed_time += effective_dt
    session.mean_anomaly = propagate_mean_anomaly(session.mean_anomaly, session.mean_motion, effective_dt)
    nu = true_from_mean(
        session.mean_anomaly,
        session.elements.eccentricity,
        config.tolerance,
        config.max_iterations,
    )
    elements = session.elements.with_true_anomaly(nu)
    state = elements_to_state(elements, session.mu).evolve(time=session.elapsed_time)

    ground_point = None
    if session.epoch is not None:
        ground_point = sub_satellite_point(state.position, session.current_time)

    return SatelliteSnapshot(
        id=session.orbit.id,
        name=session.orbit.name,
        state=state,
        elements=elements,
        ground_track_point=ground_point,
    )


def force_model_for(
    propagator_type: PropagatorType | str,
    mu: float = EARTH_MU_KM3_S2,
    radius: float = EARTH_RADIUS_KM,
    j2: float = EARTH_J2,
    ballistic_coefficient: float = DEFAULT_BALLISTIC_COEFFICIENT_KG_M2,
) -> ForceFunction:
    """Assemble the force sum for a propagator regime.

    - two-body: central gravity only
    - j2: gravity plus oblateness
    - high-fidelity: gravity, oblateness and atmospheric drag
    """
    propagator_type = _coerce_type(propagator_type)
    forces = [two_body_gravity(mu, radius)]
    if propagator_type in (PropagatorType.J2, PropagatorType.HIGH_FIDELITY):
        forces.append(j2_perturbation(mu, j2, radius))
    if propagator_type is PropagatorType.HIGH_FIDELITY:
        forces.append(atmospheric_drag(ballistic_coefficient, radius))
    return combine(*forces)


def propagate_state(
    state: PhysicsState,
    dt: float,
    propagator_type: PropagatorType | str = PropagatorType.TWO_BODY,
) -> PhysicsState:
    """Integrate one numerical step.

    RK4 is used for the high-fidelity regime and semi-implicit Euler for the
    others.
    """
    propagator_type = _coerce_type(propagator_type)
    forces = force_model_for(propagator_type)
    if propagator_type is PropagatorType.HIGH_FIDELITY:
        return integrate_rk4(state, forces, dt)
    return integrate_euler(state, forces, dt)


def propagate_numerical(
    state: PhysicsState,
    dt: float,
    steps: int,
    propagator_type: PropagatorType | str = PropagatorType.TWO_BODY,
    stop_altitude_km: float = 0.0,
    body_radius: float = EARTH_RADIUS_KM,
) -> list[PhysicsState]:
    """Integrate up to ``steps`` steps of size ``dt``.

    The caller bounds the run through ``steps``. Integration also stops early
    once the altitude drops below ``stop_altitude_km`` (re-entry in a drag
    decay run).

    Returns:
        The states after each completed step, in order.

    Raises:
        ValueError: If ``steps`` is negative or ``dt`` is not positive.
    """
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    if not dt > 0:
        raise ValueError(f"dt must be positive, got {dt}")

    propagator_type = _coerce_type(propagator_type)
    forces = force_model_for(propagator_type, radius=body_radius)
    integrate = integrate_rk4 if propagator_type is PropagatorType.HIGH_FIDELITY else integrate_euler

    trajectory: list[PhysicsState] = []
    current = state
    for i in range(steps):
        current = integrate(current, forces, dt)
        trajectory.append(current)
        altitude = magnitude(current.position) - body_radius
        if altitude < stop_altitude_km:
            logger.info("Stopped after %d steps: altitude %.2f km below %.2f km", i + 1, altitude, stop_altitude_km)
            break

    logger.debug("Numerical propagation: %d steps of %.3f s (%s)", len(trajectory), dt, propagator_type.value)
    return trajectory


class Propagator:
    """Steps a set of independent satellites with a shared config.

    Each satellite gets its own :class:`PropagationSession`; snapshots are
    returned in insertion order.
    """

    def __init__(self, config: PropagatorConfig | None = None, epoch: datetime | None = None) -> None:
        self.config = config or PropagatorConfig()
        self.epoch = epoch
        self._sessions: dict[str, PropagationSession] = {}

    def add(self, orbit: InitialOrbit) -> PropagationSession:
        if orbit.id in self._sessions:
            raise ValueError(f"Satellite {orbit.id!r} is already being propagated")
        session = PropagationSession.start(orbit, self.config, epoch=self.epoch)
        self._sessions[orbit.id] = session
        return session

    def add_tle(self, tle: TLE) -> PropagationSession:
        orbit = tle.to_initial_orbit()
        if orbit.id in self._sessions:
            raise ValueError(f"Satellite {orbit.id!r} is already being propagated")
        session = PropagationSession.from_tle(tle, self.config)
        self._sessions[orbit.id] = session
        return session

    def remove(self, satellite_id: str) -> None:
        del self._sessions[satellite_id]

    def session(self, satellite_id: str) -> PropagationSession:
        return self._sessions[satellite_id]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, satellite_id: object) -> bool:
        return satellite_id in self._sessions

    def step(self, dt: float) -> list[SatelliteSnapshot]:
        """Advance every session by ``dt`` seconds."""
        return [step(session, dt) for session in self._sessions.values()]
