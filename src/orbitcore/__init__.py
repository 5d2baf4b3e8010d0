"""
Orbitcore — Astrodynamics and geodesy core for Python.

Kepler solvers, orbital element conversion, numerical integrators and force
models, WGS-84 coordinate transforms, per-satellite propagation and
Lagrange point computation. Pure numerics: no rendering, no I/O.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbitcore.core.errors import (
    OrbitcoreError,
    CoordinateValidationError,
    FrameMismatchError,
    InvalidOrbitError,
    ConvergenceError,
)
from orbitcore.core.state import PhysicsState
from orbitcore.core.integrators import integrate_euler, integrate_verlet, integrate_rk4
from orbitcore.core.kepler import solve_kepler, mean_to_true, true_to_mean
from orbitcore.core.elements import OrbitalElements, elements_to_state, state_to_elements, orbit_path, orbital_period
from orbitcore.core.coordinates import (
    GeodeticCoordinates,
    ECEFCoordinates,
    ECICoordinates,
    ENUCoordinates,
    UTMCoordinates,
    calculate_gmst,
    geodetic_to_ecef,
    ecef_to_geodetic,
    eci_to_ecef,
    ecef_to_eci,
    ecef_to_enu,
    enu_to_ecef,
    geodetic_to_utm,
    utm_to_geodetic,
    great_circle_distance,
    calculate_azimuth,
    calculate_elevation,
    convert_coordinates,
)
from orbitcore.core.propagation import (
    PropagatorType,
    PropagatorConfig,
    InitialOrbit,
    PropagationSession,
    SatelliteSnapshot,
    Propagator,
    step,
    propagate_state,
)
from orbitcore.core.tle import TLE, parse_tle
from orbitcore.core.lagrange import TwoBodySystem, LagrangePoint, LagrangePointType, calculate_all_lagrange_points

__all__ = [
    "__version__",
    "OrbitcoreError",
    "CoordinateValidationError",
    "FrameMismatchError",
    "InvalidOrbitError",
    "ConvergenceError",
    "PhysicsState",
    "integrate_euler",
    "integrate_verlet",
    "integrate_rk4",
    "solve_kepler",
    "mean_to_true",
    "true_to_mean",
    "OrbitalElements",
    "elements_to_state",
    "state_to_elements",
    "orbit_path",
    "orbital_period",
    "GeodeticCoordinates",
    "ECEFCoordinates",
    "ECICoordinates",
    "ENUCoordinates",
    "UTMCoordinates",
    "calculate_gmst",
    "geodetic_to_ecef",
    "ecef_to_geodetic",
    "eci_to_ecef",
    "ecef_to_eci",
    "ecef_to_enu",
    "enu_to_ecef",
    "geodetic_to_utm",
    "utm_to_geodetic",
    "great_circle_distance",
    "calculate_azimuth",
    "calculate_elevation",
    "convert_coordinates",
    "PropagatorType",
    "PropagatorConfig",
    "InitialOrbit",
    "PropagationSession",
    "SatelliteSnapshot",
    "Propagator",
    "step",
    "propagate_state",
    "TLE",
    "parse_tle",
    "TwoBodySystem",
    "LagrangePoint",
    "LagrangePointType",
    "calculate_all_lagrange_points",
]
