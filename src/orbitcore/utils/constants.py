from __future__ import annotations

"""Physical constants and default solver settings for orbital mechanics.

Orbital quantities are in km, km/s and seconds; geodetic quantities are in
metres (WGS-84) unless otherwise noted.
"""

from datetime import datetime, timezone

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km."""

EARTH_MU_KM3_S2: float = 398600.4418
"""Earth gravitational parameter (GM) in km³/s²."""

EARTH_J2: float = 1.08262668e-3
"""Earth J2 oblateness coefficient."""

EARTH_ROTATION_RAD_S: float = 7.2921150e-5
"""Earth rotation rate in rad/s."""

WGS84_A_M: float = 6378137.0
"""WGS-84 semi-major axis (equatorial radius) in metres."""

WGS84_F: float = 1.0 / 298.257223563
"""WGS-84 flattening."""

WGS84_B_M: float = WGS84_A_M * (1.0 - WGS84_F)
"""WGS-84 semi-minor axis (polar radius) in metres."""

WGS84_E2: float = 2.0 * WGS84_F - WGS84_F * WGS84_F
"""WGS-84 first eccentricity squared."""

# --- Other bodies ---
SUN_MU_KM3_S2: float = 1.32712440018e11
"""Sun gravitational parameter in km³/s²."""

MOON_MU_KM3_S2: float = 4902.8
"""Moon gravitational parameter in km³/s²."""

# --- Time ---
J2000_EPOCH: datetime = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
"""J2000 reference epoch (2000-01-01T12:00:00Z)."""

JD_J2000: float = 2451545.0
"""Julian date of the J2000 epoch."""

JD_UNIX_EPOCH: float = 2440587.5
"""Julian date of the Unix epoch (1970-01-01T00:00:00Z)."""

SECONDS_PER_DAY: float = 86400.0

DAYS_PER_JULIAN_CENTURY: float = 36525.0

# --- Kepler solver defaults ---
DEFAULT_KEPLER_TOLERANCE: float = 1e-8
"""Newton-Raphson step tolerance for Kepler's equation (rad)."""

DEFAULT_KEPLER_MAX_ITERATIONS: int = 10
"""Iteration cap for Kepler's equation."""

CIRCULAR_ECCENTRICITY: float = 1e-8
"""Below this eccentricity mean, eccentric and true anomaly coincide."""

# --- Lagrange solver defaults ---
DEFAULT_LAGRANGE_TOLERANCE: float = 1e-10
"""Newton-Raphson step tolerance for the collinear Lagrange equations."""

DEFAULT_LAGRANGE_MAX_ITERATIONS: int = 50
"""Iteration cap for the collinear Lagrange equations."""

# --- Propagation defaults ---
DEFAULT_ORBIT_PATH_POINTS: int = 360
"""Number of true-anomaly samples in a precomputed orbit path."""

GRAVITY_FLOOR_FRACTION: float = 0.9
"""Two-body gravity is switched off below this fraction of the body radius."""

# --- Exponential atmosphere ---
DRAG_REFERENCE_ALTITUDE_KM: float = 175.0
"""Reference altitude of the exponential density model in km."""

DRAG_SCALE_HEIGHT_KM: float = 88.667
"""Density scale height in km."""

DRAG_REFERENCE_DENSITY_KG_M3: float = 3.614e-13
"""Density at the reference altitude in kg/m³."""

DRAG_MAX_ALTITUDE_KM: float = 1000.0
"""Drag is only applied below this altitude."""

DEFAULT_BALLISTIC_COEFFICIENT_KG_M2: float = 50.0
"""Ballistic coefficient m/(Cd·A) of a typical satellite in kg/m²."""

# --- Geodetic validation ranges ---
MIN_ALTITUDE_M: float = -11000.0
"""Lowest accepted geodetic altitude (deep ocean) in metres."""

MAX_ALTITUDE_M: float = 2_000_000.0
"""Highest accepted geodetic altitude in metres."""

MAX_CARTESIAN_MAGNITUDE_M: float = 100_000_000.0
"""Largest accepted ECEF/ECI magnitude in metres."""

# --- UTM ---
UTM_SCALE_FACTOR: float = 0.9996
UTM_FALSE_EASTING_M: float = 500_000.0
UTM_FALSE_NORTHING_SOUTH_M: float = 10_000_000.0

UTM_MAX_EASTING_M: float = 1_000_000.0
"""Upper bound of a UTM easting in metres."""

UTM_MAX_NORTHING_M: float = 10_000_000.0
"""Upper bound of a UTM northing in metres, either hemisphere."""
