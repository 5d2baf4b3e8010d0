"""Coordinate systems and transformations on the WGS-84 ellipsoid.

Coordinate systems:
    - ECI (Earth-Centered Inertial): non-rotating frame, metres.
    - ECEF (Earth-Centered Earth-Fixed): rotates with the Earth, metres.
    - Geodetic: latitude/longitude in degrees, altitude above the ellipsoid in metres.
    - ENU (East-North-Up): local tangent plane at a geodetic reference point, metres.
    - UTM (Universal Transverse Mercator): projected easting/northing, metres.

ECI and ECEF values are distinct types. Converting between them needs an
explicit time because the Earth rotates. Every public entry point validates
its input and raises :class:`CoordinateValidationError` instead of returning
NaN.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Union

import numpy as np
from numpy.typing import NDArray

from orbitcore.core.errors import CoordinateValidationError, FrameMismatchError
from orbitcore.utils.constants import (
    DAYS_PER_JULIAN_CENTURY,
    JD_J2000,
    JD_UNIX_EPOCH,
    MAX_ALTITUDE_M,
    MAX_CARTESIAN_MAGNITUDE_M,
    MIN_ALTITUDE_M,
    SECONDS_PER_DAY,
    UTM_FALSE_EASTING_M,
    UTM_FALSE_NORTHING_SOUTH_M,
    UTM_MAX_EASTING_M,
    UTM_MAX_NORTHING_M,
    UTM_SCALE_FACTOR,
    WGS84_A_M,
    WGS84_E2,
)

logger = logging.getLogger(__name__)

TimeLike = Union[datetime, float, int]

_GEODETIC_MAX_ITERATIONS = 10
_GEODETIC_TOLERANCE_RAD = 1e-12

# Second eccentricity squared, e'² = e²/(1 - e²)
_EP2 = WGS84_E2 / (1.0 - WGS84_E2)


# ============================================================================
# Types
# ============================================================================

@dataclass(frozen=True)
class GeodeticCoordinates:
    """Geodetic position on the WGS-84 ellipsoid.

    Attributes:
        latitude: Degrees, north positive, [-90, 90].
        longitude: Degrees, east positive, [-180, 180].
        altitude: Metres above the ellipsoid.
    """

    latitude: float
    longitude: float
    altitude: float = 0.0


@dataclass(frozen=True)
class _Cartesian:
    x: float
    y: float
    z: float

    frame: ClassVar[str] = ""

    def as_array(self) -> NDArray[np.float64]:
        return np.array((self.x, self.y, self.z), dtype=np.float64)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    @classmethod
    def from_array(cls, values) -> _Cartesian:
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)


@dataclass(frozen=True)
class ECEFCoordinates(_Cartesian):
    """Earth-fixed Cartesian position in metres."""

    frame: ClassVar[str] = "ecef"


@dataclass(frozen=True)
class ECICoordinates(_Cartesian):
    """Inertial Cartesian position in metres."""

    frame: ClassVar[str] = "eci"


@dataclass(frozen=True)
class ENUCoordinates(_Cartesian):
    """East (x), North (y), Up (z) offsets from a reference point, in metres."""

    frame: ClassVar[str] = "enu"


@dataclass(frozen=True)
class UTMCoordinates:
    """Universal Transverse Mercator position.

    Attributes:
        easting: Metres, including the 500 km false easting.
        northing: Metres, including the 10 000 km false northing in the south.
        zone: Zone number in [1, 60].
        hemisphere: "N" or "S".
    """

    easting: float
    northing: float
    zone: int
    hemisphere: str


Coordinates = Union[GeodeticCoordinates, ECEFCoordinates, ECICoordinates, ENUCoordinates, UTMCoordinates]


# ============================================================================
# Validation
# ============================================================================

def _fail(message: str) -> None:
    logger.error(message)
    raise CoordinateValidationError(message)


def _validate_latitude(lat: float, name: str = "latitude") -> None:
    if not math.isfinite(lat):
        _fail(f"{name} must be a finite number, got {lat}")
    if lat < -90.0 or lat > 90.0:
        _fail(f"{name} must be in range [-90, 90] degrees, got {lat}")


def _validate_longitude(lon: float, name: str = "longitude") -> None:
    if not math.isfinite(lon):
        _fail(f"{name} must be a finite number, got {lon}")
    if lon < -180.0 or lon > 180.0:
        _fail(f"{name} must be in range [-180, 180] degrees, got {lon}")


def _validate_altitude(alt: float, name: str = "altitude") -> None:
    if not math.isfinite(alt):
        _fail(f"{name} must be a finite number, got {alt}")
    if alt < MIN_ALTITUDE_M or alt > MAX_ALTITUDE_M:
        _fail(f"{name} must be in range [{MIN_ALTITUDE_M:.0f}, {MAX_ALTITUDE_M:.0f}] metres, got {alt}")


def _validate_geodetic(geodetic: GeodeticCoordinates) -> None:
    _validate_latitude(geodetic.latitude)
    _validate_longitude(geodetic.longitude)
    _validate_altitude(geodetic.altitude)


def _validate_cartesian(
    coords: _Cartesian,
    expected: type,
    name: str,
    max_magnitude: float = MAX_CARTESIAN_MAGNITUDE_M,
) -> None:
    if not isinstance(coords, expected):
        message = f"{name} must be {expected.__name__}, got {type(coords).__name__}"
        logger.error(message)
        raise FrameMismatchError(message)
    magnitude = coords.magnitude
    if not math.isfinite(magnitude):
        _fail(f"{name} contains non-finite values")
    if magnitude > max_magnitude:
        _fail(f"{name} magnitude {magnitude:.0f} m exceeds reasonable bounds ({max_magnitude:.0f} m)")


def _unix_seconds(time: TimeLike) -> float:
    if isinstance(time, datetime):
        if time.tzinfo is None:
            time = time.replace(tzinfo=timezone.utc)
        return time.timestamp()
    if isinstance(time, (int, float)) and not isinstance(time, bool):
        seconds = float(time)
        if not math.isfinite(seconds):
            _fail(f"time must be finite, got {time}")
        return seconds
    raise TypeError(f"time must be a datetime or Unix seconds, got {type(time).__name__}")


# ============================================================================
# Geodetic <-> ECEF
# ============================================================================

def _prime_vertical_radius(sin_lat: float) -> float:
    return WGS84_A_M / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)


def geodetic_to_ecef(geodetic: GeodeticCoordinates) -> ECEFCoordinates:
    """Convert geodetic latitude/longitude/altitude to ECEF (closed form).

    Raises:
        CoordinateValidationError: If latitude, longitude or altitude is out of range.
    """
    _validate_geodetic(geodetic)

    lat = math.radians(geodetic.latitude)
    lon = math.radians(geodetic.longitude)
    h = geodetic.altitude

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    n = _prime_vertical_radius(sin_lat)

    return ECEFCoordinates(
        x=(n + h) * cos_lat * math.cos(lon),
        y=(n + h) * cos_lat * math.sin(lon),
        z=(n * (1.0 - WGS84_E2) + h) * sin_lat,
    )


def ecef_to_geodetic(
    ecef: ECEFCoordinates,
    *,
    max_magnitude: float = MAX_CARTESIAN_MAGNITUDE_M,
) -> GeodeticCoordinates:
    """Convert ECEF to geodetic coordinates.

    Latitude comes from the fixed-point iteration
    ``lat = atan2(z + e²·N·sin(lat), p)``, which is well defined at the poles.
    Iteration stops at 1e-12 rad or after a fixed cap.

    Args:
        ecef: Earth-fixed position in metres.
        max_magnitude: Largest accepted distance from the centre, in metres.

    Raises:
        CoordinateValidationError: If the position is non-finite or farther
            away than ``max_magnitude``.
    """
    _validate_cartesian(ecef, ECEFCoordinates, "ecef", max_magnitude)

    x, y, z = ecef.x, ecef.y, ecef.z
    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    lat = math.atan2(z, p * (1.0 - WGS84_E2))
    for _ in range(_GEODETIC_MAX_ITERATIONS):
        n = _prime_vertical_radius(math.sin(lat))
        next_lat = math.atan2(z + WGS84_E2 * n * math.sin(lat), p)
        converged = abs(next_lat - lat) < _GEODETIC_TOLERANCE_RAD
        lat = next_lat
        if converged:
            break

    sin_lat = math.sin(lat)
    h = p * math.cos(lat) + z * sin_lat - WGS84_A_M * math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)

    return GeodeticCoordinates(latitude=math.degrees(lat), longitude=math.degrees(lon), altitude=h)


# ============================================================================
# ECI <-> ECEF
# ============================================================================

def julian_date(time: TimeLike) -> float:
    """Julian date (UT1 ≈ UTC) of a datetime or Unix timestamp."""
    return _unix_seconds(time) / SECONDS_PER_DAY + JD_UNIX_EPOCH


def calculate_gmst(time: TimeLike) -> float:
    """Greenwich Mean Sidereal Time in radians, normalized to [0, 2π).

    IAU 1982 polynomial in Julian centuries of UT1 since J2000 (Vallado,
    Eq. 3-47).
    """
    t = (julian_date(time) - JD_J2000) / DAYS_PER_JULIAN_CENTURY
    gmst_seconds = (
        67310.54841
        + (876600.0 * 3600.0 + 8640184.812866) * t
        + 0.093104 * t * t
        - 6.2e-6 * t * t * t
    )
    gmst_degrees = math.fmod(gmst_seconds / 240.0, 360.0)
    if gmst_degrees < 0.0:
        gmst_degrees += 360.0
    gmst = math.radians(gmst_degrees)
    return 0.0 if gmst >= 2.0 * math.pi else gmst


def eci_to_ecef(
    eci: ECICoordinates,
    time: TimeLike,
    *,
    max_magnitude: float = MAX_CARTESIAN_MAGNITUDE_M,
) -> ECEFCoordinates:
    """Rotate an inertial position into the Earth-fixed frame at ``time``."""
    _validate_cartesian(eci, ECICoordinates, "eci", max_magnitude)
    theta = calculate_gmst(time)
    c, s = math.cos(theta), math.sin(theta)
    return ECEFCoordinates(
        x=c * eci.x + s * eci.y,
        y=-s * eci.x + c * eci.y,
        z=eci.z,
    )


def ecef_to_eci(ecef: ECEFCoordinates, time: TimeLike) -> ECICoordinates:
    """Rotate an Earth-fixed position into the inertial frame at ``time``."""
    _validate_cartesian(ecef, ECEFCoordinates, "ecef")
    theta = calculate_gmst(time)
    c, s = math.cos(theta), math.sin(theta)
    return ECICoordinates(
        x=c * ecef.x - s * ecef.y,
        y=s * ecef.x + c * ecef.y,
        z=ecef.z,
    )


def geodetic_to_eci(geodetic: GeodeticCoordinates, time: TimeLike) -> ECICoordinates:
    return ecef_to_eci(geodetic_to_ecef(geodetic), time)


def eci_to_geodetic(
    eci: ECICoordinates,
    time: TimeLike,
    *,
    max_magnitude: float = MAX_CARTESIAN_MAGNITUDE_M,
) -> GeodeticCoordinates:
    ecef = eci_to_ecef(eci, time, max_magnitude=max_magnitude)
    return ecef_to_geodetic(ecef, max_magnitude=max_magnitude)


# ============================================================================
# Local tangent plane (ENU)
# ============================================================================

def _enu_rotation(reference: GeodeticCoordinates) -> NDArray[np.float64]:
    lat = math.radians(reference.latitude)
    lon = math.radians(reference.longitude)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)
    return np.array((
        (-sin_lon, cos_lon, 0.0),
        (-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat),
        (cos_lat * cos_lon, cos_lat * sin_lon, sin_lat),
    ))


def ecef_to_enu(ecef: ECEFCoordinates, reference: GeodeticCoordinates) -> ENUCoordinates:
    """Express an ECEF position as East/North/Up offsets from ``reference``."""
    _validate_cartesian(ecef, ECEFCoordinates, "ecef")
    ref_ecef = geodetic_to_ecef(reference)
    delta = ecef.as_array() - ref_ecef.as_array()
    return ENUCoordinates.from_array(_enu_rotation(reference) @ delta)


def enu_to_ecef(enu: ENUCoordinates, reference: GeodeticCoordinates) -> ECEFCoordinates:
    """Inverse of :func:`ecef_to_enu`."""
    _validate_cartesian(enu, ENUCoordinates, "enu")
    ref_ecef = geodetic_to_ecef(reference)
    delta = _enu_rotation(reference).T @ enu.as_array()
    return ECEFCoordinates.from_array(ref_ecef.as_array() + delta)


# ============================================================================
# UTM
# ============================================================================

def _meridional_arc(lat: float) -> float:
    e2 = WGS84_E2
    e4 = e2 * e2
    e6 = e4 * e2
    return WGS84_A_M * (
        (1.0 - e2 / 4.0 - 3.0 * e4 / 64.0 - 5.0 * e6 / 256.0) * lat
        - (3.0 * e2 / 8.0 + 3.0 * e4 / 32.0 + 45.0 * e6 / 1024.0) * math.sin(2.0 * lat)
        + (15.0 * e4 / 256.0 + 45.0 * e6 / 1024.0) * math.sin(4.0 * lat)
        - (35.0 * e6 / 3072.0) * math.sin(6.0 * lat)
    )


def utm_zone(longitude: float) -> int:
    """UTM zone for a longitude in degrees; 180° falls in zone 60."""
    return min(int(math.floor((longitude + 180.0) / 6.0)) + 1, 60)


def _central_meridian(zone: int) -> float:
    return (zone - 1) * 6.0 - 180.0 + 3.0


def geodetic_to_utm(geodetic: GeodeticCoordinates) -> UTMCoordinates:
    """Project a geodetic position to UTM (Snyder's series)."""
    _validate_latitude(geodetic.latitude)
    _validate_longitude(geodetic.longitude)

    zone = utm_zone(geodetic.longitude)
    hemisphere = "N" if geodetic.latitude >= 0.0 else "S"

    lat = math.radians(geodetic.latitude)
    dlon = math.radians(geodetic.longitude - _central_meridian(zone))

    k0 = UTM_SCALE_FACTOR
    sin_lat, cos_lat, tan_lat = math.sin(lat), math.cos(lat), math.tan(lat)
    n = _prime_vertical_radius(sin_lat)
    t = tan_lat * tan_lat
    c = _EP2 * cos_lat * cos_lat
    a = dlon * cos_lat
    m = _meridional_arc(lat)

    easting = k0 * n * (
        a
        + (1.0 - t + c) * a ** 3 / 6.0
        + (5.0 - 18.0 * t + t * t + 72.0 * c - 58.0 * _EP2) * a ** 5 / 120.0
    ) + UTM_FALSE_EASTING_M

    northing = k0 * (
        m
        + n * tan_lat * (
            a * a / 2.0
            + (5.0 - t + 9.0 * c + 4.0 * c * c) * a ** 4 / 24.0
            + (61.0 - 58.0 * t + t * t + 600.0 * c - 330.0 * _EP2) * a ** 6 / 720.0
        )
    )
    if hemisphere == "S":
        northing += UTM_FALSE_NORTHING_SOUTH_M

    return UTMCoordinates(easting=easting, northing=northing, zone=zone, hemisphere=hemisphere)


def utm_to_geodetic(utm: UTMCoordinates) -> GeodeticCoordinates:
    """Inverse UTM projection. The returned altitude is 0."""
    if not isinstance(utm.zone, int) or not 1 <= utm.zone <= 60:
        _fail(f"UTM zone must be an integer in [1, 60], got {utm.zone!r}")
    if utm.hemisphere not in ("N", "S"):
        _fail(f"UTM hemisphere must be 'N' or 'S', got {utm.hemisphere!r}")
    if not (math.isfinite(utm.easting) and math.isfinite(utm.northing)):
        _fail(f"UTM easting/northing must be finite, got ({utm.easting}, {utm.northing})")
    if not 0.0 <= utm.easting <= UTM_MAX_EASTING_M:
        _fail(f"UTM easting must be in range [0, {UTM_MAX_EASTING_M:.0f}] metres, got {utm.easting}")
    if not 0.0 <= utm.northing <= UTM_MAX_NORTHING_M:
        _fail(f"UTM northing must be in range [0, {UTM_MAX_NORTHING_M:.0f}] metres, got {utm.northing}")

    e2 = WGS84_E2
    k0 = UTM_SCALE_FACTOR
    northing = utm.northing - (UTM_FALSE_NORTHING_SOUTH_M if utm.hemisphere == "S" else 0.0)

    e1 = (1.0 - math.sqrt(1.0 - e2)) / (1.0 + math.sqrt(1.0 - e2))
    mu = (northing / k0) / (WGS84_A_M * (1.0 - e2 / 4.0 - 3.0 * e2 * e2 / 64.0 - 5.0 * e2 ** 3 / 256.0))

    phi1 = (
        mu
        + (3.0 * e1 / 2.0 - 27.0 * e1 ** 3 / 32.0) * math.sin(2.0 * mu)
        + (21.0 * e1 ** 2 / 16.0 - 55.0 * e1 ** 4 / 32.0) * math.sin(4.0 * mu)
        + (151.0 * e1 ** 3 / 96.0) * math.sin(6.0 * mu)
        + (1097.0 * e1 ** 4 / 512.0) * math.sin(8.0 * mu)
    )

    sin_phi1, cos_phi1, tan_phi1 = math.sin(phi1), math.cos(phi1), math.tan(phi1)
    n1 = _prime_vertical_radius(sin_phi1)
    t1 = tan_phi1 * tan_phi1
    c1 = _EP2 * cos_phi1 * cos_phi1
    r1 = WGS84_A_M * (1.0 - e2) / (1.0 - e2 * sin_phi1 * sin_phi1) ** 1.5
    d = (utm.easting - UTM_FALSE_EASTING_M) / (n1 * k0)

    lat = phi1 - (n1 * tan_phi1 / r1) * (
        d * d / 2.0
        - (5.0 + 3.0 * t1 + 10.0 * c1 - 4.0 * c1 * c1 - 9.0 * _EP2) * d ** 4 / 24.0
        + (61.0 + 90.0 * t1 + 298.0 * c1 + 45.0 * t1 * t1 - 252.0 * _EP2 - 3.0 * c1 * c1) * d ** 6 / 720.0
    )
    lon = math.radians(_central_meridian(utm.zone)) + (
        d
        - (1.0 + 2.0 * t1 + c1) * d ** 3 / 6.0
        + (5.0 - 2.0 * c1 + 28.0 * t1 - 3.0 * c1 * c1 + 8.0 * _EP2 + 24.0 * t1 * t1) * d ** 5 / 120.0
    ) / cos_phi1

    latitude = math.degrees(lat)
    longitude = math.degrees(lon)
    # Zones 1 and 60 touch the antimeridian
    if longitude > 180.0:
        longitude -= 360.0
    elif longitude < -180.0:
        longitude += 360.0
    # The series diverge far outside a zone
    _validate_latitude(latitude)
    _validate_longitude(longitude)

    return GeodeticCoordinates(latitude=latitude, longitude=longitude, altitude=0.0)


# ============================================================================
# Geometry utilities
# ============================================================================

def great_circle_distance(pos1: GeodeticCoordinates, pos2: GeodeticCoordinates) -> float:
    """Haversine distance in metres on a sphere of the WGS-84 equatorial radius."""
    for pos in (pos1, pos2):
        _validate_latitude(pos.latitude)
        _validate_longitude(pos.longitude)

    lat1 = math.radians(pos1.latitude)
    lat2 = math.radians(pos2.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(pos2.longitude - pos1.longitude)

    h = math.sin(dlat / 2.0) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    return WGS84_A_M * 2.0 * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1.0 - h)))


def calculate_azimuth(pos1: GeodeticCoordinates, pos2: GeodeticCoordinates) -> float:
    """Initial bearing from ``pos1`` to ``pos2`` in degrees, clockwise from north, [0, 360)."""
    for pos in (pos1, pos2):
        _validate_latitude(pos.latitude)
        _validate_longitude(pos.longitude)

    lat1 = math.radians(pos1.latitude)
    lat2 = math.radians(pos2.latitude)
    dlon = math.radians(pos2.longitude - pos1.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    azimuth = math.fmod(math.degrees(math.atan2(y, x)) + 360.0, 360.0)
    return 0.0 if azimuth >= 360.0 else azimuth


def calculate_elevation(observer: GeodeticCoordinates, target: GeodeticCoordinates) -> float:
    """Elevation of ``target`` above the local horizon of ``observer``, in degrees."""
    enu = ecef_to_enu(geodetic_to_ecef(target), observer)
    rng = enu.magnitude
    if rng == 0.0:
        return 0.0
    return math.degrees(math.asin(max(-1.0, min(1.0, enu.z / rng))))


# ============================================================================
# Universal converter
# ============================================================================

_SYSTEMS = ("eci", "ecef", "geodetic", "enu", "utm")


def _require(value, what: str, source: str, target: str):
    if value is None:
        raise ValueError(f"Conversion from {source} to {target} requires {what}")
    return value


def convert_coordinates(
    coords: Coordinates,
    from_system: str,
    to_system: str,
    *,
    reference: GeodeticCoordinates | None = None,
    time: TimeLike | None = None,
) -> Coordinates:
    """Convert between any two supported coordinate systems.

    Multi-step conversions go through ECEF (and geodetic for UTM).

    Args:
        coords: Input coordinates, of the type matching ``from_system``.
        from_system: One of "eci", "ecef", "geodetic", "enu", "utm".
        to_system: One of "eci", "ecef", "geodetic", "enu", "utm".
        reference: Reference point, required when either side is "enu".
        time: Epoch, required when either side is "eci".

    Raises:
        ValueError: On an unknown system or a missing ``reference``/``time``.
    """
    source, target = from_system.lower(), to_system.lower()
    for system in (source, target):
        if system not in _SYSTEMS:
            raise ValueError(f"Unknown coordinate system: {system!r} (expected one of {_SYSTEMS})")

    if source == target:
        return coords

    # Direct pairs that do not need ECEF
    if source == "geodetic" and target == "utm":
        return geodetic_to_utm(coords)
    if source == "utm" and target == "geodetic":
        return utm_to_geodetic(coords)

    if source == "ecef":
        ecef = coords
    elif source == "eci":
        ecef = eci_to_ecef(coords, _require(time, "a time", source, target))
    elif source == "geodetic":
        ecef = geodetic_to_ecef(coords)
    elif source == "enu":
        ecef = enu_to_ecef(coords, _require(reference, "a reference point", source, target))
    else:
        ecef = geodetic_to_ecef(utm_to_geodetic(coords))

    if target == "ecef":
        return ecef
    if target == "eci":
        return ecef_to_eci(ecef, _require(time, "a time", source, target))
    if target == "geodetic":
        return ecef_to_geodetic(ecef)
    if target == "enu":
        return ecef_to_enu(ecef, _require(reference, "a reference point", source, target))
    return geodetic_to_utm(ecef_to_geodetic(ecef))
