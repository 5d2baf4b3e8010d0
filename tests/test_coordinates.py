"""Tests for WGS-84 coordinate transforms."""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from orbitcore.core.coordinates import (
    ECEFCoordinates,
    ECICoordinates,
    ENUCoordinates,
    GeodeticCoordinates,
    UTMCoordinates,
    calculate_azimuth,
    calculate_elevation,
    calculate_gmst,
    convert_coordinates,
    ecef_to_eci,
    ecef_to_enu,
    ecef_to_geodetic,
    eci_to_ecef,
    eci_to_geodetic,
    enu_to_ecef,
    geodetic_to_ecef,
    geodetic_to_eci,
    geodetic_to_utm,
    great_circle_distance,
    julian_date,
    utm_to_geodetic,
    utm_zone,
)
from orbitcore.core.errors import CoordinateValidationError, FrameMismatchError
from orbitcore.utils.constants import WGS84_A_M, WGS84_B_M

J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
ORIGIN = GeodeticCoordinates(0.0, 0.0, 0.0)


class TestTime:
    def test_julian_date_of_j2000(self) -> None:
        assert julian_date(J2000) == pytest.approx(2451545.0, abs=1e-9)

    def test_julian_date_of_unix_epoch(self) -> None:
        assert julian_date(0.0) == 2440587.5

    def test_gmst_at_j2000(self) -> None:
        assert math.degrees(calculate_gmst(J2000)) == pytest.approx(280.4606, abs=1e-4)

    def test_gmst_time_forms_agree(self) -> None:
        naive = datetime(2000, 1, 1, 12, 0, 0)
        unix = J2000.timestamp()
        assert calculate_gmst(naive) == calculate_gmst(J2000)
        assert calculate_gmst(unix) == pytest.approx(calculate_gmst(J2000), abs=1e-12)

    def test_gmst_in_range(self) -> None:
        for hours in range(0, 48, 5):
            gmst = calculate_gmst(J2000 + timedelta(hours=hours, minutes=17))
            assert 0.0 <= gmst < 2 * math.pi

    def test_gmst_advances_one_sidereal_day(self) -> None:
        sidereal_day = 86164.0905
        g0 = calculate_gmst(J2000)
        g1 = calculate_gmst(J2000 + timedelta(seconds=sidereal_day))
        assert abs((g1 - g0 + math.pi) % (2 * math.pi) - math.pi) < 1e-5

    def test_bad_time_type(self) -> None:
        with pytest.raises(TypeError):
            calculate_gmst("2000-01-01")


class TestGeodeticECEF:
    def test_equator_prime_meridian(self) -> None:
        ecef = geodetic_to_ecef(ORIGIN)
        assert ecef == ECEFCoordinates(6378137.0, 0.0, 0.0)

    def test_north_pole(self) -> None:
        ecef = geodetic_to_ecef(GeodeticCoordinates(90.0, 0.0, 0.0))
        assert ecef.x == pytest.approx(0.0, abs=1e-6)
        assert ecef.z == pytest.approx(WGS84_B_M, abs=1e-6)

    @pytest.mark.parametrize(
        "lat, lon, alt",
        [
            (0.0, 0.0, 0.0),
            (45.0, 45.0, 1000.0),
            (-33.8688, 151.2093, 58.0),
            (51.4779, -0.0015, 45.0),
            (89.9, -120.0, 0.0),
            (-89.5, 10.0, 2_000_000.0),
            (27.9881, 86.925, 8848.86),
            (11.35, 142.2, -10_994.0),
            (-60.0, -180.0, 500_000.0),
        ],
    )
    def test_round_trip(self, lat: float, lon: float, alt: float) -> None:
        recovered = ecef_to_geodetic(geodetic_to_ecef(GeodeticCoordinates(lat, lon, alt)))
        assert recovered.latitude == pytest.approx(lat, abs=1e-6)
        assert abs((recovered.longitude - lon + 180.0) % 360.0 - 180.0) < 1e-6
        assert recovered.altitude == pytest.approx(alt, abs=1e-3)

    def test_pole_round_trip(self) -> None:
        recovered = ecef_to_geodetic(geodetic_to_ecef(GeodeticCoordinates(-90.0, 0.0, 100.0)))
        assert recovered.latitude == pytest.approx(-90.0, abs=1e-6)
        assert recovered.altitude == pytest.approx(100.0, abs=1e-3)

    def test_geostationary_altitude_is_allowed_on_output(self) -> None:
        geo = ecef_to_geodetic(ECEFCoordinates(42_164_000.0, 0.0, 0.0))
        assert geo.altitude == pytest.approx(42_164_000.0 - WGS84_A_M)


class TestValidation:
    @pytest.mark.parametrize(
        "coords, match",
        [
            (GeodeticCoordinates(91.0, 0.0, 0.0), "latitude"),
            (GeodeticCoordinates(-90.5, 0.0, 0.0), "latitude"),
            (GeodeticCoordinates(0.0, 180.5, 0.0), "longitude"),
            (GeodeticCoordinates(0.0, 0.0, -12_000.0), "altitude"),
            (GeodeticCoordinates(0.0, 0.0, 2_000_001.0), "altitude"),
            (GeodeticCoordinates(math.nan, 0.0, 0.0), "latitude"),
            (GeodeticCoordinates(0.0, math.inf, 0.0), "longitude"),
        ],
    )
    def test_geodetic_out_of_range(self, coords: GeodeticCoordinates, match: str) -> None:
        with pytest.raises(CoordinateValidationError, match=match):
            geodetic_to_ecef(coords)

    def test_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            geodetic_to_ecef(GeodeticCoordinates(100.0, 0.0, 0.0))

    def test_ecef_too_far(self) -> None:
        with pytest.raises(CoordinateValidationError, match="exceeds reasonable bounds"):
            ecef_to_geodetic(ECEFCoordinates(2e8, 0.0, 0.0))

    def test_ecef_non_finite(self) -> None:
        with pytest.raises(CoordinateValidationError, match="non-finite"):
            ecef_to_geodetic(ECEFCoordinates(math.nan, 0.0, 0.0))


class TestInertialFrames:
    def test_frames_are_distinct_types(self) -> None:
        assert ECICoordinates(1.0, 2.0, 3.0) != ECEFCoordinates(1.0, 2.0, 3.0)

    def test_eci_ecef_round_trip(self) -> None:
        eci = ECICoordinates(4_000_000.0, -5_000_000.0, 3_000_000.0)
        t = datetime(2024, 3, 20, 6, 30, tzinfo=timezone.utc)
        back = ecef_to_eci(eci_to_ecef(eci, t), t)
        assert back.x == pytest.approx(eci.x, abs=1e-6)
        assert back.y == pytest.approx(eci.y, abs=1e-6)
        assert back.z == eci.z

    def test_rotation_preserves_magnitude(self) -> None:
        eci = ECICoordinates(7_000_000.0, 1_000_000.0, -2_000_000.0)
        ecef = eci_to_ecef(eci, 1_700_000_000.0)
        assert ecef.magnitude == pytest.approx(eci.magnitude)

    def test_rotation_direction(self) -> None:
        # Earth-fixed axes lead the inertial ones by GMST, so +x inertial sits at longitude -GMST
        theta = calculate_gmst(J2000)
        ecef = eci_to_ecef(ECICoordinates(7_000_000.0, 0.0, 0.0), J2000)
        assert math.atan2(ecef.y, ecef.x) == pytest.approx(-theta if theta <= math.pi else 2 * math.pi - theta)

    def test_wrong_frame_raises(self) -> None:
        with pytest.raises(FrameMismatchError, match="ECICoordinates"):
            eci_to_ecef(ECEFCoordinates(7e6, 0.0, 0.0), J2000)
        with pytest.raises(TypeError):
            ecef_to_eci(ECICoordinates(7e6, 0.0, 0.0), J2000)

    def test_geodetic_eci_round_trip(self) -> None:
        point = GeodeticCoordinates(35.0, -120.0, 400.0)
        t = datetime(2025, 7, 1, tzinfo=timezone.utc)
        recovered = eci_to_geodetic(geodetic_to_eci(point, t), t)
        assert recovered.latitude == pytest.approx(35.0, abs=1e-6)
        assert recovered.longitude == pytest.approx(-120.0, abs=1e-6)
        assert recovered.altitude == pytest.approx(400.0, abs=1e-3)

    def test_distance_bound_is_adjustable(self) -> None:
        far = ECICoordinates(110_000_000.0, 0.0, 0.0)
        with pytest.raises(CoordinateValidationError, match="exceeds reasonable bounds"):
            eci_to_geodetic(far, J2000)
        point = eci_to_geodetic(far, J2000, max_magnitude=math.inf)
        assert point.latitude == pytest.approx(0.0, abs=1e-9)
        assert point.altitude == pytest.approx(110_000_000.0 - WGS84_A_M, abs=1e-3)


class TestENU:
    def test_axes_at_origin(self) -> None:
        up = ecef_to_enu(ECEFCoordinates(WGS84_A_M + 100.0, 0.0, 0.0), ORIGIN)
        assert (up.x, up.y, up.z) == pytest.approx((0.0, 0.0, 100.0), abs=1e-9)

        east = ecef_to_enu(ECEFCoordinates(WGS84_A_M, 50.0, 0.0), ORIGIN)
        assert (east.x, east.y, east.z) == pytest.approx((50.0, 0.0, 0.0), abs=1e-9)

        north = ecef_to_enu(ECEFCoordinates(WGS84_A_M, 0.0, 20.0), ORIGIN)
        assert (north.x, north.y, north.z) == pytest.approx((0.0, 20.0, 0.0), abs=1e-9)

    def test_round_trip(self) -> None:
        reference = GeodeticCoordinates(47.6, -122.3, 50.0)
        enu = ENUCoordinates(1200.0, -350.0, 80.0)
        back = ecef_to_enu(enu_to_ecef(enu, reference), reference)
        assert (back.x, back.y, back.z) == pytest.approx((1200.0, -350.0, 80.0), abs=1e-6)

    def test_reference_is_validated(self) -> None:
        with pytest.raises(CoordinateValidationError):
            ecef_to_enu(ECEFCoordinates(WGS84_A_M, 0.0, 0.0), GeodeticCoordinates(95.0, 0.0, 0.0))


class TestUTM:
    def test_central_meridian_on_equator(self) -> None:
        utm = geodetic_to_utm(GeodeticCoordinates(0.0, 3.0, 0.0))
        assert utm.zone == 31
        assert utm.hemisphere == "N"
        assert utm.easting == pytest.approx(500_000.0)
        assert utm.northing == pytest.approx(0.0, abs=1e-6)

    def test_central_meridian_scale(self) -> None:
        # Meridian arc to 45°N is 4 984 944.4 m, scaled by k0
        utm = geodetic_to_utm(GeodeticCoordinates(45.0, 9.0, 0.0))
        assert utm.zone == 32
        assert utm.northing == pytest.approx(0.9996 * 4_984_944.4, abs=1.0)

    def test_southern_false_northing(self) -> None:
        north = geodetic_to_utm(GeodeticCoordinates(10.0, 4.0, 0.0))
        south = geodetic_to_utm(GeodeticCoordinates(-10.0, 4.0, 0.0))
        assert south.hemisphere == "S"
        assert south.northing == pytest.approx(10_000_000.0 - north.northing, abs=1e-6)
        assert south.easting == pytest.approx(north.easting)

    @pytest.mark.parametrize("lon, zone", [(-180.0, 1), (-177.0, 1), (-174.0, 2), (2.2945, 31), (179.9, 60), (180.0, 60)])
    def test_zone_rule(self, lon: float, zone: int) -> None:
        assert utm_zone(lon) == zone

    @pytest.mark.parametrize(
        "lat, lon",
        [(48.8583, 2.2945), (-33.8688, 151.2093), (60.0, -150.0), (0.5, 0.5), (-45.0, -69.1), (70.0, 23.9)],
    )
    def test_round_trip(self, lat: float, lon: float) -> None:
        recovered = utm_to_geodetic(geodetic_to_utm(GeodeticCoordinates(lat, lon, 0.0)))
        assert recovered.latitude == pytest.approx(lat, abs=1e-6)
        assert recovered.longitude == pytest.approx(lon, abs=1e-6)
        assert recovered.altitude == 0.0

    @pytest.mark.parametrize(
        "utm, match",
        [
            (UTMCoordinates(500_000.0, 0.0, 0, "N"), "zone"),
            (UTMCoordinates(500_000.0, 0.0, 61, "N"), "zone"),
            (UTMCoordinates(500_000.0, 0.0, 31, "X"), "hemisphere"),
            (UTMCoordinates(math.nan, 0.0, 31, "N"), "finite"),
            (UTMCoordinates(5e7, 9e7, 31, "N"), "easting"),
            (UTMCoordinates(500_000.0, -1.0, 31, "N"), "northing"),
            (UTMCoordinates(500_000.0, 9e7, 31, "S"), "northing"),
            (UTMCoordinates(500_000.0, 9_999_999.0, 31, "N"), "latitude"),
        ],
    )
    def test_invalid_utm(self, utm: UTMCoordinates, match: str) -> None:
        with pytest.raises(CoordinateValidationError, match=match):
            utm_to_geodetic(utm)


class TestGeometry:
    def test_great_circle_one_degree_on_equator(self) -> None:
        d = great_circle_distance(ORIGIN, GeodeticCoordinates(0.0, 1.0, 0.0))
        assert d == pytest.approx(WGS84_A_M * math.radians(1.0))

    def test_great_circle_antipodal(self) -> None:
        d = great_circle_distance(ORIGIN, GeodeticCoordinates(0.0, 180.0, 0.0))
        assert d == pytest.approx(math.pi * WGS84_A_M)

    def test_great_circle_zero(self) -> None:
        p = GeodeticCoordinates(12.0, 34.0, 0.0)
        assert great_circle_distance(p, p) == 0.0

    @pytest.mark.parametrize(
        "target, expected",
        [((1.0, 0.0), 0.0), ((0.0, 1.0), 90.0), ((-1.0, 0.0), 180.0), ((0.0, -1.0), 270.0)],
    )
    def test_azimuth_cardinal_directions(self, target: tuple[float, float], expected: float) -> None:
        azimuth = calculate_azimuth(ORIGIN, GeodeticCoordinates(target[0], target[1], 0.0))
        assert azimuth == pytest.approx(expected, abs=1e-9)
        assert 0.0 <= azimuth < 360.0

    def test_elevation_overhead(self) -> None:
        target = GeodeticCoordinates(0.0, 0.0, 400_000.0)
        assert calculate_elevation(ORIGIN, target) == pytest.approx(90.0)

    def test_elevation_below_horizon(self) -> None:
        target = GeodeticCoordinates(0.0, 90.0, 0.0)
        assert calculate_elevation(ORIGIN, target) < 0.0

    def test_elevation_of_distant_satellite_is_low(self) -> None:
        elevation = calculate_elevation(ORIGIN, GeodeticCoordinates(0.0, 20.0, 400_000.0))
        assert -10.0 < elevation < 10.0


class TestConvertCoordinates:
    def test_identity(self) -> None:
        assert convert_coordinates(ORIGIN, "geodetic", "geodetic") is ORIGIN

    def test_geodetic_to_ecef(self) -> None:
        assert convert_coordinates(ORIGIN, "geodetic", "ecef") == geodetic_to_ecef(ORIGIN)

    def test_utm_to_eci_and_back(self) -> None:
        point = GeodeticCoordinates(40.0, -105.0, 0.0)
        utm = geodetic_to_utm(point)
        eci = convert_coordinates(utm, "utm", "eci", time=J2000)
        assert isinstance(eci, ECICoordinates)
        back = convert_coordinates(eci, "ECI", "utm", time=J2000)
        assert back.zone == utm.zone
        assert back.easting == pytest.approx(utm.easting, abs=1e-3)
        assert back.northing == pytest.approx(utm.northing, abs=1e-3)

    def test_enu_via_ecef(self) -> None:
        reference = GeodeticCoordinates(10.0, 20.0, 0.0)
        enu = convert_coordinates(GeodeticCoordinates(10.0, 20.0, 250.0), "geodetic", "enu", reference=reference)
        assert enu.z == pytest.approx(250.0, abs=1e-6)

    def test_missing_time(self) -> None:
        with pytest.raises(ValueError, match="requires a time"):
            convert_coordinates(ORIGIN, "geodetic", "eci")

    def test_missing_reference(self) -> None:
        with pytest.raises(ValueError, match="requires a reference point"):
            convert_coordinates(ORIGIN, "geodetic", "enu")

    def test_unknown_system(self) -> None:
        with pytest.raises(ValueError, match="Unknown coordinate system"):
            convert_coordinates(ORIGIN, "geodetic", "galactic")
