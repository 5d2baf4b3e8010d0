"""Tests for TLE ingestion."""

import math

import pytest

from orbitcore.core.kepler import mean_from_true
from orbitcore.core.propagation import PropagationSession, Propagator, PropagatorConfig, step
from orbitcore.core.tle import TLE, parse_tle

# ISS (ZARYA) TLE — a well-known reference
ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"


@pytest.fixture
def iss() -> TLE:
    return TLE.from_lines(ISS_LINE1, ISS_LINE2, name=ISS_NAME)


class TestTLEFromLines:
    def test_parse_basic(self, iss: TLE) -> None:
        assert iss.norad_id == 25544
        assert iss.name == ISS_NAME

    def test_orbital_elements(self, iss: TLE) -> None:
        assert iss.inclination_deg == pytest.approx(51.6412)
        assert iss.raan_deg == pytest.approx(207.4925)
        assert iss.eccentricity == pytest.approx(0.0004948)
        assert iss.arg_perigee_deg == pytest.approx(290.5508)
        assert iss.mean_anomaly_deg == pytest.approx(178.9792)
        assert iss.mean_motion_rev_per_day == pytest.approx(15.49583488, rel=1e-6)

    def test_epoch(self, iss: TLE) -> None:
        # Day 45.54896019 of 2024 is 14 February, 13:10:30 UTC
        assert iss.epoch.year == 2024
        assert iss.epoch.month == 2
        assert iss.epoch.day == 14
        assert iss.epoch.hour == 13
        assert iss.epoch.minute == 10
        assert iss.epoch.tzinfo is not None

    def test_str_round_trip(self, iss: TLE) -> None:
        text = str(iss)
        assert ISS_LINE1 in text
        assert ISS_LINE2 in text
        assert parse_tle(text)[0].name == ISS_NAME

    def test_invalid_line1_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid TLE line 1"):
            TLE.from_lines("garbage", ISS_LINE2)

    def test_invalid_line2_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid TLE line 2"):
            TLE.from_lines(ISS_LINE1, ISS_LINE1)


class TestParseTLE:
    def test_two_line_format(self) -> None:
        tles = parse_tle(f"{ISS_LINE1}\n{ISS_LINE2}")
        assert len(tles) == 1
        assert tles[0].name == ""

    def test_three_line_format(self) -> None:
        tles = parse_tle(f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}")
        assert len(tles) == 1
        assert tles[0].name == ISS_NAME

    def test_multiple_and_junk(self) -> None:
        text = f"# catalogue\n\n{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}\n{ISS_LINE1}\n{ISS_LINE2}\n"
        tles = parse_tle(text)
        assert len(tles) == 2

    def test_empty(self) -> None:
        assert parse_tle("") == []


class TestInitialOrbit:
    def test_semi_major_axis_from_mean_motion(self, iss: TLE) -> None:
        n = iss.mean_motion_rad_s
        assert iss.semi_major_axis_km ** 3 * n * n == pytest.approx(398600.4418)
        assert 6780.0 < iss.semi_major_axis_km < 6800.0

    def test_to_initial_orbit(self, iss: TLE) -> None:
        orbit = iss.to_initial_orbit()
        assert orbit.id == "25544"
        assert orbit.name == ISS_NAME
        assert orbit.inclination == pytest.approx(51.6412)
        assert orbit.longitude_of_ascending_node == pytest.approx(207.4925)
        # The true anomaly maps back to the catalogue mean anomaly
        m = mean_from_true(math.radians(orbit.true_anomaly), orbit.eccentricity)
        assert math.degrees(m) == pytest.approx(178.9792, abs=1e-6)

    def test_unnamed_gets_catalogue_name(self) -> None:
        orbit = TLE.from_lines(ISS_LINE1, ISS_LINE2).to_initial_orbit()
        assert orbit.name == "NORAD 25544"


class TestSessionFromTLE:
    def test_epoch_becomes_session_epoch(self, iss: TLE) -> None:
        session = PropagationSession.from_tle(iss, PropagatorConfig())
        assert session.epoch == iss.epoch
        snapshot = step(session, 60.0)
        assert snapshot.id == "25544"
        assert snapshot.ground_track_point is not None
        assert abs(snapshot.ground_track_point.latitude) < 52.5

    def test_propagator_add_tle(self, iss: TLE) -> None:
        propagator = Propagator()
        propagator.add_tle(iss)
        assert "25544" in propagator
        with pytest.raises(ValueError, match="already"):
            propagator.add_tle(iss)
