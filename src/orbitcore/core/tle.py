"""Two-Line Element set ingestion.

TLE lines are parsed with the sgp4 library. A parsed set can seed a
propagation session: its mean elements become an :class:`InitialOrbit` and
its epoch becomes the session epoch.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sgp4.api import WGS72, Satrec

from orbitcore.core.kepler import true_from_mean
from orbitcore.core.propagation import InitialOrbit
from orbitcore.utils.constants import EARTH_MU_KM3_S2, JD_UNIX_EPOCH, SECONDS_PER_DAY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TLE:
    """A parsed Two-Line Element set.

    Attributes:
        name: Satellite name (line 0, if provided).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Inclination in degrees.
        raan_deg: Right ascension of the ascending node in degrees.
        eccentricity: Eccentricity.
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        satrec: Underlying sgp4 record.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    satrec: Satrec = field(repr=False, compare=False)

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> TLE:
        """Parse a TLE from its two data lines.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional satellite name (line 0).

        Raises:
            ValueError: If the TLE lines are malformed.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != 69 or not line1.startswith("1 "):
            logger.error("Invalid TLE line 1: %r", line1)
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != 69 or not line2.startswith("2 "):
            logger.error("Invalid TLE line 2: %r", line2)
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        sat = Satrec.twoline2rv(line1, line2, WGS72)

        jd = sat.jdsatepoch + sat.jdsatepochF
        epoch = datetime.fromtimestamp((jd - JD_UNIX_EPOCH) * SECONDS_PER_DAY, tz=timezone.utc)

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", sat.satnum, epoch.isoformat())

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            norad_id=int(sat.satnum),
            epoch=epoch,
            inclination_deg=math.degrees(sat.inclo),
            raan_deg=math.degrees(sat.nodeo),
            eccentricity=sat.ecco,
            arg_perigee_deg=math.degrees(sat.argpo),
            mean_anomaly_deg=math.degrees(sat.mo),
            mean_motion_rev_per_day=sat.no_kozai * 1440.0 / (2.0 * math.pi),
            satrec=sat,
        )

    @property
    def mean_motion_rad_s(self) -> float:
        return self.mean_motion_rev_per_day * 2.0 * math.pi / SECONDS_PER_DAY

    @property
    def semi_major_axis_km(self) -> float:
        """Semi-major axis from mean motion, ``a = (mu / n²)^(1/3)``."""
        n = self.mean_motion_rad_s
        return (EARTH_MU_KM3_S2 / (n * n)) ** (1.0 / 3.0)

    def to_initial_orbit(self) -> InitialOrbit:
        """Initial orbit at the TLE epoch (angles in degrees)."""
        nu = true_from_mean(math.radians(self.mean_anomaly_deg), self.eccentricity)
        return InitialOrbit(
            id=str(self.norad_id),
            name=self.name or f"NORAD {self.norad_id}",
            semi_major_axis=self.semi_major_axis_km,
            eccentricity=self.eccentricity,
            inclination=self.inclination_deg,
            longitude_of_ascending_node=self.raan_deg,
            argument_of_periapsis=self.arg_perigee_deg,
            true_anomaly=math.degrees(nu),
        )

    def __str__(self) -> str:
        header = f"0 {self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


def parse_tle(text: str) -> list[TLE]:
    """Parse every 2-line or 3-line (named) set in ``text``.

    Lines that belong to no set are skipped.
    """
    lines = [line.rstrip() for line in text.strip().splitlines() if line.strip()]
    tles: list[TLE] = []
    i = 0

    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            tles.append(TLE.from_lines(lines[i], lines[i + 1]))
            i += 2
        elif i + 2 < len(lines) and lines[i + 1].startswith("1 ") and lines[i + 2].startswith("2 "):
            name = lines[i][2:] if lines[i].startswith("0 ") else lines[i]
            tles.append(TLE.from_lines(lines[i + 1], lines[i + 2], name=name))
            i += 3
        else:
            i += 1

    logger.debug("Parsed %d TLEs from text", len(tles))
    return tles
