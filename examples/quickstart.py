"""Orbitcore Quickstart — propagate the ISS from its TLE and find Earth–Moon L-points."""

from orbitcore import (
    Propagator,
    PropagatorConfig,
    TwoBodySystem,
    calculate_all_lagrange_points,
    parse_tle,
)

# ISS (ZARYA) TLE
tle_text = """
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596
""".strip()

iss = parse_tle(tle_text)[0]
print(f"Satellite: {iss.name}")
print(f"NORAD ID:  {iss.norad_id}")
print(f"Epoch:     {iss.epoch}")
print(f"SMA:       {iss.semi_major_axis_km:.1f} km")

# Ten minutes of ground track, one fix per minute
propagator = Propagator(PropagatorConfig(propagator_type="j2"))
propagator.add_tle(iss)
session = propagator.session(str(iss.norad_id))
for _ in range(10):
    snapshot = propagator.step(60.0)[0]
    point = snapshot.ground_track_point
    print(
        f"{session.current_time:%H:%M:%S} | "
        f"lat {point.latitude:+7.3f}° | lon {point.longitude:+8.3f}° | alt {point.altitude / 1000:.1f} km"
    )

# Earth–Moon Lagrange points
earth_moon = TwoBodySystem(5.972e24, 7.342e22, 384_400.0)
for p in calculate_all_lagrange_points(earth_moon, high_precision=True):
    stability = "stable" if p.stable else "unstable"
    print(f"{p.type.value}: {p.distance_from_primary:10.0f} km from Earth ({stability})")
