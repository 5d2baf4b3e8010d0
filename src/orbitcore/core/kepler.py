"""Kepler's equation and conversions between anomalies.

Angles are in radians. Conversions that return an anomaly wrap it to
[0, 2π).
"""

from __future__ import annotations

import logging
import math

from orbitcore.core.errors import ConvergenceError
from orbitcore.utils.constants import (
    CIRCULAR_ECCENTRICITY,
    DEFAULT_KEPLER_MAX_ITERATIONS,
    DEFAULT_KEPLER_TOLERANCE,
)

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Wrap an angle to [0, 2π)."""
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    # fmod of a tiny negative can round up to exactly 2π
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    tol: float = DEFAULT_KEPLER_TOLERANCE,
    max_iter: int = DEFAULT_KEPLER_MAX_ITERATIONS,
    *,
    strict: bool = False,
) -> float:
    """Solve ``M = E - e·sin(E)`` for the eccentric anomaly E.

    Newton-Raphson iteration stops once ``|ΔE| < tol`` or after ``max_iter``
    steps. Starting guess is ``M + e·sin(M)`` for e < 0.8 and π otherwise.

    Args:
        mean_anomaly: Mean anomaly M in radians.
        eccentricity: Eccentricity in [0, 1).
        tol: Step tolerance in radians.
        max_iter: Iteration cap.
        strict: Raise instead of returning the last iterate when the cap is hit.

    Returns:
        Eccentric anomaly E in radians, in the same revolution as M.

    Raises:
        ConvergenceError: If ``strict`` and the iteration cap is exhausted.
    """
    e = eccentricity
    if e < CIRCULAR_ECCENTRICITY:
        return mean_anomaly

    revolutions = math.floor(mean_anomaly / TWO_PI)
    m = mean_anomaly - revolutions * TWO_PI

    ecc_anomaly = m + e * math.sin(m) if e < 0.8 else math.pi
    delta = math.inf
    for _ in range(max_iter):
        f = ecc_anomaly - e * math.sin(ecc_anomaly) - m
        f_prime = 1.0 - e * math.cos(ecc_anomaly)
        delta = f / f_prime
        ecc_anomaly -= delta
        if abs(delta) < tol:
            return ecc_anomaly + revolutions * TWO_PI

    logger.warning(
        "Kepler's equation did not converge: M=%.6f e=%.6f |dE|=%.3e after %d iterations",
        mean_anomaly, e, abs(delta), max_iter,
    )
    if strict:
        raise ConvergenceError(
            f"Kepler's equation did not converge in {max_iter} iterations (M={mean_anomaly}, e={e})",
            iterations=max_iter,
            last_step=abs(delta),
            value=ecc_anomaly,
        )
    return ecc_anomaly + revolutions * TWO_PI


eccentric_from_mean = solve_kepler


def true_from_eccentric(eccentric_anomaly: float, eccentricity: float) -> float:
    """True anomaly from eccentric anomaly, wrapped to [0, 2π)."""
    e = eccentricity
    half = eccentric_anomaly / 2.0
    nu = 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(half), math.sqrt(1.0 - e) * math.cos(half))
    return normalize_angle(nu)


def eccentric_from_true(true_anomaly: float, eccentricity: float) -> float:
    """Eccentric anomaly from true anomaly, wrapped to [0, 2π)."""
    e = eccentricity
    half = true_anomaly / 2.0
    ecc = 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(half), math.sqrt(1.0 + e) * math.cos(half))
    return normalize_angle(ecc)


def mean_from_eccentric(eccentric_anomaly: float, eccentricity: float) -> float:
    """Kepler's equation, ``M = E - e·sin(E)``, wrapped to [0, 2π)."""
    return normalize_angle(eccentric_anomaly - eccentricity * math.sin(eccentric_anomaly))


def mean_from_true(true_anomaly: float, eccentricity: float) -> float:
    """Mean anomaly from true anomaly, wrapped to [0, 2π)."""
    if eccentricity < CIRCULAR_ECCENTRICITY:
        return normalize_angle(true_anomaly)
    return mean_from_eccentric(eccentric_from_true(true_anomaly, eccentricity), eccentricity)


def true_from_mean(
    mean_anomaly: float,
    eccentricity: float,
    tol: float = DEFAULT_KEPLER_TOLERANCE,
    max_iter: int = DEFAULT_KEPLER_MAX_ITERATIONS,
    *,
    strict: bool = False,
) -> float:
    """True anomaly from mean anomaly, wrapped to [0, 2π)."""
    if eccentricity < CIRCULAR_ECCENTRICITY:
        return normalize_angle(mean_anomaly)
    ecc_anomaly = solve_kepler(mean_anomaly, eccentricity, tol, max_iter, strict=strict)
    return true_from_eccentric(ecc_anomaly, eccentricity)


# Names used by the propagation layer and the public API.
mean_to_true = true_from_mean
true_to_mean = mean_from_true


def propagate_mean_anomaly(mean_anomaly: float, mean_motion: float, dt: float) -> float:
    """Advance a mean anomaly by ``n·dt`` and wrap to [0, 2π)."""
    return normalize_angle(mean_anomaly + mean_motion * dt)
