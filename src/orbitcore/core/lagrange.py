"""Lagrange points of a restricted two-body system.

L1, L2 and L3 lie on the line through both bodies. By default they use
first-order approximations in the mass ratio; ``high_precision`` solves the
exact collinear equilibrium equations with Newton-Raphson. L4 and L5 are
exact: they complete equilateral triangles with the two bodies.

The collinear solvers work in the barycentric rotating frame normalised to
the separation: primary at ``-mu``, secondary at ``1 - mu``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

from orbitcore.core.errors import ConvergenceError
from orbitcore.core.vectors import Vec3, add, as_vector, distance, dot, magnitude, normalize, scale, sub
from orbitcore.utils.constants import DEFAULT_LAGRANGE_MAX_ITERATIONS, DEFAULT_LAGRANGE_TOLERANCE

if TYPE_CHECKING:
    from orbitcore.core.propagation import PropagatorConfig

logger = logging.getLogger(__name__)


class LagrangePointType(Enum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    L4 = "L4"
    L5 = "L5"


@dataclass(frozen=True, eq=False)
class LagrangePoint:
    """An equilibrium point.

    Attributes:
        type: Which point (L1..L5).
        position: Position in the frame of the system, km.
        stable: True for L4/L5, False for L1/L2/L3 (by construction).
        distance_from_primary: km.
        distance_from_secondary: km.
    """

    type: LagrangePointType
    position: Vec3
    stable: bool
    distance_from_primary: float
    distance_from_secondary: float


@dataclass(frozen=True, eq=False)
class TwoBodySystem:
    """Primary and secondary body.

    Attributes:
        primary_mass: kg.
        secondary_mass: kg.
        distance: Separation in km.
        primary_position: Defaults to the origin.
        secondary_position: Defaults to ``distance`` along +x from the primary.
            When given, its separation from the primary must equal ``distance``.
        normal: Out-of-plane axis for L4/L5; only its component
            perpendicular to the primary→secondary line is used.
    """

    primary_mass: float
    secondary_mass: float
    distance: float
    primary_position: Vec3 | None = None
    secondary_position: Vec3 | None = None
    normal: Vec3 | None = None

    def __post_init__(self) -> None:
        if not (self.primary_mass > 0 and self.secondary_mass > 0):
            raise ValueError(
                f"Masses must be positive, got {self.primary_mass} and {self.secondary_mass}"
            )
        if not (math.isfinite(self.distance) and self.distance > 0):
            raise ValueError(f"Distance must be positive, got {self.distance}")

        primary = as_vector(self.primary_position if self.primary_position is not None else (0.0, 0.0, 0.0))
        if self.secondary_position is None:
            secondary = add(primary, as_vector((self.distance, 0.0, 0.0)))
        else:
            secondary = as_vector(self.secondary_position)
        separation = magnitude(sub(secondary, primary))
        if separation == 0.0:
            raise ValueError("Primary and secondary positions coincide")
        if not math.isclose(separation, self.distance, rel_tol=1e-6):
            raise ValueError(
                f"Distance {self.distance} km does not match the body separation {separation} km"
            )
        normal = as_vector(self.normal if self.normal is not None else (0.0, 0.0, 1.0))

        object.__setattr__(self, "primary_position", primary)
        object.__setattr__(self, "secondary_position", secondary)
        object.__setattr__(self, "normal", normal)

    @property
    def mu(self) -> float:
        return mass_ratio(self.primary_mass, self.secondary_mass)

    @property
    def direction(self) -> Vec3:
        """Unit vector from primary to secondary."""
        return normalize(sub(self.secondary_position, self.primary_position))


def mass_ratio(m1: float, m2: float) -> float:
    """``mu = m2 / (m1 + m2)``."""
    return m2 / (m1 + m2)


def _newton(
    label: str,
    f: Callable[[float], float],
    f_prime: Callable[[float], float],
    x0: float,
    tol: float,
    max_iter: int,
    strict: bool,
) -> float:
    x = x0
    delta = math.inf
    for _ in range(max_iter):
        delta = f(x) / f_prime(x)
        x -= delta
        if abs(delta) < tol:
            return x

    logger.warning("%s solver did not converge: |dx|=%.3e after %d iterations", label, abs(delta), max_iter)
    if strict:
        raise ConvergenceError(
            f"{label} solver did not converge in {max_iter} iterations",
            iterations=max_iter,
            last_step=abs(delta),
            value=x,
        )
    return x


def solve_l1_position(
    mu: float,
    tol: float = DEFAULT_LAGRANGE_TOLERANCE,
    max_iter: int = DEFAULT_LAGRANGE_MAX_ITERATIONS,
    *,
    strict: bool = False,
) -> float:
    """Barycentric x of L1 (between the bodies), in units of the separation."""
    return _newton(
        "L1",
        lambda x: (1 - mu) / (x + mu) ** 2 - mu / (x - 1 + mu) ** 2 - x,
        lambda x: -2 * (1 - mu) / (x + mu) ** 3 + 2 * mu / (x - 1 + mu) ** 3 - 1,
        1 - mu - (mu / 3) ** (1 / 3),
        tol,
        max_iter,
        strict,
    )


def solve_l2_position(
    mu: float,
    tol: float = DEFAULT_LAGRANGE_TOLERANCE,
    max_iter: int = DEFAULT_LAGRANGE_MAX_ITERATIONS,
    *,
    strict: bool = False,
) -> float:
    """Barycentric x of L2 (beyond the secondary), in units of the separation."""
    return _newton(
        "L2",
        lambda x: (1 - mu) / (x + mu) ** 2 + mu / (x - 1 + mu) ** 2 - x,
        lambda x: -2 * (1 - mu) / (x + mu) ** 3 - 2 * mu / (x - 1 + mu) ** 3 - 1,
        1 - mu + (mu / 3) ** (1 / 3),
        tol,
        max_iter,
        strict,
    )


def solve_l3_position(
    mu: float,
    tol: float = DEFAULT_LAGRANGE_TOLERANCE,
    max_iter: int = DEFAULT_LAGRANGE_MAX_ITERATIONS,
    *,
    strict: bool = False,
) -> float:
    """Barycentric x of L3 (opposite the secondary), in units of the separation. Negative."""
    return _newton(
        "L3",
        lambda x: (1 - mu) / (x + mu) ** 2 + mu / (x - 1 + mu) ** 2 + x,
        lambda x: -2 * (1 - mu) / (x + mu) ** 3 - 2 * mu / (x - 1 + mu) ** 3 + 1,
        -1 - 5 * mu / 12,
        tol,
        max_iter,
        strict,
    )


def _collinear_offset(system: TwoBodySystem, point_type: LagrangePointType, high_precision: bool) -> float:
    """Signed distance from the primary along the primary→secondary line, km."""
    mu = system.mu
    d = system.distance
    hill = (mu / 3) ** (1 / 3)

    if point_type is LagrangePointType.L1:
        if high_precision:
            return abs(solve_l1_position(mu) + mu) * d
        return d * (1 - hill)
    if point_type is LagrangePointType.L2:
        if high_precision:
            return abs(solve_l2_position(mu) + mu) * d
        return d * (1 + hill)
    if high_precision:
        return -abs(solve_l3_position(mu) + mu) * d
    return -d * (1 - 7 * mu / 12)


def _triangular_position(system: TwoBodySystem, angle: float) -> NDArray[np.float64]:
    baseline = sub(system.secondary_position, system.primary_position)
    direction = normalize(baseline)
    # Only the out-of-plane part of the normal defines the rotation axis
    axis = sub(system.normal, scale(direction, dot(system.normal, direction)))
    if magnitude(axis) < 1e-12:
        raise ValueError("normal must not be parallel to the primary-secondary line")
    rotation = Rotation.from_rotvec(angle * normalize(axis))
    # scipy needs a writable buffer
    return add(system.primary_position, rotation.apply(np.array(baseline)))


def calculate_lagrange_point(
    system: TwoBodySystem,
    point_type: LagrangePointType | str,
    high_precision: bool = False,
    *,
    config: PropagatorConfig | None = None,
) -> LagrangePoint:
    """Compute one Lagrange point.

    Args:
        system: The two bodies.
        point_type: L1..L5 (enum or its string value).
        high_precision: Solve the exact collinear equations for L1-L3.
        config: Propagation options; when given, its ``high_precision``
            flag overrides the argument.
    """
    point_type = LagrangePointType(point_type)
    if config is not None:
        high_precision = config.high_precision

    if point_type is LagrangePointType.L4:
        position = _triangular_position(system, math.pi / 3)
    elif point_type is LagrangePointType.L5:
        position = _triangular_position(system, -math.pi / 3)
    else:
        offset = _collinear_offset(system, point_type, high_precision)
        position = add(system.primary_position, scale(system.direction, offset))

    return LagrangePoint(
        type=point_type,
        position=as_vector(position),
        stable=point_type in (LagrangePointType.L4, LagrangePointType.L5),
        distance_from_primary=distance(position, system.primary_position),
        distance_from_secondary=distance(position, system.secondary_position),
    )


def calculate_all_lagrange_points(
    system: TwoBodySystem,
    high_precision: bool = False,
    *,
    config: PropagatorConfig | None = None,
) -> list[LagrangePoint]:
    """All five points, ordered L1..L5. ``config`` works as in :func:`calculate_lagrange_point`."""
    if config is not None:
        high_precision = config.high_precision
    points = [calculate_lagrange_point(system, t, high_precision) for t in LagrangePointType]
    logger.debug(
        "Computed Lagrange points (mu=%.6e, d=%.1f km, high_precision=%s)",
        system.mu, system.distance, high_precision,
    )
    return points
