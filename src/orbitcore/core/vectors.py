"""Fixed-size vector algebra for 2D and 3D quantities.

Vectors are numpy arrays of shape (3,) or (2,). Every function returns a new
read-only array and never modifies its inputs. Degenerate cases (normalizing
or dividing a zero vector) return the zero vector instead of raising.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np
from numpy.typing import NDArray

Vec3 = NDArray[np.float64]
Vec2 = NDArray[np.float64]
Matrix3 = NDArray[np.float64]

_EPSILON = 1e-12


def _freeze(values: Iterable[float] | NDArray) -> NDArray[np.float64]:
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


def vec3(x: float, y: float, z: float) -> Vec3:
    """Build an immutable 3-vector."""
    return _freeze((x, y, z))


def vec2(x: float, y: float) -> Vec2:
    """Build an immutable 2-vector."""
    return _freeze((x, y))


def as_vector(values: Iterable[float] | NDArray) -> NDArray[np.float64]:
    """Coerce a sequence (tuple, list, array) to an immutable vector."""
    return _freeze(values)


def zero3() -> Vec3:
    return _freeze((0.0, 0.0, 0.0))


def zero2() -> Vec2:
    return _freeze((0.0, 0.0))


def add(a: NDArray, b: NDArray) -> NDArray[np.float64]:
    return _freeze(np.add(a, b))


def sub(a: NDArray, b: NDArray) -> NDArray[np.float64]:
    return _freeze(np.subtract(a, b))


def scale(a: NDArray, s: float) -> NDArray[np.float64]:
    return _freeze(np.multiply(a, s))


def divide(a: NDArray, s: float) -> NDArray[np.float64]:
    """Divide by a scalar; a zero divisor yields the zero vector."""
    if s == 0.0:
        return _freeze(np.zeros_like(a, dtype=np.float64))
    return _freeze(np.divide(a, s))


def negate(a: NDArray) -> NDArray[np.float64]:
    return _freeze(np.negative(a))


def dot(a: NDArray, b: NDArray) -> float:
    return float(np.dot(a, b))


def cross(a: NDArray, b: NDArray) -> Vec3 | float:
    """Cross product.

    For 3-vectors returns a 3-vector. For 2-vectors returns the scalar
    z-component of the embedded 3D cross product.
    """
    if len(a) == 2:
        return float(a[0] * b[1] - a[1] * b[0])
    return _freeze((
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    ))


def magnitude(a: NDArray) -> float:
    return math.sqrt(float(np.dot(a, a)))


def normalize(a: NDArray) -> NDArray[np.float64]:
    """Unit vector along ``a``; the zero vector for (near-)zero input."""
    mag = magnitude(a)
    if mag < _EPSILON:
        return _freeze(np.zeros_like(a, dtype=np.float64))
    return _freeze(np.divide(a, mag))


def distance(a: NDArray, b: NDArray) -> float:
    return magnitude(np.subtract(a, b))


def lerp(a: NDArray, b: NDArray, t: float) -> NDArray[np.float64]:
    """Linear interpolation, ``a`` at t=0 and ``b`` at t=1."""
    return _freeze(np.add(a, np.multiply(np.subtract(b, a), t)))


def project(a: NDArray, onto: NDArray) -> NDArray[np.float64]:
    """Vector projection of ``a`` onto ``onto``; zero if ``onto`` is zero."""
    denom = float(np.dot(onto, onto))
    if denom < _EPSILON * _EPSILON:
        return _freeze(np.zeros_like(a, dtype=np.float64))
    return _freeze(np.multiply(onto, float(np.dot(a, onto)) / denom))


def reflect(a: NDArray, normal: NDArray) -> NDArray[np.float64]:
    """Reflect ``a`` about the plane with the given normal."""
    n = normalize(normal)
    return _freeze(np.subtract(a, np.multiply(n, 2.0 * float(np.dot(a, n)))))


def angle_between(a: NDArray, b: NDArray) -> float:
    """Angle between two vectors in radians, 0 if either is zero."""
    mag = magnitude(a) * magnitude(b)
    if mag < _EPSILON:
        return 0.0
    cos_theta = float(np.dot(a, b)) / mag
    return math.acos(max(-1.0, min(1.0, cos_theta)))


# --- Elementary rotations (passive / frame convention) ---

def rot1(angle: float) -> Matrix3:
    """Frame rotation about the x-axis by ``angle`` radians."""
    c, s = math.cos(angle), math.sin(angle)
    return _freeze((
        (1.0, 0.0, 0.0),
        (0.0, c, s),
        (0.0, -s, c),
    ))


def rot3(angle: float) -> Matrix3:
    """Frame rotation about the z-axis by ``angle`` radians."""
    c, s = math.cos(angle), math.sin(angle)
    return _freeze((
        (c, s, 0.0),
        (-s, c, 0.0),
        (0.0, 0.0, 1.0),
    ))


def apply(matrix: Matrix3, v: NDArray) -> Vec3:
    """Matrix-vector product."""
    return _freeze(np.asarray(matrix) @ np.asarray(v))
