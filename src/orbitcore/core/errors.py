"""Error types raised by orbitcore.

Each error also derives from the built-in exception a caller would catch
for the same problem, so ``except ValueError`` keeps working.
"""

from __future__ import annotations


class OrbitcoreError(Exception):
    """Base class for all orbitcore errors."""


class CoordinateValidationError(OrbitcoreError, ValueError):
    """A coordinate is non-finite or outside its documented range."""


class FrameMismatchError(OrbitcoreError, TypeError):
    """A vector tagged with one reference frame was passed where another is required."""


class InvalidOrbitError(OrbitcoreError, ValueError):
    """Orbital elements or a derived state describe an unusable trajectory."""


class ConvergenceError(OrbitcoreError, RuntimeError):
    """An iterative solver exhausted its iteration cap.

    Attributes:
        iterations: Number of iterations performed.
        last_step: Magnitude of the final Newton step.
        value: Best iterate at the time the cap was hit.
    """

    def __init__(self, message: str, iterations: int, last_step: float, value: float) -> None:
        super().__init__(message)
        self.iterations = iterations
        self.last_step = last_step
        self.value = value
