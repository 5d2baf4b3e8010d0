"""Kinematic state of a propagated body."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from orbitcore.core.vectors import as_vector, zero3


@dataclass(frozen=True, eq=False)
class PhysicsState:
    """Position, velocity and acceleration of a body at a point in time.

    Attributes:
        position: [x, y, z] position in km.
        velocity: [vx, vy, vz] velocity in km/s.
        acceleration: [ax, ay, az] acceleration in km/s².
        mass: Body mass in kg. A normalized mass of 1 is permitted.
        time: Simulation time in seconds.
    """

    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    acceleration: NDArray[np.float64] = dataclasses.field(default_factory=zero3)
    mass: float = 1.0
    time: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vector(self.position))
        object.__setattr__(self, "velocity", as_vector(self.velocity))
        object.__setattr__(self, "acceleration", as_vector(self.acceleration))

    def evolve(self, **changes) -> PhysicsState:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)
