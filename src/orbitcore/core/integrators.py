"""Fixed-step numerical integrators.

Each integrator takes a state, a force function and a time step and returns a
new state. Force functions return force (not acceleration); the integrators
divide by mass once. No input validation happens here, so NaN or Inf inputs
come out as NaN or Inf.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray

from orbitcore.core.state import PhysicsState
from orbitcore.core.vectors import add, divide, scale

ForceFunction = Callable[[PhysicsState], NDArray[np.float64]]


def integrate_euler(state: PhysicsState, forces: ForceFunction, dt: float) -> PhysicsState:
    """Advance one step with semi-implicit (symplectic) Euler.

    The velocity is updated first and the new velocity moves the position,
    which keeps the energy error bounded for periodic motion.

    Args:
        state: Current state.
        forces: Total force acting on the body.
        dt: Time step in seconds.

    Returns:
        State at ``state.time + dt``.
    """
    acceleration = divide(forces(state), state.mass)
    velocity = add(state.velocity, scale(acceleration, dt))
    position = add(state.position, scale(velocity, dt))
    return state.evolve(
        position=position,
        velocity=velocity,
        acceleration=acceleration,
        time=state.time + dt,
    )


def integrate_verlet(
    state: PhysicsState,
    prev_position: NDArray[np.float64],
    forces: ForceFunction,
    dt: float,
) -> tuple[PhysicsState, NDArray[np.float64]]:
    """Advance one step with position Verlet.

    The caller tracks the previous position between calls. Velocity is the
    central difference ``(x' - x_prev) / 2dt``.

    Args:
        state: Current state.
        prev_position: Position one step before ``state``.
        forces: Total force acting on the body.
        dt: Time step in seconds.

    Returns:
        Tuple of (new state, position to pass as ``prev_position`` next call).
    """
    acceleration = divide(forces(state), state.mass)
    position = add(
        np.subtract(np.multiply(state.position, 2.0), prev_position),
        scale(acceleration, dt * dt),
    )
    velocity = divide(np.subtract(position, prev_position), 2.0 * dt)
    new_state = state.evolve(
        position=position,
        velocity=velocity,
        acceleration=acceleration,
        time=state.time + dt,
    )
    return new_state, state.position


def verlet_start(state: PhysicsState, forces: ForceFunction, dt: float) -> NDArray[np.float64]:
    """Previous position for the first Verlet step, from a backward Taylor step."""
    acceleration = divide(forces(state), state.mass)
    return add(
        np.subtract(state.position, np.multiply(state.velocity, dt)),
        scale(acceleration, 0.5 * dt * dt),
    )


def integrate_rk4(state: PhysicsState, forces: ForceFunction, dt: float) -> PhysicsState:
    """Advance one step with classical fourth-order Runge-Kutta.

    Forces are evaluated at t, t+dt/2, t+dt/2 and t+dt. The weighted averages
    ``(k1 + 2k2 + 2k3 + k4) / 6`` of acceleration and velocity update the
    velocity and position respectively.
    """

    def evaluate(dv: NDArray, dx: NDArray, h: float) -> tuple[NDArray, NDArray]:
        trial = state.evolve(
            position=add(state.position, scale(dx, h)),
            velocity=add(state.velocity, scale(dv, h)),
            time=state.time + h,
        )
        return divide(forces(trial), trial.mass), trial.velocity

    a1, v1 = evaluate(np.zeros(3), np.zeros(3), 0.0)
    a2, v2 = evaluate(a1, v1, dt / 2.0)
    a3, v3 = evaluate(a2, v2, dt / 2.0)
    a4, v4 = evaluate(a3, v3, dt)

    acceleration = divide(a1 + 2.0 * a2 + 2.0 * a3 + a4, 6.0)
    mean_velocity = divide(v1 + 2.0 * v2 + 2.0 * v3 + v4, 6.0)

    return state.evolve(
        position=add(state.position, scale(mean_velocity, dt)),
        velocity=add(state.velocity, scale(acceleration, dt)),
        acceleration=acceleration,
        time=state.time + dt,
    )
