# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the equation of motion of a set of 1-D sand pillars,
a generic fourth-order Runge-Kutta step, and the Simulation class that
owns the state, the floors and the clock and advances them together.
"""
import logging
from typing import Callable, List, Sequence, Tuple

import numpy as np
from numba import jit

from contact import damper_force, is_in_contact, spring_force
from errors import InvariantViolation
from grain import Floor, SimulationState, StateDerivative, create_pillars
from physics import Clock, PhysicalConstants

# --- Data Contracts ---
#
# class EquationOfMotion:
#   - evaluate(self, state, floors, dt) -> StateDerivative:
#     - Outputs: dpos = vel * dt, dvel = (force / mass) * dt per grain.
#     - Side Effects: overwrites floor.normal_force[p] for every floor
#       whose contact grain is currently in contact. Floors out of contact
#       are left untouched.
#     - Raises: InvariantViolation when two neighbours have a
#       non-positive gap or a contact grain sits on/below its floor.
#
# rk4_step(derivative, y, dt) -> ndarray:
#   - derivative(y, dt) returns increments already scaled by dt.
#
# class RK4Integrator:
#   - advance(self, state, floors, clock) -> (SimulationState, Clock)
#     - Side Effects: floor normal forces are zeroed first and afterwards
#       hold the last write of the four stages.
#
# class Simulation:
#   - step(self) -> None: one atomic advance of state and clock.

STATUS_OK = 0
STATUS_NEIGHBOR_CROSSED = 1
STATUS_FLOOR_PENETRATED = 2


@jit(nopython=True)
def _evaluate_numba(
    positions, velocities, floor_levels, contact_index, normal_force,
    mass, gravity, k, c, threshold, separation, dt, dpos, dvel
):
    """
    Numba-jitted force accumulation over every grain of every pillar.

    Writes the increments into `dpos` and `dvel`, and the floor reactions
    into `normal_force`. Returns (status, pillar, grain, floor); on a
    violation the outputs are left partially written.
    """
    pillar_count, grain_count = positions.shape
    floor_count = floor_levels.shape[0]
    weight = mass * gravity

    for p in range(pillar_count):
        for i in range(grain_count):
            pos_i = positions[p, i]
            vel_i = velocities[p, i]
            force_total = 0.0

            # Upper neighbour
            if i < grain_count - 1:
                gap = positions[p, i + 1] - pos_i
                if gap <= 0.0:
                    return STATUS_NEIGHBOR_CROSSED, p, i, -1
                overlap = separation - gap
                if is_in_contact(overlap):
                    # k * (gap - separation)
                    force_total -= spring_force(k, overlap)
                    force_total += damper_force(c, vel_i - velocities[p, i + 1])

            # Lower neighbour
            if i > 0:
                gap = pos_i - positions[p, i - 1]
                if gap <= 0.0:
                    return STATUS_NEIGHBOR_CROSSED, p, i - 1, -1
                overlap = separation - gap
                if is_in_contact(overlap):
                    force_total += spring_force(k, overlap)
                    force_total += damper_force(c, vel_i - velocities[p, i - 1])

            for f in range(floor_count):
                if contact_index[f, p] != i:
                    continue
                dist = pos_i - floor_levels[f]
                if dist <= 0.0:
                    return STATUS_FLOOR_PENETRATED, p, i, f
                overlap = threshold - dist
                if is_in_contact(overlap):
                    reaction = spring_force(k, overlap) + damper_force(c, vel_i)
                    normal_force[f, p] = reaction
                    force_total += reaction

            force_total -= weight

            dpos[p, i] = vel_i * dt
            dvel[p, i] = force_total / mass * dt

    return STATUS_OK, -1, -1, -1


class EquationOfMotion:
    """
    Gravity plus one-sided spring-damper contacts between neighbours and
    with the floors.
    """
    def __init__(self, constants: PhysicalConstants):
        self.constants = constants

    def evaluate(self, state: SimulationState, floors: Sequence[Floor], dt: float) -> StateDerivative:
        const = self.constants
        floor_levels = np.array([floor.level for floor in floors], dtype=np.float64)
        contact_index = np.stack([floor.contact_grain_index for floor in floors])
        normal_force = np.stack([floor.normal_force for floor in floors])
        dpos = np.empty_like(state.positions)
        dvel = np.empty_like(state.velocities)

        status, pillar, grain, floor = _evaluate_numba(
            state.positions, state.velocities, floor_levels, contact_index, normal_force,
            const.mass, const.gravity, const.spring_constant, const.damping_constant,
            const.contact_threshold, const.natural_separation, dt, dpos, dvel
        )
        if status != STATUS_OK:
            self._fail(state, floors, status, pillar, grain, floor)

        for f, target in enumerate(floors):
            target.normal_force[:] = normal_force[f]
        return StateDerivative(dpos, dvel)

    @staticmethod
    def _fail(state, floors, status, pillar, grain, floor):
        positions = state.positions[pillar]
        if status == STATUS_NEIGHBOR_CROSSED:
            msg = (
                f"Invariant violation: grains {grain} and {grain + 1} of pillar {pillar} "
                f"crossed (positions {positions[grain]!r} and {positions[grain + 1]!r})."
            )
        else:
            msg = (
                f"Invariant violation: grain {grain} of pillar {pillar} reached floor {floor} "
                f"(position {positions[grain]!r}, floor level {floors[floor].level!r})."
            )
            logging.debug(f"Floor state at violation: {floors[floor]}")
        logging.critical(msg)
        raise InvariantViolation(msg, pillar, grain, None if floor < 0 else floor)


def rk4_step(derivative: Callable[[np.ndarray, float], np.ndarray], y: np.ndarray, dt: float) -> np.ndarray:
    """
    Classic fourth-order Runge-Kutta step over an arbitrary state vector.

    `derivative` returns increments already multiplied by dt, so the stage
    offsets are plain fractions of the previous stage.
    """
    k1 = derivative(y, dt)
    k2 = derivative(y + 0.5 * k1, dt)
    k3 = derivative(y + 0.5 * k2, dt)
    k4 = derivative(y + 1.0 * k3, dt)
    return y + (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


class RK4Integrator:
    """Advances a pillar state and its clock by one time step."""
    def __init__(self, equation: EquationOfMotion):
        self.equation = equation

    def advance(self, state: SimulationState, floors: Sequence[Floor], clock: Clock) -> Tuple[SimulationState, Clock]:
        for floor in floors:
            floor.reset_normal_force()

        def derivative(y, dt):
            return self.equation.evaluate(SimulationState.from_vector(y), floors, dt).to_vector()

        y = rk4_step(derivative, state.to_vector(), clock.dt)
        return SimulationState.from_vector(y), clock.tick()


class Simulation:
    """
    Owns the pillar state, the floors and the clock of one run.
    """
    def __init__(self, constants: PhysicalConstants, state: SimulationState, floors: List[Floor]):
        """
        Initializes the simulation environment.

        Args:
            constants (PhysicalConstants): Derived physical constants.
            state (SimulationState): Initial positions and velocities.
            floors (List[Floor]): Floors ordered bottom-up, one or two.
        """
        if not 1 <= len(floors) <= 2:
            raise ValueError(f"Expected one or two floors, got {len(floors)}.")
        self.constants = constants
        self.state = state
        self.floors = floors
        self.clock = Clock(dt=constants.dt)
        self.integrator = RK4Integrator(EquationOfMotion(constants))

        logging.info(f"Simulation initialized with dt={constants.dt:.6g} s.")

    @classmethod
    def from_params(cls, params) -> 'Simulation':
        constants = PhysicalConstants.from_params(params)
        state, floors = create_pillars(params, constants)
        return cls(constants, state, floors)

    @property
    def time(self) -> float:
        return self.clock.time

    @property
    def step_count(self) -> int:
        return self.clock.step_count

    def step(self) -> None:
        """
        Executes one time step of the simulation.
        """
        self.state, self.clock = self.integrator.advance(self.state, self.floors, self.clock)

    def supported_weight(self) -> float:
        """Net floor normal force expressed as a mass (kg)."""
        total = sum(float(floor.normal_force.sum()) for floor in self.floors)
        return total / self.constants.gravity
