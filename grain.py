# grain.py
"""
State containers for the grains and floors of a sand-pillar run.

A pillar is a vertical chain of grains whose index order never changes.
Positions and velocities of all pillars live in two NumPy arrays of shape
(pillar_count, grains_per_pillar). A state is treated as a value: the
integrator never writes into the arrays of the state it was given, it
returns a fresh one.

Floors are horizontal planes. Each floor tracks, per pillar, which grain
is currently allowed to touch it and the last normal force it exerted.
"""
import logging
from typing import Dict, Any, List, NamedTuple

import numpy as np

from physics import PhysicalConstants, optional_param

# --- Data Contracts ---
#
# class SimulationState(NamedTuple):
#   - positions: float64 array (P, N), strictly increasing along axis 1.
#   - velocities: float64 array (P, N).
#   - to_vector() -> float64 array (2, P, N); from_vector() inverts it.
#
# class Floor:
#   - __init__(self, level: float, pillar_count: int, grains_per_pillar: int)
#   - contact_grain_index: int64 array (P,), starts at 0.
#   - normal_force: float64 array (P,), last spring+damper reaction.
#   - advance_contact_index(self, pillar: int) -> int
#     - Side Effects: increments the pillar's contact index, saturating at
#       the last grain index. Returns the new index.
#
# create_pillars(params, constants) -> (SimulationState, List[Floor]):
#   - Grains evenly spaced at the natural separation above the support
#     floor, velocities zero.


class SimulationState(NamedTuple):
    """Positions and velocities of every grain of every pillar."""
    positions: np.ndarray
    velocities: np.ndarray

    @property
    def pillar_count(self) -> int:
        return self.positions.shape[0]

    @property
    def grains_per_pillar(self) -> int:
        return self.positions.shape[1]

    def to_vector(self) -> np.ndarray:
        return np.stack((self.positions, self.velocities))

    @classmethod
    def from_vector(cls, vector: np.ndarray) -> 'SimulationState':
        return cls(vector[0], vector[1])


class StateDerivative(NamedTuple):
    """Per-grain increments over one time step (rate * dt)."""
    dpos: np.ndarray
    dvel: np.ndarray

    def to_vector(self) -> np.ndarray:
        return np.stack((self.dpos, self.dvel))


class Floor:
    """
    A rigid horizontal plane grains can rest on.
    """
    def __init__(self, level: float, pillar_count: int, grains_per_pillar: int):
        self.level = float(level)
        self.grains_per_pillar = grains_per_pillar
        self.contact_grain_index = np.zeros(pillar_count, dtype=np.int64)
        self.normal_force = np.zeros(pillar_count, dtype=np.float64)

    def advance_contact_index(self, pillar: int) -> int:
        """
        Lets the current contact grain of `pillar` fall through this floor.

        The next grain up becomes the one eligible for contact. The index
        never moves past the last grain of the pillar.
        """
        last = self.grains_per_pillar - 1
        index = min(int(self.contact_grain_index[pillar]) + 1, last)
        self.contact_grain_index[pillar] = index
        return index

    def reset_normal_force(self) -> None:
        self.normal_force[:] = 0.0

    def __repr__(self):
        return (
            f"Floor(level={self.level}, contact_grain_index="
            f"{self.contact_grain_index.tolist()})"
        )


def initial_positions(base: float, constants: PhysicalConstants) -> np.ndarray:
    offsets = np.arange(constants.grains_per_pillar, dtype=np.float64) * constants.natural_separation
    return np.tile(base + offsets, (constants.pillar_count, 1))


def create_pillars(params: Dict[str, Any], constants: PhysicalConstants):
    """
    Builds the initial state and the floors described by the configuration.

    A single floor sits at `floor_level`. When `neck_height` is given an
    upper orifice floor is added above it and the pillars start resting
    on that one instead.

    Args:
        params (Dict[str, Any]): Simulation parameters from config.
        constants (PhysicalConstants): Constants derived from the same params.

    Returns:
        Tuple[SimulationState, List[Floor]]: Floors are ordered bottom-up.
    """
    floor_level = float(optional_param(params, 'floor_level', 0.0))
    drop_height = float(optional_param(params, 'drop_height', constants.contact_threshold))
    shape = (constants.pillar_count, constants.grains_per_pillar)

    floors: List[Floor] = [Floor(floor_level, *shape)]
    neck_height = optional_param(params, 'neck_height')
    if neck_height is not None:
        floors.append(Floor(floor_level + float(neck_height), *shape))
    support = floors[-1]

    state = SimulationState(
        positions=initial_positions(support.level + drop_height, constants),
        velocities=np.zeros(shape, dtype=np.float64),
    )
    logging.info(
        f"Created {constants.pillar_count} pillar(s) of {constants.grains_per_pillar} "
        f"grain(s) on {len(floors)} floor(s)."
    )
    logging.debug(f"Floors: {floors}. Lowest grain starts at {support.level + drop_height:.6g} m.")
    return state, floors


def single_grain_state(position: float, velocity: float = 0.0) -> SimulationState:
    """A one-pillar, one-grain state for isolated contact studies."""
    return SimulationState(
        positions=np.array([[position]], dtype=np.float64),
        velocities=np.array([[velocity]], dtype=np.float64),
    )
