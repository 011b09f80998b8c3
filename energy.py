# energy.py
"""
Total mechanical energy of a pillar state, for monitoring integration error.

The energy is recomputed from scratch on every call and never fed back
into the dynamics. Gravitational energy is measured from the lowest floor.
"""
from typing import NamedTuple, Sequence

import numpy as np
from numba import jit

from contact import elastic_potential
from grain import Floor, SimulationState
from physics import PhysicalConstants


@jit(nopython=True)
def _elastic_energy_numba(positions, floor_levels, contact_index, k, threshold, separation):
    pillar_count, grain_count = positions.shape
    energy = 0.0
    for p in range(pillar_count):
        for i in range(grain_count - 1):
            gap = positions[p, i + 1] - positions[p, i]
            energy += elastic_potential(k, separation - gap)
        for f in range(floor_levels.shape[0]):
            i = contact_index[f, p]
            energy += elastic_potential(k, threshold - (positions[p, i] - floor_levels[f]))
    return energy


class EnergyBreakdown(NamedTuple):
    kinetic: float
    gravitational: float
    elastic: float

    @property
    def total(self) -> float:
        return self.kinetic + self.gravitational + self.elastic


class EnergyDiagnostic:
    """Kinetic + gravitational + elastic energy of a state."""
    def __init__(self, constants: PhysicalConstants):
        self.constants = constants

    def components(self, state: SimulationState, floors: Sequence[Floor]) -> EnergyBreakdown:
        const = self.constants
        reference = min(floor.level for floor in floors)
        kinetic = 0.5 * const.mass * float(np.sum(state.velocities ** 2))
        gravitational = const.mass * const.gravity * float(np.sum(state.positions - reference))
        elastic = _elastic_energy_numba(
            state.positions,
            np.array([floor.level for floor in floors], dtype=np.float64),
            np.stack([floor.contact_grain_index for floor in floors]),
            const.spring_constant, const.contact_threshold, const.natural_separation
        )
        return EnergyBreakdown(kinetic, gravitational, float(elastic))

    def total_energy(self, state: SimulationState, floors: Sequence[Floor]) -> float:
        return self.components(state, floors).total
