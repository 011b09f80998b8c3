# orifice.py
"""
Schedules grains draining through the hourglass orifice.

Each pillar releases its current contact grain from the orifice floor once
the time since its previous release exceeds a randomized interval. The
intervals are redrawn after every release, independently per pillar.
"""
import logging

import numpy as np

from constants import RELEASE_INTERVAL_SPREAD_HIGH, RELEASE_INTERVAL_SPREAD_LOW
from grain import Floor

# --- Data Contracts ---
#
# class OrificeScheduler:
#   - __init__(self, floor: Floor, release_interval: float, seed: int)
#   - update(self, time: float) -> int
#     - Side Effects: calls floor.advance_contact_index(p) for every pillar
#       whose interval elapsed and that still has a grain above its
#       contact grain. Returns the number of releases.
#   - Invariants: reproducible for a given seed and sequence of times.


class OrificeScheduler:
    """
    Drains the orifice floor one grain at a time per pillar.

    Release intervals are drawn uniformly around the mean `release_interval`.
    A pillar whose contact index already sits on its top grain is left alone.
    """
    def __init__(self, floor: Floor, release_interval: float, seed: int = 0):
        self.floor = floor
        self.release_interval = release_interval
        # All randomness in a run comes from this generator.
        self.rng = np.random.default_rng(seed)
        pillar_count = floor.contact_grain_index.shape[0]
        self.last_release = np.zeros(pillar_count, dtype=np.float64)
        self.intervals = self._draw(pillar_count)
        self.release_count = 0

    def _draw(self, size):
        return self.rng.uniform(
            RELEASE_INTERVAL_SPREAD_LOW * self.release_interval,
            RELEASE_INTERVAL_SPREAD_HIGH * self.release_interval,
            size=size,
        )

    def update(self, time: float) -> int:
        elapsed = time - self.last_release > self.intervals
        # The top grain of a pillar never drains.
        draining = self.floor.contact_grain_index < self.floor.grains_per_pillar - 1
        due = np.flatnonzero(elapsed & draining)
        for pillar in due:
            index = self.floor.advance_contact_index(int(pillar))
            self.last_release[pillar] = time
            self.intervals[pillar] = self._draw(None)
            logging.debug(f"t={time:.6f}: pillar {pillar} released, contact grain now {index}.")
        self.release_count += len(due)
        return len(due)
