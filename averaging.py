# averaging.py
"""
Hierarchical moving average with O(1) memory.

Raw samples fill a buffer of size M. Each time a level's buffer is full
its mean is appended to the next level up and the level is cleared. The
top level is never cleared: its cursor wraps around and its contents stay
available as a rolling history. With the default depth of three, the
first-level readout averages M samples and the second-level readout
averages M*M samples.
"""
import logging
import math
from typing import List

import numpy as np

from constants import AVERAGING_DEPTH
from physics import averaging_buffer_size

# --- Data Contracts ---
#
# class MovingAverage:
#   - __init__(self, buffer_size: int, depth: int = AVERAGING_DEPTH)
#   - register(self, sample: float) -> None
#     - Side Effects: may cascade one emitted mean per level.
#   - latest(self, level: int) -> float: last mean emitted into `level`
#     (level >= 1), NaN until the first emission.
#   - fine / coarse: latest(1) / latest(2).
#   - Invariants: every cursor stays in [0, buffer_size).


class MovingAverage:
    """
    Cascaded fixed-size circular buffers of sample means.
    """
    def __init__(self, buffer_size: int, depth: int = AVERAGING_DEPTH):
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {buffer_size}")
        if depth < 2:
            raise ValueError(f"depth must be >= 2, got {depth}")
        self.buffer_size = buffer_size
        self.depth = depth
        self.buffers = np.zeros((depth, buffer_size), dtype=np.float64)
        self.cursors = [0] * depth
        self._latest = [math.nan] * depth
        self.sample_count = 0

    @classmethod
    def for_time_span(cls, averaging_time_span: float, dt: float, depth: int = AVERAGING_DEPTH) -> 'MovingAverage':
        buffer_size = averaging_buffer_size(averaging_time_span, dt)
        logging.info(
            f"Moving average: {buffer_size} samples per level, {depth} levels "
            f"(coarsest window {buffer_size ** (depth - 1) * dt:.4g} s)."
        )
        return cls(buffer_size, depth)

    def register(self, sample: float) -> None:
        self.sample_count += 1
        value = float(sample)
        for level in range(self.depth):
            self.buffers[level, self.cursors[level]] = value
            self._latest[level] = value
            self.cursors[level] += 1
            if self.cursors[level] < self.buffer_size:
                return
            self.cursors[level] = 0
            if level == self.depth - 1:
                return
            value = float(self.buffers[level].mean())
            self.buffers[level, :] = 0.0

    def latest(self, level: int) -> float:
        """Most recent value written into `level` (0 is the raw sample)."""
        return self._latest[level]

    @property
    def fine(self) -> float:
        return self.latest(1)

    @property
    def coarse(self) -> float:
        return self.latest(2)

    def history(self, level: int) -> List[float]:
        """Filled entries of a level in write order, oldest first."""
        buffer = self.buffers[level]
        cursor = self.cursors[level]
        if level == self.depth - 1 and self._wrapped_top():
            return np.concatenate((buffer[cursor:], buffer[:cursor])).tolist()
        return buffer[:cursor].tolist()

    def _wrapped_top(self) -> bool:
        return self.sample_count >= self.buffer_size ** self.depth
