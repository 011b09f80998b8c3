# errors.py
"""
Exception types raised by the simulation core.

Two categories exist. A ConfigurationError is raised while deriving the
physical constants, before any stepping happens. An InvariantViolation is
raised from inside the integrator when the state stops being physically
meaningful (grains crossed, or a grain passed through its floor). The
latter is never caught by the core; the entry point turns it into process
termination, while tests intercept it directly.
"""
from typing import Optional


class ConfigurationError(ValueError):
    """Inconsistent or out-of-range configuration input."""


class InvariantViolation(RuntimeError):
    """A physical invariant of the pillar state was broken."""

    def __init__(self, message: str, pillar: int, grain: int, floor: Optional[int] = None):
        super().__init__(message)
        self.pillar = pillar
        self.grain = grain
        self.floor = floor
