# physics.py
"""
Derives the immutable physical constants of a sand-pillar run.

All constants are computed once from the plain numeric configuration and
are never mutated afterwards. The spring stiffness is chosen so that the
contact oscillation period matches the shorter of a target period and the
free-fall timescale of a grain, and the time step is a fixed fraction of
that period.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Any, Optional

from constants import STANDARD_GRAVITY
from errors import ConfigurationError

# --- Data Contracts ---
#
# PhysicalConstants.from_params(params: Dict[str, Any]) -> PhysicalConstants:
#   - Inputs:
#     - params: Dictionary of simulation parameters from config.json.
#       - "grains_per_pillar": int (>= 1)
#       - "pillar_count": int (>= 1)
#       - "total_mass": float (> 0), kg
#       - "grain_radius": float (> 0), m
#       - Optional keys set to null fall back to their defaults.
#       - "gravity": float (> 0), optional
#       - "damping_ratio": float (>= 0), 1.0 is critical damping
#       - "control_coefficient": float (> 0)
#       - "averaging_time_span": float (> 0), s
#       - "drop_height": float (> 0), optional
#       - "neck_height": float (> 0) or None, optional
#       - "spring_period_target": float (> 0) or None, optional
#   - Outputs: a frozen PhysicalConstants instance.
#   - Side Effects: logs the derived values.
#   - Invariants: identical params yield bit-identical constants.
#
# class Clock:
#   - tick(self) -> Clock: a new clock, one step and one dt later.


@dataclass(frozen=True)
class PhysicalConstants:
    """Constants shared by the equation of motion and the diagnostics."""
    grains_per_pillar: int
    pillar_count: int
    mass: float
    gravity: float
    grain_radius: float
    spring_constant: float
    damping_constant: float
    damping_ratio: float
    contact_threshold: float
    natural_separation: float
    free_fall_velocity: float
    fall_timescale: float
    spring_period: float
    dt: float

    @property
    def critical_damping(self) -> float:
        return 2.0 * math.sqrt(self.mass * self.spring_constant)

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> 'PhysicalConstants':
        """
        Validates the configuration and derives every constant from it.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.

        Raises:
            ConfigurationError: If any input is missing or out of range.
        """
        validate_params(params)

        grains = int(params['grains_per_pillar'])
        pillars = int(optional_param(params, 'pillar_count', 1))
        gravity = float(optional_param(params, 'gravity', STANDARD_GRAVITY))
        radius = float(params['grain_radius'])
        mass = float(params['total_mass']) / (grains * pillars)

        free_fall_velocity = math.sqrt(2.0 * gravity * fall_height(params))
        fall_timescale = radius / free_fall_velocity

        tau = fall_timescale
        target = optional_param(params, 'spring_period_target')
        if target is not None:
            tau = min(float(target), fall_timescale)

        spring_constant = mass * (2.0 * math.pi / tau) ** 2
        damping_ratio = float(optional_param(params, 'damping_ratio', 1.0))
        damping_constant = damping_ratio * 2.0 * math.sqrt(mass * spring_constant)
        spring_period = 2.0 * math.pi * math.sqrt(mass / spring_constant)
        dt = float(params['control_coefficient']) * min(spring_period, fall_timescale)

        constants = cls(
            grains_per_pillar=grains,
            pillar_count=pillars,
            mass=mass,
            gravity=gravity,
            grain_radius=radius,
            spring_constant=spring_constant,
            damping_constant=damping_constant,
            damping_ratio=damping_ratio,
            contact_threshold=radius,
            natural_separation=2.0 * radius,
            free_fall_velocity=free_fall_velocity,
            fall_timescale=fall_timescale,
            spring_period=spring_period,
            dt=dt,
        )
        logging.info(
            f"Physical constants derived: m={mass:.6g} kg, k={spring_constant:.6g} N/m, "
            f"c={damping_constant:.6g} N s/m, dt={dt:.6g} s."
        )
        logging.debug(
            f"Free-fall velocity {free_fall_velocity:.6g} m/s, fall timescale "
            f"{fall_timescale:.6g} s, spring period {spring_period:.6g} s."
        )
        return constants

    def with_time_step(self, dt: float) -> 'PhysicalConstants':
        """Returns a copy integrating with a different time step."""
        if dt <= 0:
            raise ConfigurationError(f"Time step must be positive, got {dt}.")
        return replace(self, dt=dt)


def fall_height(params: Dict[str, Any]) -> float:
    """Largest free fall a grain makes before hitting a floor."""
    drop = float(optional_param(params, 'drop_height', params['grain_radius']))
    neck = optional_param(params, 'neck_height')
    if neck is None:
        return drop
    return max(drop, float(neck))


def optional_param(params: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Reads an optional key, treating an explicit null like a missing key."""
    value = params.get(key)
    return default if value is None else value


def _reject(msg: str) -> None:
    logging.critical(msg)
    raise ConfigurationError(msg)


def _require_number(key: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _reject(f"Configuration error: '{key}' must be a number, got {value!r}.")


def _require_positive(params: Dict[str, Any], key: str, optional: bool = False) -> None:
    value = params.get(key)
    if value is None:
        if not optional:
            _reject(f"Configuration error: '{key}' is required.")
        return
    _require_number(key, value)
    if not value > 0:
        _reject(f"Configuration error: '{key}' must be positive, got {value}.")


def validate_params(params: Dict[str, Any]) -> None:
    """Rejects inconsistent configuration before anything is derived from it."""
    for key, default in (('grains_per_pillar', None), ('pillar_count', 1)):
        value = optional_param(params, key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            _reject(f"Configuration error: '{key}' must be an integer >= 1, got {value!r}.")

    for key in ('total_mass', 'grain_radius', 'control_coefficient', 'averaging_time_span'):
        _require_positive(params, key)
    for key in ('gravity', 'drop_height', 'neck_height', 'spring_period_target', 'release_interval'):
        _require_positive(params, key, optional=True)

    damping_ratio = optional_param(params, 'damping_ratio', 1.0)
    _require_number('damping_ratio', damping_ratio)
    if damping_ratio < 0:
        _reject(f"Configuration error: 'damping_ratio' must be >= 0, got {damping_ratio}.")

    neck = params.get('neck_height')
    if neck is not None and neck <= 2.0 * params['grain_radius']:
        _reject(
            f"Configuration error: 'neck_height' ({neck}) must exceed one grain "
            f"diameter ({2.0 * params['grain_radius']})."
        )


@dataclass(frozen=True)
class Clock:
    """Simulation time and step counter, advanced once per RK4 call."""
    dt: float
    time: float = 0.0
    step_count: int = 0

    def tick(self) -> 'Clock':
        return Clock(dt=self.dt, time=self.time + self.dt, step_count=self.step_count + 1)


def averaging_buffer_size(averaging_time_span: float, dt: float) -> int:
    """Buffer length M such that M*M samples span roughly the given time."""
    return max(1, int(round(math.sqrt(averaging_time_span / dt))))


def describe(constants: PhysicalConstants, neck_height: Optional[float] = None) -> str:
    """Return a human-readable summary of the derived constants."""
    summary = f"""
Sand Pillar Configuration:
==========================
Pillars: {constants.pillar_count} x {constants.grains_per_pillar} grains
Grain mass: {constants.mass:.6g} kg, radius: {constants.grain_radius:.6g} m
Gravity: {constants.gravity} m/s^2
Spring constant: {constants.spring_constant:.6g} N/m (period {constants.spring_period:.6g} s)
Damping constant: {constants.damping_constant:.6g} N s/m (ratio {constants.damping_ratio})
Time step: {constants.dt:.6g} s
"""
    if neck_height is not None:
        summary += f"Hourglass neck height: {neck_height} m\n"
    return summary
