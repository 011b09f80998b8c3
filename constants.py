# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as the default
configuration path, run-loop throttling or core physics settings that are
not part of the experimental configuration.
"""

# Standard gravity (m/s^2), used when the config does not override it.
STANDARD_GRAVITY = 9.80665

DEFAULT_CONFIG_PATH = 'config.json'
# Top-level sections of config.json.
CONFIG_SECTIONS = ('simulation_parameters', 'run_control', 'logging')

# --- Run control defaults ---
# Number of RK4 advances performed back-to-back before each report.
DEFAULT_STEPS_PER_FRAME = 100
DEFAULT_MAX_FRAMES = 1000
# Emit one INFO line every N frames.
DEFAULT_LOG_THROTTLE_FRAMES = 10

# --- Moving average ---
# Raw samples -> first-level averages -> second-level averages.
AVERAGING_DEPTH = 3

# --- Orifice release ---
# Release intervals are drawn uniformly from
# [LOW, HIGH] * release_interval for every pillar independently.
RELEASE_INTERVAL_SPREAD_LOW = 0.5
RELEASE_INTERVAL_SPREAD_HIGH = 1.5

# Column layout of the sand-weight record file. Time is column 3 and the
# raw weight sample is column 4 (1-based), matching the plotting scripts.
RECORD_COLUMNS = (
    'frame', 'step_count', 'time', 'weight_sample',
    'weight_fine', 'weight_coarse', 'total_energy'
)
RECORD_FORMAT = '%d %d %.8f %.8f %.8f %.8f %.10e'
