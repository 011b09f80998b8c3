# main.py
"""
Main entry point for the sand pillar simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json` (or the path given as the first
   command line argument).
2. Initializes the logging system.
3. Sets up the pillars, floors and diagnostics.
4. Runs the frame loop, optionally recording the supported weight.
5. Handles clean shutdown, or halts on a broken physical invariant.
"""
import logging
import os
import sys
import cProfile
import pstats
import io

import numpy as np

from constants import (
    DEFAULT_CONFIG_PATH, DEFAULT_LOG_THROTTLE_FRAMES, DEFAULT_MAX_FRAMES,
    RECORD_COLUMNS, RECORD_FORMAT
)
from errors import ConfigurationError, InvariantViolation
from utils import setup_logging, load_config


def open_record_file(path):
    record_dir = os.path.dirname(path)
    if record_dir:
        os.makedirs(record_dir, exist_ok=True)
    record = open(path, 'w')
    record.write('# ' + ' '.join(RECORD_COLUMNS) + '\n')
    logging.info(f"Recording diagnostics to {path}.")
    return record


def run(config) -> None:
    from driver import FrameDriver
    from physics import describe

    run_params = config.get('run_control', {})
    sim_params = config.get('simulation_parameters', {})

    driver = FrameDriver.from_config(config)
    logging.info(describe(driver.simulation.constants, sim_params.get('neck_height')))

    log_throttle = run_params.get('log_throttle_frames', DEFAULT_LOG_THROTTLE_FRAMES)
    max_frames = run_params.get('max_frames', DEFAULT_MAX_FRAMES)
    record_path = run_params.get('record_file')
    record = open_record_file(record_path) if record_path else None

    profiler = cProfile.Profile() if run_params.get('profile', False) else None
    initial_energy = driver.diagnostics().total_energy

    try:
        if profiler is not None:
            profiler.enable()
        for frame in range(1, max_frames + 1):
            diag = driver.run_frame()

            if record is not None:
                row = [
                    frame, diag.step_count, diag.time, diag.weight_sample,
                    diag.weight_fine, diag.weight_coarse, diag.total_energy
                ]
                np.savetxt(record, [row], fmt=RECORD_FORMAT)

            # Hot loops must throttle logs
            if frame % log_throttle == 0:
                logging.info(
                    f"Frame {frame}/{max_frames} | t={diag.time:.4f} s | steps={diag.step_count} | "
                    f"weight={diag.weight_fine:.6f} kg (coarse {diag.weight_coarse:.6f} kg)"
                )
                logging.debug(
                    f"Frame {frame} | Energy: {diag.total_energy:.10e} J "
                    f"(drift {diag.total_energy - initial_energy:+.3e} J)"
                )
    finally:
        if profiler is not None:
            profiler.disable()
        if record is not None:
            record.close()

    logging.info("Simulation loop finished.")

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")


def main():
    """
    The main function to run the simulation.
    """
    config_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        sys.exit(1)

    setup_logging(config)

    logging.info("--- Sand Pillar Simulation Starting ---")

    try:
        run(config)
    except ConfigurationError:
        # Already logged at CRITICAL where it was detected.
        sys.exit(2)
    except InvariantViolation as e:
        logging.critical(f"Halting: pillar {e.pillar}, grain {e.grain} broke a physical invariant.")
        sys.exit(1)

    logging.info("--- Sand Pillar Simulation Shutting Down ---")


if __name__ == "__main__":
    main()
