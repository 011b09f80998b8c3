# utils.py
"""
Utility functions for the simulation framework.

This module provides helper functions, such as logging setup, config
loading and post-processing of recorded data, that are used across the
application but do not belong to the physics itself.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

import numpy as np

from constants import CONFIG_SECTIONS

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys.
#   - Side Effects: Configures the root Python logger with a console
#     handler and a rotating file handler.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Side Effects: logs the section names found and warns about any
#     section other than simulation_parameters, run_control and logging.
#   - Raises: FileNotFoundError, json.JSONDecodeError (logged first).
#
# block_average(rows: ndarray (R, C), n: int) -> ndarray (ceil(R/n), C):
#   - Column 0 keeps the last value of each block (the time stamp), the
#     other columns are averaged. A trailing partial block is averaged
#     over the rows it has.


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/simulation.log')

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
        logging.debug(f"Config sections: {sorted(config)}")
        for section in sorted(set(config) - set(CONFIG_SECTIONS)):
            logging.warning(f"Ignoring unknown config section '{section}'.")
        return config
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise


def block_average(rows: np.ndarray, n: int) -> np.ndarray:
    """
    Averages consecutive blocks of `n` rows of (time, value...) data.

    Used to thin out a recorded weight signal before plotting it.
    """
    if n < 1:
        raise ValueError(f"Block length must be >= 1, got {n}")
    rows = np.atleast_2d(np.asarray(rows, dtype=np.float64))
    blocks = []
    for start in range(0, rows.shape[0], n):
        block = rows[start:start + n]
        averaged = block.mean(axis=0)
        averaged[0] = block[-1, 0]
        blocks.append(averaged)
    if not blocks:
        return np.empty((0, rows.shape[1]))
    return np.array(blocks)
