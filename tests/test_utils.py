import json
import logging

import numpy as np
import pytest

from utils import block_average, load_config, setup_logging


def test_block_average_keeps_last_time_and_averages_remainder():
    rows = np.array([
        [0.1, 1.0],
        [0.2, 3.0],
        [0.3, 5.0],
        [0.4, 7.0],
        [0.5, 10.0],
    ])
    averaged = block_average(rows, 2)
    assert averaged.tolist() == [[0.2, 2.0], [0.4, 6.0], [0.5, 10.0]]


def test_block_average_of_one_is_identity():
    rows = np.array([[0.0, 1.0, 2.0], [1.0, 3.0, 4.0]])
    assert np.array_equal(block_average(rows, 1), rows)


def test_block_average_rejects_zero_length():
    with pytest.raises(ValueError):
        block_average(np.zeros((3, 2)), 0)


def test_load_config_round_trip(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'run_control': {'max_frames': 3}}))
    assert load_config(str(path)) == {'run_control': {'max_frames': 3}}


def test_load_config_reports_sections(tmp_path, caplog):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'run_control': {}, 'logging': {}, 'plotting': {}}))

    with caplog.at_level(logging.DEBUG):
        load_config(str(path))

    assert "Config sections: ['logging', 'plotting', 'run_control']" in caplog.text
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert 'plotting' in warnings[0].getMessage()


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.json'))


def test_load_config_bad_json(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"simulation_parameters": ')
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_setup_logging_installs_console_and_file_handlers(tmp_path):
    log_file = tmp_path / 'logs' / 'run.log'
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging({'logging': {'level': 'debug', 'log_file': str(log_file)}})
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert log_file.exists()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
