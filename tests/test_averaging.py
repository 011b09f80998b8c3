import math

import pytest

from averaging import MovingAverage


def test_readouts_are_nan_until_first_emission():
    average = MovingAverage(4)
    for _ in range(3):
        average.register(1.0)
    assert math.isnan(average.fine)
    assert math.isnan(average.coarse)
    assert average.latest(0) == 1.0


def test_constant_input_converges_on_both_levels():
    m = 7
    average = MovingAverage(m)
    for _ in range(m * m):
        average.register(0.35)
    assert average.fine == pytest.approx(0.35)
    assert average.coarse == pytest.approx(0.35)


def test_first_level_emits_block_means():
    average = MovingAverage(3)
    for sample in (1.0, 2.0, 6.0):
        average.register(sample)
    assert average.fine == pytest.approx(3.0)
    assert average.cursors == [0, 1, 0]
    assert average.history(0) == []
    assert average.history(1) == [3.0]

    for sample in (0.0, 0.0, 0.0, 3.0, 3.0, 3.0):
        average.register(sample)
    assert average.fine == pytest.approx(3.0)
    assert average.coarse == pytest.approx(2.0)
    # The first level was cleared after emitting.
    assert average.history(1) == []
    assert list(average.buffers[1]) == [0.0, 0.0, 0.0]


def test_top_level_wraps_and_keeps_history():
    m = 2
    average = MovingAverage(m)
    value = 0.0
    for block in range(m ** 3 + m):
        value = float(block)
        for _ in range(m):
            average.register(value)

    # Top level holds the two most recent second-level means, oldest first.
    history = average.history(2)
    assert len(history) == m
    assert history[0] < history[1]
    assert average.coarse == history[-1]


def test_single_sample_buffer_passes_values_through():
    average = MovingAverage(1)
    average.register(2.5)
    assert average.fine == 2.5
    assert average.coarse == 2.5


def test_for_time_span_sizes_buffer():
    average = MovingAverage.for_time_span(1.0, 0.0001)
    assert average.buffer_size == 100
    assert average.depth == 3


@pytest.mark.parametrize('buffer_size, depth', [(0, 3), (4, 1)])
def test_rejects_degenerate_shapes(buffer_size, depth):
    with pytest.raises(ValueError):
        MovingAverage(buffer_size, depth)
