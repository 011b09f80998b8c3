import math

import pytest

from errors import ConfigurationError
from physics import Clock, PhysicalConstants, averaging_buffer_size, fall_height


def test_derived_constants_single_grain(single_grain_params):
    const = PhysicalConstants.from_params(single_grain_params)

    v_ff = math.sqrt(2.0 * 9.80665 * 0.4)
    tau = 0.01 / v_ff
    assert const.mass == pytest.approx(0.1)
    assert const.free_fall_velocity == pytest.approx(v_ff)
    assert const.fall_timescale == pytest.approx(tau)
    assert const.spring_constant == pytest.approx(0.1 * (2.0 * math.pi / tau) ** 2)
    assert const.spring_period == pytest.approx(tau)
    assert const.dt == pytest.approx(0.01 * tau)
    assert const.damping_constant == pytest.approx(const.critical_damping)
    assert const.contact_threshold == 0.01
    assert const.natural_separation == 0.02


def test_mass_is_split_over_all_grains(pillar_params):
    const = PhysicalConstants.from_params(pillar_params)
    assert const.mass == pytest.approx(0.1)
    assert const.grains_per_pillar == 3
    assert const.pillar_count == 2


def test_derivation_is_bit_identical(single_grain_params):
    a = PhysicalConstants.from_params(dict(single_grain_params))
    b = PhysicalConstants.from_params(dict(single_grain_params))
    assert a.spring_constant == b.spring_constant
    assert a.damping_constant == b.damping_constant
    assert a.dt == b.dt
    assert a == b


def test_spring_period_target_shortens_period(single_grain_params):
    base = PhysicalConstants.from_params(single_grain_params)
    single_grain_params['spring_period_target'] = base.fall_timescale / 4.0
    stiff = PhysicalConstants.from_params(single_grain_params)

    assert stiff.spring_period == pytest.approx(base.fall_timescale / 4.0)
    assert stiff.spring_constant == pytest.approx(16.0 * base.spring_constant)
    assert stiff.dt == pytest.approx(base.dt / 4.0)


def test_spring_period_target_longer_than_fall_is_ignored(single_grain_params):
    base = PhysicalConstants.from_params(single_grain_params)
    single_grain_params['spring_period_target'] = 10.0
    assert PhysicalConstants.from_params(single_grain_params).spring_constant == base.spring_constant


def test_damping_ratio_scales_critical_damping(single_grain_params):
    single_grain_params['damping_ratio'] = 0.5
    const = PhysicalConstants.from_params(single_grain_params)
    assert const.damping_constant == pytest.approx(0.5 * 2.0 * math.sqrt(const.mass * const.spring_constant))


def test_fall_height_uses_larger_of_drop_and_neck():
    assert fall_height({'grain_radius': 0.01, 'drop_height': 0.4}) == 0.4
    assert fall_height({'grain_radius': 0.01, 'drop_height': 0.01, 'neck_height': 0.1}) == 0.1
    assert fall_height({'grain_radius': 0.01}) == 0.01


@pytest.mark.parametrize('key, value', [
    ('grains_per_pillar', 0),
    ('grains_per_pillar', 2.5),
    ('pillar_count', 0),
    ('total_mass', 0.0),
    ('total_mass', -1.0),
    ('grain_radius', 0.0),
    ('control_coefficient', 0.0),
    ('averaging_time_span', -0.1),
    ('gravity', 0.0),
    ('damping_ratio', -0.1),
    ('neck_height', 0.015),
    ('gravity', 'fast'),
    ('damping_ratio', 'high'),
    ('damping_ratio', True),
    ('total_mass', None),
])
def test_rejects_inconsistent_configuration(single_grain_params, key, value):
    single_grain_params[key] = value
    with pytest.raises(ConfigurationError):
        PhysicalConstants.from_params(single_grain_params)


@pytest.mark.parametrize('key', ['gravity', 'drop_height', 'damping_ratio', 'spring_period_target'])
def test_null_optional_key_falls_back_to_default(single_grain_params, key):
    single_grain_params[key] = None
    with_null = PhysicalConstants.from_params(single_grain_params)
    del single_grain_params[key]
    assert with_null == PhysicalConstants.from_params(single_grain_params)


def test_rejects_missing_radius(single_grain_params):
    del single_grain_params['grain_radius']
    with pytest.raises(ConfigurationError, match='grain_radius'):
        PhysicalConstants.from_params(single_grain_params)


def test_with_time_step(single_grain_constants):
    halved = single_grain_constants.with_time_step(single_grain_constants.dt / 2)
    assert halved.dt == single_grain_constants.dt / 2
    assert halved.spring_constant == single_grain_constants.spring_constant
    with pytest.raises(ConfigurationError):
        single_grain_constants.with_time_step(0.0)


def test_clock_ticks_monotonically():
    clock = Clock(dt=0.25)
    for _ in range(4):
        clock = clock.tick()
    assert clock.step_count == 4
    assert clock.time == 1.0
    assert clock.dt == 0.25


def test_averaging_buffer_size():
    assert averaging_buffer_size(1.0, 0.01) == 10
    assert averaging_buffer_size(1e-6, 1.0) == 1
