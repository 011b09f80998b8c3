import pytest

from physics import PhysicalConstants


@pytest.fixture
def single_grain_params():
    """One 0.1 kg grain dropped from 0.4 m onto a floor at 0."""
    return {
        'grains_per_pillar': 1,
        'pillar_count': 1,
        'total_mass': 0.1,
        'grain_radius': 0.01,
        'gravity': 9.80665,
        'damping_ratio': 1.0,
        'control_coefficient': 0.01,
        'averaging_time_span': 0.01,
        'floor_level': 0.0,
        'drop_height': 0.4,
    }


@pytest.fixture
def pillar_params():
    return {
        'grains_per_pillar': 3,
        'pillar_count': 2,
        'total_mass': 0.6,
        'grain_radius': 0.01,
        'gravity': 9.80665,
        'damping_ratio': 1.0,
        'control_coefficient': 0.02,
        'averaging_time_span': 0.01,
        'floor_level': 0.0,
        'drop_height': 0.05,
    }


@pytest.fixture
def hourglass_params():
    return {
        'seed': 1,
        'grains_per_pillar': 4,
        'pillar_count': 2,
        'total_mass': 0.08,
        'grain_radius': 0.005,
        'gravity': 9.80665,
        'damping_ratio': 1.0,
        'control_coefficient': 0.02,
        'averaging_time_span': 0.01,
        'floor_level': 0.0,
        'neck_height': 0.05,
        'drop_height': 0.005,
        'release_interval': 0.01,
    }


@pytest.fixture
def single_grain_constants(single_grain_params) -> PhysicalConstants:
    return PhysicalConstants.from_params(single_grain_params)
