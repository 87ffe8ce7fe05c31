import dataclasses
import math

import pytest

from ellipsoidfactor import config
from ellipsoidfactor.model.parameters import OptimisationParameters


def test_defaults():
    params = OptimisationParameters()
    assert params.sampling_increment == pytest.approx(1.0 / 2.3)
    assert params.max_drift == pytest.approx(math.sqrt(3.0))
    assert params.max_total_iterations == params.max_iterations * config.TOTAL_ITERATION_FACTOR
    assert params.fix_degenerate_axis


def test_parameters_are_frozen():
    params = OptimisationParameters()
    with pytest.raises(dataclasses.FrozenInstanceError):
        params.n_vectors = 10


def test_calibrated_scales_voxel_lengths():
    params = OptimisationParameters(sampling_increment=0.5, max_drift=1.0)
    calibrated = params.calibrated((2.0, 2.0, 2.0))

    assert calibrated.sampling_increment == pytest.approx(1.0)
    assert calibrated.max_drift == pytest.approx(2.0)
    assert calibrated.minimum_semi_axis == pytest.approx(2.0 * params.minimum_semi_axis)
    assert calibrated.initial_contraction == pytest.approx(2.0 * params.initial_contraction)
    assert calibrated.n_vectors == params.n_vectors
    assert params.sampling_increment == 0.5


def test_calibrated_uses_smallest_voxel_side():
    calibrated = OptimisationParameters(sampling_increment=1.0).calibrated((0.5, 1.0, 3.0))
    assert calibrated.sampling_increment == pytest.approx(0.5)
    assert calibrated.minimum_semi_axis == pytest.approx(0.25)


@pytest.mark.parametrize("kwargs", [
    {"sampling_increment": 0.0},
    {"sampling_increment": -1.0},
    {"n_vectors": 2},
    {"contact_sensitivity": 0},
    {"max_iterations": 0},
    {"minimum_semi_axis": -0.5},
    {"wiggle_spread": 0.8},
])
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        OptimisationParameters(**kwargs)
