import numpy as np
import pytest

from ellipsoidfactor import phantoms
from ellipsoidfactor.model.parameters import OptimisationParameters
from ellipsoidfactor.model.volume import VoxelVolume


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def cube_volume():
    """Cube of side 20 occupying voxels [5, 25) of a 30³ grid."""
    return VoxelVolume(phantoms.brick(20, 20, 20, padding=5))


@pytest.fixture
def slab_volume():
    """100 x 100 x 10 slab, foreground z in [5, 15) of a 110 x 110 x 20 grid, centre (55, 55, 10)."""
    return VoxelVolume(phantoms.brick(100, 100, 10, padding=5))


@pytest.fixture
def small_box_volume():
    """Cube of side 6 occupying voxels [4, 10) of a 14³ grid, centre (7, 7, 7)."""
    return VoxelVolume(phantoms.brick(6, 6, 6, padding=4))


@pytest.fixture
def solid_volume():
    """10³ grid, all foreground."""
    return VoxelVolume(np.ones((10, 10, 10), dtype=np.uint8))


@pytest.fixture
def fast_params():
    return OptimisationParameters(sampling_increment=0.5, n_vectors=50, max_iterations=20)
