"""
Ellipsoid Factor: maximal inscribed ellipsoid optimisation
==========================================================
Given a binary 3D voxel volume and seed points inside the foreground, grow the
locally largest ellipsoid that fits the structure around each seed.

Typical use::

    from ellipsoidfactor import VoxelVolume, OptimisationParameters, find_ellipsoids

    volume = VoxelVolume(mask, spacing=(1.0, 1.0, 1.0))
    ellipsoids = find_ellipsoids(volume, seeds, OptimisationParameters(), random_seed=0)
"""
from ellipsoidfactor.model.ellipsoid import Ellipsoid
from ellipsoidfactor.model.volume import VoxelVolume
from ellipsoidfactor.model.parameters import OptimisationParameters
from ellipsoidfactor.solvers.optimiser import EllipsoidOptimiser
from ellipsoidfactor.controller.workers import find_ellipsoids

__all__ = [
    "Ellipsoid",
    "VoxelVolume",
    "OptimisationParameters",
    "EllipsoidOptimiser",
    "find_ellipsoids",
]
