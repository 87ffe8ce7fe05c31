"""
Batch Runner (Threading)
========================
This module runs the ellipsoid optimisation for many seed points.

Why is this file needed?
------------------------
1. Throughput: Seeds are independent, so they are optimised on a thread pool.
   The numba kernels release the GIL, which lets the threads overlap.
2. Reproducibility: Each seed gets its own random generator, spawned from one
   SeedSequence, so a fixed `random_seed` gives the same result regardless of
   which thread picks up which seed.
3. Ordering: Failed seeds are dropped and the survivors are sorted by
   descending volume, the priority order used when voxels are later assigned
   to their largest containing ellipsoid.

Functions:
    find_ellipsoids: Optimise all seeds and return the sorted ellipsoids.
"""
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from ellipsoidfactor.dev import timer
from ellipsoidfactor.model.parameters import OptimisationParameters
from ellipsoidfactor.solvers.optimiser import EllipsoidOptimiser

if TYPE_CHECKING:
    import numpy.typing as npt

    from ellipsoidfactor.model.ellipsoid import Ellipsoid
    from ellipsoidfactor.model.volume import VoxelVolume

logger = logging.getLogger(__name__)


def _optimise_seed(
    optimiser: EllipsoidOptimiser,
    seed_point: npt.NDArray[np.int64],
    seed_sequence: np.random.SeedSequence,
) -> Optional[Ellipsoid]:
    """Top-level worker: one seed, one private random generator."""
    rng = np.random.default_rng(seed_sequence)
    return optimiser.optimise(seed_point, rng)


def sort_by_volume(ellipsoids: Sequence[Optional[Ellipsoid]]) -> list[Ellipsoid]:
    """
    Drop failed results and sort the rest by descending volume.

    Args:
        ellipsoids: Optimisation results, None for failed seeds.

    Returns:
        Ellipsoids, largest first.
    """
    return sorted(
        (e for e in ellipsoids if e is not None),
        key=lambda e: e.volume,
        reverse=True,
    )


@timer
def find_ellipsoids(
    volume: VoxelVolume,
    seed_points: npt.ArrayLike,
    params: Optional[OptimisationParameters] = None,
    *,
    n_workers: Optional[int] = None,
    random_seed: Optional[int] = None,
    skip_ratio: int = 1,
) -> list[Ellipsoid]:
    """
    Optimise one ellipsoid per seed point.

    Args:
        volume: Read-only voxel volume shared by all tasks.
        seed_points: (n, 3) voxel coordinates (x, y, z).
        params: Optimisation parameters; defaults when omitted.
        n_workers: Number of threads. None uses the CPU count, 1 runs serially.
        random_seed: Seed of the SeedSequence the per-seed generators are spawned from.
        skip_ratio: Only every `skip_ratio`-th seed point is optimised.

    Raises:
        ValueError: If the seed points are not (n, 3) or `skip_ratio` < 1.

    Returns:
        The ellipsoids of the successful seeds, sorted by descending volume.
        Empty if no seed succeeded.
    """
    seeds = np.asarray(seed_points, dtype=np.int64)
    if seeds.size == 0:
        seeds = seeds.reshape(0, 3)
    if seeds.ndim != 2 or seeds.shape[1] != 3:
        raise ValueError(f"Seed points must have shape (n, 3), got {seeds.shape}.")
    if skip_ratio < 1:
        raise ValueError(f"'skip_ratio' must be at least 1, got {skip_ratio}.")

    seeds = seeds[::skip_ratio]
    optimiser = EllipsoidOptimiser(volume, params)
    seed_sequences = np.random.SeedSequence(random_seed).spawn(len(seeds))

    logger.info(f"Optimising ellipsoids at {len(seeds)} seed points")

    if n_workers is None:
        n_workers = os.cpu_count() or 1

    if n_workers == 1 or len(seeds) <= 1:
        results = [_optimise_seed(optimiser, s, ss) for s, ss in zip(seeds, seed_sequences)]
    else:
        with ThreadPoolExecutor(max_workers=n_workers) as ex:
            results = list(ex.map(_optimise_seed, [optimiser] * len(seeds), seeds, seed_sequences))

    ellipsoids = sort_by_volume(results)

    if not ellipsoids:
        logger.warning("No ellipsoids were found - try modifying input parameters.")
    else:
        logger.info(f"Found {len(ellipsoids)} ellipsoids from {len(seeds)} seed points")
    return ellipsoids
