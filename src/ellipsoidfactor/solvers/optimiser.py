from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from ellipsoidfactor.analysis.contacts import ContactSampler, contact_point_unit_vector
from ellipsoidfactor.analysis.steps import (
    bump, inflate_to_fit, shrink_to_fit, three_way_shuffle, turn, wiggle
)
from ellipsoidfactor.model.ellipsoid import Ellipsoid
from ellipsoidfactor.model.geometry_utils import (
    X_AXIS, Y_AXIS, cross, generalized_spiral_set_on_sphere, norm
)
from ellipsoidfactor.model.parameters import OptimisationParameters

if TYPE_CHECKING:
    import numpy.typing as npt

    from ellipsoidfactor.model.volume import VoxelVolume

logger = logging.getLogger(__name__)


class EllipsoidOptimiser:
    """
    Grows a locally maximal ellipsoid inside the foreground around a seed point.

    The optimisation is a stochastic sequence of shrinking, inflating, bumping,
    wiggling and turning. The best ellipsoid found is kept; the loop stops
    after `max_iterations` cycles without a volume gain.
    """

    def __init__(
        self,
        volume: VoxelVolume,
        params: Optional[OptimisationParameters] = None,
        directions: Optional[npt.NDArray[np.float64]] = None,
    ) -> None:
        """
        Initialize the optimiser.

        Args:
            volume: The read-only voxel volume.
            params: Optimisation parameters; defaults are used when omitted.
            directions: Optional (n, 3) table of sampling directions. Defaults
                to the generalized spiral set of `params.n_vectors` points.
        """
        self.volume = volume
        self.params = params or OptimisationParameters()
        if directions is None:
            directions = generalized_spiral_set_on_sphere(self.params.n_vectors)
        self.directions = directions

    def _fail(self, seed: npt.NDArray[np.float64], reason: str) -> None:
        logger.info(f"Ellipsoid at ({seed[0]:.3f}, {seed[1]:.3f}, {seed[2]:.3f}) {reason}")

    def _orient_axes(self, ellipsoid: Ellipsoid, contact_points: npt.NDArray[np.float64]) -> None:
        """
        Point the 1st axis at the contacts and complete an orthonormal frame.

        Args:
            ellipsoid: The ellipsoid, modified in place.
            contact_points: (m, 3) current contact points, m >= 1.
        """
        short_axis = contact_point_unit_vector(ellipsoid, contact_points)
        if not np.all(np.isfinite(short_axis)):
            # contacts cancel each other out, any of them is as good as the mean
            short_axis = norm(contact_points[0] - ellipsoid.centroid)

        middle_axis = cross(short_axis, X_AXIS)
        if self.params.fix_degenerate_axis and \
                np.linalg.norm(middle_axis) < self.params.reference_axis_tolerance:
            middle_axis = cross(short_axis, Y_AXIS)
        middle_axis = norm(middle_axis)

        long_axis = norm(cross(short_axis, middle_axis))

        ellipsoid.set_rotation(np.column_stack((short_axis, middle_axis, long_axis)))

    def _grow_and_check(
        self,
        ellipsoid: Ellipsoid,
        sampler: ContactSampler,
        rng: np.random.Generator,
    ) -> bool:
        """
        Shrink, then inflate a random axis.

        Returns:
            False if the result is invalid.
        """
        shrink_to_fit(ellipsoid, sampler, self.params)
        inflate_to_fit(ellipsoid, sampler, self.params, three_way_shuffle(rng))
        return not sampler.is_invalid(ellipsoid, self.params.minimum_semi_axis)

    def optimise(
        self,
        seed_point: Sequence[int],
        rng: Optional[np.random.Generator] = None,
    ) -> Optional[Ellipsoid]:
        """
        Find the locally maximal ellipsoid for one seed point.

        Args:
            seed_point: Voxel coordinates (x, y, z) of the seed.
            rng: Random generator of this task. A fresh unseeded one is used
                when omitted.

        Returns:
            The best ellipsoid found, or None if the seed failed (background
            seed, invalid ellipsoid or no convergence).
        """
        start = time.perf_counter()
        params = self.params
        rng = rng if rng is not None else np.random.default_rng()
        sampler = ContactSampler(self.volume, self.directions)

        seed = self.volume.to_physical(seed_point)

        if not self.volume.is_foreground(seed_point):
            self._fail(seed, "is outside the foreground, nullifying")
            return None

        increment = params.sampling_increment
        ellipsoid = Ellipsoid.sphere(increment, seed)

        volume_history = [ellipsoid.volume]

        # 1. dilate the sphere until it hits the background
        while sampler.is_contained(ellipsoid):
            ellipsoid.dilate(increment, increment, increment)
            if sampler.is_invalid(ellipsoid, 0.0):
                self._fail(seed, "is invalid, nullifying at initial dilation")
                return None

        volume_history.append(ellipsoid.volume)

        # 2. short axis towards the contacts
        contact_points = sampler.find_contact_points(ellipsoid)
        self._orient_axes(ellipsoid, contact_points)

        # 3. back off from the surface
        shrink_to_fit(ellipsoid, sampler, params)
        ellipsoid.contract(params.initial_contraction)

        # 4. dilate the other two axes until they touch
        contact_points = sampler.find_contact_points(ellipsoid)
        safety = 0
        while len(contact_points) < params.contact_sensitivity:
            ellipsoid.dilate(0.0, increment, increment)
            contact_points = sampler.find_contact_points(ellipsoid)
            safety += 1
            if sampler.is_invalid(ellipsoid, params.minimum_semi_axis) or \
                    safety >= params.max_total_iterations:
                self._fail(seed, "is invalid, nullifying at initial oblation")
                return None

        volume_history.append(ellipsoid.volume)

        # 5. cycles of contraction, wiggling and dilation until jammed
        maximal = ellipsoid.copy()

        total_iterations = 0
        no_improvement_count = 0
        while total_iterations < params.max_total_iterations and \
                no_improvement_count < params.max_iterations:

            # a. rotate a little bit
            wiggle(ellipsoid, rng, params)
            if not self._grow_and_check(ellipsoid, sampler, rng):
                self._fail(seed, f"is invalid, nullifying after {total_iterations} iterations")
                return None
            if ellipsoid.volume > maximal.volume:
                maximal = ellipsoid.copy()

            # b. bump away from the sides, wiggle if there is nothing to push on
            contact_points = sampler.find_contact_points(ellipsoid)
            if len(contact_points) == 0:
                wiggle(ellipsoid, rng, params)
            else:
                bump(ellipsoid, contact_points, seed, params)

            # c.
            if not self._grow_and_check(ellipsoid, sampler, rng):
                self._fail(seed, f"is invalid, nullifying after {total_iterations} iterations")
                return None
            if ellipsoid.volume > maximal.volume:
                maximal = ellipsoid.copy()

            # d. turn towards the torque of the contacts
            turn(ellipsoid, sampler, params)
            if not self._grow_and_check(ellipsoid, sampler, rng):
                self._fail(seed, f"is invalid, nullifying after {total_iterations} iterations")
                return None
            if ellipsoid.volume > maximal.volume:
                maximal = ellipsoid.copy()

            # e. restart from the best so far
            ellipsoid = maximal.copy()
            volume_history.append(ellipsoid.volume)

            # f.
            if volume_history[-1] > volume_history[-2]:
                no_improvement_count = 0
            else:
                no_improvement_count += 1

            total_iterations += 1

        # 6. this usually means the ellipsoid grew out of control
        if total_iterations == params.max_total_iterations:
            self._fail(seed, f"seems to be out of control, nullifying after {total_iterations} iterations")
            return None

        elapsed = (time.perf_counter() - start) * 1000.0
        logger.debug(f"Optimised ellipsoid in {elapsed:.1f} ms after {total_iterations} iterations "
                     f"({elapsed / max(total_iterations, 1):.3f} ms/iteration)")

        return ellipsoid
