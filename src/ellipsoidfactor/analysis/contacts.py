"""
Contact-Point Sampling
======================
Casts the ellipsoid surface onto the voxel grid along a fixed set of directions
and classifies each sampled point as foreground, background or out of bounds.

A *contact point* is a sampled surface point that falls into an in-bounds
background voxel. Out-of-bounds points are never contacts, so an ellipsoid can
keep growing past the edge of the image; they only count towards invalidity.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np
import numba as nb

if TYPE_CHECKING:
    import numpy.typing as npt
    from ellipsoidfactor.model.ellipsoid import Ellipsoid
    from ellipsoidfactor.model.volume import VoxelVolume

FOREGROUND = 0
BACKGROUND = 1
OUT_OF_BOUNDS = 2


@nb.jit(cache=True, nogil=True)
def _classify_points(
    points: npt.NDArray[np.float64],
    mask: npt.NDArray[np.bool_],
    spacing: npt.NDArray[np.float64],
    codes: npt.NDArray[np.int8]
) -> npt.NDArray[np.int8]:
    """
    Classify physical points against a [z, y, x] mask.

    No fastmath here: NaN coordinates (from a degenerate rotation) must fail the
    bounds comparisons and end up out of bounds.

    Args:
        points: (n, 3) physical (x, y, z) points.
        mask: (d, h, w) boolean foreground mask.
        spacing: (3, ) voxel size (pW, pH, pD).
        codes: (n, ) buffer receiving FOREGROUND, BACKGROUND or OUT_OF_BOUNDS.

    Returns:
        `codes`.
    """
    d, h, w = mask.shape
    for p in range(points.shape[0]):
        fx = np.floor(points[p, 0] / spacing[0])
        fy = np.floor(points[p, 1] / spacing[1])
        fz = np.floor(points[p, 2] / spacing[2])
        if not (fx >= 0.0 and fx < w and fy >= 0.0 and fy < h and fz >= 0.0 and fz < d):
            codes[p] = OUT_OF_BOUNDS
        elif mask[int(fz), int(fy), int(fx)]:
            codes[p] = FOREGROUND
        else:
            codes[p] = BACKGROUND
    return codes


def contact_point_unit_vector(
    ellipsoid: Ellipsoid,
    contact_points: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Mean unit vector from the ellipsoid's centroid towards the contact points.

    Args:
        ellipsoid: The ellipsoid.
        contact_points: (m, 3) contact points, m >= 1.

    Raises:
        ValueError: If there are no contact points.

    Returns:
        (3, ) normalised mean direction. NaN if the unit vectors cancel out exactly.
    """
    if len(contact_points) < 1:
        raise ValueError("Need at least one contact point")

    v = contact_points - ellipsoid.centroid
    lengths = np.linalg.norm(v, axis=1)
    mean = (v / lengths[:, None]).mean(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        return mean / np.linalg.norm(mean)


class ContactSampler:
    """
    Samples an ellipsoid's surface against a voxel volume.

    Each optimisation task owns its sampler: the direction table and the volume
    are shared read-only, the point and code buffers are private and reused on
    every call.
    """
    def __init__(
        self,
        volume: VoxelVolume,
        directions: npt.NDArray[np.float64]
    ) -> None:
        """
        Initialize the sampler.

        Args:
            volume: Read-only voxel volume.
            directions: (n, 3) unit vectors, typically a generalized spiral set.
        """
        self.volume = volume
        self.directions = directions
        self.n_directions = directions.shape[0]
        self._points = np.empty((self.n_directions, 3), dtype=np.float64)
        self._codes = np.empty(self.n_directions, dtype=np.int8)

    def _buffers(self, n: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int8]]:
        if n > self._points.shape[0]:
            self._points = np.empty((n, 3), dtype=np.float64)
            self._codes = np.empty(n, dtype=np.int8)
        return self._points[:n], self._codes[:n]

    def classify(
        self,
        ellipsoid: Ellipsoid,
        directions: Optional[npt.NDArray[np.float64]] = None
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int8]]:
        """
        Sample the surface and classify every point.

        The returned arrays are views on internal buffers, valid until the next call.

        Args:
            ellipsoid: The ellipsoid to sample.
            directions: Optional direction subset; defaults to the full table.

        Returns:
            Surface points (n, 3) and their classification codes (n, ).
        """
        if directions is None:
            directions = self.directions
        points, codes = self._buffers(directions.shape[0])
        ellipsoid.get_surface_points(directions, out=points)
        _classify_points(points, self.volume.mask, self.volume.spacing, codes)
        return points, codes

    def find_contacts(
        self,
        ellipsoid: Ellipsoid,
        directions: Optional[npt.NDArray[np.float64]] = None
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Find the contact points and the directions that produced them.

        Args:
            ellipsoid: The ellipsoid to sample.
            directions: Optional direction subset; defaults to the full table.

        Returns:
            Contact points (m, 3) in physical space and their directions (m, 3).
        """
        if directions is None:
            directions = self.directions
        points, codes = self.classify(ellipsoid, directions)
        touching = codes == BACKGROUND
        return points[touching], directions[touching]

    def find_contact_points(
        self,
        ellipsoid: Ellipsoid,
        directions: Optional[npt.NDArray[np.float64]] = None
    ) -> npt.NDArray[np.float64]:
        """Contact points (m, 3) of the ellipsoid surface with the background."""
        return self.find_contacts(ellipsoid, directions)[0]

    def is_contained(self, ellipsoid: Ellipsoid) -> bool:
        """
        Return True if no sampled surface point touches the background.

        Points outside the image count as contained.
        """
        _, codes = self.classify(ellipsoid)
        return not np.any(codes == BACKGROUND)

    def is_invalid(self, ellipsoid: Ellipsoid, minimum_semi_axis: float = 0.0) -> bool:
        """
        Check whether an ellipsoid is not a sensible fit.

        Args:
            ellipsoid: The ellipsoid to check.
            minimum_semi_axis: Smallest acceptable radius.

        Returns:
            True if more than half of the sampled surface points are outside the
            image, if the ellipsoid is bigger than the whole image, or if its
            smallest radius is below `minimum_semi_axis`.
        """
        if ellipsoid.get_sorted_radii()[0] < minimum_semi_axis:
            return True
        if ellipsoid.volume > self.volume.physical_volume:
            return True
        _, codes = self.classify(ellipsoid)
        out_of_bounds = int(np.count_nonzero(codes == OUT_OF_BOUNDS))
        return out_of_bounds > self.n_directions // 2
