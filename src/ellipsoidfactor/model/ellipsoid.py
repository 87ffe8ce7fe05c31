"""
Ellipsoid Geometry
==================
A 3D ellipsoid defined by its centroid, three semi-axis lengths (radii) and a
3x3 rotation matrix whose columns are the axis directions.

Radii are not ordered by size: ``radii[i]`` always belongs to column ``i`` of the
rotation matrix. Use ``get_sorted_radii()`` for size-ordered values.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from math import sqrt, pi
import numpy as np
import numba as nb

if TYPE_CHECKING:
    import numpy.typing as npt


@nb.jit(cache=True, fastmath=True, nogil=True)
def _surface_points(
    directions: npt.NDArray[np.float64],
    radii: npt.NDArray[np.float64],
    rotation: npt.NDArray[np.float64],
    centroid: npt.NDArray[np.float64],
    out: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Map unit vectors onto the surface of an ellipsoid, in place.

    p = R @ (a * vx, b * vy, c * vz) + centroid

    Args:
        directions: (n, 3) array of unit vectors.
        radii: (3, ) semi-axis lengths.
        rotation: (3, 3) rotation matrix, columns are the axes.
        centroid: (3, ) centre of the ellipsoid.
        out: (n, 3) array that receives the surface points.

    Returns:
        `out`, filled with the surface points.
    """
    r00, r01, r02 = rotation[0, 0], rotation[0, 1], rotation[0, 2]
    r10, r11, r12 = rotation[1, 0], rotation[1, 1], rotation[1, 2]
    r20, r21, r22 = rotation[2, 0], rotation[2, 1], rotation[2, 2]
    a, b, c = radii[0], radii[1], radii[2]
    cx, cy, cz = centroid[0], centroid[1], centroid[2]
    for p in range(directions.shape[0]):
        # stretch the unit sphere into an ellipsoid
        x = a * directions[p, 0]
        y = b * directions[p, 1]
        z = c * directions[p, 2]
        # rotate and translate into position
        out[p, 0] = x * r00 + y * r01 + z * r02 + cx
        out[p, 1] = x * r10 + y * r11 + z * r12 + cy
        out[p, 2] = x * r20 + y * r21 + z * r22 + cz
    return out


class Ellipsoid:
    """
    Represents an ellipsoid with a mutable size, orientation and position.

    The shape matrix H = R diag(1/a², 1/b², 1/c²) Rᵀ is derived lazily and
    cached until the radii or the rotation change.
    """
    def __init__(
        self,
        radii: npt.ArrayLike,
        centroid: npt.ArrayLike,
        rotation: Optional[npt.ArrayLike] = None
    ) -> None:
        """
        Initialize the ellipsoid.

        Args:
            radii: Semi-axis lengths (a, b, c), all positive.
            centroid: Centre (x, y, z) in physical units.
            rotation: 3x3 matrix with the axis directions as columns.
                Defaults to the identity.

        Raises:
            ValueError: If a radius is non-positive or an array has the wrong shape.
        """
        radii = np.array(radii, dtype=np.float64)
        centroid = np.array(centroid, dtype=np.float64)
        if rotation is None:
            rotation = np.eye(3, dtype=np.float64)
        rotation = np.array(rotation, dtype=np.float64)

        if radii.shape != (3,) or centroid.shape != (3,) or rotation.shape != (3, 3):
            raise ValueError(
                f"Expected radii (3,), centroid (3,) and rotation (3, 3), got "
                f"{radii.shape}, {centroid.shape} and {rotation.shape}."
            )
        if np.any(radii <= 0.0):
            raise ValueError(f"Ellipsoid cannot have semi-axis <= 0, got radii {radii}.")

        self._radii = radii
        self._centroid = centroid
        self._rotation = np.ascontiguousarray(rotation)
        self._h: Optional[npt.NDArray[np.float64]] = None

    @classmethod
    def sphere(cls, radius: float, centroid: npt.ArrayLike) -> Ellipsoid:
        """Axis-aligned sphere of the given radius."""
        return cls(radii=(radius, radius, radius), centroid=centroid)

    def __repr__(self) -> str:
        """String representation of the ellipsoid."""
        return (f"{self.__class__.__name__}(radii={self._radii}, centroid={self._centroid}, "
                f"volume={self.volume:.4g})")

    @property
    def radii(self) -> npt.NDArray[np.float64]:
        """Copy of the semi-axis lengths, in rotation-column order."""
        return self._radii.copy()

    @property
    def centroid(self) -> npt.NDArray[np.float64]:
        """Copy of the centre."""
        return self._centroid.copy()

    @property
    def rotation(self) -> npt.NDArray[np.float64]:
        """Copy of the rotation matrix."""
        return self._rotation.copy()

    @property
    def volume(self) -> float:
        """Volume, 4/3 π a b c, always computed from the current radii."""
        a, b, c = self._radii
        return 4.0 * pi * a * b * c / 3.0

    @property
    def shape_matrix(self) -> npt.NDArray[np.float64]:
        """
        The ellipsoid tensor H used by the containment test.

        Returns:
            (3, 3) matrix R diag(1/a², 1/b², 1/c²) Rᵀ.
        """
        if self._h is None:
            r = self._rotation
            self._h = (r * (1.0 / self._radii ** 2)) @ r.T
        return self._h

    def get_sorted_radii(self) -> npt.NDArray[np.float64]:
        """Radii in ascending order, unrelated to the rotation columns."""
        return np.sort(self._radii)

    def contains(self, point: npt.ArrayLike) -> bool:
        """
        Test whether a point lies inside or on the ellipsoid.

        Based on the inequality (X - X0)ᵀ H (X - X0) <= 1. The bounding sphere
        (largest radius) and the inscribed sphere (smallest radius) are checked
        first, so the quadratic form is only evaluated in the shell between them.

        Args:
            point: (x, y, z) in physical units.

        Returns:
            True if the point is inside or on the surface.
        """
        vx = point[0] - self._centroid[0]
        vy = point[1] - self._centroid[1]
        vz = point[2] - self._centroid[2]

        a, b, c = self._radii
        max_radius = max(a, b, c)
        if abs(vx) > max_radius or abs(vy) > max_radius or abs(vz) > max_radius:
            return False

        length = sqrt(vx * vx + vy * vy + vz * vz)
        if length > max_radius:
            return False
        if length <= min(a, b, c):
            return True

        v = np.array([vx, vy, vz])
        return bool(v @ self.shape_matrix @ v <= 1.0)

    def dilate(self, da: float, db: float, dc: float) -> None:
        """
        Add independent absolute amounts to the three radii.

        Args:
            da: Value added to the 1st radius.
            db: Value added to the 2nd radius.
            dc: Value added to the 3rd radius.

        Raises:
            ValueError: If any new radius would be non-positive. The ellipsoid is
                left unchanged in that case.
        """
        a = self._radii[0] + da
        b = self._radii[1] + db
        c = self._radii[2] + dc
        if a <= 0.0 or b <= 0.0 or c <= 0.0:
            raise ValueError(f"Ellipsoid cannot have semi-axis <= 0, got ({a}, {b}, {c}).")
        self._radii[0] = a
        self._radii[1] = b
        self._radii[2] = c
        self._h = None

    def contract(self, amount: float) -> None:
        """
        Shrink all three radii by the same absolute amount.

        Skipped when the amount would make the smallest radius non-positive.

        Args:
            amount: Length subtracted from each radius.
        """
        if amount >= self._radii.min():
            return
        self.dilate(-amount, -amount, -amount)

    def contract_by_fraction(self, fraction: float) -> None:
        """
        Shrink each radius in proportion to its own length.

        Args:
            fraction: Fraction of each radius to remove; no-op when >= 1.
        """
        if fraction >= 1.0:
            return
        a, b, c = self._radii
        self.dilate(-a * fraction, -b * fraction, -c * fraction)

    def rotate(self, rotation: npt.ArrayLike) -> None:
        """
        Compose the current rotation with another one, R <- R @ M.

        The product is not re-orthonormalised.

        Args:
            rotation: (3, 3) rotation matrix.
        """
        self._rotation = np.ascontiguousarray(self._rotation @ np.asarray(rotation, dtype=np.float64))
        self._h = None

    def set_rotation(self, rotation: npt.ArrayLike) -> None:
        """Replace the rotation matrix with a copy of the supplied one. No checks."""
        self._rotation = np.array(rotation, dtype=np.float64, order="C")
        self._h = None

    def set_centroid(self, centroid: npt.ArrayLike) -> None:
        """Move the ellipsoid to a new centre."""
        self._centroid = np.array(centroid, dtype=np.float64)

    def get_surface_points(
        self,
        directions: npt.NDArray[np.float64],
        out: Optional[npt.NDArray[np.float64]] = None
    ) -> npt.NDArray[np.float64]:
        """
        Map unit direction vectors onto the ellipsoid surface.

        This is the hottest call of the optimiser. Pass a preallocated `out`
        buffer to avoid allocating on each call.

        Args:
            directions: (n, 3) unit vectors in the ellipsoid's own frame.
            out: Optional (n, 3) float64 buffer for the result.

        Returns:
            (n, 3) surface points in physical space.
        """
        if out is None:
            out = np.empty((directions.shape[0], 3), dtype=np.float64)
        return _surface_points(directions, self._radii, self._rotation, self._centroid, out)

    def _axis_half_extent(self, axis: int) -> float:
        m = self._rotation[axis] * self._radii
        return sqrt(float(m @ m))

    def get_x_min_and_max(self) -> tuple[float, float]:
        """Minimal and maximal x of the ellipsoid."""
        d = self._axis_half_extent(0)
        return self._centroid[0] - d, self._centroid[0] + d

    def get_y_min_and_max(self) -> tuple[float, float]:
        """Minimal and maximal y of the ellipsoid."""
        d = self._axis_half_extent(1)
        return self._centroid[1] - d, self._centroid[1] + d

    def get_z_min_and_max(self) -> tuple[float, float]:
        """Minimal and maximal z of the ellipsoid."""
        d = self._axis_half_extent(2)
        return self._centroid[2] - d, self._centroid[2] + d

    def get_axis_aligned_bounding_box(self) -> tuple[float, float, float, float, float, float]:
        """
        Exact axis-aligned bounding box.

        See https://tavianator.com/2014/06/exact-bounding-boxes-for-spheres-ellipsoids

        Returns:
            (x_min, x_max, y_min, y_max, z_min, z_max)
        """
        return (*self.get_x_min_and_max(), *self.get_y_min_and_max(), *self.get_z_min_and_max())

    def copy(self) -> Ellipsoid:
        """Deep copy of the radii, centroid and rotation."""
        return Ellipsoid(radii=self._radii.copy(), centroid=self._centroid.copy(),
                         rotation=self._rotation.copy())
