from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class VoxelVolume:
    """
    Read-only binary voxel volume with a per-axis physical scale.

    The mask is stored in stack order ``[z, y, x]``. Physical coordinates are
    (x, y, z); voxel (i, j, k) covers [i*pW, (i+1)*pW) x [j*pH, (j+1)*pH) x [k*pD, (k+1)*pD).
    """
    def __init__(
        self,
        mask: npt.ArrayLike,
        spacing: Sequence[float] = (1.0, 1.0, 1.0),
    ) -> None:
        """
        Initialize the voxel volume.

        Args:
            mask: 3D array indexed [z, y, x]; non-zero voxels are foreground.
            spacing: Physical size of a voxel along x, y and z (pW, pH, pD).

        Raises:
            ValueError: If the mask is not 3D or a spacing is not positive.
        """
        mask = np.asarray(mask)
        if mask.ndim != 3:
            raise ValueError(f"Expected a 3D mask indexed [z, y, x], got shape {mask.shape}.")
        spacing = np.array(spacing, dtype=np.float64)
        if spacing.shape != (3,) or np.any(spacing <= 0.0):
            raise ValueError(f"Spacing must be three positive values (pW, pH, pD), got {spacing}.")

        # private copy, never written to
        self._mask = np.ascontiguousarray(mask != 0, dtype=np.bool_)
        self._mask.setflags(write=False)
        self._spacing = spacing
        self._spacing.setflags(write=False)

    def __repr__(self) -> str:
        """String representation of the volume."""
        return (f"{self.__class__.__name__}(shape(w, h, d)={self.shape}, "
                f"spacing={tuple(float(s) for s in self._spacing)})")

    @property
    def mask(self) -> npt.NDArray[np.bool_]:
        """Read-only boolean mask indexed [z, y, x]."""
        return self._mask

    @property
    def spacing(self) -> npt.NDArray[np.float64]:
        """Read-only voxel size (pW, pH, pD)."""
        return self._spacing

    @property
    def width(self) -> int:
        return self._mask.shape[2]

    @property
    def height(self) -> int:
        return self._mask.shape[1]

    @property
    def depth(self) -> int:
        return self._mask.shape[0]

    @property
    def shape(self) -> tuple[int, int, int]:
        """Extents in (w, h, d) order."""
        return self.width, self.height, self.depth

    @property
    def physical_volume(self) -> float:
        """Total volume of the voxel grid in physical units."""
        return float(self.width * self.height * self.depth * np.prod(self._spacing))

    def in_bounds(self, voxel: Sequence[int]) -> bool:
        """Return True if the voxel index (x, y, z) lies inside the grid."""
        x, y, z = voxel
        return 0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.depth

    def is_foreground(self, voxel: Sequence[int]) -> bool:
        """Return True if the voxel (x, y, z) is in bounds and foreground."""
        if not self.in_bounds(voxel):
            return False
        x, y, z = voxel
        return bool(self._mask[z, y, x])

    def to_physical(self, voxel: Sequence[float]) -> npt.NDArray[np.float64]:
        """Physical position of a voxel-coordinate point (x*pW, y*pH, z*pD)."""
        return np.asarray(voxel, dtype=np.float64) * self._spacing

    def to_voxel(self, point: Sequence[float]) -> tuple[int, int, int]:
        """Voxel index (x, y, z) containing a physical point, by floor division."""
        x, y, z = np.floor(np.asarray(point, dtype=np.float64) / self._spacing).astype(np.int64)
        return int(x), int(y), int(z)
