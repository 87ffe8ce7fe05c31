"""
Synthetic Test Volumes
======================
Binary phantoms with known geometry, used by the demo CLI and the tests.

All masks are boolean arrays indexed [z, y, x] with the structure in the
foreground, padded with background on every face.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def brick(width: int, height: int, depth: int, padding: int = 1) -> npt.NDArray[np.bool_]:
    """
    Solid box of the given size.

    Args:
        width: Extent in x (voxels).
        height: Extent in y (voxels).
        depth: Extent in z (voxels).
        padding: Background voxels around each face.

    Returns:
        Mask of shape (depth + 2p, height + 2p, width + 2p).
    """
    p = padding
    mask = np.zeros((depth + 2 * p, height + 2 * p, width + 2 * p), dtype=np.bool_)
    mask[p:p + depth, p:p + height, p:p + width] = True
    return mask


def sphere(radius: int, padding: int = 1) -> npt.NDArray[np.bool_]:
    """Solid ball; voxel (i, j, k) is foreground if its index lies within `radius` of the centre."""
    side = 2 * radius + 1 + 2 * padding
    c = radius + padding
    z, y, x = np.ogrid[:side, :side, :side]
    return (x - c) ** 2 + (y - c) ** 2 + (z - c) ** 2 <= radius * radius


def rod(length: int, diameter: int, padding: int = 1) -> npt.NDArray[np.bool_]:
    """Cylinder of circular cross-section with its axis along z."""
    side = 2 * diameter
    r = diameter / 2.0
    c = (side - 1) / 2.0
    y, x = np.ogrid[:side, :side]
    disc = (x - c) ** 2 + (y - c) ** 2 <= r * r
    mask = np.zeros((length + 2 * padding, side, side), dtype=np.bool_)
    mask[padding:padding + length] = disc
    return mask


def centre_of(mask: npt.NDArray[np.bool_]) -> tuple[int, int, int]:
    """Voxel (x, y, z) at the middle of the grid."""
    d, h, w = mask.shape
    return w // 2, h // 2, d // 2
