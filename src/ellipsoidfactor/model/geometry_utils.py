from __future__ import annotations

from typing import TYPE_CHECKING

from math import sqrt, pi, acos, sin, cos, floor
import numpy as np

if TYPE_CHECKING:
    from numpy import typing as npt

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])


def _phi_by_recursion(n: int, phi_k_minus_1: float, h_k: float) -> float:
    phi_k = phi_k_minus_1 + 3.6 / sqrt(n) * 1.0 / sqrt(1.0 - h_k * h_k)
    # phi_k is always positive, so floor() gives a proper modulo 2*pi
    return phi_k - floor(phi_k / (2.0 * pi)) * 2.0 * pi


def generalized_spiral_set_on_sphere(n: int) -> npt.NDArray[np.float64]:
    """
    Generate n approximately equidistant unit vectors on the sphere.

    Follows the generalized spiral construction of Rakhmanov et al. (1994) as
    described by Saff and Kuijlaars (1997), with k shifted by one for zero-based
    indexing. The result is deterministic: the same n always gives the same set.

    Args:
        n: Number of directions. Must be greater than 2.

    Raises:
        ValueError: If `n` is 2 or less.

    Returns:
        An (n, 3) array of unit vectors, from the south pole (0, 0, -1) to the
        north pole (0, 0, 1).
    """
    if n <= 2:
        raise ValueError(f"Unsupported number of spiral points: {n}. 'n' must be greater than 2.")

    phi = np.zeros(n, dtype=np.float64)
    for k in range(1, n - 1):
        h = -1.0 + 2.0 * k / (n - 1)
        phi[k] = _phi_by_recursion(n, phi[k - 1], h)
    phi[n - 1] = 0.0

    directions = np.empty((n, 3), dtype=np.float64)
    for k in range(n):
        h = -1.0 + 2.0 * k / (n - 1)
        theta = acos(max(-1.0, min(1.0, h)))
        directions[k, 0] = sin(theta) * cos(phi[k])
        directions[k, 1] = sin(theta) * sin(phi[k])
        directions[k, 2] = cos(theta)

    directions.setflags(write=False)
    return directions


def cross(a: npt.ArrayLike, b: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Cross product of two 3-vectors."""
    a0, a1, a2 = a
    b0, b1, b2 = b
    return np.array([
        a1 * b2 - a2 * b1,
        a2 * b0 - a0 * b2,
        a0 * b1 - a1 * b0,
    ], dtype=np.float64)


def norm(a: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Normalise a vector to unit length.

    A zero vector is returned as NaNs, like any other division by zero in numpy;
    callers that can produce one check the length first.
    """
    a = np.asarray(a, dtype=np.float64)
    with np.errstate(invalid="ignore", divide="ignore"):
        return a / sqrt(float(a @ a))


def rotation_about_axis(axis: npt.ArrayLike, theta: float) -> npt.NDArray[np.float64]:
    """
    Rotation matrix for an angle about an arbitrary unit axis.

    See https://en.wikipedia.org/wiki/Rotation_matrix#Rotation_matrix_from_axis_and_angle

    Args:
        axis: Unit vector (x, y, z) of the rotation axis.
        theta: Rotation angle in radians (right-hand rule).

    Returns:
        (3, 3) rotation matrix.
    """
    x, y, z = axis
    s = sin(theta)
    c = cos(theta)
    c1 = 1.0 - c
    xy = x * y * c1
    xz = x * z * c1
    yz = y * z * c1
    return np.array([
        [c + x * x * c1, xy - z * s, xz + y * s],
        [xy + z * s, c + y * y * c1, yz - x * s],
        [xz - y * s, yz + x * s, c + z * z * c1],
    ], dtype=np.float64)
