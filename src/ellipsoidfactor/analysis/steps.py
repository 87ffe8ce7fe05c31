"""
Optimisation Step Functions
===========================
The moves the optimiser combines to grow an ellipsoid inside the foreground:

- shrink_to_fit:  contract until the surface no longer touches the background
- inflate_to_fit: grow one axis until the surface touches the background
- bump:           nudge the centroid towards the contacts, within a drift limit
- wiggle:         replace the orientation by a slightly perturbed frame
- turn:           rotate about the torque exerted by the contact normals

Every random choice is drawn from an injected ``numpy.random.Generator``.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ellipsoidfactor.analysis.contacts import contact_point_unit_vector
from ellipsoidfactor.model.geometry_utils import cross, norm, rotation_about_axis

if TYPE_CHECKING:
    import numpy.typing as npt
    from ellipsoidfactor.analysis.contacts import ContactSampler
    from ellipsoidfactor.model.ellipsoid import Ellipsoid
    from ellipsoidfactor.model.parameters import OptimisationParameters


def three_way_shuffle(rng: np.random.Generator) -> npt.NDArray[np.float64]:
    """
    Pick one of the three axes uniformly at random.

    Returns:
        One-hot (3, ) selector, e.g. [0, 1, 0].
    """
    selector = np.zeros(3, dtype=np.float64)
    selector[rng.integers(3)] = 1.0
    return selector


def shrink_to_fit(
    ellipsoid: Ellipsoid,
    sampler: ContactSampler,
    params: OptimisationParameters
) -> npt.NDArray[np.float64]:
    """
    Contract the ellipsoid until none of its contact points remain.

    Only the directions that produced the initial contacts are re-sampled while
    contracting. A final, slightly larger contraction leaves some clearance.

    Returns:
        Contact points left when the loop stopped (empty unless the safety
        counter ran out).
    """
    contact_points, directions = sampler.find_contacts(ellipsoid)

    safety = 0
    while len(contact_points) > 0 and safety < params.max_iterations:
        ellipsoid.contract_by_fraction(params.shrink_step)
        contact_points, directions = sampler.find_contacts(ellipsoid, directions)
        safety += 1

    ellipsoid.contract_by_fraction(params.shrink_clearance)
    return contact_points


def inflate_to_fit(
    ellipsoid: Ellipsoid,
    sampler: ContactSampler,
    params: OptimisationParameters,
    axes: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Dilate the selected axes until enough contact points appear.

    Args:
        ellipsoid: The ellipsoid, modified in place.
        sampler: Contact sampler of the current task.
        params: Optimisation parameters.
        axes: (3, ) selector, multiplied by the sampling increment per step.

    Returns:
        The contact points after the last step.
    """
    contact_points = sampler.find_contact_points(ellipsoid)

    da, db, dc = axes * params.sampling_increment
    safety = 0
    while len(contact_points) < params.contact_sensitivity and safety < params.max_iterations:
        ellipsoid.dilate(da, db, dc)
        contact_points = sampler.find_contact_points(ellipsoid)
        safety += 1
    return contact_points


def bump(
    ellipsoid: Ellipsoid,
    contact_points: npt.NDArray[np.float64],
    seed: npt.NDArray[np.float64],
    params: OptimisationParameters
) -> bool:
    """
    Move the centroid a little along the mean direction of the contact points.

    The move is dropped when it would take the centroid `max_drift` or further
    from the seed point.

    Args:
        ellipsoid: The ellipsoid, modified in place.
        contact_points: (m, 3) current contact points, m >= 1.
        seed: Physical position of the seed point.
        params: Optimisation parameters.

    Returns:
        True if the centroid was moved.
    """
    displacement = params.sampling_increment * params.bump_fraction
    u = contact_point_unit_vector(ellipsoid, contact_points)
    if not np.all(np.isfinite(u)):
        return False

    candidate = ellipsoid.centroid + u * displacement
    if np.linalg.norm(candidate - seed) < params.max_drift:
        ellipsoid.set_centroid(candidate)
        return True
    return False


def wiggle(
    ellipsoid: Ellipsoid,
    rng: np.random.Generator,
    params: OptimisationParameters
) -> None:
    """
    Perturb the orientation by a small random rotation.

    The perturbation frame has a zeroth column (a, b, c) with small random b and
    c, so it stays within about `wiggle_spread` rad of the identity's first
    axis. The other two columns are built by cross products with a Gaussian
    random vector. The frame is composed with the current rotation, so the
    first axis stays close to where it was.
    """
    spread = params.wiggle_spread
    b = rng.uniform(-spread, spread)
    c = rng.uniform(-spread, spread)
    a = np.sqrt(1.0 - b * b - c * c)

    zeroth_column = np.array([a, b, c])

    # a Gaussian vector is almost surely not parallel to the zeroth column
    vector = rng.standard_normal(3)
    first_column = norm(cross(zeroth_column, vector))
    second_column = norm(cross(zeroth_column, first_column))

    ellipsoid.rotate(np.column_stack((zeroth_column, first_column, second_column)))


def calculate_torque(
    ellipsoid: Ellipsoid,
    contact_points: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Torque of the unit surface normals acting at the contact points.

    Each contact point is moved into the ellipsoid's frame, the unit normal of
    the axis-aligned ellipsoid is evaluated there and rotated back; the torque
    is the negated sum of (p - c) x n.

    Args:
        ellipsoid: The ellipsoid.
        contact_points: (m, 3) contact points.

    Returns:
        (3, ) torque vector.
    """
    rotation = ellipsoid.rotation
    radii = ellipsoid.radii

    offsets = contact_points - ellipsoid.centroid
    local = offsets @ rotation                  # Rᵀ p for every row
    normals = local * (2.0 / radii ** 2)
    normals /= np.linalg.norm(normals, axis=1)[:, None]
    world_normals = normals @ rotation.T        # R n for every row

    return -np.cross(offsets, world_normals).sum(axis=0)


def turn(
    ellipsoid: Ellipsoid,
    sampler: ContactSampler,
    params: OptimisationParameters
) -> bool:
    """
    Rotate the ellipsoid by `turn_angle` about the normalised contact torque.

    No-op when there are no contacts or the torque vanishes.

    Returns:
        True if the ellipsoid was rotated.
    """
    contact_points = sampler.find_contact_points(ellipsoid)
    if len(contact_points) == 0:
        return False

    torque = calculate_torque(ellipsoid, contact_points)
    if not np.any(torque):
        return False
    ellipsoid.rotate(rotation_about_axis(norm(torque), params.turn_angle))
    return True
