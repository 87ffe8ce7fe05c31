import numpy as np
import pytest

from ellipsoidfactor.analysis.contacts import (
    BACKGROUND, OUT_OF_BOUNDS, ContactSampler, contact_point_unit_vector
)
from ellipsoidfactor.model.ellipsoid import Ellipsoid
from ellipsoidfactor.model.geometry_utils import generalized_spiral_set_on_sphere

DIRECTIONS = generalized_spiral_set_on_sphere(100)


def test_small_sphere_is_contained(small_box_volume):
    sampler = ContactSampler(small_box_volume, DIRECTIONS)
    e = Ellipsoid.sphere(1.0, (7.0, 7.0, 7.0))

    assert sampler.is_contained(e)
    assert len(sampler.find_contact_points(e)) == 0


def test_sphere_enclosing_the_box_touches_everywhere(small_box_volume):
    sampler = ContactSampler(small_box_volume, DIRECTIONS)
    e = Ellipsoid.sphere(6.0, (7.0, 7.0, 7.0))

    points, directions = sampler.find_contacts(e)
    assert len(points) == len(DIRECTIONS)
    np.testing.assert_array_equal(directions, DIRECTIONS)
    assert not sampler.is_contained(e)


def test_contacts_are_background_voxels(small_box_volume):
    sampler = ContactSampler(small_box_volume, DIRECTIONS)
    e = Ellipsoid.sphere(4.0, (7.0, 7.0, 7.0))

    points, directions = sampler.find_contacts(e)
    assert 0 < len(points) < len(DIRECTIONS)
    for x, y, z in np.floor(points).astype(int):
        assert not small_box_volume.mask[z, y, x]
    np.testing.assert_allclose(e.get_surface_points(directions), points)


def test_restricting_directions(small_box_volume):
    sampler = ContactSampler(small_box_volume, DIRECTIONS)
    e = Ellipsoid.sphere(4.0, (7.0, 7.0, 7.0))

    _, directions = sampler.find_contacts(e)
    subset = directions[:3]
    points, returned = sampler.find_contacts(e, subset)
    assert len(points) == 3
    np.testing.assert_array_equal(returned, subset)


def test_out_of_bounds_points_are_not_contacts(solid_volume):
    sampler = ContactSampler(solid_volume, DIRECTIONS)
    e = Ellipsoid.sphere(3.0, (1.0, 1.0, 1.0))

    _, codes = sampler.classify(e)
    assert np.any(codes == OUT_OF_BOUNDS)
    assert not np.any(codes == BACKGROUND)
    assert sampler.is_contained(e)


def test_mostly_out_of_bounds_is_invalid(solid_volume):
    sampler = ContactSampler(solid_volume, DIRECTIONS)
    assert sampler.is_invalid(Ellipsoid.sphere(3.0, (1.0, 1.0, 1.0)))
    assert not sampler.is_invalid(Ellipsoid.sphere(2.0, (5.0, 5.0, 5.0)))


def test_too_small_is_invalid(solid_volume):
    sampler = ContactSampler(solid_volume, DIRECTIONS)
    e = Ellipsoid((2.0, 0.4, 2.0), (5.0, 5.0, 5.0))
    assert sampler.is_invalid(e, minimum_semi_axis=0.5)
    assert not sampler.is_invalid(e, minimum_semi_axis=0.3)


def test_bigger_than_the_image_is_invalid(solid_volume):
    sampler = ContactSampler(solid_volume, DIRECTIONS)
    e = Ellipsoid((50.0, 0.5, 50.0), (5.0, 5.0, 5.0))
    assert e.volume > solid_volume.physical_volume
    assert sampler.is_invalid(e)


def test_contact_point_unit_vector():
    e = Ellipsoid.sphere(1.0, (1.0, 1.0, 1.0))

    u = contact_point_unit_vector(e, np.array([[3.0, 1.0, 1.0], [1.0, 4.0, 1.0]]))
    np.testing.assert_allclose(u, np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0))

    cancelled = contact_point_unit_vector(e, np.array([[3.0, 1.0, 1.0], [-1.0, 1.0, 1.0]]))
    assert np.all(np.isnan(cancelled))

    with pytest.raises(ValueError):
        contact_point_unit_vector(e, np.empty((0, 3)))
