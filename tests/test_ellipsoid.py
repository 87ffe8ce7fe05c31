import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from ellipsoidfactor.model.ellipsoid import Ellipsoid
from ellipsoidfactor.model.geometry_utils import generalized_spiral_set_on_sphere, rotation_about_axis

AXIS_DIRECTIONS = np.array([
    [1.0, 0.0, 0.0], [-1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0], [0.0, -1.0, 0.0],
    [0.0, 0.0, 1.0], [0.0, 0.0, -1.0],
])


@pytest.fixture
def rotated():
    rotation = Rotation.from_euler("zyx", [30, -20, 65], degrees=True).as_matrix()
    return Ellipsoid(radii=(2.0, 3.0, 5.0), centroid=(1.0, -2.0, 4.0), rotation=rotation)


@pytest.mark.parametrize("radii", [(1.0, 1.0, 1.0), (0.2, 3.0, 7.5), (10.0, 2.5, 0.01)])
def test_volume(radii):
    e = Ellipsoid(radii, (0.0, 0.0, 0.0))
    a, b, c = radii
    assert e.volume == pytest.approx(4.0 / 3.0 * np.pi * a * b * c)


def test_contains_centroid_and_rejects_far_points(rotated):
    assert rotated.contains(rotated.centroid)

    rng = np.random.default_rng(0)
    for _ in range(20):
        v = rng.standard_normal(3)
        v *= 5.01 / np.linalg.norm(v)
        assert not rotated.contains(rotated.centroid + v)


def test_contains_matches_rotated_axes(rotated):
    rotation = rotated.rotation
    # just inside along the long axis, just outside along the short one
    assert rotated.contains(rotated.centroid + 4.9 * rotation[:, 2])
    assert not rotated.contains(rotated.centroid + 2.1 * rotation[:, 0])


def test_dilate_then_contract_restores_radii():
    e = Ellipsoid((2.0, 3.0, 4.0), (0.0, 0.0, 0.0))
    e.dilate(0.5, 0.5, 0.5)
    e.contract(0.5)
    np.testing.assert_allclose(e.radii, [2.0, 3.0, 4.0])


@pytest.mark.parametrize("amount", [2.0, 2.5, 100.0])
def test_contract_is_noop_when_too_large(amount):
    e = Ellipsoid((2.0, 3.0, 4.0), (0.0, 0.0, 0.0))
    e.contract(amount)
    np.testing.assert_array_equal(e.radii, [2.0, 3.0, 4.0])


def test_contract_by_fraction():
    e = Ellipsoid((2.0, 4.0, 8.0), (0.0, 0.0, 0.0))
    e.contract_by_fraction(0.25)
    np.testing.assert_allclose(e.radii, [1.5, 3.0, 6.0])

    e.contract_by_fraction(1.0)
    np.testing.assert_allclose(e.radii, [1.5, 3.0, 6.0])


def test_dilate_to_non_positive_radius_raises_and_keeps_radii():
    e = Ellipsoid((2.0, 3.0, 4.0), (0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        e.dilate(-2.0, 0.0, 0.0)
    np.testing.assert_array_equal(e.radii, [2.0, 3.0, 4.0])


def test_constructor_validation():
    with pytest.raises(ValueError):
        Ellipsoid((1.0, 0.0, 1.0), (0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        Ellipsoid((1.0, 1.0), (0.0, 0.0, 0.0))


def test_surface_points_on_axis_directions_identity():
    e = Ellipsoid((2.0, 3.0, 4.0), (1.0, 2.0, 3.0))
    points = e.get_surface_points(AXIS_DIRECTIONS)
    expected = np.array([
        [3.0, 2.0, 3.0], [-1.0, 2.0, 3.0],
        [1.0, 5.0, 3.0], [1.0, -1.0, 3.0],
        [1.0, 2.0, 7.0], [1.0, 2.0, -1.0],
    ])
    np.testing.assert_allclose(points, expected)


def test_surface_points_on_axis_directions_rotated(rotated):
    points = rotated.get_surface_points(AXIS_DIRECTIONS)
    c, r, m = rotated.centroid, rotated.radii, rotated.rotation
    for i in range(3):
        np.testing.assert_allclose(points[2 * i], c + r[i] * m[:, i], atol=1e-12)
        np.testing.assert_allclose(points[2 * i + 1], c - r[i] * m[:, i], atol=1e-12)


def test_surface_points_lie_on_the_surface(rotated):
    points = rotated.get_surface_points(generalized_spiral_set_on_sphere(300))
    v = points - rotated.centroid
    q = np.einsum("ij,jk,ik->i", v, rotated.shape_matrix, v)
    np.testing.assert_allclose(q, 1.0, rtol=1e-9)


def test_surface_points_into_buffer(rotated):
    directions = generalized_spiral_set_on_sphere(20)
    out = np.empty((20, 3))
    result = rotated.get_surface_points(directions, out=out)
    assert result is out


def test_rotate_forward_and_back(rotated):
    before = rotated.rotation
    axis = np.array([1.0, 2.0, -0.5]) / np.linalg.norm([1.0, 2.0, -0.5])
    rotated.rotate(rotation_about_axis(axis, 0.7))
    assert not np.allclose(rotated.rotation, before)
    rotated.rotate(rotation_about_axis(axis, -0.7))
    np.testing.assert_allclose(rotated.rotation, before, atol=1e-12)


def test_shape_matrix_follows_rotation(rotated):
    h_before = rotated.shape_matrix.copy()
    rotated.rotate(rotation_about_axis([0.0, 0.0, 1.0], 0.3))
    assert not np.allclose(rotated.shape_matrix, h_before)


def test_bounding_box_identity():
    e = Ellipsoid((2.0, 3.0, 4.0), (1.0, 2.0, 3.0))
    np.testing.assert_allclose(e.get_axis_aligned_bounding_box(), (-1.0, 3.0, -1.0, 5.0, -1.0, 7.0))


def test_bounding_box_encloses_and_touches_surface(rotated):
    x0, x1, y0, y1, z0, z1 = rotated.get_axis_aligned_bounding_box()
    points = rotated.get_surface_points(generalized_spiral_set_on_sphere(2000))
    lo = points.min(axis=0)
    hi = points.max(axis=0)

    assert np.all(lo >= np.array([x0, y0, z0]) - 1e-9)
    assert np.all(hi <= np.array([x1, y1, z1]) + 1e-9)
    # a dense sampling gets close to the exact extents
    np.testing.assert_allclose(lo, [x0, y0, z0], atol=0.3)
    np.testing.assert_allclose(hi, [x1, y1, z1], atol=0.3)


def test_copy_is_independent(rotated):
    clone = rotated.copy()
    clone.dilate(1.0, 1.0, 1.0)
    clone.set_centroid((0.0, 0.0, 0.0))
    clone.rotate(rotation_about_axis([1.0, 0.0, 0.0], 0.5))

    np.testing.assert_allclose(rotated.radii, [2.0, 3.0, 5.0])
    np.testing.assert_allclose(rotated.centroid, [1.0, -2.0, 4.0])


def test_accessors_return_copies(rotated):
    rotated.radii[0] = 100.0
    rotated.centroid[0] = 100.0
    assert rotated.radii[0] == 2.0
    assert rotated.centroid[0] == 1.0


def test_sorted_radii():
    e = Ellipsoid((5.0, 1.0, 3.0), (0.0, 0.0, 0.0))
    np.testing.assert_array_equal(e.get_sorted_radii(), [1.0, 3.0, 5.0])
    np.testing.assert_array_equal(e.radii, [5.0, 1.0, 3.0])
