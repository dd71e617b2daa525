"""
Unit tests for stl_analysis.geometry (triangle.py, mesh_stats.py).

Tests:
- Triangle soup coercion
- Areas and normals
- Signed volume
- Bounding box and welding tolerance
"""

import numpy as np
import pytest

from stl_analysis.geometry.mesh_stats import (
    BoundingBox,
    calculate_bounding_box,
    calculate_face_areas,
    calculate_surface_area,
    calculate_volume,
    weld_tolerance,
)
from stl_analysis.geometry.triangle import (
    as_triangles,
    finite_mask,
    triangle_area,
    triangle_normals,
)
from tests.conftest import make_box


class TestAsTriangles:
    """Tests for triangle soup coercion."""

    def test_single_triangle_is_promoted(self):
        """A (3, 3) input becomes a soup of one."""
        soup = as_triangles([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
        assert soup.shape == (1, 3, 3)
        assert soup.dtype == np.float32

    def test_empty_input(self):
        """Empty input gives an empty (0, 3, 3) soup."""
        assert as_triangles([]).shape == (0, 3, 3)

    def test_result_is_read_only(self, unit_cube):
        """Soups cannot be modified in place."""
        assert not unit_cube.flags.writeable
        with pytest.raises(ValueError):
            unit_cube[0, 0, 0] = 5.0

    def test_bad_shape_rejected(self):
        """Anything not viewable as (N, 3, 3) raises ValueError."""
        with pytest.raises(ValueError, match=r"\(N, 3, 3\)"):
            as_triangles(np.zeros((4, 2, 3)))

    def test_finite_mask(self):
        """Triangles with NaN or inf coordinates are flagged."""
        soup = as_triangles([
            [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            [[np.nan, 0, 0], [1, 0, 0], [0, 1, 0]],
            [[0, 0, 0], [np.inf, 0, 0], [0, 1, 0]],
        ])
        assert finite_mask(soup).tolist() == [True, False, False]


class TestAreas:
    """Tests for triangle and surface areas."""

    def test_right_triangle_area(self):
        """Half of a unit square."""
        assert triangle_area([[0, 0, 0], [1, 0, 0], [0, 1, 0]]) == pytest.approx(0.5)

    def test_area_ignores_winding(self):
        """Area is a magnitude; reversing the corners does not change it."""
        tri = [[0, 0, 0], [2, 0, 0], [0, 3, 0]]
        assert triangle_area(tri) == pytest.approx(triangle_area(tri[::-1]))
        assert triangle_area(tri) == pytest.approx(3.0)

    def test_unit_cube_surface_area(self, unit_cube):
        """Six unit faces."""
        assert calculate_surface_area(unit_cube) == pytest.approx(6.0)

    def test_face_areas(self, unit_cube):
        """Each cube triangle is half a unit square."""
        areas = calculate_face_areas(unit_cube)
        assert areas.shape == (12,)
        assert np.allclose(areas, 0.5)

    def test_empty_surface_area(self):
        """Empty soup has zero area."""
        assert calculate_surface_area(as_triangles([])) == 0.0
        assert calculate_face_areas(as_triangles([])).shape == (0,)

    def test_degenerate_area_is_zero(self, collinear_triangle):
        """Collinear corners enclose nothing."""
        assert calculate_surface_area(collinear_triangle) == 0.0


class TestNormals:
    """Tests for triangle_normals."""

    def test_cube_normals_are_unit_and_outward(self, unit_cube):
        """Every normal points away from the cube centre."""
        normals = triangle_normals(unit_cube)
        assert np.allclose(np.linalg.norm(normals, axis=1), 1.0)
        centroids = unit_cube.mean(axis=1) - 0.5
        assert np.all(np.sum(normals * centroids, axis=1) > 0)

    def test_degenerate_normal_is_zero(self, coincident_triangle):
        """No NaN for a zero cross product."""
        assert np.array_equal(triangle_normals(coincident_triangle), np.zeros((1, 3)))


class TestVolume:
    """Tests for divergence-theorem volume."""

    def test_unit_cube_volume(self, unit_cube):
        """Outward unit cube encloses volume 1."""
        assert calculate_volume(unit_cube) == pytest.approx(1.0)

    def test_inverted_cube_is_negative(self, unit_cube):
        """Reversing every triangle flips the sign."""
        inverted = as_triangles(unit_cube[:, ::-1])
        assert calculate_volume(inverted) == pytest.approx(-1.0)

    def test_translation_invariant_for_closed_mesh(self):
        """Moving a closed mesh does not change its volume."""
        box = make_box(size=2.0, origin=(5.0, -2.0, 3.0))
        assert calculate_volume(box) == pytest.approx(8.0)

    def test_degenerate_triangles_contribute_nothing(self, unit_cube, coincident_triangle):
        """Zero-area triangles do not turn the sum into NaN."""
        soup = as_triangles(np.concatenate([unit_cube, coincident_triangle]))
        assert calculate_volume(soup) == pytest.approx(1.0)

    def test_empty_volume(self):
        """Empty soup has zero volume."""
        assert calculate_volume(as_triangles([])) == 0.0


class TestBoundingBox:
    """Tests for bounding box and tolerance."""

    def test_empty_has_no_box(self):
        """None rather than a zero box."""
        assert calculate_bounding_box(as_triangles([])) is None

    def test_box_corners(self):
        """Min and max over every corner."""
        bbox = calculate_bounding_box(make_box(size=2.0, origin=(1.0, -1.0, 0.5)))
        assert np.allclose(bbox.min_point, [1.0, -1.0, 0.5])
        assert np.allclose(bbox.max_point, [3.0, 1.0, 2.5])
        assert np.allclose(bbox.center, [2.0, 0.0, 1.5])
        assert bbox.max_dimension == pytest.approx(2.0)

    def test_to_dict(self):
        """Serializable summary."""
        bbox = BoundingBox(min_point=np.zeros(3), max_point=np.array([3.0, 4.0, 0.0]))
        data = bbox.to_dict()
        assert data['dimensions'] == [3.0, 4.0, 0.0]
        assert bbox.diagonal == pytest.approx(5.0)

    def test_weld_tolerance(self):
        """Largest extent over 65536 by default."""
        bbox = BoundingBox(min_point=np.zeros(3), max_point=np.array([1.0, 4.0, 2.0]))
        assert weld_tolerance(bbox) == pytest.approx(4.0 / 65536)
        assert weld_tolerance(bbox, divisor=4.0) == pytest.approx(1.0)

    def test_weld_tolerance_without_box(self):
        """No geometry, no tolerance."""
        assert weld_tolerance(None) == 0.0
