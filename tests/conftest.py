"""
Pytest configuration and fixtures for stl_analysis.

Provides:
- Triangle soup fixtures (unit cube, two cubes, fan, degenerate triangles)
- STL files written with numpy-stl, independent of our own codec
- Isolation of the package logger between tests
- Common assertion helpers
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Sequence

import numpy as np
import pytest
from stl import mesh as stl_mesh

from stl_analysis.geometry.triangle import TriangleSoup, as_triangles
from stl_analysis.logging_config import PACKAGE_LOGGER


# ============================================================================
# Shape builders
# ============================================================================

# Corner i of a box has x = bit 0, y = bit 1, z = bit 2 of i.
_BOX_FACES = [
    [0, 2, 3], [0, 3, 1],  # bottom (-z)
    [4, 5, 7], [4, 7, 6],  # top (+z)
    [0, 1, 5], [0, 5, 4],  # front (-y)
    [2, 6, 7], [2, 7, 3],  # back (+y)
    [0, 4, 6], [0, 6, 2],  # left (-x)
    [1, 3, 7], [1, 7, 5],  # right (+x)
]


def make_box(size: float = 1.0, origin: Sequence[float] = (0.0, 0.0, 0.0)) -> TriangleSoup:
    """Closed, outward-oriented axis-aligned box as 12 triangles."""
    corners = np.array(
        [[(i >> axis) & 1 for axis in range(3)] for i in range(8)],
        dtype=np.float64,
    ) * size + np.asarray(origin, dtype=np.float64)
    return as_triangles(corners[_BOX_FACES])


def make_fan(segments: int = 6, radius: float = 1.0) -> TriangleSoup:
    """Flat triangle fan around the origin in the z=0 plane."""
    angles = 2 * np.pi * np.arange(segments) / segments
    ring = np.column_stack([radius * np.cos(angles), radius * np.sin(angles),
                            np.zeros(segments)])
    center = np.zeros(3)
    return as_triangles([
        [center, ring[i], ring[(i + 1) % segments]] for i in range(segments)
    ])


def save_with_numpy_stl(path: Path, triangles: TriangleSoup) -> Path:
    """Write a binary STL with numpy-stl (non-zero header, its own normals)."""
    m = stl_mesh.Mesh(np.zeros(len(triangles), dtype=stl_mesh.Mesh.dtype))
    for i, tri in enumerate(triangles):
        m.vectors[i] = tri
    m.save(str(path))
    return path


# ============================================================================
# Triangle soup fixtures
# ============================================================================

@pytest.fixture
def unit_cube() -> TriangleSoup:
    """Unit cube at the origin, 12 outward triangles."""
    return make_box()


@pytest.fixture
def two_cubes() -> TriangleSoup:
    """Two unit cubes three units apart along x."""
    return as_triangles(np.concatenate([make_box(), make_box(origin=(3.0, 0.0, 0.0))]))


@pytest.fixture
def fan() -> TriangleSoup:
    """Six-triangle fan sharing a centre vertex."""
    return make_fan()


@pytest.fixture
def coincident_triangle() -> TriangleSoup:
    """A sliver whose last two corners are the same point."""
    return as_triangles([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])


@pytest.fixture
def collinear_triangle() -> TriangleSoup:
    """Three distinct points on the x axis."""
    return as_triangles([[0.0, 0.0, 0.0], [0.5, 0.0, 0.0], [1.0, 0.0, 0.0]])


# ============================================================================
# File fixtures
# ============================================================================

@pytest.fixture
def cube_stl_path(tmp_path: Path, unit_cube: TriangleSoup) -> Path:
    """Unit cube written by numpy-stl."""
    return save_with_numpy_stl(tmp_path / "cube.stl", unit_cube)


@pytest.fixture
def two_cubes_stl_path(tmp_path: Path, two_cubes: TriangleSoup) -> Path:
    """Two disjoint cubes written by numpy-stl."""
    return save_with_numpy_stl(tmp_path / "two_cubes.stl", two_cubes)


# ============================================================================
# Runtime fixtures
# ============================================================================

@pytest.fixture
def executor():
    """Private thread pool, shut down after the test."""
    pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="test-pool")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo any setup_logging() a test performs on the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


# ============================================================================
# Assertion Helpers
# ============================================================================

def assert_valid_mesh(mesh) -> None:
    """Assert that every face and adjacency index points at a real vertex/face."""
    assert mesh.vertices.ndim == 2 and mesh.vertices.shape[1] == 3
    assert mesh.faces.ndim == 2 and mesh.faces.shape[1] == 3
    assert len(mesh.face_map) == mesh.n_vertices
    if mesh.n_faces:
        assert np.all(mesh.faces >= 0)
        assert np.all(mesh.faces < mesh.n_vertices)
    for vertex, faces in enumerate(mesh.face_map):
        for face in faces:
            assert 0 <= face < mesh.n_faces
            assert vertex in mesh.faces[face]
