"""
Indexed mesh construction from a triangle soup.

Pipeline:
    1. Drop triangles with non-finite coordinates.
    2. Tolerance = largest bounding-box extent / divisor.
    3. Drop degenerate triangles (see welder.degenerate_mask).
    4. Weld the corner stream of the remaining triangles.
    5. One vertex per welded group; face corners rewritten to it.
    6. Vertex -> faces adjacency from the same groups.

Usage:
    from stl_analysis.topology.mesh_builder import IndexedMesh

    mesh = IndexedMesh.from_triangles(soup)
    for face in mesh.face_map[vertex]:
        print(mesh.faces[face])
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from stl_analysis import config
from stl_analysis.geometry.mesh_stats import (
    BoundingBox,
    calculate_bounding_box,
    weld_tolerance,
)
from stl_analysis.geometry.triangle import TriangleSoup, as_triangles, finite_mask
from stl_analysis.topology.welder import degenerate_mask, merge_vertices

logger = logging.getLogger(__name__)


@dataclass
class IndexedMesh:
    """Welded triangle mesh with vertex-to-face adjacency.

    Attributes:
        vertices: (V, 3) float32 unique vertex positions (read-only)
        faces: (F, 3) int64 vertex indices, one row per retained triangle (read-only)
        face_map: for each vertex, the faces that reference it
        tolerance: welding tolerance used to build the mesh
        n_degenerate: input triangles dropped before welding
    """
    vertices: NDArray[np.float32]
    faces: NDArray[np.int64]
    face_map: List[List[int]] = field(default_factory=list)
    tolerance: float = 0.0
    n_degenerate: int = 0

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float32).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        self.vertices.flags.writeable = False
        self.faces.flags.writeable = False

    @classmethod
    def empty(cls, tolerance: float = 0.0, n_degenerate: int = 0) -> 'IndexedMesh':
        return cls(
            vertices=np.zeros((0, 3), dtype=np.float32),
            faces=np.zeros((0, 3), dtype=np.int64),
            tolerance=tolerance,
            n_degenerate=n_degenerate,
        )

    @classmethod
    def from_triangles(
        cls,
        triangles: TriangleSoup,
        divisor: float = config.TOLERANCE_DIVISOR,
        neighborhood: int = config.DEFAULT_NEIGHBORHOOD,
        degeneracy: str = config.DEFAULT_DEGENERACY,
    ) -> 'IndexedMesh':
        """Build a mesh from a triangle soup. See `build_indexed_mesh`."""
        return build_indexed_mesh(triangles, divisor, neighborhood, degeneracy)

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    def bounds(self) -> Optional[BoundingBox]:
        """Bounding box of the welded vertices, None for an empty mesh."""
        if self.n_vertices == 0:
            return None
        points = self.vertices.astype(np.float64)
        return BoundingBox(
            min_point=np.min(points, axis=0),
            max_point=np.max(points, axis=0),
        )

    def to_triangles(self) -> TriangleSoup:
        """Expand the faces back into a triangle soup of welded positions."""
        if self.n_faces == 0:
            return as_triangles([])
        return as_triangles(self.vertices[self.faces])


def build_indexed_mesh(
    triangles: TriangleSoup,
    divisor: float = config.TOLERANCE_DIVISOR,
    neighborhood: int = config.DEFAULT_NEIGHBORHOOD,
    degeneracy: str = config.DEFAULT_DEGENERACY,
) -> IndexedMesh:
    """Turn a triangle soup into an indexed mesh.

    Faces index the retained (non-degenerate) triangles in input order. The
    vertex list follows the order in which welded groups were first seen.
    Empty input (or input made only of degenerate triangles) yields an empty
    mesh; this function does not raise on any valid soup.

    Args:
        triangles: (N, 3, 3) soup
        divisor: Tolerance divisor applied to the largest bbox extent
        neighborhood: Welder probe block (2 or 3)
        degeneracy: Degenerate-triangle test ("coincident" or "collinear")

    Returns:
        IndexedMesh
    """
    soup = as_triangles(triangles)
    finite = soup[finite_mask(soup)]

    tolerance = weld_tolerance(calculate_bounding_box(finite), divisor)
    retained = finite[~degenerate_mask(finite, tolerance, degeneracy)]
    n_degenerate = len(soup) - len(retained)

    if len(retained) == 0:
        mesh = IndexedMesh.empty(tolerance, n_degenerate)
        logger.debug("Built empty mesh", extra={
            "input_triangles": len(soup),
            "degenerate": n_degenerate,
        })
        return mesh

    groups = merge_vertices(retained.reshape(-1, 3), tolerance, neighborhood)

    vertices = np.empty((len(groups), 3), dtype=np.float32)
    corners = np.empty(len(retained) * 3, dtype=np.int64)
    face_map: List[List[int]] = []

    for vertex_index, group in enumerate(groups.values()):
        vertices[vertex_index] = group.position
        corners[group.indices] = vertex_index
        face_map.append(list(dict.fromkeys(i // 3 for i in group.indices)))

    mesh = IndexedMesh(
        vertices=vertices,
        faces=corners.reshape(-1, 3),
        face_map=face_map,
        tolerance=tolerance,
        n_degenerate=n_degenerate,
    )

    logger.debug("Built indexed mesh", extra={
        "input_triangles": len(soup),
        "degenerate": n_degenerate,
        "vertices": mesh.n_vertices,
        "faces": mesh.n_faces,
        "tolerance": tolerance,
    })
    return mesh
