"""
Connected-component ("body") counting over an indexed mesh.

Two vertices belong to the same body when a chain of faces connects them.
This is a topological measure: two solids touching at a single shared vertex
are one body.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from stl_analysis.logging_config import timed
from stl_analysis.topology.mesh_builder import IndexedMesh

logger = logging.getLogger(__name__)


@timed()
def label_islands(mesh: IndexedMesh) -> NDArray[np.int64]:
    """Label every vertex with the index of its connected component.

    Labels start at 1 and are assigned in vertex index order; 0 never
    survives (it marks unvisited vertices during the fill).

    Args:
        mesh: Indexed mesh with a populated face_map

    Returns:
        (V,) array of island labels
    """
    faces = mesh.faces.tolist()
    labels = [0] * mesh.n_vertices
    island = 0

    for start in range(mesh.n_vertices):
        if labels[start] != 0:
            continue

        island += 1
        labels[start] = island
        open_set = [start]
        while open_set:
            vertex = open_set.pop()
            for face in mesh.face_map[vertex]:
                for neighbour in faces[face]:
                    if labels[neighbour] == 0:
                        labels[neighbour] = island
                        open_set.append(neighbour)

    return np.array(labels, dtype=np.int64)


def count_bodies(mesh: IndexedMesh) -> int:
    """Number of connected components of the mesh (0 for an empty mesh)."""
    labels = label_islands(mesh)
    n_bodies = int(labels.max()) if len(labels) else 0
    logger.debug("Counted bodies", extra={
        "vertices": mesh.n_vertices,
        "bodies": n_bodies,
    })
    return n_bodies
