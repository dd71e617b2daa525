"""Mesh topology: vertex welding, indexed meshes, body counting."""

from stl_analysis.topology.bodies import count_bodies, label_islands
from stl_analysis.topology.mesh_builder import IndexedMesh, build_indexed_mesh
from stl_analysis.topology.welder import (
    MergedVertex,
    degenerate_mask,
    filter_degenerate,
    merge_vertices,
)

__all__ = [
    "IndexedMesh",
    "MergedVertex",
    "build_indexed_mesh",
    "count_bodies",
    "degenerate_mask",
    "filter_degenerate",
    "label_islands",
    "merge_vertices",
]
