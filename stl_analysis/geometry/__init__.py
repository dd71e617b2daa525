"""Geometry primitives: triangle soups, areas, volume, bounding boxes."""

from stl_analysis.geometry.mesh_stats import (
    BoundingBox,
    calculate_bounding_box,
    calculate_face_areas,
    calculate_surface_area,
    calculate_volume,
    weld_tolerance,
)
from stl_analysis.geometry.triangle import (
    TriangleSoup,
    as_triangles,
    triangle_area,
    triangle_normals,
)

__all__ = [
    "BoundingBox",
    "TriangleSoup",
    "as_triangles",
    "calculate_bounding_box",
    "calculate_face_areas",
    "calculate_surface_area",
    "calculate_volume",
    "triangle_area",
    "triangle_normals",
    "weld_tolerance",
]
