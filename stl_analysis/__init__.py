"""
stl_analysis: turn binary STL triangle soups into welded, indexed meshes and
measure them (surface area, signed volume, body count) in the background.

Command line entry point: `python -m stl_analysis`.
"""

from stl_analysis.analysis import AnalysisRequest, AnalysisSnapshot, MeshAnalysis
from stl_analysis.geometry import (
    as_triangles,
    calculate_bounding_box,
    calculate_surface_area,
    calculate_volume,
)
from stl_analysis.io import STLCodecError, read_stl_binary, write_stl_binary
from stl_analysis.logging_config import get_logger, log_timing, setup_logging, timed
from stl_analysis.topology import IndexedMesh, build_indexed_mesh, count_bodies

__version__ = "0.1.0"

__all__ = [
    "AnalysisRequest",
    "AnalysisSnapshot",
    "IndexedMesh",
    "MeshAnalysis",
    "STLCodecError",
    "as_triangles",
    "build_indexed_mesh",
    "calculate_bounding_box",
    "calculate_surface_area",
    "calculate_volume",
    "count_bodies",
    "get_logger",
    "log_timing",
    "read_stl_binary",
    "setup_logging",
    "timed",
    "write_stl_binary",
]
