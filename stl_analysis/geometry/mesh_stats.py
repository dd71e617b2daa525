"""
Whole-soup measurements.

Provides:
- Axis-aligned bounding box of a triangle soup
- Surface area (sum of triangle areas)
- Signed volume by the divergence theorem
- Welding tolerance derived from the bounding box
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from stl_analysis import config
from stl_analysis.geometry.triangle import TriangleSoup, edge_cross_products


@dataclass
class BoundingBox:
    """Axis-aligned bounding box.

    Attributes:
        min_point: Minimum corner (x_min, y_min, z_min)
        max_point: Maximum corner (x_max, y_max, z_max)
    """
    min_point: NDArray[np.float64]
    max_point: NDArray[np.float64]

    @property
    def dimensions(self) -> NDArray[np.float64]:
        """Extent along each axis."""
        return self.max_point - self.min_point

    @property
    def center(self) -> NDArray[np.float64]:
        return (self.min_point + self.max_point) / 2

    @property
    def max_dimension(self) -> float:
        """Largest axis extent."""
        return float(np.max(self.dimensions))

    @property
    def diagonal(self) -> float:
        return float(np.linalg.norm(self.dimensions))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'min': self.min_point.tolist(),
            'max': self.max_point.tolist(),
            'dimensions': self.dimensions.tolist(),
            'center': self.center.tolist(),
        }


def calculate_bounding_box(triangles: TriangleSoup) -> Optional[BoundingBox]:
    """Bounding box over every corner of every triangle.

    Args:
        triangles: (N, 3, 3) soup

    Returns:
        BoundingBox, or None if the soup is empty
    """
    if len(triangles) == 0:
        return None

    corners = np.asarray(triangles, dtype=np.float64).reshape(-1, 3)
    return BoundingBox(
        min_point=np.min(corners, axis=0),
        max_point=np.max(corners, axis=0),
    )


def weld_tolerance(
    bbox: Optional[BoundingBox],
    divisor: float = config.TOLERANCE_DIVISOR,
) -> float:
    """Smallest distance treated as distinct for a model of this size.

    Returns:
        Largest bounding-box extent divided by `divisor`; 0.0 without a box.
    """
    if bbox is None:
        return 0.0
    return bbox.max_dimension / divisor


def calculate_face_areas(triangles: TriangleSoup) -> NDArray[np.float64]:
    """Area of each triangle: 0.5 * |e1 x e2|."""
    if len(triangles) == 0:
        return np.array([], dtype=np.float64)
    return 0.5 * np.linalg.norm(edge_cross_products(triangles), axis=1)


def calculate_surface_area(triangles: TriangleSoup) -> float:
    """Total surface area of the soup (0.0 when empty)."""
    return float(np.sum(calculate_face_areas(triangles)))


def calculate_volume(triangles: TriangleSoup) -> float:
    """Signed volume using the divergence theorem.

    Each triangle contributes the signed tetrahedron it forms with the
    origin: area * (distance from the origin to the triangle plane along
    the unit normal) / 3. Only meaningful for closed, consistently
    outward-oriented meshes; a negative result indicates inverted
    orientation. Degenerate triangles contribute nothing.

    Args:
        triangles: (N, 3, 3) soup

    Returns:
        Signed volume
    """
    if len(triangles) == 0:
        return 0.0

    t = np.asarray(triangles, dtype=np.float64)
    cross = edge_cross_products(t)
    lengths = np.linalg.norm(cross, axis=1)
    areas = 0.5 * lengths

    nonzero = lengths > 0.0
    heights = np.zeros(len(t))
    heights[nonzero] = (
        np.sum(cross[nonzero] * t[nonzero, 0], axis=1) / lengths[nonzero]
    )

    return float(np.sum(areas * heights) / 3.0)
