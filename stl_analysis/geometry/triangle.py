"""
Triangle soup representation and per-triangle math.

A triangle soup is a read-only float32 array of shape (N, 3, 3): row i holds
the three ordered corners of triangle i, exactly as they appear in a binary
STL file. Nothing here implies a winding order beyond "as supplied".
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray

TriangleSoup = NDArray[np.float32]


def as_triangles(data: Any) -> TriangleSoup:
    """Coerce array-like input to a read-only triangle soup.

    Accepts a single triangle of shape (3, 3) or a stack of shape (N, 3, 3).
    An empty sequence yields an empty soup of shape (0, 3, 3).

    Args:
        data: Nested sequences or an ndarray of coordinates.

    Returns:
        float32 array of shape (N, 3, 3) with the writeable flag cleared.

    Raises:
        ValueError: if the input cannot be viewed as (N, 3, 3).
    """
    triangles = np.array(data, dtype=np.float32)
    if triangles.size == 0:
        triangles = triangles.reshape(0, 3, 3)
    elif triangles.shape == (3, 3):
        triangles = triangles.reshape(1, 3, 3)

    if triangles.ndim != 3 or triangles.shape[1:] != (3, 3):
        raise ValueError(
            f"Expected triangles of shape (N, 3, 3), got {triangles.shape}"
        )

    triangles.flags.writeable = False
    return triangles


def edge_cross_products(triangles: TriangleSoup) -> NDArray[np.float64]:
    """Cross product of the two edges leaving the first corner, per triangle.

    Computed in float64 to keep sums over large soups stable.
    """
    t = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 3)
    return np.cross(t[:, 1] - t[:, 0], t[:, 2] - t[:, 0])


def triangle_area(triangle: Any) -> float:
    """Area of one triangle: half the magnitude of its edge cross product."""
    cross = edge_cross_products(np.asarray(triangle))
    return float(0.5 * np.linalg.norm(cross[0]))


def triangle_normals(triangles: TriangleSoup) -> NDArray[np.float32]:
    """Unit normals from the edge cross product.

    Degenerate triangles (zero cross product) get a zero normal instead of NaN.
    """
    cross = edge_cross_products(triangles)
    lengths = np.linalg.norm(cross, axis=1)
    normals = np.zeros_like(cross)
    nonzero = lengths > 0.0
    normals[nonzero] = cross[nonzero] / lengths[nonzero, np.newaxis]
    return normals.astype(np.float32)


def finite_mask(triangles: TriangleSoup) -> NDArray[np.bool_]:
    """True for triangles whose nine coordinates are all finite."""
    t = np.asarray(triangles).reshape(-1, 9)
    return np.all(np.isfinite(t), axis=1)
