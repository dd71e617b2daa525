"""
Tolerance-aware vertex welding over a quantized spatial hash.

Every vertex is mapped to an integer cell `floor(coord / tolerance)`. A new
vertex probes a small block of cells around its own and is merged into the
first record found there whose representative lies within tolerance
(Chebyshev distance). Otherwise it starts a new record in its own cell.

The default probe block is 2x2x2 (cells x-1..x, y-1..y, z-1..z). It does not
see neighbours on the +1 side of a cell boundary, so two points closer than
the tolerance can stay separate. Existing results depend on that behaviour;
`neighborhood=3` switches to the full 3x3x3 block.

Also holds the degenerate-triangle filter applied before welding.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from stl_analysis import config
from stl_analysis.geometry.triangle import (
    TriangleSoup,
    as_triangles,
    edge_cross_products,
    finite_mask,
)

logger = logging.getLogger(__name__)

Cell = Tuple[int, int, int]
Point = Tuple[float, float, float]


@dataclass
class MergedVertex:
    """A welded vertex.

    Attributes:
        position: representative position (the first vertex seen in the cell)
        indices: positions in the input stream of every vertex merged here
    """
    position: Point
    indices: List[int] = field(default_factory=list)


def quantize(vertices: NDArray, tolerance: float) -> NDArray[np.int64]:
    """Integer cell of each vertex: floor(coord / tolerance) per axis."""
    points = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    return np.floor(points / tolerance).astype(np.int64)


def probe_offsets(neighborhood: int = config.DEFAULT_NEIGHBORHOOD) -> List[Cell]:
    """Cell offsets probed for an incoming vertex, in probe order.

    x varies slowest and the vertex's own cell is probed last for the 2x2x2
    block.
    """
    if neighborhood not in config.NEIGHBORHOODS:
        raise ValueError(
            f"neighborhood must be one of {config.NEIGHBORHOODS}, got {neighborhood!r}"
        )
    axis = range(-1, neighborhood - 1)
    return list(itertools.product(axis, axis, axis))


def _chebyshev(a: Sequence[float], b: Sequence[float]) -> float:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]), abs(a[2] - b[2]))


def merge_vertices(
    vertices: NDArray,
    tolerance: float,
    neighborhood: int = config.DEFAULT_NEIGHBORHOOD,
) -> Dict[Cell, MergedVertex]:
    """Weld a stream of vertices.

    Args:
        vertices: (N, 3) positions; index i in the result refers to row i.
        tolerance: Largest per-axis difference treated as the same point.
        neighborhood: 2 for the 2x2x2 probe block, 3 for 3x3x3.

    Returns:
        Records keyed by the cell of their representative, in the order the
        representatives were first seen. Every input index appears in exactly
        one record.

    Raises:
        ValueError: on a non-positive tolerance with non-empty input, or an
            unknown neighborhood.
    """
    offsets = probe_offsets(neighborhood)
    points = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return {}
    if not tolerance > 0.0:
        raise ValueError(f"Welding tolerance must be positive, got {tolerance!r}")

    cells = quantize(points, tolerance).tolist()
    merged: Dict[Cell, MergedVertex] = {}

    for index, (point, cell) in enumerate(zip(points.tolist(), cells)):
        x, y, z = cell
        for dx, dy, dz in offsets:
            probe = (x + dx, y + dy, z + dz)
            record = merged.get(probe)
            if record is None:
                continue
            if (dx, dy, dz) == (0, 0, 0) or _chebyshev(record.position, point) < tolerance:
                record.indices.append(index)
                break
        else:
            merged[(x, y, z)] = MergedVertex(position=tuple(point), indices=[index])

    logger.debug("Welded vertices", extra={
        "input_vertices": len(points),
        "merged_vertices": len(merged),
        "neighborhood": neighborhood,
    })
    return merged


def degenerate_mask(
    triangles: TriangleSoup,
    tolerance: float,
    mode: str = config.DEFAULT_DEGENERACY,
) -> NDArray[np.bool_]:
    """Flag triangles that must not become faces.

    "coincident": some edge has a Chebyshev extent below the tolerance (or
    exactly zero), i.e. two corners are the same point. Three distinct
    collinear corners pass this test.
    "collinear": additionally flags triangles whose height over their longest
    edge is below the tolerance.

    Triangles with non-finite coordinates are always flagged.
    """
    if mode not in config.DEGENERACY_MODES:
        raise ValueError(
            f"mode must be one of {config.DEGENERACY_MODES}, got {mode!r}"
        )

    t = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 3)
    if len(t) == 0:
        return np.zeros(0, dtype=bool)

    edges = t[:, [1, 2, 0]] - t
    with np.errstate(invalid='ignore'):
        extents = np.max(np.abs(edges), axis=2)
        degenerate = np.any((extents < tolerance) | (extents == 0.0), axis=1)

        if mode == "collinear":
            longest = np.max(np.linalg.norm(edges, axis=2), axis=1)
            doubled_area = np.linalg.norm(edge_cross_products(t), axis=1)
            heights = np.zeros(len(t))
            nonzero = longest > 0.0
            heights[nonzero] = doubled_area[nonzero] / longest[nonzero]
            degenerate |= heights < tolerance

    return degenerate | ~finite_mask(t)


def filter_degenerate(
    triangles: TriangleSoup,
    tolerance: float,
    mode: str = config.DEFAULT_DEGENERACY,
) -> TriangleSoup:
    """Return the triangles `degenerate_mask` does not flag, in input order."""
    triangles = as_triangles(triangles)
    return as_triangles(triangles[~degenerate_mask(triangles, tolerance, mode)])
