"""
Background analysis of one triangle soup.

`MeshAnalysis` starts the mesh build, surface area and volume computations
as soon as it is created and lets the caller poll them. The body count is
started on request and reads the mesh built by the first computation.

With the default "best_effort" policy the body-count worker looks at the
mesh exactly once: if the mesh is not built yet it reports 0 instead of
waiting. Callers that request the body count only after `mesh_ready` is True
never see this. The "await" policy blocks the worker on the mesh instead.
"""

import logging
import threading
from concurrent.futures import Executor
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from stl_analysis.analysis.request import AnalysisRequest
from stl_analysis.geometry.mesh_stats import calculate_surface_area, calculate_volume
from stl_analysis.geometry.triangle import TriangleSoup, as_triangles
from stl_analysis.project_config import ProjectConfig
from stl_analysis.topology.bodies import count_bodies
from stl_analysis.topology.mesh_builder import IndexedMesh, build_indexed_mesh

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSnapshot:
    """Values available at one instant; None means still computing."""
    original_face_count: int
    mesh_ready: bool
    n_vertices: Optional[int] = None
    n_faces: Optional[int] = None
    n_degenerate: Optional[int] = None
    surface_area: Optional[float] = None
    volume: Optional[float] = None
    body_count: Optional[int] = None

    def summary(self) -> str:
        """Human-readable report."""
        def show(value: Any, fmt: str = "{}") -> str:
            return "pending" if value is None else fmt.format(value)

        lines = [
            "Mesh Analysis",
            "=" * 40,
            f"Triangles:    {self.original_face_count:,}",
            f"Vertices:     {show(self.n_vertices, '{:,}')}",
            f"Faces:        {show(self.n_faces, '{:,}')}",
            f"Degenerate:   {show(self.n_degenerate, '{:,}')}",
            "",
            f"Surface Area: {show(self.surface_area, '{:.6g}')}",
            f"Volume:       {show(self.volume, '{:.6g}')}",
            f"Bodies:       {show(self.body_count)}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class MeshAnalysis:
    """Background computations over one triangle soup.

    Args:
        triangles: Soup to analyse, or None for an empty session with no
            requests at all
        config: Welding and scheduling settings (defaults if None)
        executor: Where requests run (the package thread pool if None)

    Raises:
        ConfigError: if `config` does not validate
    """

    def __init__(
        self,
        triangles: Optional[TriangleSoup] = None,
        config: Optional[ProjectConfig] = None,
        executor: Optional[Executor] = None,
    ):
        self.config = (config or ProjectConfig()).validate()
        self._executor = executor
        self._lock = threading.Lock()

        self.mesh_request: Optional[AnalysisRequest[IndexedMesh]] = None
        self.surface_area_request: Optional[AnalysisRequest[float]] = None
        self.volume_request: Optional[AnalysisRequest[float]] = None
        self.body_count_request: Optional[AnalysisRequest[int]] = None

        if triangles is None:
            self.original_face_count = 0
            return

        soup = as_triangles(triangles)
        self.original_face_count = len(soup)
        welding = self.config.welding

        self.mesh_request = AnalysisRequest.submit(
            lambda: build_indexed_mesh(
                soup,
                divisor=welding.tolerance_divisor,
                neighborhood=welding.neighborhood,
                degeneracy=welding.degeneracy,
            ),
            name="build mesh",
            executor=executor,
        )
        self.surface_area_request = AnalysisRequest.submit(
            lambda: calculate_surface_area(soup), name="surface area", executor=executor,
        )
        self.volume_request = AnalysisRequest.submit(
            lambda: calculate_volume(soup), name="volume", executor=executor,
        )
        logger.debug("Analysis started", extra={"triangles": self.original_face_count})

    @staticmethod
    def _poll(request: Optional[AnalysisRequest]) -> Any:
        return None if request is None else request.poll()

    @property
    def mesh(self) -> Optional[IndexedMesh]:
        return self._poll(self.mesh_request)

    @property
    def mesh_ready(self) -> bool:
        """True once the mesh is built. A failed build re-raises, as `mesh` does."""
        return self.mesh is not None

    @property
    def surface_area(self) -> Optional[float]:
        return self._poll(self.surface_area_request)

    @property
    def volume(self) -> Optional[float]:
        return self._poll(self.volume_request)

    @property
    def body_count(self) -> Optional[int]:
        return self._poll(self.body_count_request)

    def request_body_count(self) -> Optional[AnalysisRequest[int]]:
        """Start the body count, once.

        Returns:
            The body-count request (the same one on every call), or None if
            this session has no mesh to count.
        """
        if self.mesh_request is None:
            return None

        with self._lock:
            if self.body_count_request is None:
                mesh_request = self.mesh_request

                if self.config.analysis.body_count_policy == "await":
                    def work() -> int:
                        return count_bodies(mesh_request.wait())
                else:
                    def work() -> int:
                        mesh = mesh_request.poll()
                        if mesh is None:
                            logger.debug("Mesh not ready, reporting 0 bodies")
                            return 0
                        return count_bodies(mesh)

                self.body_count_request = AnalysisRequest.submit(
                    work, name="count bodies", executor=self._executor,
                )
            return self.body_count_request

    def wait(self, timeout: Optional[float] = None) -> 'MeshAnalysis':
        """Block until every request submitted so far has finished.

        `timeout` applies to each request separately.
        """
        for request in (self.mesh_request, self.surface_area_request,
                        self.volume_request, self.body_count_request):
            if request is not None:
                request.wait(timeout)
        return self

    def snapshot(self) -> AnalysisSnapshot:
        """Collect whatever results are available right now."""
        mesh = self.mesh
        return AnalysisSnapshot(
            original_face_count=self.original_face_count,
            mesh_ready=mesh is not None,
            n_vertices=None if mesh is None else mesh.n_vertices,
            n_faces=None if mesh is None else mesh.n_faces,
            n_degenerate=None if mesh is None else mesh.n_degenerate,
            surface_area=self.surface_area,
            volume=self.volume,
            body_count=self.body_count,
        )
