"""Background analysis: write-once requests and the per-soup session."""

from stl_analysis.analysis.request import AnalysisRequest, shared_executor
from stl_analysis.analysis.session import AnalysisSnapshot, MeshAnalysis

__all__ = ["AnalysisRequest", "AnalysisSnapshot", "MeshAnalysis", "shared_executor"]
