"""Frame deduplication for screen and slide recordings.

Samples a video, OCRs every frame, clusters the frames by TF-IDF text
similarity and keeps one representative frame per cluster.
"""

from .config import AnalyzerConfig
from .models import AnalyzerOptions, GroupInfo, PipelineResult
from .orchestrator import PipelineOrchestrator, analyze_video

__all__ = [
    "AnalyzerConfig",
    "AnalyzerOptions",
    "GroupInfo",
    "PipelineResult",
    "PipelineOrchestrator",
    "analyze_video",
]
