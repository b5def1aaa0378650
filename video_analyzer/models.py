"""
Domain models for the video analyzer.

Dataclasses carry values between pipeline stages inside one process;
pydantic models describe everything that is written to disk or emitted
as the pipeline result.
"""

from dataclasses import dataclass, field
from typing import Optional, List

import numpy as np
from pydantic import BaseModel, Field, model_validator


@dataclass
class VideoAsset:
    """A video file identified by the hash of its content"""
    path: str
    content_hash: str


@dataclass
class FrameSample:
    """A sampled still image; ordinal is the 1-based sequence number in its filename"""
    ordinal: int
    file_path: str
    sample_rate: float = 15.0

    @property
    def timestamp_seconds(self) -> float:
        return max(0.0, (self.ordinal - 1) / self.sample_rate)


@dataclass
class AnalyzerOptions:
    """Caller-supplied options for one pipeline run"""
    video_path: str
    n_clusters: Optional[int] = None
    dbscan_eps: Optional[float] = None
    lang: str = "eng"
    workers: int = 8


@dataclass
class TfidfResult:
    """TF-IDF matrix over the non-empty texts, with row -> input index mapping"""
    matrix: np.ndarray
    vocabulary: List[str] = field(default_factory=list)
    original_indices: List[int] = field(default_factory=list)

    @property
    def n_rows(self) -> int:
        return len(self.original_indices)


class CacheRecord(BaseModel):
    """Frame files and their OCR texts, index aligned"""
    frames: List[str] = Field(description="Absolute paths of the sampled frame files")
    texts: List[str] = Field(description="OCR text for each frame, empty when OCR found nothing")

    @model_validator(mode="after")
    def check_aligned(self) -> 'CacheRecord':
        if len(self.frames) != len(self.texts):
            raise ValueError(
                f"frames and texts must be index aligned ({len(self.frames)} != {len(self.texts)})"
            )
        return self


class FrameTimestamp(BaseModel):
    """One member frame of a group"""
    frame_number: int
    timestamp: str
    file_name: str


class TimeRange(BaseModel):
    start: str
    end: str


class GroupInfo(BaseModel):
    """A cluster of near-duplicate frames and its representative"""
    group_index: int = Field(ge=1)
    group_name: str
    representative_frame: str
    frame_count: int
    time_range: TimeRange
    frames: List[FrameTimestamp] = Field(default_factory=list)


class PipelineResult(BaseModel):
    """Result of one deduplication run"""
    video_path: str
    output_dir: str
    fps: float = Field(description="Native frame rate of the source, reporting only")
    total_frames: int
    groups: List[GroupInfo] = Field(default_factory=list)
    representative_frame_paths: List[str] = Field(default_factory=list)
