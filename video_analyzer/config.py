"""
Configuration management for the video analyzer.

Centralizes all configuration loading from environment variables
and provides type-safe access to configuration values.
"""

import os
from typing import Optional, List
from dataclasses import dataclass


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass
class AnalyzerConfig:
    """Configuration for the frame deduplication pipeline"""

    # Workspace / cache
    WORKSPACE_PATH: str = "workspace"
    CACHE_DIR: Optional[str] = None  # defaults to <WORKSPACE_PATH>/video-cache

    # Frame sampling
    SAMPLE_FPS: int = 15
    FRAME_WIDTH: int = 1280
    JPEG_QUALITY: int = 5
    DEFAULT_FPS: float = 30.0

    # OCR
    OCR_LANG: str = "eng"
    OCR_WORKERS: int = 8
    OCR_OEM: int = 3
    OCR_PSM: int = 6
    OCR_PROGRESS_EVERY: int = 50

    # Vectorization / clustering
    MAX_DF: float = 0.95
    KMEANS_SEED: int = 42
    KMEANS_MAX_ITER: int = 100
    DBSCAN_MIN_SAMPLES: int = 2
    MAX_AUTO_CLUSTERS: int = 50

    # Deadline for each external process call, None disables it
    STAGE_TIMEOUT_SEC: Optional[float] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    @property
    def cache_dir(self) -> str:
        """Root directory of the content-addressed frame/OCR cache"""
        if self.CACHE_DIR:
            return self.CACHE_DIR
        return os.path.join(self.WORKSPACE_PATH, "video-cache")

    @classmethod
    def from_env(cls) -> 'AnalyzerConfig':
        """Load configuration from environment variables"""
        config = cls()

        # Workspace / cache
        config.WORKSPACE_PATH = os.getenv("WORKSPACE_PATH", os.path.join(os.getcwd(), "workspace"))
        config.CACHE_DIR = os.getenv("VIDEO_CACHE_DIR") or None

        # Frame sampling
        config.SAMPLE_FPS = int(os.getenv("SAMPLE_FPS", "15"))
        config.FRAME_WIDTH = int(os.getenv("FRAME_WIDTH", "1280"))
        config.JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "5"))
        config.DEFAULT_FPS = float(os.getenv("DEFAULT_FPS", "30.0"))

        # OCR
        config.OCR_LANG = os.getenv("OCR_LANG", "eng")
        config.OCR_WORKERS = int(os.getenv("OCR_WORKERS", "8"))
        config.OCR_OEM = int(os.getenv("OCR_OEM", "3"))
        config.OCR_PSM = int(os.getenv("OCR_PSM", "6"))
        config.OCR_PROGRESS_EVERY = int(os.getenv("OCR_PROGRESS_EVERY", "50"))

        # Vectorization / clustering
        config.MAX_DF = float(os.getenv("TFIDF_MAX_DF", "0.95"))
        config.KMEANS_SEED = int(os.getenv("KMEANS_SEED", "42"))
        config.KMEANS_MAX_ITER = int(os.getenv("KMEANS_MAX_ITER", "100"))
        config.DBSCAN_MIN_SAMPLES = int(os.getenv("DBSCAN_MIN_SAMPLES", "2"))
        config.MAX_AUTO_CLUSTERS = int(os.getenv("MAX_AUTO_CLUSTERS", "50"))

        config.STAGE_TIMEOUT_SEC = _optional_float("STAGE_TIMEOUT_SEC")

        # Logging
        config.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        config.LOG_DIR = os.getenv("LOG_DIR") or None

        return config

    def validate(self) -> None:
        """Validate configuration and raise errors for out-of-range values"""
        invalid: List[str] = []

        if self.SAMPLE_FPS <= 0:
            invalid.append("SAMPLE_FPS")
        if self.FRAME_WIDTH <= 0:
            invalid.append("FRAME_WIDTH")
        if not 1 <= self.JPEG_QUALITY <= 31:
            invalid.append("JPEG_QUALITY")
        if self.DEFAULT_FPS <= 0:
            invalid.append("DEFAULT_FPS")
        if self.OCR_WORKERS < 1:
            invalid.append("OCR_WORKERS")
        if self.OCR_PROGRESS_EVERY < 1:
            invalid.append("OCR_PROGRESS_EVERY")
        if not 0.0 < self.MAX_DF <= 1.0:
            invalid.append("MAX_DF")
        if self.KMEANS_MAX_ITER < 1:
            invalid.append("KMEANS_MAX_ITER")
        if self.DBSCAN_MIN_SAMPLES < 1:
            invalid.append("DBSCAN_MIN_SAMPLES")
        if self.MAX_AUTO_CLUSTERS < 1:
            invalid.append("MAX_AUTO_CLUSTERS")
        if self.STAGE_TIMEOUT_SEC is not None and self.STAGE_TIMEOUT_SEC <= 0:
            invalid.append("STAGE_TIMEOUT_SEC")

        if invalid:
            raise ValueError(f"Invalid configuration values: {', '.join(invalid)}")
