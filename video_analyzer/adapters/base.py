"""
Abstract base class for the frame/OCR cache.

Defines the interface a cache backend must implement so the pipeline can
skip frame sampling and OCR for a video whose content it has seen before.
"""

from abc import ABC, abstractmethod
from typing import Optional, List

from ..models import CacheRecord


class CacheStore(ABC):
    """Content-addressed store of sampled frames and their OCR texts"""

    @abstractmethod
    def lookup(self, video_hash: str) -> Optional[CacheRecord]:
        """
        Load the record stored for a video hash.

        Args:
            video_hash: Hex content hash of the video

        Returns:
            CacheRecord if present and every frame file it lists still
            exists, None otherwise
        """
        pass

    @abstractmethod
    def save(self, video_hash: str, frames: List[str], texts: List[str]) -> None:
        """
        Persist frames and texts for a video hash, replacing any prior record.

        Args:
            video_hash: Hex content hash of the video
            frames: Frame file paths in chronological order
            texts: OCR text for each frame, index aligned with frames
        """
        pass

    @abstractmethod
    def frames_dir(self, video_hash: str) -> str:
        """
        Directory that owns the sampled frames for a video hash.

        Args:
            video_hash: Hex content hash of the video

        Returns:
            Directory path; frames are written to its frames/ subdirectory
        """
        pass
