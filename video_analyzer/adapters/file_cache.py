"""
Filesystem cache adapter.

Stores sampled frames and OCR texts under <cache_root>/<video hash>/,
with the index-aligned record in ocr_cache.json.
"""

import os
import logging
import tempfile
from typing import Optional, List

from .base import CacheStore
from ..models import CacheRecord

logger = logging.getLogger("video_analyzer")


RECORD_FILENAME = "ocr_cache.json"


class FileCacheStore(CacheStore):
    """Cache store backed by one directory per video hash"""

    def __init__(self, cache_root: str):
        # Records store absolute frame paths
        self.cache_root = os.path.abspath(cache_root)

    def frames_dir(self, video_hash: str) -> str:
        return os.path.join(self.cache_root, video_hash)

    def record_path(self, video_hash: str) -> str:
        return os.path.join(self.frames_dir(video_hash), RECORD_FILENAME)

    def lookup(self, video_hash: str) -> Optional[CacheRecord]:
        record_path = self.record_path(video_hash)
        if not os.path.exists(record_path):
            return None

        try:
            with open(record_path, 'r', encoding='utf-8') as f:
                record = CacheRecord.model_validate_json(f.read())
        except (OSError, ValueError) as e:
            logger.warning(f"Cache record unreadable for video {video_hash[:12]}..., re-extracting: {e}")
            return None

        # Verify all frame files still exist
        for frame_path in record.frames:
            if not os.path.exists(frame_path):
                logger.info(f"Cache invalid: missing frame file {frame_path}, re-extracting")
                return None

        logger.info(f"Cache hit for video {video_hash[:12]}... ({len(record.frames)} frames)")
        return record

    def save(self, video_hash: str, frames: List[str], texts: List[str]) -> None:
        record = CacheRecord(frames=[os.path.abspath(frame) for frame in frames], texts=list(texts))

        cache_dir = self.frames_dir(video_hash)
        os.makedirs(cache_dir, exist_ok=True)

        # Write beside the record and swap it in, so readers never see a partial file
        fd, tmp_path = tempfile.mkstemp(prefix=".ocr_cache.", suffix=".tmp", dir=cache_dir)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(record.model_dump_json())
            os.replace(tmp_path, self.record_path(video_hash))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(f"Cached OCR results for video {video_hash[:12]}... ({len(frames)} frames)")
