import os
import re
import glob
import hashlib
import logging
from typing import List

logger = logging.getLogger("video_analyzer")


FRAME_PREFIX = "frame_"
FRAME_PATTERN = "frame_%06d.jpg"
HASH_CHUNK_SIZE = 1024 * 1024

_FRAME_NUMBER_RE = re.compile(r"^frame_(\d+)$")


def hash_file(file_path: str, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """SHA-256 of a file's content, read in chunks so large videos never sit in memory"""
    digest = hashlib.sha256()
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            digest.update(chunk)
    return digest.hexdigest()


def frame_number(frame_path: str) -> int:
    """Parse the ordinal from a sampled frame name (frame_000016.jpg -> 16)"""
    stem = os.path.splitext(os.path.basename(frame_path))[0]
    match = _FRAME_NUMBER_RE.match(stem)
    if not match:
        raise ValueError(f"Not a sampled frame file name: {frame_path}")
    return int(match.group(1))


def format_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS.s, or HH:MM:SS.s past the first hour"""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:04.1f}"
    return f"{minutes:02d}:{secs:04.1f}"


def list_frame_files(frames_dir: str) -> List[str]:
    """Sampled frame files in a directory, ordered by ordinal"""
    paths = [
        path for path in glob.glob(os.path.join(frames_dir, f"{FRAME_PREFIX}*.jpg"))
        if _FRAME_NUMBER_RE.match(os.path.splitext(os.path.basename(path))[0])
    ]
    return sorted(paths, key=frame_number)


def ensure_dir(path: str):
    """Ensure directory exists"""
    os.makedirs(path, exist_ok=True)


def remove_files(pattern: str) -> int:
    """Delete every file matching a glob pattern; returns how many were removed"""
    removed = 0
    for path in glob.glob(pattern):
        os.remove(path)
        removed += 1
    return removed
