import os

import pytest
from PIL import Image

from video_analyzer.config import AnalyzerConfig


def write_frames(directory, count, start=1):
    """Write small, distinct JPEG frames named like the sampler's output"""
    os.makedirs(directory, exist_ok=True)
    paths = []
    for ordinal in range(start, start + count):
        path = os.path.join(directory, f"frame_{ordinal:06d}.jpg")
        color = ((ordinal * 37) % 256, (ordinal * 91) % 256, (ordinal * 53) % 256)
        Image.new("RGB", (16, 16), color=color).save(path, "JPEG")
        paths.append(path)
    return paths


@pytest.fixture
def make_frames():
    return write_frames


@pytest.fixture
def config(tmp_path):
    return AnalyzerConfig(
        WORKSPACE_PATH=str(tmp_path / "workspace"),
        CACHE_DIR=str(tmp_path / "cache"),
    )


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "videos" / "lecture.mp4"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"not really a video, but hashable content" * 100)
    return str(path)
