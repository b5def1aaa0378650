import os
import logging
import subprocess
from typing import List, Optional

import ffmpeg
from PIL import Image

from .util import FRAME_PATTERN, FRAME_PREFIX, ensure_dir, list_frame_files, remove_files
from ..errors import FrameExtractionError

logger = logging.getLogger("video_analyzer")


def parse_frame_rate(rate: str) -> float:
    """Parse an ffprobe rational frame rate ("30000/1001") into frames per second"""
    if '/' in rate:
        num, den = rate.split('/', 1)
        fps = float(num) / float(den)
    else:
        fps = float(rate)
    if fps <= 0:
        raise ValueError(f"Non-positive frame rate: {rate}")
    return fps


def get_video_fps(video_path: str, default: float = 30.0, timeout: Optional[float] = None) -> float:
    """
    Best-effort probe of the source frame rate. Only used for reporting,
    so any failure falls back to the default.
    """
    try:
        probe = ffmpeg.probe(video_path, timeout=timeout)
        video_stream = next(stream for stream in probe['streams'] if stream['codec_type'] == 'video')
        return parse_frame_rate(video_stream['r_frame_rate'])
    except Exception as e:
        logger.warning(f"Could not detect video FPS ({e}), assuming {default:g}fps")
        return default


def _run_ffmpeg(stream, timeout: Optional[float] = None) -> bytes:
    """Run an ffmpeg stream to completion; returns stderr, raises ffmpeg.Error on non-zero exit"""
    process = stream.run_async(pipe_stdout=True, pipe_stderr=True)
    try:
        out, err = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.communicate()
        raise
    if process.returncode != 0:
        raise ffmpeg.Error('ffmpeg', out, err)
    return err


def extract_frames(
    video_path: str,
    output_dir: str,
    sample_fps: int = 15,
    width: int = 1280,
    quality: int = 5,
    timeout: Optional[float] = None,
) -> List[str]:
    """
    Sample frames from a video with ffmpeg: sample_fps stills per second,
    scaled to `width` pixels wide (aspect preserved), written as JPEG.

    Returns:
        Frame file paths sorted by ordinal. Empty when the video yields no frames.
    """
    frames_dir = os.path.join(output_dir, "frames")
    ensure_dir(frames_dir)

    # A previous, longer extraction may have left higher ordinals behind
    stale = remove_files(os.path.join(frames_dir, f"{FRAME_PREFIX}*.jpg"))
    if stale:
        logger.debug(f"Removed {stale} stale frames from {frames_dir}")

    frame_pattern = os.path.join(frames_dir, FRAME_PATTERN)

    logger.info(f"Extracting frames ({sample_fps} fps, scaled to {width}px wide)...")

    try:
        stream = (
            ffmpeg
            .input(video_path)
            .filter('fps', fps=sample_fps)
            .filter('scale', width, -2)  # Scale to width, keep aspect ratio with even height
            .output(frame_pattern, **{'q:v': quality})
            .overwrite_output()
        )
        stderr = _run_ffmpeg(stream, timeout=timeout)

        # ffmpeg writes progress info to stderr even on success
        logger.debug(f"ffmpeg output: {stderr.decode(errors='replace')[:500]}")

    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors='replace') if e.stderr else ""
        raise FrameExtractionError(f"FFmpeg error extracting frames from {video_path}: {stderr}") from e
    except subprocess.TimeoutExpired as e:
        raise FrameExtractionError(f"FFmpeg timed out after {timeout}s extracting frames from {video_path}") from e
    except OSError as e:
        raise FrameExtractionError(f"Could not run ffmpeg for {video_path}: {e}") from e

    if not os.path.isdir(frames_dir):
        raise FrameExtractionError(f"Frame output directory missing after extraction: {frames_dir}")

    frame_paths = list_frame_files(frames_dir)
    logger.info(f"Extracted {len(frame_paths)} frames")
    return frame_paths


def validate_frame_file(frame_path: str) -> bool:
    """Validate that frame file exists and is readable"""
    if not os.path.exists(frame_path):
        return False

    try:
        # Try to open with PIL
        with Image.open(frame_path) as img:
            img.verify()
        return True
    except Exception:
        return False
