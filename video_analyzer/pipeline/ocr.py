import time
import queue
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import pytesseract

from .frames import validate_frame_file
from ..errors import OCRUnavailableError, PipelineCancelledError

logger = logging.getLogger("video_analyzer")


def check_tesseract() -> str:
    """Return the installed tesseract version, raising OCRUnavailableError if the binary is missing"""
    try:
        return str(pytesseract.get_tesseract_version())
    except pytesseract.TesseractNotFoundError as e:
        raise OCRUnavailableError(f"tesseract binary not found: {e}") from e


def ocr_frame(
    frame_path: str,
    lang: str = "eng",
    oem: int = 3,
    psm: int = 6,
    timeout: float = 0,
) -> str:
    """
    OCR a single frame with the tesseract CLI.

    Uses --oem 3 (default engine) and --psm 6 (uniform text block) by default.
    Any per-frame failure returns empty text; only a missing binary is raised.
    """
    if not validate_frame_file(frame_path):
        logger.warning(f"OCR skipped for unreadable frame {frame_path}")
        return ""

    try:
        return pytesseract.image_to_string(
            frame_path,
            lang=lang,
            config=f"--oem {oem} --psm {psm}",
            timeout=timeout,
        )
    except pytesseract.TesseractNotFoundError as e:
        raise OCRUnavailableError(f"tesseract binary not found while processing {frame_path}") from e
    except (pytesseract.TesseractError, RuntimeError, OSError, ValueError) as e:
        logger.warning(f"OCR failed for {frame_path}: {e}")
        return ""


def ocr_all_frames(
    frames: List[str],
    lang: str = "eng",
    workers: int = 8,
    oem: int = 3,
    psm: int = 6,
    timeout: float = 0,
    progress_every: int = 50,
    stop_event: Optional[threading.Event] = None,
) -> Dict[str, str]:
    """
    Run OCR on all frames with a bounded pool of workers draining one shared queue.

    Args:
        frames: Frame file paths
        lang: Tesseract language code
        workers: Max concurrent tesseract processes (capped at len(frames))
        timeout: Per-frame tesseract deadline in seconds, 0 disables it
        progress_every: Log a progress line every N completed frames
        stop_event: Optional event; when set, workers stop taking new frames

    Returns:
        Mapping from frame path to OCR text, covering every frame exactly once
    """
    if not frames:
        return {}

    start_time = time.time()
    total = len(frames)
    n_workers = max(1, min(workers, total))

    logger.info(f"Running OCR on {total} frames using {n_workers} workers...")

    pending: "queue.Queue[str]" = queue.Queue()
    for frame_path in frames:
        pending.put(frame_path)

    results: Dict[str, str] = {}
    lock = threading.Lock()
    abort = threading.Event()
    completed = 0

    def drain() -> None:
        nonlocal completed
        while not abort.is_set():
            if stop_event is not None and stop_event.is_set():
                return
            try:
                frame_path = pending.get_nowait()
            except queue.Empty:
                return

            try:
                text = ocr_frame(frame_path, lang=lang, oem=oem, psm=psm, timeout=timeout)
            except BaseException:
                abort.set()
                raise

            with lock:
                results[frame_path] = text
                completed += 1
                done = completed

            if done % progress_every == 0 or done == total:
                logger.info(f"  OCR processed {done}/{total} frames")

    with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="ocr") as executor:
        futures = [executor.submit(drain) for _ in range(n_workers)]
        # Barrier: every worker has drained the queue or failed
        for future in futures:
            future.result()

    if len(results) < len(set(frames)):
        raise PipelineCancelledError(f"OCR cancelled after {completed}/{total} frames")

    elapsed = time.time() - start_time
    logger.info(f"OCR completed in {elapsed:.2f}s (avg {elapsed / total:.2f}s per frame)")
    return results
