import threading
import time

import pytest
import pytesseract

from video_analyzer.errors import OCRUnavailableError, PipelineCancelledError
from video_analyzer.pipeline import ocr


def test_check_tesseract_missing_binary(monkeypatch):
    def missing():
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(ocr.pytesseract, "get_tesseract_version", missing)

    with pytest.raises(OCRUnavailableError):
        ocr.check_tesseract()


def test_ocr_frame_passes_language_and_modes(monkeypatch, tmp_path, make_frames):
    frame = make_frames(str(tmp_path), 1)[0]
    calls = {}

    def fake_image_to_string(image, lang=None, config="", timeout=0):
        calls.update(image=image, lang=lang, config=config, timeout=timeout)
        return "Slide 1\n"

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", fake_image_to_string)

    assert ocr.ocr_frame(frame, lang="hrv", timeout=5) == "Slide 1\n"
    assert calls == {"image": frame, "lang": "hrv", "config": "--oem 3 --psm 6", "timeout": 5}


def test_ocr_frame_failure_degrades_to_empty_text(monkeypatch, tmp_path, make_frames):
    frame = make_frames(str(tmp_path), 1)[0]

    def failing(*args, **kwargs):
        raise pytesseract.TesseractError(1, "Error opening data file")

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", failing)

    assert ocr.ocr_frame(frame) == ""


def test_ocr_frame_timeout_degrades_to_empty_text(monkeypatch, tmp_path, make_frames):
    frame = make_frames(str(tmp_path), 1)[0]

    def timing_out(*args, **kwargs):
        raise RuntimeError("Tesseract process timeout")

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", timing_out)

    assert ocr.ocr_frame(frame, timeout=1) == ""


def test_unreadable_frame_is_not_sent_to_tesseract(monkeypatch, tmp_path):
    broken = tmp_path / "frame_000001.jpg"
    broken.write_bytes(b"not a jpeg")

    def unexpected(*args, **kwargs):
        raise AssertionError("tesseract should not run")

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", unexpected)

    assert ocr.ocr_frame(str(broken)) == ""


def test_ocr_all_frames_covers_every_frame_once(monkeypatch, tmp_path, make_frames):
    frames = make_frames(str(tmp_path), 23)
    seen = []
    lock = threading.Lock()

    def fake_ocr_frame(frame_path, **kwargs):
        with lock:
            seen.append(frame_path)
        if frame_path.endswith("frame_000007.jpg"):
            return ""
        return f"text for {frame_path[-10:-4]}"

    monkeypatch.setattr(ocr, "ocr_frame", fake_ocr_frame)

    results = ocr.ocr_all_frames(frames, workers=4, progress_every=5)

    assert sorted(seen) == sorted(frames)
    assert set(results) == set(frames)
    assert results[frames[6]] == ""
    assert results[frames[0]] == "text for 000001"


def test_worker_count_bounds_concurrency(monkeypatch, tmp_path, make_frames):
    frames = make_frames(str(tmp_path), 12)
    active = 0
    peak = 0
    lock = threading.Lock()

    def slow_ocr_frame(frame_path, **kwargs):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1
        return "x"

    monkeypatch.setattr(ocr, "ocr_frame", slow_ocr_frame)

    ocr.ocr_all_frames(frames, workers=3)

    assert 1 <= peak <= 3


def test_more_workers_than_frames(monkeypatch, tmp_path, make_frames):
    frames = make_frames(str(tmp_path), 2)
    monkeypatch.setattr(ocr, "ocr_frame", lambda frame_path, **kwargs: "ok")

    assert ocr.ocr_all_frames(frames, workers=16) == {frames[0]: "ok", frames[1]: "ok"}


def test_no_frames_gives_empty_mapping():
    assert ocr.ocr_all_frames([], workers=8) == {}


def test_missing_binary_mid_run_is_fatal(monkeypatch, tmp_path, make_frames):
    frames = make_frames(str(tmp_path), 5)

    def missing(*args, **kwargs):
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", missing)

    with pytest.raises(OCRUnavailableError):
        ocr.ocr_all_frames(frames, workers=2)


def test_stop_event_cancels_the_stage(monkeypatch, tmp_path, make_frames):
    frames = make_frames(str(tmp_path), 4)
    monkeypatch.setattr(ocr, "ocr_frame", lambda frame_path, **kwargs: "x")
    stop = threading.Event()
    stop.set()

    with pytest.raises(PipelineCancelledError):
        ocr.ocr_all_frames(frames, workers=2, stop_event=stop)
