import os

import pytest

from video_analyzer.config import AnalyzerConfig


def test_defaults_match_sampling_and_clustering_contract():
    config = AnalyzerConfig()

    assert config.SAMPLE_FPS == 15
    assert config.OCR_WORKERS == 8
    assert config.OCR_LANG == "eng"
    assert config.MAX_DF == 0.95
    assert config.KMEANS_SEED == 42
    assert config.KMEANS_MAX_ITER == 100
    assert config.DBSCAN_MIN_SAMPLES == 2
    assert config.STAGE_TIMEOUT_SEC is None
    config.validate()


def test_cache_dir_defaults_under_workspace():
    assert AnalyzerConfig(WORKSPACE_PATH="/data/ws").cache_dir == os.path.join("/data/ws", "video-cache")
    assert AnalyzerConfig(CACHE_DIR="/mnt/cache").cache_dir == "/mnt/cache"


def test_from_env(monkeypatch):
    monkeypatch.setenv("WORKSPACE_PATH", "/srv/ws")
    monkeypatch.setenv("OCR_WORKERS", "3")
    monkeypatch.setenv("OCR_LANG", "hrv")
    monkeypatch.setenv("TFIDF_MAX_DF", "0.9")
    monkeypatch.setenv("STAGE_TIMEOUT_SEC", "120")
    monkeypatch.setenv("LOG_DIR", "")

    config = AnalyzerConfig.from_env()

    assert config.cache_dir == os.path.join("/srv/ws", "video-cache")
    assert config.OCR_WORKERS == 3
    assert config.OCR_LANG == "hrv"
    assert config.MAX_DF == 0.9
    assert config.STAGE_TIMEOUT_SEC == 120.0
    assert config.LOG_DIR is None


def test_validate_lists_every_invalid_field():
    config = AnalyzerConfig(SAMPLE_FPS=0, OCR_WORKERS=0, MAX_DF=1.5)

    with pytest.raises(ValueError) as excinfo:
        config.validate()

    message = str(excinfo.value)
    assert "SAMPLE_FPS" in message
    assert "OCR_WORKERS" in message
    assert "MAX_DF" in message
