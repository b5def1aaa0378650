import json
import logging

import pytest

from video_analyzer import run
from video_analyzer.errors import FrameExtractionError
from video_analyzer.models import PipelineResult


def test_clusters_and_eps_are_mutually_exclusive():
    with pytest.raises(SystemExit):
        run.build_parser().parse_args(["talk.mp4", "-k", "3", "--eps", "0.4"])


@pytest.fixture(autouse=True)
def keep_signal_handlers(monkeypatch):
    monkeypatch.setattr(run.signal, "signal", lambda signum, handler: None)


def test_main_prints_result_json(monkeypatch, tmp_path, capsys):
    seen = {}

    def fake_analyze(self, options):
        seen["options"] = options
        return PipelineResult(video_path=options.video_path, output_dir=str(tmp_path), fps=30.0, total_frames=0)

    monkeypatch.setattr(run.PipelineOrchestrator, "analyze", fake_analyze)
    monkeypatch.delenv("OCR_WORKERS", raising=False)
    out_file = tmp_path / "result.json"

    code = run.main(["talk.mp4", "--eps", "0.4", "--lang", "hrv", "--json-out", str(out_file)])

    assert code == 0
    assert seen["options"].dbscan_eps == 0.4
    assert seen["options"].n_clusters is None
    assert seen["options"].lang == "hrv"
    assert seen["options"].workers == 8

    printed = json.loads(capsys.readouterr().out)
    assert printed["total_frames"] == 0
    assert printed["groups"] == []
    assert json.loads(out_file.read_text()) == printed


def test_main_returns_error_code_on_fatal_failure(monkeypatch):
    def failing(self, options):
        raise FrameExtractionError("ffmpeg exited with status 1")

    monkeypatch.setattr(run.PipelineOrchestrator, "analyze", failing)

    assert run.main(["talk.mp4", "-k", "4"]) == 1


def test_fatal_failure_traceback_is_logged_once(monkeypatch, caplog):
    def failing(self, options, video_path, start_time):
        raise FrameExtractionError("ffmpeg exited with status 1")

    monkeypatch.setattr(run.PipelineOrchestrator, "_run", failing)

    with caplog.at_level(logging.INFO, logger="video_analyzer"):
        assert run.main(["talk.mp4"]) == 1

    with_traceback = [record for record in caplog.records if record.exc_info]
    assert len(with_traceback) == 1
    assert any("Video analysis failed" in record.getMessage() for record in caplog.records)
