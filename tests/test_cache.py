import os

import pytest

from video_analyzer.adapters import FileCacheStore
from video_analyzer.adapters.file_cache import RECORD_FILENAME

VIDEO_HASH = "ab" * 32


@pytest.fixture
def store(tmp_path):
    return FileCacheStore(str(tmp_path / "cache"))


def test_lookup_without_record_is_absent(store):
    assert store.lookup(VIDEO_HASH) is None


def test_save_then_lookup_round_trips(store, make_frames):
    frames = make_frames(os.path.join(store.frames_dir(VIDEO_HASH), "frames"), 3)
    texts = ["title slide", "", "agenda"]

    store.save(VIDEO_HASH, frames, texts)
    record = store.lookup(VIDEO_HASH)

    assert record is not None
    assert record.frames == frames
    assert record.texts == texts


def test_missing_frame_file_invalidates_record(store, make_frames):
    frames = make_frames(os.path.join(store.frames_dir(VIDEO_HASH), "frames"), 3)
    store.save(VIDEO_HASH, frames, ["a", "b", "c"])

    os.remove(frames[1])

    assert store.lookup(VIDEO_HASH) is None


def test_malformed_record_is_treated_as_absent(store):
    os.makedirs(store.frames_dir(VIDEO_HASH))
    with open(store.record_path(VIDEO_HASH), "w") as f:
        f.write("{not json")

    assert store.lookup(VIDEO_HASH) is None


def test_misaligned_record_on_disk_is_treated_as_absent(store):
    os.makedirs(store.frames_dir(VIDEO_HASH))
    with open(store.record_path(VIDEO_HASH), "w") as f:
        f.write('{"frames": [], "texts": ["orphan"]}')

    assert store.lookup(VIDEO_HASH) is None


def test_save_rejects_misaligned_lists(store):
    with pytest.raises(ValueError):
        store.save(VIDEO_HASH, ["/f/frame_000001.jpg"], [])


def test_save_overwrites_and_leaves_no_temp_files(store, make_frames):
    frames = make_frames(os.path.join(store.frames_dir(VIDEO_HASH), "frames"), 2)
    store.save(VIDEO_HASH, frames, ["old", "old"])
    store.save(VIDEO_HASH, frames, ["new", ""])

    assert store.lookup(VIDEO_HASH).texts == ["new", ""]
    assert sorted(os.listdir(store.frames_dir(VIDEO_HASH))) == ["frames", RECORD_FILENAME]


def test_relative_cache_root_stores_absolute_frame_paths(tmp_path, monkeypatch, make_frames):
    monkeypatch.chdir(tmp_path)
    store = FileCacheStore(os.path.join("workspace", "video-cache"))
    frames = make_frames(os.path.join(store.frames_dir(VIDEO_HASH), "frames"), 2)

    store.save(VIDEO_HASH, frames, ["title slide", "agenda"])

    other_dir = tmp_path / "elsewhere"
    other_dir.mkdir()
    monkeypatch.chdir(other_dir)
    record = store.lookup(VIDEO_HASH)

    assert record is not None
    assert all(os.path.isabs(path) for path in record.frames)
    assert all(os.path.exists(path) for path in record.frames)
