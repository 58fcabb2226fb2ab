"""Tests for file storage."""

from storage import TEMP_PREFIX


def test_delete_twice_is_harmless(storage, stored_file):
    handle = stored_file()

    assert storage.delete(handle) is True
    assert storage.delete(handle) is False
    assert not storage.exists(handle)


def test_handles_skip_incoming_files(storage, stored_file):
    stored_file("1_a.pdf")
    storage.path_for(f"{TEMP_PREFIX}xyz").write_bytes(b"partial")
    storage.path_for("subdir").mkdir()

    assert storage.handles() == ["1_a.pdf"]


def test_exists_is_false_for_directories(storage):
    storage.path_for("dir").mkdir()

    assert not storage.exists("dir")
