import pytest

from trackball.recorder import FileRecorder


def test_write_records_to_file(tmp_path):
    path = tmp_path / "out.txt"
    recorder = FileRecorder()
    recorder.open(path)
    recorder.write("first\n")
    recorder.write("second\n")
    assert path.read_text(encoding="utf-8") == "first\nsecond\n"
    recorder.close()
    assert not recorder.is_open


def test_write_when_closed_raises(tmp_path):
    recorder = FileRecorder()
    with pytest.raises(ValueError):
        recorder.write("data")


def test_context_manager_closes(tmp_path):
    path = tmp_path / "ctx.txt"
    with FileRecorder() as recorder:
        recorder.open(path)
        assert recorder.is_open
        recorder.write("abc")
    assert not recorder.is_open
    assert path.read_text(encoding="utf-8") == "abc"


def test_open_missing_directory_raises(tmp_path):
    recorder = FileRecorder()
    with pytest.raises(OSError):
        recorder.open(tmp_path / "missing" / "out.txt")
    assert not recorder.is_open


def test_reopen_truncates(tmp_path):
    path = tmp_path / "again.txt"
    with FileRecorder() as recorder:
        recorder.open(path)
        recorder.write("old")
        recorder.open(path)
        recorder.write("new")
    assert path.read_text(encoding="utf-8") == "new"