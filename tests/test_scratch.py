import pytest

from videos.scratch import scratch_dir


def test_scratch_dir_is_private_and_removed(tmp_path):
    with scratch_dir(tmp_path, "convert", "v1") as a, scratch_dir(tmp_path, "convert", "v1") as b:
        assert a != b
        assert a.name.startswith("convert-v1-")
        (a / "v1.mov").write_bytes(b"data")
    assert list(tmp_path.iterdir()) == []


def test_scratch_dir_removed_on_error(tmp_path):
    with pytest.raises(RuntimeError):
        with scratch_dir(tmp_path, "transcribe", "v2") as d:
            (d / "out").mkdir()
            (d / "out" / "v2.json").write_text("{}")
            raise RuntimeError("boom")
    assert list(tmp_path.iterdir()) == []


def test_scratch_root_is_created(tmp_path):
    root = tmp_path / "nested" / "scratch"
    with scratch_dir(root, "convert", "v3"):
        assert root.is_dir()
