import stat
from pathlib import Path

import pytest

from videos.config import PipelineConfig
from videos.errors import BusError, ObjectNotFound, TransportError
from videos.models import Video
from videos.services import PipelineServices
from videos.store import StatusStore
from videos.tools import ToolRunner


class FakeStorage:
    """Bucket kept in a dict; download/upload copy real bytes to/from disk."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.downloads = []
        self.local_paths = []
        self.uploads = []
        self.fail_uploads = False
        self.closed = False

    def download(self, remote_key, local_path):
        self.downloads.append(remote_key)
        self.local_paths.append(Path(local_path))
        if remote_key not in self.objects:
            raise ObjectNotFound(remote_key)
        Path(local_path).write_bytes(self.objects[remote_key])

    def upload(self, local_path, remote_key, content_type=None):
        if self.fail_uploads:
            raise TransportError(remote_key, "connection reset")
        self.uploads.append((remote_key, content_type))
        self.objects[remote_key] = Path(local_path).read_bytes()

    def close(self):
        self.closed = True


class FakeBus:
    def __init__(self):
        self.published = []
        self.handlers = {}
        self.fail_next = 0

    def publish(self, event_name, payload):
        if self.fail_next:
            self.fail_next -= 1
            raise BusError(event_name, "broker unreachable")
        self.published.append((event_name, dict(payload)))

    def subscribe(self, event_name, handler):
        self.handlers[event_name] = handler
        return handler

    def names(self):
        return [name for name, _ in self.published]


def _write_script(path: Path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def bin_dir(tmp_path):
    d = tmp_path / "bin"
    d.mkdir()
    return d


@pytest.fixture
def fake_ffmpeg(bin_dir):
    # last argument is the output path
    return _write_script(bin_dir / "ffmpeg", 'for a; do out="$a"; done\nprintf "ID3audio" > "$out"\n')


@pytest.fixture
def fake_whisper(bin_dir):
    return _write_script(
        bin_dir / "whisper",
        'in="$1"; shift\n'
        'while [ $# -gt 0 ]; do\n'
        '  case "$1" in --output_dir) dir="$2"; shift;; esac\n'
        '  shift\n'
        'done\n'
        'base=$(basename "$in"); stem="${base%.*}"\n'
        'printf \'{"text": " hello world", "segments": []}\' > "$dir/$stem.json"\n',
    )


@pytest.fixture
def failing_tool(bin_dir):
    return _write_script(bin_dir / "broken", 'echo "Invalid data found when processing input" >&2\nexit 3\n')


@pytest.fixture
def slow_tool(bin_dir):
    return _write_script(bin_dir / "slow", "exec sleep 30\n")


@pytest.fixture
def silent_tool(bin_dir):
    # exits 0 without writing anything
    return _write_script(bin_dir / "silent", "exit 0\n")


@pytest.fixture
def scratch_root(tmp_path):
    d = tmp_path / "scratch"
    d.mkdir()
    return d


@pytest.fixture
def config(scratch_root, fake_ffmpeg, fake_whisper):
    return PipelineConfig(
        scratch_dir=str(scratch_root),
        audio_root="/audios",
        text_root="/texts",
        ffmpeg_bin=fake_ffmpeg,
        whisper_bin=fake_whisper,
        convert_timeout=10,
        transcribe_timeout=10,
    )


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def services(storage, bus):
    return PipelineServices(storage=storage, runner=ToolRunner(), store=StatusStore(), bus=bus)


@pytest.fixture
def video(db):
    return Video.objects.create(title="Quarterly review", type="video/quicktime")

