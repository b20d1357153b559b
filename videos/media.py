"""
ffmpeg and whisper invocations.

Both tools name their output after the input: same stem, fixed directory,
fixed extension. The paths computed here must match what the tools write.
"""
import json
from pathlib import Path

from .errors import InvalidOutput
from .tools import ToolRunner


def audio_output_path(input_path, output_dir) -> Path:
    return Path(output_dir) / f"{Path(input_path).stem}.mp3"


def transcript_output_path(input_path, output_dir) -> Path:
    # whisper: os.path.splitext(os.path.basename(audio_path))[0] + ".json"
    return Path(output_dir) / f"{Path(input_path).stem}.json"


def transcode_to_audio(runner: ToolRunner, input_path, output_dir, *,
                       ffmpeg: str = "ffmpeg", timeout: float = 900) -> Path:
    """Strip the video track and encode the audio as 192k MP3."""
    out = audio_output_path(input_path, output_dir)
    args = [
        "-y",
        "-i", str(input_path),
        "-vn",
        "-b:a", "192K",
        str(out),
    ]
    runner.run(ffmpeg, args, timeout)
    return runner.expect_output(out)


def transcribe_audio(runner: ToolRunner, input_path, output_dir, *,
                     whisper: str = "whisper", model: str = "tiny",
                     language: str | None = None, fp16: bool = False,
                     timeout: float = 1800) -> Path:
    """Run whisper on an audio file and return the path of its JSON transcript."""
    args = [
        str(input_path),
        "--model", model,
        "--output_format", "json",
        "--output_dir", str(output_dir),
        "--fp16", str(fp16),
    ]
    if language:
        args += ["--language", language]
    runner.run(whisper, args, timeout)
    return runner.expect_output(transcript_output_path(input_path, output_dir))


def read_transcript(path) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise InvalidOutput(path, str(e)) from e
    if not isinstance(data, dict):
        raise InvalidOutput(path, "expected a JSON object")
    text = data.get("text")
    if text is None:
        # older whisper builds only emit segments
        text = " ".join(s.get("text", "").strip() for s in data.get("segments", []))
    return str(text).strip()
