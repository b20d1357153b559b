"""
Configuration for the transcript pipeline stages.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PipelineConfig:
    """Options the stage handlers need, read once from Django settings."""

    scratch_dir: str
    audio_root: str = "/audios"
    text_root: str = "/texts"

    ffmpeg_bin: str = "ffmpeg"
    whisper_bin: str = "whisper"
    whisper_model: str = "tiny"  # fastest; operators opt into bigger models
    whisper_language: Optional[str] = None
    whisper_fp16: bool = False

    convert_timeout: float = 900
    transcribe_timeout: float = 1800

    @classmethod
    def from_settings(cls, settings=None) -> "PipelineConfig":
        if settings is None:
            from django.conf import settings
        return cls(
            scratch_dir=str(settings.SCRATCH_DIR),
            audio_root=settings.AUDIO_ROOT,
            text_root=settings.TEXT_ROOT,
            ffmpeg_bin=settings.FFMPEG_BIN,
            whisper_bin=settings.WHISPER_BIN,
            whisper_model=settings.WHISPER_MODEL,
            whisper_language=settings.WHISPER_LANGUAGE,
            whisper_fp16=settings.WHISPER_FP16,
            convert_timeout=settings.CONVERT_TIMEOUT_SECONDS,
            transcribe_timeout=settings.TRANSCRIBE_TIMEOUT_SECONDS,
        )
