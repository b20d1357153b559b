"""
Pipeline stage handlers.

Each stage consumes one event, performs one transformation, records status
and publishes the next event:

    video.uploaded  -> ConvertStage    -> audio.converted
    audio.converted -> TranscribeStage -> (done)

Handlers are safe to run more than once for the same video: a video that is
already past the stage is left alone, and a video whose stage finished but
whose follow-on event may not have gone out gets that event republished.
"""
import structlog

from .errors import InvalidEvent
from .events import AUDIO_CONVERTED, VIDEO_UPLOADED
from .keys import audio_key_for, parse_key, transcript_key_for
from .media import read_transcript, transcode_to_audio, transcribe_audio
from .models import Video
from .scratch import scratch_dir

logger = structlog.get_logger(__name__)

Status = Video.Status


class Stage:
    name = ""
    event_name = ""

    def __init__(self, services, config):
        self.storage = services.storage
        self.runner = services.runner
        self.store = services.store
        self.bus = services.bus
        self.config = config

    def __call__(self, payload: dict) -> None:
        self.handle(payload)

    def handle(self, payload: dict) -> None:
        raise NotImplementedError

    def _video_id(self, payload: dict) -> str:
        video_id = payload.get("id")
        if not video_id:
            raise InvalidEvent(self.event_name, "missing id")
        return str(video_id)

    def _fail(self, log, video_id: str, exc: Exception) -> None:
        """Record FAILED. The caller re-raises `exc` either way."""
        log.error(f"{self.name}.failed", error=str(exc), error_type=type(exc).__name__, exc_info=exc)
        try:
            self.store.mark_failed(video_id, f"{self.name}: {exc}")
        except Exception as store_exc:
            # Whatever broke the write, the stage error is what propagates.
            log.error(
                f"{self.name}.mark_failed_error",
                error=str(store_exc),
                error_type=type(store_exc).__name__,
            )


class ConvertStage(Stage):
    """video.uploaded {id, sourceKey} -> MP3 at <audio root>/<base>.mp3"""

    name = "convert"
    event_name = VIDEO_UPLOADED

    def handle(self, payload: dict) -> None:
        video_id = self._video_id(payload)

        # Reject an unusable sourceKey before any storage access or status write.
        # A key taken from video.url is checked right after the read, still
        # before anything is written.
        source_key = payload.get("sourceKey")
        if source_key is not None:
            audio_key = audio_key_for(source_key, self.config.audio_root)

        video = self.store.get(video_id)
        if source_key is None:
            source_key = video.url
            audio_key = audio_key_for(source_key, self.config.audio_root)

        log = logger.bind(stage=self.name, video_id=video_id, source_key=source_key)

        if video.status == Status.CONVERTED:
            # Finished earlier; the publish may be what failed last time.
            log.info("convert.already_converted", audio_key=audio_key)
            self._publish(video_id, audio_key)
            return
        if video.status not in (Status.QUEUEING, Status.CONVERTING):
            log.info("convert.skipped", status=video.status)
            return

        self.store.update_status(video_id, Status.CONVERTING)
        log.info("convert.started")

        try:
            with scratch_dir(self.config.scratch_dir, self.name, video_id) as workdir:
                local_video = workdir / parse_key(source_key).filename
                self.storage.download(source_key, local_video)
                log.info("convert.downloaded", path=str(local_video))

                out_dir = workdir / "out"
                out_dir.mkdir()
                audio_path = transcode_to_audio(
                    self.runner,
                    local_video,
                    out_dir,
                    ffmpeg=self.config.ffmpeg_bin,
                    timeout=self.config.convert_timeout,
                )

                self.storage.upload(audio_path, audio_key, content_type="audio/mpeg")
                log.info("convert.uploaded", audio_key=audio_key)
        except Exception as e:
            self._fail(log, video_id, e)
            raise

        self.store.update_status(video_id, Status.CONVERTED)
        self._publish(video_id, audio_key)
        log.info("convert.finished", audio_key=audio_key)

    def _publish(self, video_id: str, audio_key: str) -> None:
        self.bus.publish(AUDIO_CONVERTED, {"id": video_id, "audioKey": audio_key})


class TranscribeStage(Stage):
    """audio.converted {id, audioKey} -> whisper JSON at <text root>/<base>.json, text on the video"""

    name = "transcribe"
    event_name = AUDIO_CONVERTED

    def handle(self, payload: dict) -> None:
        video_id = self._video_id(payload)
        audio_key = payload.get("audioKey")
        if audio_key is None:
            raise InvalidEvent(self.event_name, "missing audioKey")
        transcript_key = transcript_key_for(audio_key, self.config.text_root)

        log = logger.bind(stage=self.name, video_id=video_id, audio_key=audio_key)

        video = self.store.get(video_id)
        if video.status not in (Status.CONVERTED, Status.TRANSCRIBING):
            log.info("transcribe.skipped", status=video.status)
            return

        self.store.update_status(video_id, Status.TRANSCRIBING)
        log.info("transcribe.started", model=self.config.whisper_model)

        try:
            with scratch_dir(self.config.scratch_dir, self.name, video_id) as workdir:
                local_audio = workdir / parse_key(audio_key).filename
                self.storage.download(audio_key, local_audio)
                log.info("transcribe.downloaded", path=str(local_audio))

                out_dir = workdir / "out"
                out_dir.mkdir()
                transcript_path = transcribe_audio(
                    self.runner,
                    local_audio,
                    out_dir,
                    whisper=self.config.whisper_bin,
                    model=self.config.whisper_model,
                    language=self.config.whisper_language,
                    fp16=self.config.whisper_fp16,
                    timeout=self.config.transcribe_timeout,
                )
                text = read_transcript(transcript_path)

                self.storage.upload(transcript_path, transcript_key, content_type="application/json")
                log.info("transcribe.uploaded", transcript_key=transcript_key)
        except Exception as e:
            self._fail(log, video_id, e)
            raise

        self.store.update_fields(video_id, status=Status.TRANSCRIBED, text=text)
        log.info("transcribe.finished", transcript_key=transcript_key, chars=len(text))


STAGES = (ConvertStage, TranscribeStage)
