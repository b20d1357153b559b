"""
Event bus over Celery.

An event is a Celery message whose task name is the event name and whose
keyword arguments are the flat JSON payload. Delivery is at-least-once
(late acks, requeue when a worker is lost), so handlers must be idempotent.
"""
from typing import Callable, Protocol

import structlog
from kombu.exceptions import OperationalError

from .errors import BusError

logger = structlog.get_logger(__name__)

VIDEO_UPLOADED = "video.uploaded"
AUDIO_CONVERTED = "audio.converted"

Handler = Callable[[dict], None]


class EventBus(Protocol):
    def publish(self, event_name: str, payload: dict) -> None: ...

    def subscribe(self, event_name: str, handler: Handler) -> None: ...


class CeleryEventBus:
    def __init__(self, app, *, max_retries: int = 3):
        self.app = app
        self.max_retries = max_retries

    def publish(self, event_name: str, payload: dict) -> None:
        """Send once. No internal retry; BusError tells the caller it didn't go out."""
        try:
            self.app.send_task(event_name, kwargs=dict(payload), retry=False)
        except (OperationalError, OSError) as e:
            raise BusError(event_name, str(e)) from e
        logger.info("event.published", event_name=event_name, video_id=payload.get("id"))

    def subscribe(self, event_name: str, handler: Handler):
        """
        Register a Celery task named after the event. Publish failures inside
        the handler are retried with backoff by re-running the whole handler.
        """

        # Positional-only so a payload key can never collide with the bound task.
        def consume(_task, /, **payload):
            logger.info(
                "event.received",
                event_name=event_name,
                video_id=payload.get("id"),
                delivery=_task.request.retries + 1,
            )
            handler(payload)

        consume.__name__ = f"consume_{event_name.replace('.', '_')}"

        return self.app.task(
            name=event_name,
            bind=True,
            acks_late=True,
            reject_on_worker_lost=True,
            autoretry_for=(BusError,),
            max_retries=self.max_retries,
            retry_backoff=True,
        )(consume)
