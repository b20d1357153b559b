from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.utils import timezone

from .errors import StatusTransitionError, StoreUnavailable, VideoNotFound
from .models import Video, predecessors

MAX_ERROR_CHARS = 4000


class StatusStore:
    """
    Narrow status/metadata access to Video rows for the pipeline.

    Status writes are compare-and-set against the allowed predecessors of the
    target status, so a late or duplicate write can never move a video
    backwards. Everything else is last-writer-wins.
    """

    def get(self, video_id) -> Video:
        try:
            return Video.objects.get(pk=video_id)
        except (Video.DoesNotExist, ValidationError, ValueError):
            raise VideoNotFound(video_id)
        except DatabaseError as e:
            raise StoreUnavailable(video_id, str(e)) from e

    def update_status(self, video_id, status: str) -> None:
        self.update_fields(video_id, status=status)

    def update_fields(self, video_id, *, status=None, text=None, url=None, error=None) -> None:
        changes = {}
        if text is not None:
            changes["text"] = text
        if url is not None:
            changes["url"] = url
        if error is not None:
            changes["error"] = error[:MAX_ERROR_CHARS]
        if status is not None:
            changes["status"] = status
        if not changes:
            return
        # QuerySet.update() skips auto_now
        changes["updated_at"] = timezone.now()

        try:
            qs = Video.objects.filter(pk=video_id)
            if status is not None:
                updated = qs.filter(status__in=predecessors(status)).update(**changes)
            else:
                updated = qs.update(**changes)
        except (ValidationError, ValueError):
            raise VideoNotFound(video_id)
        except DatabaseError as e:
            raise StoreUnavailable(video_id, str(e)) from e

        if updated:
            return
        # Nothing matched: either the row is gone or the transition is illegal.
        current = self.get(video_id).status
        raise StatusTransitionError(video_id, current, status)

    def mark_failed(self, video_id, error: str) -> None:
        self.update_fields(video_id, status=Video.Status.FAILED, error=error)
