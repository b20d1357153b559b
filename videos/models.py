import uuid
from django.db import models


class Video(models.Model):
    class Status(models.TextChoices):
        QUEUEING = "QUEUEING"
        CONVERTING = "CONVERTING"
        CONVERTED = "CONVERTED"
        TRANSCRIBING = "TRANSCRIBING"
        TRANSCRIBED = "TRANSCRIBED"
        FAILED = "FAILED"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    type = models.CharField(max_length=128, blank=True, default="")   # content type, e.g. video/quicktime
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.QUEUEING)
    url = models.CharField(max_length=1024, blank=True, default="")   # storage key of the source video
    text = models.TextField(blank=True, default="")                   # transcript, set once TRANSCRIBED
    error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} ({self.status})"


# Forward-only lifecycle. Self-transitions on the in-progress states let a
# redelivered event resume a stage whose worker died mid-way.
TRANSITIONS = {
    Video.Status.QUEUEING: {Video.Status.CONVERTING, Video.Status.FAILED},
    Video.Status.CONVERTING: {Video.Status.CONVERTING, Video.Status.CONVERTED, Video.Status.FAILED},
    Video.Status.CONVERTED: {Video.Status.TRANSCRIBING, Video.Status.FAILED},
    Video.Status.TRANSCRIBING: {Video.Status.TRANSCRIBING, Video.Status.TRANSCRIBED, Video.Status.FAILED},
    Video.Status.TRANSCRIBED: set(),
    Video.Status.FAILED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def predecessors(target: str) -> list:
    """Statuses from which `target` may be entered."""
    return [s for s, targets in TRANSITIONS.items() if target in targets]
