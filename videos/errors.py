"""
Error types raised by the pipeline adapters and stages.

Adapters raise these and never log-and-swallow; the stage handlers decide
what to log, which status to record and whether to re-raise.
"""


class PipelineError(Exception):
    """Base class for every error raised by the transcript pipeline."""


class NotFound(PipelineError):
    """A remote blob or a video record does not exist."""


# -----------------------------------------------------
# Object storage
# -----------------------------------------------------
class StorageError(PipelineError):
    pass


class ObjectNotFound(StorageError, NotFound):
    def __init__(self, key: str):
        super().__init__(f"Object not found: {key}")
        self.key = key


class TransportError(StorageError):
    """Network, auth or service failure while talking to object storage."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Storage transport error for {key}: {reason}")
        self.key = key
        self.reason = reason


# -----------------------------------------------------
# Status store
# -----------------------------------------------------
class StoreError(PipelineError):
    pass


class VideoNotFound(StoreError, NotFound):
    def __init__(self, video_id):
        super().__init__(f"Video not found: {video_id}")
        self.video_id = video_id


class StoreUnavailable(StoreError):
    """The database rejected or could not serve a status read or write."""

    def __init__(self, video_id, reason: str):
        super().__init__(f"Status store unavailable for video {video_id}: {reason}")
        self.video_id = video_id
        self.reason = reason


class StatusTransitionError(StoreError):
    def __init__(self, video_id, current: str, target: str):
        super().__init__(f"Video {video_id}: cannot move from {current} to {target}")
        self.video_id = video_id
        self.current = current
        self.target = target


# -----------------------------------------------------
# External tools
# -----------------------------------------------------
class ToolError(PipelineError):
    pass


class SpawnError(ToolError):
    def __init__(self, executable: str, reason: str):
        super().__init__(f"Could not start {executable}: {reason}")
        self.executable = executable
        self.reason = reason


class NonZeroExit(ToolError):
    def __init__(self, executable: str, code: int, output: str):
        super().__init__(f"{executable} exited with code {code}")
        self.executable = executable
        self.code = code
        self.output = output


class ToolTimeout(ToolError):
    def __init__(self, executable: str, timeout: float, output: str = ""):
        super().__init__(f"{executable} timed out after {timeout}s and was killed")
        self.executable = executable
        self.timeout = timeout
        self.output = output


class MissingOutput(ToolError):
    def __init__(self, path):
        super().__init__(f"Tool exited cleanly but produced no output at {path}")
        self.path = path


class InvalidOutput(ToolError):
    def __init__(self, path, reason: str):
        super().__init__(f"Unreadable tool output at {path}: {reason}")
        self.path = path
        self.reason = reason


# -----------------------------------------------------
# Keys & events
# -----------------------------------------------------
class MalformedKey(PipelineError):
    def __init__(self, key, reason: str = "expected <root>/<base>.<ext>"):
        super().__init__(f"Malformed storage key {key!r}: {reason}")
        self.key = key
        self.reason = reason


class BusError(PipelineError):
    def __init__(self, event_name: str, reason: str):
        super().__init__(f"Could not publish {event_name}: {reason}")
        self.event_name = event_name
        self.reason = reason


class InvalidEvent(PipelineError):
    """An event payload is missing a field every consumer needs."""

    def __init__(self, event_name: str, reason: str):
        super().__init__(f"Invalid {event_name} event: {reason}")
        self.event_name = event_name
        self.reason = reason
