import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


@contextmanager
def scratch_dir(root, stage: str, video_id):
    """
    Private working directory for one stage invocation.

    The name carries the stage and video id plus a random suffix, so
    concurrent workers sharing `root` never collide. The directory and
    everything in it is removed when the block exits, however it exits.
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=f"{stage}-{video_id}-", dir=root))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("scratch.cleanup_incomplete", path=str(path))
