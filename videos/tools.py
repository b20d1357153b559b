import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from .errors import MissingOutput, NonZeroExit, SpawnError, ToolTimeout

logger = structlog.get_logger(__name__)

# Keep failure output bounded; ffmpeg in particular is chatty.
MAX_OUTPUT_CHARS = 4000


@dataclass(frozen=True)
class ExitInfo:
    returncode: int
    output: str
    duration: float


class ToolRunner:
    """Runs an external executable, mapping its outcome onto ToolError types."""

    def run(self, executable: str, args, timeout: float) -> ExitInfo:
        cmd = [executable, *[str(a) for a in args]]
        logger.debug("tool.run", cmd=cmd, timeout=timeout)
        started = time.monotonic()
        try:
            # subprocess.run kills the child before raising TimeoutExpired
            proc = subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout,
            )
        except subprocess.CalledProcessError as e:
            raise NonZeroExit(executable, e.returncode, _tail(e.output)) from e
        except subprocess.TimeoutExpired as e:
            raise ToolTimeout(executable, timeout, _tail(e.output)) from e
        except OSError as e:
            raise SpawnError(executable, e.strerror or str(e)) from e

        info = ExitInfo(proc.returncode, _tail(proc.stdout), time.monotonic() - started)
        logger.debug("tool.done", executable=executable, duration=round(info.duration, 3))
        return info

    @staticmethod
    def expect_output(path) -> Path:
        path = Path(path)
        if not path.is_file():
            raise MissingOutput(path)
        return path


def _tail(output) -> str:
    if not output:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="ignore")
    return output[-MAX_OUTPUT_CHARS:]
