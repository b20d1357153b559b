from dataclasses import dataclass

from .events import EventBus
from .storage import ObjectStorage
from .store import StatusStore
from .tools import ToolRunner


@dataclass
class PipelineServices:
    """Client handles shared by the stages of one worker process."""

    storage: ObjectStorage
    runner: ToolRunner
    store: StatusStore
    bus: EventBus

    def close(self) -> None:
        self.storage.close()


def build_services(bus: EventBus) -> PipelineServices:
    return PipelineServices(
        storage=ObjectStorage.from_settings(),
        runner=ToolRunner(),
        store=StatusStore(),
        bus=bus,
    )
