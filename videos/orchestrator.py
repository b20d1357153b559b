import structlog

from .config import PipelineConfig
from .services import build_services
from .stages import STAGES

logger = structlog.get_logger(__name__)


class Orchestrator:
    """
    Subscribes each stage to its triggering event and owns the lifecycle of
    the client handles the stages share. Holds no pipeline logic itself.

    Subscriptions are made up front so the worker knows every event name;
    the clients are built by start() (or on the first delivery) and released
    by stop().
    """

    def __init__(self, bus, *, services_factory=build_services, config_factory=PipelineConfig.from_settings,
                 stages=STAGES):
        self.bus = bus
        self.services_factory = services_factory
        self.config_factory = config_factory
        self.stage_classes = {cls.event_name: cls for cls in stages}
        self.services = None
        self.stages = {}

    def wire(self):
        tasks = {}
        for event_name in self.stage_classes:
            tasks[event_name] = self.bus.subscribe(event_name, self._dispatcher(event_name))
            logger.debug("orchestrator.subscribed", event_name=event_name)
        return tasks

    def start(self) -> None:
        if self.services is not None:
            return
        config = self.config_factory()
        self.services = self.services_factory(self.bus)
        self.stages = {name: cls(self.services, config) for name, cls in self.stage_classes.items()}
        logger.info("orchestrator.started", stages=sorted(self.stages))

    def stop(self) -> None:
        if self.services is None:
            return
        self.services.close()
        self.services = None
        self.stages = {}
        logger.info("orchestrator.stopped")

    def dispatch(self, event_name: str, payload: dict) -> None:
        if self.services is None:
            self.start()
        self.stages[event_name](payload)

    def _dispatcher(self, event_name: str):
        def handler(payload: dict) -> None:
            self.dispatch(event_name, payload)

        return handler
