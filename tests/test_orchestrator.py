import pytest

from videos.events import AUDIO_CONVERTED, VIDEO_UPLOADED
from videos.models import Video
from videos.orchestrator import Orchestrator
from videos.stages import ConvertStage, TranscribeStage


@pytest.fixture
def orchestrator(bus, services, config):
    built = []

    def factory(b):
        assert b is bus
        built.append(services)
        return services

    orch = Orchestrator(bus, services_factory=factory, config_factory=lambda: config)
    orch.built = built
    return orch


def test_wire_subscribes_one_handler_per_event(orchestrator, bus):
    tasks = orchestrator.wire()
    assert set(tasks) == {VIDEO_UPLOADED, AUDIO_CONVERTED}
    assert set(bus.handlers) == {VIDEO_UPLOADED, AUDIO_CONVERTED}
    # no clients until the worker starts
    assert orchestrator.services is None


def test_start_builds_stages_once(orchestrator):
    orchestrator.start()
    orchestrator.start()
    assert len(orchestrator.built) == 1
    assert isinstance(orchestrator.stages[VIDEO_UPLOADED], ConvertStage)
    assert isinstance(orchestrator.stages[AUDIO_CONVERTED], TranscribeStage)


def test_stop_closes_services(orchestrator, storage):
    orchestrator.start()
    orchestrator.stop()
    assert storage.closed
    assert orchestrator.services is None
    orchestrator.stop()


@pytest.mark.django_db
def test_delivery_runs_the_whole_pipeline(orchestrator, bus, storage, video):
    orchestrator.wire()
    storage.objects["/videos/v1.mov"] = b"moov"

    # starts lazily on first delivery
    bus.handlers[VIDEO_UPLOADED]({"id": str(video.id), "sourceKey": "/videos/v1.mov"})
    assert orchestrator.services is not None

    event_name, payload = bus.published[-1]
    bus.handlers[event_name](payload)

    video.refresh_from_db()
    assert video.status == Video.Status.TRANSCRIBED
    assert "/texts/v1.json" in storage.objects
