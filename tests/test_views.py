import uuid

import pytest
from rest_framework.test import APIClient

from videos.errors import BusError
from videos.events import VIDEO_UPLOADED
from videos.models import Video
from videos.views import PipelineView

pytestmark = pytest.mark.django_db


class PresignOnlyStorage:
    instances = []

    def __init__(self):
        self.closed = False
        self.instances.append(self)

    def close(self):
        self.closed = True

    def presign_put(self, key, content_type=None):
        headers = {"Content-Type": content_type} if content_type else {}
        return {"url": f"http://minio.local/bucket{key}?sig=1", "headers": headers}

    def presign_get(self, key):
        return f"http://minio.local/bucket{key}?sig=get"


class BrokenBus:
    def publish(self, event_name, payload):
        raise BusError(event_name, "Connection refused")


@pytest.fixture
def api(monkeypatch, bus):
    PresignOnlyStorage.instances.clear()
    monkeypatch.setattr(PipelineView, "build_storage", lambda self: PresignOnlyStorage())
    monkeypatch.setattr(PipelineView, "get_bus", lambda self: bus)
    return APIClient()


def test_create_video_returns_upload_ticket(api, settings):
    settings.VIDEO_ROOT = "/videos"
    resp = api.post("/api/videos/", {"title": "Standup", "filename": "clips/Standup.MOV"}, format="json")

    assert resp.status_code == 201
    video = Video.objects.get(pk=resp.data["id"])
    assert video.status == Video.Status.QUEUEING
    assert video.type == "video/quicktime"
    assert resp.data["key"] == f"/videos/{video.id}.mov"
    assert resp.data["url"].startswith("http://minio.local/bucket/videos/")
    assert resp.data["headers"] == {"Content-Type": "video/quicktime"}


@pytest.mark.parametrize("filename", ["notes.txt", "noextension", "photo.png"])
def test_create_rejects_non_video(api, filename):
    resp = api.post("/api/videos/", {"title": "x", "filename": filename}, format="json")
    assert resp.status_code == 400
    assert "filename" in resp.data
    assert Video.objects.count() == 0


def test_uploaded_publishes_video_uploaded(api, bus):
    video = Video.objects.create(title="Standup", type="video/mp4")
    key = f"/videos/{video.id}.mp4"

    resp = api.post(f"/api/videos/{video.id}/uploaded/", {"key": key}, format="json")

    assert resp.status_code == 202
    video.refresh_from_db()
    assert video.url == key
    assert bus.published == [(VIDEO_UPLOADED, {"id": str(video.id), "sourceKey": key})]


def test_uploaded_rejects_foreign_or_malformed_key(api, bus):
    video = Video.objects.create(title="Standup")
    other = uuid.uuid4()
    for key in (f"/videos/{other}.mp4", f"/videos/{video.id}"):
        resp = api.post(f"/api/videos/{video.id}/uploaded/", {"key": key}, format="json")
        assert resp.status_code == 400
    assert bus.published == []


def test_uploaded_twice_conflicts(api, bus):
    video = Video.objects.create(title="Standup", status=Video.Status.CONVERTING)
    resp = api.post(f"/api/videos/{video.id}/uploaded/", {"key": f"/videos/{video.id}.mp4"}, format="json")
    assert resp.status_code == 409
    assert bus.published == []


def test_uploaded_broker_down_is_503(api, monkeypatch):
    monkeypatch.setattr(PipelineView, "get_bus", lambda self: BrokenBus())
    video = Video.objects.create(title="Standup")
    resp = api.post(f"/api/videos/{video.id}/uploaded/", {"key": f"/videos/{video.id}.mp4"}, format="json")
    assert resp.status_code == 503
    video.refresh_from_db()
    assert video.status == Video.Status.QUEUEING


def test_list_and_search(api):
    Video.objects.create(title="Budget meeting", text="we discussed the roadmap")
    Video.objects.create(title="Onboarding", text="welcome to the team")
    Video.objects.create(title="Retro", text="")

    resp = api.get("/api/videos/")
    assert resp.status_code == 200
    assert len(resp.data) == 3
    assert "text" not in resp.data[0]

    resp = api.get("/api/videos/", {"search": "roadmap welcome"})
    assert sorted(v["title"] for v in resp.data) == ["Budget meeting", "Onboarding"]

    resp = api.get("/api/videos/", {"search": "retro"})
    assert [v["title"] for v in resp.data] == ["Retro"]


def test_detail_includes_transcript_and_playback_url(api):
    video = Video.objects.create(
        title="Standup", status=Video.Status.TRANSCRIBED, text="hello world", url="/videos/x.mp4"
    )
    resp = api.get(f"/api/videos/{video.id}/")
    assert resp.status_code == 200
    assert resp.data["text"] == "hello world"
    assert resp.data["status"] == "TRANSCRIBED"
    assert resp.data["playback_url"] == "http://minio.local/bucket/videos/x.mp4?sig=get"


def test_detail_not_found(api):
    resp = api.get(f"/api/videos/{uuid.uuid4()}/")
    assert resp.status_code == 404


def test_storage_is_built_once_and_closed_after_each_request(api):
    video = Video.objects.create(title="Standup", url="/videos/x.mp4")

    api.post("/api/videos/", {"title": "Standup", "filename": "a.mp4"}, format="json")
    api.get(f"/api/videos/{video.id}/")

    assert len(PresignOnlyStorage.instances) == 2
    assert all(s.closed for s in PresignOnlyStorage.instances)


def test_requests_without_storage_build_none(api):
    api.get("/api/videos/")
    assert PresignOnlyStorage.instances == []
