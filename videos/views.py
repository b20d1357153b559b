from functools import reduce
import operator

from django.conf import settings
from django.db.models import Q
from rest_framework import status, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from transcript_service.celery import celery_app

from .errors import BusError, MalformedKey
from .events import VIDEO_UPLOADED, CeleryEventBus
from .keys import parse_key
from .models import Video
from .storage import ObjectStorage
from .utils import guess_content_type, search_terms, video_key

from .serializers import (
    UploadTicketSerializer,
    VideoCreateSerializer,
    VideoDetailSerializer,
    VideoSerializer,
    VideoUploadedSerializer,
)


class PipelineView(views.APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    storage = None

    def build_storage(self) -> ObjectStorage:
        return ObjectStorage.from_settings()

    def get_storage(self) -> ObjectStorage:
        # Built on first use, closed when the request is done.
        if self.storage is None:
            self.storage = self.build_storage()
        return self.storage

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        finally:
            if self.storage is not None:
                self.storage.close()
                self.storage = None

    def get_bus(self):
        return CeleryEventBus(celery_app)

    def get_video(self, video_id):
        try:
            return Video.objects.get(pk=video_id)
        except Video.DoesNotExist:
            return None


class VideoListCreateView(PipelineView):
    """
    GET: list videos, optionally filtered by ?search=<words>; any word may
    match the title or the transcript.
    POST: create a QUEUEING video and hand back a presigned PUT URL for its
    source blob. The client uploads directly to MinIO/S3, then calls
    VideoUploadedView.
    """

    def get(self, request):
        qs = Video.objects.all()
        terms = search_terms(request.query_params.get("search", ""))
        if terms:
            qs = qs.filter(reduce(operator.or_, (
                Q(title__icontains=t) | Q(text__icontains=t) for t in terms
            )))
        return Response(VideoSerializer(qs, many=True).data)

    def post(self, request):
        ser = VideoCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        filename = ser.validated_data["filename"]
        content_type = ser.validated_data.get("type") or guess_content_type(filename)

        video = Video.objects.create(title=ser.validated_data["title"], type=content_type)
        key = video_key(settings.VIDEO_ROOT, video.id, filename)

        signed = self.get_storage().presign_put(key, content_type=content_type)
        resp = {"id": video.id, "key": key, "url": signed["url"], "headers": signed.get("headers", {})}
        return Response(UploadTicketSerializer(resp).data, status=status.HTTP_201_CREATED)


class VideoDetailView(PipelineView):
    def get(self, request, video_id):
        video = self.get_video(video_id)
        if video is None:
            return Response({"detail": "Not found"}, status=404)

        data = VideoDetailSerializer(video).data
        # Time-limited playback URL for the original upload
        data["playback_url"] = self.get_storage().presign_get(video.url) if video.url else None
        return Response(data)


class VideoUploadedView(PipelineView):
    """
    Upload completion: records where the source blob lives and publishes
    video.uploaded, which starts the pipeline.
    """

    def post(self, request, video_id):
        video = self.get_video(video_id)
        if video is None:
            return Response({"detail": "Not found"}, status=404)

        ser = VideoUploadedSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        key = ser.validated_data["key"]

        expected_prefix = f"{settings.VIDEO_ROOT.rstrip('/')}/{video.id}."
        try:
            parse_key(key)
        except MalformedKey as e:
            return Response({"key": [str(e)]}, status=400)
        if not key.startswith(expected_prefix):
            return Response({"key": [f"Expected a key starting with {expected_prefix}"]}, status=400)

        if video.status != Video.Status.QUEUEING:
            return Response({"detail": f"Video is already {video.status}"}, status=409)

        video.url = key
        video.save(update_fields=["url", "updated_at"])

        try:
            self.get_bus().publish(VIDEO_UPLOADED, {"id": str(video.id), "sourceKey": key})
        except BusError as e:
            return Response({"detail": str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response({"id": str(video.id), "status": video.status}, status=status.HTTP_202_ACCEPTED)
