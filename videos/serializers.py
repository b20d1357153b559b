import os

from rest_framework import serializers
from .models import Video
from .utils import guess_kind


class VideoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Video
        fields = [
            "id",
            "title",
            "type",
            "status",
            "url",
            "error",
            "created_at",
            "updated_at",
        ]


class VideoDetailSerializer(VideoSerializer):
    class Meta(VideoSerializer.Meta):
        fields = VideoSerializer.Meta.fields + ["text"]


class VideoCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    filename = serializers.CharField()
    type = serializers.CharField(required=False, allow_blank=True)

    def validate_filename(self, value):
        """
        Only video files enter the pipeline, and the extension must survive
        into the storage key for the converter to pick a demuxer.
        """
        name = os.path.basename(value)
        _, ext = os.path.splitext(name)
        if not ext or ext == name:
            raise serializers.ValidationError("Filename must have an extension.")
        if guess_kind(name) != "video":
            raise serializers.ValidationError("Unsupported file type; upload a video.")
        return name


class UploadTicketSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    key = serializers.CharField()
    url = serializers.URLField()
    headers = serializers.DictField(child=serializers.CharField(), required=False)


class VideoUploadedSerializer(serializers.Serializer):
    key = serializers.CharField()
