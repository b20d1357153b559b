from django.urls import path
from .views import VideoDetailView, VideoListCreateView, VideoUploadedView

urlpatterns = [
    path("videos/", VideoListCreateView.as_view(), name="video_list_create"),
    path("videos/<uuid:video_id>/", VideoDetailView.as_view(), name="video_detail"),
    path("videos/<uuid:video_id>/uploaded/", VideoUploadedView.as_view(), name="video_uploaded"),
]
