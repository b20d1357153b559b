import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "transcript_service.settings")

celery_app = Celery("transcript_service")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
# Picks up videos.tasks, which subscribes the pipeline stages.
celery_app.autodiscover_tasks()
