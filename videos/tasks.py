"""
Worker entry point: autodiscovered by the Celery app, registers one task per
pipeline event and ties client lifecycle to the worker process.

    celery -A transcript_service worker -Q convert
    celery -A transcript_service worker -Q transcribe
"""
from celery.signals import worker_process_init, worker_process_shutdown
from django.conf import settings

from transcript_service.celery import celery_app

from .events import CeleryEventBus
from .orchestrator import Orchestrator

bus = CeleryEventBus(celery_app, max_retries=settings.PUBLISH_MAX_RETRIES)
orchestrator = Orchestrator(bus)
stage_tasks = orchestrator.wire()


@worker_process_init.connect
def _start_pipeline(**kwargs):
    orchestrator.start()


@worker_process_shutdown.connect
def _stop_pipeline(**kwargs):
    orchestrator.stop()
