"""Celery app for background reconciliation of staged splice media."""

from __future__ import annotations

from celery import Celery

from .config import get_settings

settings = get_settings()

splice_celery = Celery(
    settings.service_name,
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
)

splice_celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=settings.celery.task_time_limit_sec,
    task_default_queue=settings.celery.default_queue,
    task_routes={"splice.*": {"queue": settings.celery.default_queue}},
)

splice_celery.autodiscover_tasks(["splice_service"])
