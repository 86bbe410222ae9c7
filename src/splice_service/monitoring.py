"""Monitoring utilities for dependency checks and Prometheus metrics."""

from __future__ import annotations

import logging
from typing import Any, Dict

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

SPLICES_SUBMITTED = Counter(
    "splice_jobs_submitted_total",
    "Total number of splice timelines accepted by the renderer",
    labelnames=("profile",),
)
SPLICES_FAILED = Counter(
    "splice_jobs_failed_total",
    "Total number of splice runs aborted before submission",
    labelnames=("error_code",),
)
SPLICE_DURATION = Histogram(
    "splice_run_duration_seconds",
    "Wall time from request validation to render submission",
)

_metrics_started = False


def ensure_metrics_server(port: int) -> None:
    global _metrics_started
    if _metrics_started:
        return
    start_http_server(port)
    _metrics_started = True
    logger.info("Prometheus metrics server started", extra={"port": port})


def record_splice_submitted(profile: str) -> None:
    SPLICES_SUBMITTED.labels(profile=profile).inc()


def record_splice_failed(error_code: str) -> None:
    SPLICES_FAILED.labels(error_code=error_code).inc()


def observe_splice_duration(seconds: float) -> None:
    SPLICE_DURATION.observe(seconds)


def _check_celery_workers(celery_app) -> str:
    try:
        replies = celery_app.control.ping(timeout=1)
        return "ok" if replies else "no-worker"
    except Exception as exc:  # noqa: BLE001
        logger.warning("Celery health check failed", exc_info=exc)
        return f"error:{exc.__class__.__name__}"


def collect_dependency_status(store: Any, render_client: Any, celery_app=None) -> Dict[str, str]:
    """Probe the object store, renderer credentials and (optionally) Celery workers."""

    status = {
        "storage": store.check(),
        "renderer": render_client.check(),
    }
    if celery_app is not None:
        status["celery"] = _check_celery_workers(celery_app)
    return status
