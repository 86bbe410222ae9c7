"""Celery tasks that reconcile staged objects once a render job is terminal."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from .celery_app import splice_celery
from .config import Settings, get_settings
from .errors import PollTimeout, RenderJobFailed
from .poller import JobStatusPoller
from .render_client import RenderClient
from .storage import ObjectStore

logger = logging.getLogger(__name__)


def _build_collaborators(settings: Settings) -> Tuple[RenderClient, ObjectStore]:
    return RenderClient(settings.renderer), ObjectStore(settings.storage)


def _delete_all(store: ObjectStore, urls: List[str]) -> List[str]:
    deleted: List[str] = []
    for url in urls:
        try:
            store.delete_by_url(url)
            deleted.append(url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Staged object cleanup failed for %s: %s", url, exc)
    return deleted


@splice_celery.task(name="splice.reconcile")
def reconcile_render_job(job_id: str, asset_urls: List[str]) -> Dict[str, Any]:
    """Wait for ``job_id`` to finish, then delete the objects staged for it.

    Objects are kept when the job is still running after the last status check,
    since the renderer may not have fetched them yet.
    """

    settings = get_settings()
    render_client, store = _build_collaborators(settings)
    poller = JobStatusPoller(render_client, settings.polling)

    try:
        job = poller.wait(job_id)
        outcome = {"status": job.status.value, "url": job.result_url}
    except RenderJobFailed:
        outcome = {"status": "failed", "url": None}
    except PollTimeout:
        logger.warning("Render job %s not terminal; keeping %d staged objects", job_id, len(asset_urls))
        return {"job_id": job_id, "status": "processing", "deleted": []}

    deleted = _delete_all(store, asset_urls)
    logger.info("Reconciled render job %s: %s, deleted %d objects", job_id, outcome["status"], len(deleted))
    return {"job_id": job_id, **outcome, "deleted": deleted}
