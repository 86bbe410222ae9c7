"""Caller-side polling of render jobs until they reach a terminal state."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol

from .config import PollingSettings
from .errors import PollTimeout, RenderJobFailed, StatusCheckFailed
from .schemas import JobStatus, RenderJob

logger = logging.getLogger(__name__)


class StatusSource(Protocol):
    def status(self, job_id: str) -> RenderJob: ...


class JobStatusPoller:
    """Queries job status at most ``max_attempts`` times, ``delay_seconds`` apart."""

    def __init__(
        self,
        render_client: StatusSource,
        settings: PollingSettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = render_client
        self._max_attempts = settings.max_attempts
        self._delay = settings.delay_seconds
        self._sleep = sleep

    def wait(self, job_id: str, on_update: Optional[Callable[[RenderJob, int], None]] = None) -> RenderJob:
        """Return the finished job, or raise ``RenderJobFailed`` / ``PollTimeout``.

        A status check that errors counts as a ``processing`` answer.
        """

        for attempt in range(1, self._max_attempts + 1):
            try:
                job = self._client.status(job_id)
            except StatusCheckFailed as exc:
                logger.warning("Status check %d for %s failed: %s", attempt, job_id, exc.detail)
                job = RenderJob(job_id=job_id, status=JobStatus.processing)
            if on_update is not None:
                on_update(job, attempt)
            if job.status is JobStatus.done:
                logger.info("Render job %s done after %d checks", job_id, attempt)
                return job
            if job.status is JobStatus.failed:
                raise RenderJobFailed(f"render job {job_id} reported failure")
            if attempt < self._max_attempts:
                self._sleep(self._delay)

        raise PollTimeout(f"render job {job_id} still processing after {self._max_attempts} checks")
