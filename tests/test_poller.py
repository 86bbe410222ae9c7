"""Tests for bounded render-job polling."""

from __future__ import annotations

import pytest

from splice_service.config import PollingSettings
from splice_service.errors import PollTimeout, RenderJobFailed, StatusCheckFailed
from splice_service.poller import JobStatusPoller
from splice_service.schemas import JobStatus, RenderJob


class _Source:
    def __init__(self, statuses):
        self._statuses = list(statuses)
        self.calls = 0

    def status(self, job_id):
        self.calls += 1
        status = self._statuses.pop(0) if self._statuses else JobStatus.processing
        if isinstance(status, Exception):
            raise status
        url = "https://cdn/out.mp4" if status is JobStatus.done else None
        return RenderJob(job_id=job_id, status=status, result_url=url)


def _poller(source, attempts=5, delay=2.0):
    sleeps: list[float] = []
    poller = JobStatusPoller(source, PollingSettings(max_attempts=attempts, delay_seconds=delay), sleep=sleeps.append)
    return poller, sleeps


def test_wait_returns_done_job():
    source = _Source([JobStatus.processing, JobStatus.processing, JobStatus.done])
    poller, sleeps = _poller(source)

    job = poller.wait("job-1")

    assert job.result_url == "https://cdn/out.mp4"
    assert source.calls == 3
    assert sleeps == [2.0, 2.0]


def test_wait_raises_on_failed_job():
    poller, _ = _poller(_Source([JobStatus.processing, JobStatus.failed]))
    with pytest.raises(RenderJobFailed):
        poller.wait("job-1")


def test_wait_gives_up_after_attempt_ceiling():
    source = _Source([])
    poller, sleeps = _poller(source, attempts=4)

    with pytest.raises(PollTimeout):
        poller.wait("job-1")

    assert source.calls == 4
    assert len(sleeps) == 3


def test_wait_reports_each_check():
    seen: list[tuple[str, int]] = []
    poller, _ = _poller(_Source([JobStatus.processing, JobStatus.done]))

    poller.wait("job-1", on_update=lambda job, attempt: seen.append((job.status.value, attempt)))

    assert seen == [("processing", 1), ("done", 2)]


def test_wait_keeps_polling_after_failed_status_check():
    source = _Source([StatusCheckFailed("502 from renderer"), JobStatus.done])
    poller, sleeps = _poller(source)

    job = poller.wait("job-1")

    assert job.status is JobStatus.done
    assert source.calls == 2
    assert sleeps == [2.0]


def test_wait_times_out_when_status_checks_keep_failing():
    source = _Source([StatusCheckFailed("connection reset")] * 3)
    poller, _ = _poller(source, attempts=3)

    with pytest.raises(PollTimeout):
        poller.wait("job-1")

    assert source.calls == 3
