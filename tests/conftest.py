"""Shared pytest fixtures and stub collaborators for the splice service tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from splice_service.config import (
    LoggingSettings,
    PollingSettings,
    ProcessingSettings,
    RendererSettings,
    Settings,
    StorageSettings,
)
from splice_service.errors import ExtractionFailed, ProbeFailed, RenderSubmissionFailed, UploadFailed
from splice_service.orchestrator import SpliceOrchestrator
from splice_service.schemas import JobStatus, RenderJob, TimelineDescription

STORE_PREFIX = "https://splice-media.s3.us-east-1.amazonaws.com/"


class StubProbe:
    """Answers durations by file name: anything starting with ``clip`` is the insert."""

    def __init__(self, main: float = 100.0, clip: float = 5.0, fail: bool = False) -> None:
        self.main = main
        self.clip = clip
        self.fail = fail
        self.calls: List[str] = []

    def duration(self, path: Path) -> float:
        self.calls.append(path.name)
        if self.fail:
            raise ProbeFailed("ffprobe exited with 1")
        return self.clip if path.name.startswith("clip") else self.main


class StubExtractor:
    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.fail_on = fail_on
        self.calls: List[Dict[str, object]] = []

    def extract_segment(self, source: Path, start: float, duration: float, dest: Path) -> Path:
        self.calls.append({"kind": "segment", "start": start, "duration": duration, "dest": dest})
        if self.fail_on == "segment":
            raise ExtractionFailed("ffmpeg exited with 1")
        dest.write_bytes(b"segment")
        return dest

    def extract_audio(self, source: Path, dest: Path) -> Path:
        self.calls.append({"kind": "audio", "dest": dest})
        if self.fail_on == "audio":
            raise ExtractionFailed("ffmpeg exited with 1")
        dest.write_bytes(b"audio")
        return dest


class StubStore:
    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.fail_on = fail_on
        self.uploads: List[Dict[str, object]] = []
        self.deleted: List[str] = []

    def upload(self, local_path: Path, folder: str) -> str:
        if folder == self.fail_on:
            raise UploadFailed(f"upload of {local_path.name} failed")
        url = f"{STORE_PREFIX}splice/{folder}/{len(self.uploads)}{local_path.suffix}"
        self.uploads.append({"folder": folder, "existed": local_path.exists(), "url": url})
        return url

    def delete_by_url(self, url: str) -> None:
        self.deleted.append(url)

    def check(self) -> str:
        return "ok"


class StubRender:
    def __init__(self, job_id: str = "job-123", fail: bool = False) -> None:
        self.job_id = job_id
        self.fail = fail
        self.submitted: List[TimelineDescription] = []
        self.statuses: List[RenderJob] = []

    def submit(self, timeline: TimelineDescription) -> str:
        self.submitted.append(timeline)
        if self.fail:
            raise RenderSubmissionFailed("renderer rejected submission with HTTP 400", remote="Validation error")
        return self.job_id

    def status(self, job_id: str) -> RenderJob:
        if self.statuses:
            return self.statuses.pop(0)
        return RenderJob(job_id=job_id, status=JobStatus.processing)

    def check(self) -> str:
        return "ok"


@pytest.fixture()
def processing_settings(tmp_path) -> ProcessingSettings:
    return ProcessingSettings(tmp_dir=str(tmp_path / "work"))


@pytest.fixture()
def test_settings(tmp_path, processing_settings) -> Settings:
    return Settings(
        service_name="video-splice-service-test",
        environment="test",
        logging=LoggingSettings(log_dir=str(tmp_path / "logs")),
        storage=StorageSettings(bucket="splice-media", region="us-east-1"),
        renderer=RendererSettings(base_url="https://render.test/stage", api_key="test-key"),
        processing=processing_settings,
        polling=PollingSettings(max_attempts=3, delay_seconds=0),
    )


@pytest.fixture()
def stubs():
    return {
        "probe": StubProbe(),
        "extractor": StubExtractor(),
        "store": StubStore(),
        "render": StubRender(),
    }


@pytest.fixture()
def orchestrator(stubs, processing_settings) -> SpliceOrchestrator:
    return SpliceOrchestrator(
        probe=stubs["probe"],
        extractor=stubs["extractor"],
        store=stubs["store"],
        render_client=stubs["render"],
        settings=processing_settings,
    )


@pytest.fixture()
def input_videos(tmp_path):
    inputs = tmp_path / "inputs"
    inputs.mkdir()
    main = inputs / "main.mp4"
    clip = inputs / "clip.mp4"
    main.write_bytes(b"main-video")
    clip.write_bytes(b"clip-video")
    return main, clip
