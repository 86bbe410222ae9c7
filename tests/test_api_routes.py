"""HTTP-level tests for the splice routes with external collaborators stubbed."""

from __future__ import annotations

from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from splice_service.api import routes
from splice_service.app import create_app
from splice_service.schemas import JobStatus, RenderJob
from splice_service.storage import ObjectStore

from .conftest import STORE_PREFIX



class _RemoveClient:
    def __init__(self) -> None:
        self.removed: List[Tuple[str, str]] = []

    def remove_object(self, bucket: str, key: str) -> None:
        self.removed.append((bucket, key))


@pytest.fixture()
def client(test_settings, orchestrator, stubs):
    app = create_app(test_settings)
    app.dependency_overrides[routes.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[routes.get_render_client] = lambda: stubs["render"]
    app.dependency_overrides[routes.get_object_store] = lambda: stubs["store"]
    return TestClient(app)


def _form(**overrides):
    data = {"startTimestamp": "00:00:30", "endTimestamp": "00:00:35", "resolution": "mobile"}
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def _files(include_clip: bool = True):
    files = {"mainVideo": ("main.mp4", b"main-video", "video/mp4")}
    if include_clip:
        files["clipVideo"] = ("clip.mp4", b"clip-video", "video/mp4")
    return files


def test_splice_videos_returns_render_id(client, stubs):
    response = client.post("/api/v1/splice-videos", data=_form(), files=_files())

    assert response.status_code == 200
    assert response.json() == {"id": "job-123"}
    payload = stubs["render"].submitted[0].to_render_payload()
    assert payload["output"]["aspectRatio"] == "9:16"


def test_splice_videos_rejects_missing_upload(client, stubs):
    response = client.post("/api/v1/splice-videos", data=_form(), files=_files(include_clip=False))

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields", "error_code": "ERR_MISSING_INPUT"}
    assert stubs["store"].uploads == []


def test_splice_videos_rejects_malformed_timestamp(client, stubs):
    response = client.post(
        "/api/v1/splice-videos", data=_form(startTimestamp="00:xx:10"), files=_files()
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_TIMECODE"
    assert stubs["extractor"].calls == []


def test_splice_videos_rejects_unknown_resolution(client):
    response = client.post("/api/v1/splice-videos", data=_form(resolution="4k"), files=_files())

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_PROFILE"


def test_splice_videos_reports_upload_failure(client, stubs):
    stubs["store"].fail_on = "clip"

    response = client.post("/api/v1/splice-videos", data=_form(), files=_files())

    assert response.status_code == 500
    assert response.json() == {"error": "Upload failed", "error_code": "ERR_UPLOAD_FAILED"}
    assert stubs["render"].submitted == []


def test_splice_videos_reports_render_rejection(client, stubs):
    stubs["render"].fail = True

    response = client.post("/api/v1/splice-videos", data=_form(), files=_files())

    assert response.status_code == 500
    assert response.json() == {
        "error": "Video rendering failed",
        "error_code": "ERR_RENDER_SUBMISSION_FAILED",
        "renderResponse": "Validation error",
    }


def test_splice_videos_schedules_reconciliation_when_enabled(test_settings, orchestrator, stubs, monkeypatch):
    scheduled = []

    class _Task:
        @staticmethod
        def delay(job_id, urls):
            scheduled.append((job_id, urls))

    monkeypatch.setattr(routes, "reconcile_render_job", _Task)
    settings = test_settings.model_copy(
        update={"reconcile": test_settings.reconcile.model_copy(update={"enabled": True})}
    )
    app = create_app(settings)
    app.dependency_overrides[routes.get_orchestrator] = lambda: orchestrator

    response = TestClient(app).post("/api/v1/splice-videos", data=_form(), files=_files())

    assert response.status_code == 200
    assert [job_id for job_id, _ in scheduled] == ["job-123"]
    assert sorted(scheduled[0][1]) == sorted(u["url"] for u in stubs["store"].uploads)


@pytest.mark.parametrize("job_id", [None, "", "bad id!", "a" * 129])
def test_check_status_requires_valid_id(client, job_id):
    params = {} if job_id is None else {"id": job_id}

    response = client.get("/api/v1/check-status", params=params)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing or invalid ID", "error_code": "ERR_MISSING_INPUT"}


def test_check_status_done_includes_url(client, stubs):
    stubs["render"].statuses = [RenderJob(job_id="job-123", status=JobStatus.done, result_url="https://cdn.test/out.mp4")]

    response = client.get("/api/v1/check-status", params={"id": "job-123"})

    assert response.status_code == 200
    assert response.json() == {"status": "done", "url": "https://cdn.test/out.mp4"}


@pytest.mark.parametrize("job_status", [JobStatus.processing, JobStatus.failed])
def test_check_status_without_url(client, stubs, job_status):
    stubs["render"].statuses = [RenderJob(job_id="job-123", status=job_status)]

    response = client.get("/api/v1/check-status", params={"id": "job-123"})

    assert response.json() == {"status": job_status.value}


def test_check_status_reports_upstream_failure(client, stubs, monkeypatch):
    def _boom(job_id):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(stubs["render"], "status", _boom)

    response = client.get("/api/v1/check-status", params={"id": "job-123"})

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to check render status", "error_code": "ERR_STATUS_CHECK_FAILED"}


def test_delete_asset_removes_object(client, test_settings):
    remover = _RemoveClient()
    store = ObjectStore(test_settings.storage, client=remover)
    client.app.dependency_overrides[routes.get_object_store] = lambda: store

    response = client.delete(
        "/api/v1/assets", params={"url": f"{STORE_PREFIX}splice/clip/abc.mp4"}
    )

    assert response.status_code == 204
    assert remover.removed == [("splice-media", "splice/clip/abc.mp4")]


def test_delete_asset_rejects_foreign_url(client, test_settings):
    remover = _RemoveClient()
    store = ObjectStore(test_settings.storage, client=remover)
    client.app.dependency_overrides[routes.get_object_store] = lambda: store

    response = client.delete("/api/v1/assets", params={"url": "https://elsewhere.test/x.mp4"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_REFERENCE"
    assert remover.removed == []


def test_dependencies_reports_collaborators(client):
    response = client.get("/api/v1/monitor/dependencies")

    assert response.status_code == 200
    assert response.json() == {"storage": "ok", "renderer": "ok"}


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}
