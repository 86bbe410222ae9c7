"""API routes for splice submission, render status and staged-object cleanup."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status

from ..config import Settings, settings_dependency
from ..errors import InvalidOutputProfile, MissingInput, SpliceError, StatusCheckFailed, raise_error
from ..monitoring import collect_dependency_status
from ..orchestrator import SpliceOrchestrator
from ..render_client import RenderClient
from ..schemas import OutputProfile, SpliceRequest, SpliceResponse, StatusResponse
from ..storage import ObjectStore
from ..tasks import reconcile_render_job
from ..celery_app import splice_celery
from ..workspace import TempWorkspace

logger = logging.getLogger(__name__)
router = APIRouter()

_JOB_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
_CHUNK_SIZE = 1024 * 1024


def get_orchestrator(request: Request) -> SpliceOrchestrator:
    return request.app.state.orchestrator


def get_render_client(request: Request) -> RenderClient:
    return request.app.state.render_client


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


async def _save_upload(upload: UploadFile, workspace: TempWorkspace, stem: str) -> Path:
    suffix = Path(upload.filename or "").suffix or ".mp4"
    dest = workspace.new_file(stem, suffix)
    with dest.open("wb") as handle:
        while chunk := await upload.read(_CHUNK_SIZE):
            handle.write(chunk)
    return dest


def _schedule_reconcile(job_id: str, asset_urls: list[str]) -> None:
    try:
        reconcile_render_job.delay(job_id, asset_urls)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not schedule reconciliation for %s: %s", job_id, exc)


@router.post("/splice-videos", response_model=SpliceResponse)
async def splice_videos(
    main_video: Optional[UploadFile] = File(None, alias="mainVideo"),
    clip_video: Optional[UploadFile] = File(None, alias="clipVideo"),
    start_timestamp: Optional[str] = Form(None, alias="startTimestamp"),
    end_timestamp: Optional[str] = Form(None, alias="endTimestamp"),
    resolution: str = Form(OutputProfile.mobile.value),
    separate_audio: Optional[bool] = Form(None, alias="separateAudio"),
    orchestrator: SpliceOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(settings_dependency),
) -> SpliceResponse:
    if not main_video or not clip_video or not start_timestamp or not end_timestamp:
        raise MissingInput("splice form incomplete", message="Missing required fields")
    try:
        profile = OutputProfile(resolution)
    except ValueError as exc:
        raise InvalidOutputProfile(f"unknown resolution {resolution!r}") from exc

    workspace = orchestrator.new_workspace()
    try:
        main_path = await _save_upload(main_video, workspace, "main")
        clip_path = await _save_upload(clip_video, workspace, "clip")
    except Exception:
        workspace.cleanup()
        logger.exception("Saving uploaded videos failed")
        raise SpliceError("saving uploads failed", message="Upload failed", code="ERR_UPLOAD_FAILED")

    splice_request = SpliceRequest(
        main_video_path=main_path,
        clip_video_path=clip_path,
        start_timestamp=start_timestamp,
        end_timestamp=end_timestamp,
        output_profile=profile,
        separate_audio_track=separate_audio,
    )
    try:
        result = await orchestrator.splice(splice_request, workspace)
    except SpliceError as exc:
        logger.warning("Splice rejected (%s): %s", exc.code, exc.detail)
        raise
    except Exception as exc:
        logger.exception("Splicing error")
        raise SpliceError("unexpected splice failure") from exc

    if settings.reconcile.enabled:
        _schedule_reconcile(result.job_id, result.asset_urls)
    return SpliceResponse(id=result.job_id)


@router.get(
    "/check-status",
    response_model=StatusResponse,
    response_model_exclude_none=True,
)
async def check_status(
    job_id: Optional[str] = Query(None, alias="id"),
    render_client: RenderClient = Depends(get_render_client),
) -> StatusResponse:
    if not job_id or not _JOB_ID_RE.match(job_id):
        raise_error("ERR_MISSING_INPUT", detail="Missing or invalid ID")

    try:
        job = await asyncio.to_thread(render_client.status, job_id)
    except StatusCheckFailed as exc:
        logger.error("Status check error: %s", exc.detail)
        raise
    except Exception as exc:
        logger.exception("Status check error")
        raise StatusCheckFailed(str(exc)) from exc
    return StatusResponse(status=job.status, url=job.result_url)


@router.delete("/assets", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(
    url: Optional[str] = Query(None),
    store: ObjectStore = Depends(get_object_store),
) -> Response:
    if not url:
        raise_error("ERR_MISSING_INPUT", detail="url is required")
    try:
        await asyncio.to_thread(store.delete_by_url, url)
    except SpliceError:
        raise
    except Exception as exc:
        logger.exception("Deleting staged object failed")
        raise SpliceError("delete failed", message="Unable to delete object") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/monitor/dependencies")
async def dependencies(
    store: ObjectStore = Depends(get_object_store),
    render_client: RenderClient = Depends(get_render_client),
    settings: Settings = Depends(settings_dependency),
) -> Dict[str, str]:
    celery_app = splice_celery if settings.reconcile.enabled else None
    return await asyncio.to_thread(collect_dependency_status, store, render_client, celery_app)
