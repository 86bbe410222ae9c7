"""Splice pipeline: probe, cut, stage, lay out and submit a render job."""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import Any, Awaitable, List, Optional, Tuple

import structlog

from .config import ProcessingSettings
from .errors import MissingInput, ProbeFailed, SpliceError
from .media import MediaProbe, SegmentExtractor
from .monitoring import observe_splice_duration, record_splice_failed, record_splice_submitted
from .render_client import RenderClient
from .schemas import AssetRole, MediaAsset, SpliceRequest, SpliceResult, TimeRange
from .storage import ObjectStore
from .logging import run_context
from .timecode import resolve_time_range
from .timeline import SpliceLayout, build_timeline, resolve_profile
from .workspace import TempWorkspace

logger = structlog.get_logger(__name__)

_REQUIRED_FIELDS = (
    ("main_video_path", "mainVideo"),
    ("clip_video_path", "clipVideo"),
    ("start_timestamp", "startTimestamp"),
    ("end_timestamp", "endTimestamp"),
)


async def _gather(*aws: Awaitable[Any]) -> List[Any]:
    """Wait for every awaitable, then re-raise the first failure.

    Nothing is left running in the background when an error surfaces, so the
    workspace can be torn down safely afterwards.
    """

    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


def _require_inputs(request: SpliceRequest) -> Tuple[Path, Path]:
    missing = [name for attr, name in _REQUIRED_FIELDS if not getattr(request, attr)]
    if missing:
        raise MissingInput(f"missing {', '.join(missing)}", message="Missing required fields")

    for path in (request.main_video_path, request.clip_video_path):
        if not path.is_file() or not os.access(path, os.R_OK):
            raise MissingInput(f"unreadable input {path.name}", message="Uploaded video is not readable")
    return request.main_video_path, request.clip_video_path


class SpliceOrchestrator:
    """Runs one splice end to end and returns the render job id.

    Collaborators are blocking; each call is pushed onto a worker thread so
    concurrent requests keep sharing the event loop. Local intermediates are
    always removed, and objects already staged are deleted again when a later
    step fails.
    """

    def __init__(
        self,
        probe: MediaProbe,
        extractor: SegmentExtractor,
        store: ObjectStore,
        render_client: RenderClient,
        settings: ProcessingSettings,
    ) -> None:
        self._probe = probe
        self._extractor = extractor
        self._store = store
        self._render = render_client
        self._settings = settings

    def new_workspace(self) -> TempWorkspace:
        return TempWorkspace(self._settings.tmp_dir)

    async def splice(self, request: SpliceRequest, workspace: Optional[TempWorkspace] = None) -> SpliceResult:
        workspace = workspace or self.new_workspace()
        with run_context(workspace.run_id):
            return await self._splice(request, workspace)

    async def _splice(self, request: SpliceRequest, workspace: TempWorkspace) -> SpliceResult:
        started_at = time.perf_counter()
        staged: List[str] = []
        try:
            result = await self._run(request, workspace, staged)
        except asyncio.CancelledError:
            logger.warning("splice cancelled", staged=len(staged))
            await self._discard_staged(staged)
            raise
        except Exception as exc:
            code = exc.code if isinstance(exc, SpliceError) else "ERR_TASK_FAILED"
            logger.warning("splice aborted", error_code=code, reason=str(exc))
            record_splice_failed(code)
            await self._discard_staged(staged)
            raise
        finally:
            workspace.cleanup()

        observe_splice_duration(time.perf_counter() - started_at)
        record_splice_submitted(request.output_profile.value)
        logger.info("splice submitted", job_id=result.job_id, assets=len(result.asset_urls))
        return result

    async def _run(
        self,
        request: SpliceRequest,
        workspace: TempWorkspace,
        staged: List[str],
    ) -> SpliceResult:
        main_path, clip_path = _require_inputs(request)
        time_range = resolve_time_range(
            request.start_timestamp,
            request.end_timestamp,
            self._settings.end_before_start,
        )
        profile = resolve_profile(request.output_profile)
        separate_audio = (
            request.separate_audio_track
            if request.separate_audio_track is not None
            else self._settings.separate_audio_track
        )

        total_main, actual_clip = await _gather(
            asyncio.to_thread(self._probe.duration, main_path),
            asyncio.to_thread(self._probe.duration, clip_path),
        )
        if total_main <= 0:
            raise ProbeFailed(f"main video reports duration {total_main}")

        clip_duration = max(actual_clip, self._settings.min_clip_seconds)
        remaining = max(total_main - time_range.end_seconds, self._settings.min_remaining_seconds)
        logger.info(
            "probed inputs",
            start=time_range.start_seconds,
            end=time_range.end_seconds,
            total=total_main,
            clip=clip_duration,
            remaining=remaining,
        )

        assets = await self._extract(main_path, time_range, remaining, separate_audio, workspace)
        assets.append(MediaAsset(role=AssetRole.clip, local_path=clip_path))

        await _gather(*(self._stage(asset, workspace, staged) for asset in assets))
        urls = {asset.role: asset.remote_url for asset in assets}
        logger.debug("staged assets", roles=[role.value for role in urls])

        layout = SpliceLayout(
            before_url=urls.get(AssetRole.main_before),
            clip_url=urls[AssetRole.clip],
            after_url=urls[AssetRole.main_after],
            audio_url=urls.get(AssetRole.audio),
            start_seconds=time_range.start_seconds,
            clip_duration=clip_duration,
            remaining_duration=remaining,
            total_main_duration=total_main,
        )
        timeline = build_timeline(layout, profile)
        job_id = await asyncio.to_thread(self._render.submit, timeline)
        return SpliceResult(job_id=job_id, asset_urls=list(staged))

    async def _extract(
        self,
        main_path: Path,
        time_range: TimeRange,
        remaining: float,
        separate_audio: bool,
        workspace: TempWorkspace,
    ) -> List[MediaAsset]:
        jobs: List[Tuple[AssetRole, Awaitable[Path]]] = []
        if time_range.start_seconds > 0:
            jobs.append(
                (
                    AssetRole.main_before,
                    asyncio.to_thread(
                        self._extractor.extract_segment,
                        main_path,
                        0.0,
                        time_range.start_seconds,
                        workspace.new_file("segment", ".mp4"),
                    ),
                )
            )
        jobs.append(
            (
                AssetRole.main_after,
                asyncio.to_thread(
                    self._extractor.extract_segment,
                    main_path,
                    time_range.end_seconds,
                    remaining,
                    workspace.new_file("segment", ".mp4"),
                ),
            )
        )
        if separate_audio:
            jobs.append(
                (
                    AssetRole.audio,
                    asyncio.to_thread(
                        self._extractor.extract_audio,
                        main_path,
                        workspace.new_file("audio", ".m4a"),
                    ),
                )
            )

        paths = await _gather(*(job for _, job in jobs))
        return [MediaAsset(role=role, local_path=path) for (role, _), path in zip(jobs, paths)]

    async def _stage(self, asset: MediaAsset, workspace: TempWorkspace, staged: List[str]) -> MediaAsset:
        asset.remote_url = await asyncio.to_thread(self._store.upload, asset.local_path, asset.role.value)
        staged.append(asset.remote_url)
        workspace.discard(asset.local_path)
        return asset

    async def _discard_staged(self, staged: List[str]) -> None:
        for url in staged:
            try:
                await asyncio.to_thread(self._store.delete_by_url, url)
            except Exception as exc:  # noqa: BLE001
                logger.warning("failed to delete staged object", url=url, reason=str(exc))
