"""HTTP client for the remote rendering service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from requests import Response, Session
from requests.exceptions import RequestException

from .config import RendererSettings
from .errors import RenderSubmissionFailed, StatusCheckFailed
from .schemas import JobStatus, RenderJob, TimelineDescription

logger = logging.getLogger(__name__)


def _json_or_none(response: Response) -> Optional[Mapping[str, Any]]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, Mapping) else None


class RenderClient:
    """Submits timelines and reads back job status.

    ``base_url`` points at the renderer's environment root, e.g.
    ``https://api.shotstack.io/stage``; jobs live under ``/render``.
    """

    def __init__(self, settings: RendererSettings, session: Session | None = None) -> None:
        self._settings = settings
        self._session = session or Session()
        self._render_url = settings.base_url.rstrip("/") + "/render"

    def _headers(self) -> Dict[str, str]:
        return {self._settings.api_key_header: self._settings.api_key, "Content-Type": "application/json"}

    def submit(self, timeline: TimelineDescription) -> str:
        payload = timeline.to_render_payload()
        try:
            response = self._session.post(
                self._render_url,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.timeout_sec,
            )
        except RequestException as exc:
            raise RenderSubmissionFailed(f"renderer unreachable: {exc}") from exc

        body = _json_or_none(response)
        logger.info("Renderer submit responded %s: %s", response.status_code, body)
        inner = body.get("response") if body else None
        job_id = inner.get("id") if isinstance(inner, Mapping) else None
        if not response.ok or not job_id:
            remote = (body or {}).get("message") or (body or {}).get("response") or response.reason
            raise RenderSubmissionFailed(
                f"renderer rejected submission with HTTP {response.status_code}",
                remote=remote,
            )
        return str(job_id)

    def status(self, job_id: str) -> RenderJob:
        try:
            response = self._session.get(
                f"{self._render_url}/{job_id}",
                headers=self._headers(),
                timeout=self._settings.timeout_sec,
            )
            response.raise_for_status()
        except RequestException as exc:
            raise StatusCheckFailed(f"status check for {job_id} failed: {exc}") from exc

        body = _json_or_none(response) or {}
        inner = body.get("response")
        if not isinstance(inner, Mapping):
            raise StatusCheckFailed(f"status payload for {job_id} lacks a response object")

        status = JobStatus.from_remote(inner.get("status"))
        result_url = inner.get("url") if status is JobStatus.done else None
        return RenderJob(job_id=job_id, status=status, result_url=result_url)

    def check(self) -> str:
        return "ok" if self._settings.api_key else "missing-api-key"
