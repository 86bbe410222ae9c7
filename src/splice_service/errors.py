"""Error code registry, typed pipeline failures and helpers for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


@dataclass(frozen=True)
class ErrorCodeSpec:
    code: str
    message: str
    http_status: int


class ErrorRegistry:
    def __init__(self) -> None:
        self._codes: Dict[str, ErrorCodeSpec] = {}

    def register(self, spec: ErrorCodeSpec) -> None:
        if spec.code in self._codes:
            raise ValueError(f"Error code {spec.code} already registered")
        self._codes[spec.code] = spec

    def get(self, code: str) -> ErrorCodeSpec:
        if code not in self._codes:
            raise KeyError(f"Unknown error code: {code}")
        return self._codes[code]

    def to_dict(self) -> Dict[str, ErrorCodeSpec]:
        return dict(self._codes)


ERRORS = ErrorRegistry()


def register_default_errors() -> None:
    for code, message, http_status in (
        ("ERR_MISSING_INPUT", "Missing required fields", status.HTTP_400_BAD_REQUEST),
        ("ERR_INVALID_TIMECODE", "Invalid timestamp", status.HTTP_400_BAD_REQUEST),
        ("ERR_INVALID_PROFILE", "Unsupported output resolution", status.HTTP_400_BAD_REQUEST),
        ("ERR_INVALID_REFERENCE", "Invalid storage URL", status.HTTP_400_BAD_REQUEST),
        ("ERR_PROBE_FAILED", "Unable to read media duration", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_EXTRACTION_FAILED", "Segment extraction failed", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_UPLOAD_FAILED", "Upload failed", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_RENDER_SUBMISSION_FAILED", "Video rendering failed", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_RENDER_JOB_FAILED", "Render job failed", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_POLL_TIMEOUT", "Render job did not finish in time", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_STATUS_CHECK_FAILED", "Unable to check render status", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("ERR_TASK_FAILED", "Splicing failed", status.HTTP_500_INTERNAL_SERVER_ERROR),
    ):
        ERRORS.register(ErrorCodeSpec(code=code, message=message, http_status=http_status))


register_default_errors()


class SpliceError(Exception):
    """Base class for failures that map onto a registered error code."""

    code = "ERR_TASK_FAILED"

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        if code is not None:
            self.code = code
        self.detail = detail
        self.message = message
        super().__init__(detail or message or self.code)

    @property
    def spec(self) -> ErrorCodeSpec:
        return ERRORS.get(self.code)

    @property
    def http_status(self) -> int:
        return self.spec.http_status

    def to_payload(self) -> Dict[str, Any]:
        """User-visible envelope; ``detail`` stays in logs only."""
        return {"error": self.message or self.spec.message, "error_code": self.code}


class MissingInput(SpliceError):
    code = "ERR_MISSING_INPUT"


class InvalidTimecode(SpliceError):
    code = "ERR_INVALID_TIMECODE"


class InvalidOutputProfile(SpliceError):
    code = "ERR_INVALID_PROFILE"


class InvalidReference(SpliceError):
    code = "ERR_INVALID_REFERENCE"


class ProbeFailed(SpliceError):
    code = "ERR_PROBE_FAILED"


class ExtractionFailed(SpliceError):
    code = "ERR_EXTRACTION_FAILED"


class UploadFailed(SpliceError):
    code = "ERR_UPLOAD_FAILED"


class RenderSubmissionFailed(SpliceError):
    code = "ERR_RENDER_SUBMISSION_FAILED"

    def __init__(self, detail: Optional[str] = None, *, remote: Any = None) -> None:
        super().__init__(detail)
        self.remote = remote

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.remote is not None:
            payload["renderResponse"] = self.remote
        return payload


class RenderJobFailed(SpliceError):
    code = "ERR_RENDER_JOB_FAILED"


class PollTimeout(SpliceError):
    code = "ERR_POLL_TIMEOUT"


class StatusCheckFailed(SpliceError):
    code = "ERR_STATUS_CHECK_FAILED"


def raise_error(code: str, *, detail: Optional[str] = None) -> None:
    """Raise a route-level failure whose ``detail`` is safe to show the caller."""
    ERRORS.get(code)
    raise SpliceError(detail, message=detail, code=code)


async def splice_error_handler(request: Request, exc: SpliceError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_payload())
