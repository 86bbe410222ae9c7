"""Pydantic schemas for splice requests, staged media, render timelines and API payloads."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class OutputProfile(str, Enum):
    mobile = "mobile"
    hd = "hd"
    square = "square"


class AssetRole(str, Enum):
    main_before = "main-before"
    main_after = "main-after"
    clip = "clip"
    audio = "audio"
    full_main = "full-main"


class AssetType(str, Enum):
    video = "video"
    audio = "audio"


class JobStatus(str, Enum):
    processing = "processing"
    done = "done"
    failed = "failed"

    @classmethod
    def from_remote(cls, value: Any) -> "JobStatus":
        """Anything other than a terminal value counts as still running."""
        if value == cls.done.value:
            return cls.done
        if value == cls.failed.value:
            return cls.failed
        return cls.processing

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.processing


class SpliceRequest(BaseModel):
    main_video_path: Optional[Path] = None
    clip_video_path: Optional[Path] = None
    start_timestamp: Optional[str] = None
    end_timestamp: Optional[str] = None
    output_profile: OutputProfile = OutputProfile.mobile
    separate_audio_track: Optional[bool] = None


class TimeRange(BaseModel):
    start_seconds: float = Field(ge=0)
    end_seconds: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeRange":
        if self.end_seconds < self.start_seconds:
            raise ValueError("end_seconds must not precede start_seconds")
        return self


class MediaAsset(BaseModel):
    role: AssetRole
    local_path: Path
    remote_url: Optional[str] = None


class Clip(BaseModel):
    asset_ref: str
    asset_type: AssetType = AssetType.video
    track_start_seconds: float = Field(ge=0)
    length_seconds: float = Field(gt=0)
    muted: bool = False


class Track(BaseModel):
    clips: List[Clip] = Field(default_factory=list)


class OutputSpec(BaseModel):
    format: str = "mp4"
    resolution: str
    aspect_ratio: str


class TimelineDescription(BaseModel):
    tracks: List[Track]
    output: OutputSpec

    def to_render_payload(self) -> Dict[str, Any]:
        """Serialize into the JSON body the remote renderer accepts."""

        tracks: List[Dict[str, Any]] = []
        for track in self.tracks:
            clips = []
            for clip in track.clips:
                asset: Dict[str, Any] = {"type": clip.asset_type.value, "src": clip.asset_ref}
                if clip.muted:
                    asset["volume"] = 0
                clips.append({"asset": asset, "start": clip.track_start_seconds, "length": clip.length_seconds})
            tracks.append({"clips": clips})
        return {
            "timeline": {"tracks": tracks},
            "output": {
                "format": self.output.format,
                "resolution": self.output.resolution,
                "aspectRatio": self.output.aspect_ratio,
            },
        }


class RenderJob(BaseModel):
    job_id: str
    status: JobStatus = JobStatus.processing
    result_url: Optional[str] = None


class SpliceResult(BaseModel):
    job_id: str
    asset_urls: List[str] = Field(default_factory=list)


class SpliceResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: JobStatus
    url: Optional[str] = None
