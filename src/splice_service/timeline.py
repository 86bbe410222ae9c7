"""Builds the render timeline for a splice."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import InvalidOutputProfile
from .schemas import AssetType, Clip, OutputProfile, OutputSpec, TimelineDescription, Track

ASPECT_RATIOS: Dict[OutputProfile, str] = {
    OutputProfile.mobile: "9:16",
    OutputProfile.square: "1:1",
    OutputProfile.hd: "16:9",
}


@dataclass(frozen=True)
class SpliceLayout:
    """Resolved URLs and timings for one splice."""

    before_url: Optional[str]
    clip_url: str
    after_url: str
    start_seconds: float
    clip_duration: float
    remaining_duration: float
    total_main_duration: float
    audio_url: Optional[str] = None


def resolve_profile(profile: OutputProfile | str) -> OutputProfile:
    try:
        return OutputProfile(profile)
    except ValueError as exc:
        raise InvalidOutputProfile(f"unknown output profile {profile!r}") from exc


def output_spec(profile: OutputProfile | str) -> OutputSpec:
    resolved = resolve_profile(profile)
    return OutputSpec(format="mp4", resolution=resolved.value, aspect_ratio=ASPECT_RATIOS[resolved])


def build_timeline(layout: SpliceLayout, profile: OutputProfile | str) -> TimelineDescription:
    """Lay out before-segment, inserted clip and after-segment back to back.

    With a separate audio track the video clips are muted and a second track
    plays the main video's audio across its full duration. The before-segment
    is left out when the splice starts at zero.
    """

    output = output_spec(profile)
    muted = layout.audio_url is not None

    video_clips: List[Clip] = []
    if layout.before_url is not None and layout.start_seconds > 0:
        video_clips.append(
            Clip(
                asset_ref=layout.before_url,
                track_start_seconds=0,
                length_seconds=layout.start_seconds,
                muted=muted,
            )
        )
    video_clips.append(
        Clip(
            asset_ref=layout.clip_url,
            track_start_seconds=layout.start_seconds,
            length_seconds=layout.clip_duration,
            muted=muted,
        )
    )
    video_clips.append(
        Clip(
            asset_ref=layout.after_url,
            track_start_seconds=layout.start_seconds + layout.clip_duration,
            length_seconds=layout.remaining_duration,
            muted=muted,
        )
    )

    tracks = [Track(clips=video_clips)]
    if layout.audio_url is not None:
        tracks.append(
            Track(
                clips=[
                    Clip(
                        asset_ref=layout.audio_url,
                        asset_type=AssetType.audio,
                        track_start_seconds=0,
                        length_seconds=layout.total_main_duration,
                    )
                ]
            )
        )
    return TimelineDescription(tracks=tracks, output=output)
