"""FFmpeg-backed media probing and segment extraction."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List

from .config import ProcessingSettings
from .errors import ExtractionFailed, ProbeFailed

logger = logging.getLogger(__name__)


def _require_bin(binary: str) -> None:
    if shutil.which(binary) is None:
        raise RuntimeError(f"Required binary not found: {binary}")


def _run(cmd: List[str]) -> subprocess.CompletedProcess:
    logger.debug("Running command: %s", " ".join(cmd))
    return subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)


def _stderr_tail(exc: subprocess.CalledProcessError, limit: int = 400) -> str:
    return (exc.stderr or "").strip()[-limit:]


class MediaProbe:
    """Reads container duration through ``ffprobe``."""

    def __init__(self, settings: ProcessingSettings) -> None:
        self._bin = settings.ffprobe_bin

    def duration(self, path: Path) -> float:
        try:
            _require_bin(self._bin)
            proc = _run(
                [
                    self._bin,
                    "-v",
                    "error",
                    "-show_entries",
                    "format=duration",
                    "-of",
                    "default=nk=1:nw=1",
                    str(path),
                ]
            )
        except RuntimeError as exc:
            raise ProbeFailed(str(exc)) from exc
        except subprocess.CalledProcessError as exc:
            raise ProbeFailed(f"ffprobe exited with {exc.returncode}: {_stderr_tail(exc)}") from exc

        raw = (proc.stdout or "").strip()
        try:
            return float(raw)
        except ValueError as exc:
            raise ProbeFailed(f"unreadable duration {raw!r} for {path.name}") from exc


class SegmentExtractor:
    """Cuts time-bounded sub-clips and audio-only tracks into new local files."""

    def __init__(self, settings: ProcessingSettings) -> None:
        self._bin = settings.ffmpeg_bin
        self._video_options = list(settings.video_options)
        self._audio_bitrate = settings.audio_bitrate

    def extract_segment(self, source: Path, start: float, duration: float, dest: Path) -> Path:
        cmd = [
            self._bin,
            "-y",
            "-ss",
            f"{start}",
            "-i",
            str(source),
            "-t",
            f"{duration}",
            *self._video_options,
            str(dest),
        ]
        return self._execute(cmd, dest)

    def extract_audio(self, source: Path, dest: Path) -> Path:
        cmd = [
            self._bin,
            "-y",
            "-i",
            str(source),
            "-vn",
            "-c:a",
            "aac",
            "-b:a",
            self._audio_bitrate,
            "-shortest",
            str(dest),
        ]
        return self._execute(cmd, dest)

    def _execute(self, cmd: List[str], dest: Path) -> Path:
        try:
            _require_bin(self._bin)
            _run(cmd)
        except RuntimeError as exc:
            raise ExtractionFailed(str(exc)) from exc
        except subprocess.CalledProcessError as exc:
            raise ExtractionFailed(f"ffmpeg exited with {exc.returncode}: {_stderr_tail(exc)}") from exc
        if not dest.exists():
            raise ExtractionFailed(f"ffmpeg produced no output for {dest.name}")
        return dest
