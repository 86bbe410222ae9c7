"""Smoke test client for the splice service.

Usage:
    python scripts/splice_smoke.py --main main.mp4 --clip clip.mp4 --start 00:00:30 --end 00:00:40

Submits a splice, then polls ``/check-status`` until the render finishes or the
attempt limit (30 checks, 2 seconds apart by default) runs out.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import requests

from splice_service.config import PollingSettings
from splice_service.errors import SpliceError, StatusCheckFailed
from splice_service.poller import JobStatusPoller
from splice_service.schemas import JobStatus, RenderJob


class ServiceStatusSource:
    """Reads job status through the service's status endpoint."""

    def __init__(self, api: str) -> None:
        self._url = f"{api.rstrip('/')}/api/v1/check-status"

    def status(self, job_id: str) -> RenderJob:
        try:
            resp = requests.get(self._url, params={"id": job_id}, timeout=10)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise StatusCheckFailed(str(exc)) from exc
        data = resp.json()
        return RenderJob(job_id=job_id, status=JobStatus.from_remote(data.get("status")), result_url=data.get("url"))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Splice service smoke test")
    parser.add_argument("--api", default="http://127.0.0.1:8300", help="Splice API base url")
    parser.add_argument("--main", required=True, type=Path, help="Main video file")
    parser.add_argument("--clip", required=True, type=Path, help="Clip to insert")
    parser.add_argument("--start", required=True, help="Splice start, e.g. 00:01:30")
    parser.add_argument("--end", required=True, help="Splice end, e.g. 00:01:40")
    parser.add_argument("--resolution", default="mobile", choices=["mobile", "hd", "square"])
    parser.add_argument("--attempts", type=int, default=30, help="Maximum status checks")
    parser.add_argument("--poll-seconds", type=float, default=2.0, help="Delay between status checks")
    return parser.parse_args()


def post_splice(args: argparse.Namespace) -> str:
    with args.main.open("rb") as main_fh, args.clip.open("rb") as clip_fh:
        resp = requests.post(
            f"{args.api.rstrip('/')}/api/v1/splice-videos",
            files={
                "mainVideo": (args.main.name, main_fh, "video/mp4"),
                "clipVideo": (args.clip.name, clip_fh, "video/mp4"),
            },
            data={"startTimestamp": args.start, "endTimestamp": args.end, "resolution": args.resolution},
            timeout=600,
        )
    data = resp.json()
    if resp.status_code != 200 or "id" not in data:
        raise RuntimeError(f"Splice rejected ({resp.status_code}): {data}")
    print(f"submitted job id={data['id']}")
    return data["id"]


def main() -> int:
    args = parse_args()
    try:
        job_id = post_splice(args)
        poller = JobStatusPoller(
            ServiceStatusSource(args.api),
            PollingSettings(max_attempts=args.attempts, delay_seconds=args.poll_seconds),
        )
        job = poller.wait(
            job_id,
            on_update=lambda job, attempt: print(f"check {attempt}/{args.attempts}: {job.status.value}"),
        )
    except SpliceError as exc:
        print(f"render failed: {exc.spec.message}", file=sys.stderr)
        return 1
    except Exception as exc:  # noqa: BLE001
        print(f"test failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps({"id": job.job_id, "url": job.result_url}, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
