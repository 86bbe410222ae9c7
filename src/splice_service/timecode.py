"""Timestamp parsing for splice ranges."""

from __future__ import annotations

import logging
import re

from .config import RangePolicy
from .errors import InvalidTimecode
from .schemas import TimeRange

logger = logging.getLogger(__name__)

_WHOLE_RE = re.compile(r"[0-9]+\Z")
_SECONDS_RE = re.compile(r"(?:[0-9]+(?:\.[0-9]+)?|\.[0-9]+)\Z")

_UNIT_FACTORS = {
    2: (60,),
    3: (3600, 60),
}


def parse_timecode(value: str) -> float:
    """Convert ``H:MM:SS``, ``MM:SS`` or bare seconds into a non-negative float.

    Only the last component may carry a fractional part. Anything that does not
    match that shape (signs, exponents, underscores, words) raises :class:`InvalidTimecode`.
    """

    text = (value or "").strip()
    if not text:
        raise InvalidTimecode("empty timestamp", message="Timestamp is empty")

    parts = text.split(":")
    if len(parts) > 3:
        raise InvalidTimecode(f"too many components: {text!r}", message=f"Invalid timestamp: {text}")

    *leading, last = parts
    if not all(_WHOLE_RE.match(part) for part in leading) or not _SECONDS_RE.match(last):
        raise InvalidTimecode(f"non-numeric component: {text!r}", message=f"Invalid timestamp: {text}")
    units = [int(part) for part in leading]
    seconds = float(last)

    total = seconds
    if units:
        total += sum(unit * factor for unit, factor in zip(units, _UNIT_FACTORS[len(parts)]))
    return float(total)


def resolve_time_range(start: str, end: str, policy: RangePolicy = RangePolicy.clamp) -> TimeRange:
    """Parse both ends of a splice range and apply the end-before-start policy."""

    start_seconds = parse_timecode(start)
    end_seconds = parse_timecode(end)

    if end_seconds < start_seconds:
        if policy is RangePolicy.reject:
            raise InvalidTimecode(
                f"end {end_seconds} precedes start {start_seconds}",
                message="End timestamp must not be before start timestamp",
            )
        logger.warning(
            "End timestamp %.3f precedes start %.3f; collapsing range to the start point",
            end_seconds,
            start_seconds,
        )
        end_seconds = start_seconds

    return TimeRange(start_seconds=start_seconds, end_seconds=end_seconds)
