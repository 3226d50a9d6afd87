"""
TTL normalization.

Durations may be given as a number of seconds or as a human readable string
such as ``"2s"``, ``"1m"``, ``"1.5h"``, ``"1500ms"`` or ``"2 days"``. A bare
numeric string counts seconds, like a plain number.
"""

import math
import re
from typing import Any, Optional, Union

from shared.errors import InvalidTTLError

Duration = Union[int, float, str]

_SECOND_MS = 1000
_MINUTE_MS = _SECOND_MS * 60
_HOUR_MS = _MINUTE_MS * 60
_DAY_MS = _HOUR_MS * 24
_WEEK_MS = _DAY_MS * 7
_YEAR_MS = _DAY_MS * 365.25

_UNITS_MS = {
    "years": _YEAR_MS, "year": _YEAR_MS, "yrs": _YEAR_MS, "yr": _YEAR_MS, "y": _YEAR_MS,
    "weeks": _WEEK_MS, "week": _WEEK_MS, "w": _WEEK_MS,
    "days": _DAY_MS, "day": _DAY_MS, "d": _DAY_MS,
    "hours": _HOUR_MS, "hour": _HOUR_MS, "hrs": _HOUR_MS, "hr": _HOUR_MS, "h": _HOUR_MS,
    "minutes": _MINUTE_MS, "minute": _MINUTE_MS, "mins": _MINUTE_MS, "min": _MINUTE_MS, "m": _MINUTE_MS,
    "seconds": _SECOND_MS, "second": _SECOND_MS, "secs": _SECOND_MS, "sec": _SECOND_MS, "s": _SECOND_MS,
    "milliseconds": 1, "millisecond": 1, "msecs": 1, "msec": 1, "ms": 1,
}

_DURATION_RE = re.compile(r"(?i)^\s*(\d*\.?\d+)\s*([a-z]+)?\s*$")

# Longest accepted duration string
_MAX_DURATION_LENGTH = 100


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_duration_ms(duration: str) -> float:
    """Parse a human readable duration into milliseconds.

    Raises InvalidTTLError for empty, overlong or unparseable input.
    """
    if len(duration) > _MAX_DURATION_LENGTH:
        raise InvalidTTLError("Duration string too long", {"ttl": duration[:20] + "..."})

    m = _DURATION_RE.match(duration)
    if not m:
        raise InvalidTTLError(f"Unparseable duration: {duration!r}", {"ttl": duration})

    amount, unit = float(m.group(1)), (m.group(2) or "s").lower()
    if unit not in _UNITS_MS:
        raise InvalidTTLError(f"Unknown duration unit: {unit!r}", {"ttl": duration})

    return amount * _UNITS_MS[unit]


def normalize_ttl(ttl: Any) -> int:
    """Convert seconds or a duration string into whole seconds."""
    if isinstance(ttl, bool):
        raise InvalidTTLError("TTL must be a number or duration string", {"ttl": ttl})

    if isinstance(ttl, str):
        return _round_half_up(parse_duration_ms(ttl) / _SECOND_MS)

    if isinstance(ttl, int):
        seconds = ttl
    elif isinstance(ttl, float) and math.isfinite(ttl):
        seconds = _round_half_up(ttl)
    else:
        raise InvalidTTLError("TTL must be a number or duration string", {"ttl": repr(ttl)})

    if seconds < 0:
        raise InvalidTTLError("TTL must not be negative", {"ttl": ttl})
    return seconds


class TTLNormalizer:
    """Resolves per-call TTLs against a default fixed at construction."""

    def __init__(self, default: Duration = 60):
        self.default = normalize_ttl(default)

    def __call__(self, ttl: Optional[Duration] = None) -> int:
        # Absent, None, 0 and "" all fall back to the default
        if not ttl:
            return self.default
        seconds = normalize_ttl(ttl)
        return seconds or self.default
