"""Banding: map a numeric measurement onto one label from ordered named ranges.

A band matches when the value is less than or equal to its ``up_to`` bound, so
a value sitting exactly on a threshold resolves to the lower band. The last
band must be the default band (``up_to is None``) and catches everything
above the highest threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional, Sequence, Tuple

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Band:
    """A named range; ``up_to=None`` marks the default/overflow band."""

    name: str
    up_to: Optional[float] = None

    @property
    def is_default(self) -> bool:
        return self.up_to is None


def default(name: str) -> Band:
    return Band(name=name, up_to=None)


def validate_bands(bands: Sequence[Band]) -> Tuple[Band, ...]:
    """Check ordering rules and return the bands as a tuple."""
    ordered = tuple(bands)
    if not ordered:
        raise ValueError("At least one band is required")
    if not ordered[-1].is_default:
        raise ValueError("The last band must be the default band (up_to=None)")
    previous: Optional[float] = None
    for band in ordered[:-1]:
        if band.is_default:
            raise ValueError(f"Only the last band may be the default band, got '{band.name}'")
        if not math.isfinite(band.up_to):  # type: ignore[arg-type]
            raise ValueError(f"Band '{band.name}' has a non-finite threshold")
        if previous is not None and band.up_to <= previous:  # type: ignore[operator]
            raise ValueError(
                f"Band thresholds must be strictly increasing; '{band.name}' "
                f"({band.up_to}) follows {previous}"
            )
        previous = band.up_to
    return ordered


def band_for(
    bands: Sequence[Band], value: float, *, include_number: bool = False
) -> str:
    """Return the label of the first band whose threshold ``value`` does not exceed.

    Negative, NaN and infinite values are rejected with ``ValueError``.
    """
    ordered = validate_bands(bands)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Band value must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"Band value must be finite, got {value!r}")
    if value < 0:
        raise ValueError(f"Band value must be non-negative, got {value!r}")

    chosen = ordered[-1]
    for band in ordered[:-1]:
        if value <= band.up_to:  # type: ignore[operator]
            chosen = band
            break

    if include_number:
        return f"{chosen.name} ({_format_number(value)})"
    return chosen.name


def days_since(moment: datetime, now: datetime) -> int:
    """Whole days between ``moment`` and ``now``.

    Moments in the future (clock skew between hosts) count as zero days.
    Naive datetimes are taken to be UTC.
    """
    elapsed = (_as_utc(now) - _as_utc(moment)).total_seconds() / _SECONDS_PER_DAY
    return max(0, int(round(elapsed)))


def activity_band(last_commit: datetime, now: datetime) -> str:
    """Display label for the age of the most recent commit, e.g. ``"recent (14)"``."""
    return band_for(AGE_BANDS, days_since(last_commit, now), include_number=True)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


AGE_BANDS: Tuple[Band, ...] = (
    Band("current", 7),
    Band("recent", 30),
    Band("ancient", 365),
    default("prehistoric"),
)

# Line counts; the size taggers label repositories by these bands.
SIZE_BANDS: Tuple[Band, ...] = (
    Band("tiny", 199),
    Band("small", 2999),
    Band("big", 10000),
    default("huge"),
)


__all__ = [
    "AGE_BANDS",
    "Band",
    "SIZE_BANDS",
    "activity_band",
    "band_for",
    "days_since",
    "default",
    "validate_bands",
]
