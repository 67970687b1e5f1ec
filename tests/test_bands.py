"""Tests for cohorttag.bands."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from cohorttag.bands import (
    AGE_BANDS,
    SIZE_BANDS,
    Band,
    activity_band,
    band_for,
    days_since,
    default,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "current"),
        (7, "current"),
        (7.5, "recent"),
        (8, "recent"),
        (30, "recent"),
        (31, "ancient"),
        (365, "ancient"),
        (366, "prehistoric"),
        (10_000, "prehistoric"),
    ],
)
def test_age_bands_resolve_thresholds_to_lower_band(value: float, expected: str) -> None:
    assert band_for(AGE_BANDS, value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(199, "tiny"), (200, "small"), (2999, "small"), (3000, "big"), (10000, "big"), (10001, "huge")],
)
def test_size_bands_thresholds(value: int, expected: str) -> None:
    assert band_for(SIZE_BANDS, value) == expected


def test_band_for_includes_number_when_requested() -> None:
    assert band_for(AGE_BANDS, 14, include_number=True) == "recent (14)"
    assert band_for(AGE_BANDS, 2.5, include_number=True) == "current (2.5)"
    assert band_for(AGE_BANDS, 400.0, include_number=True) == "prehistoric (400)"


def test_every_value_maps_to_exactly_one_label() -> None:
    names = {band.name for band in SIZE_BANDS}
    for value in range(0, 12_000, 7):
        assert band_for(SIZE_BANDS, value) in names


def test_band_for_rejects_negative_and_non_finite_values() -> None:
    with pytest.raises(ValueError):
        band_for(AGE_BANDS, -1)
    with pytest.raises(ValueError):
        band_for(AGE_BANDS, float("nan"))
    with pytest.raises(ValueError):
        band_for(AGE_BANDS, float("inf"))


@pytest.mark.parametrize(
    "bands",
    [
        [],
        [Band("low", 5)],
        [Band("low", 5), Band("mid", 5), default("high")],
        [Band("low", 10), Band("mid", 5), default("high")],
        [default("all"), Band("low", 5)],
    ],
)
def test_invalid_band_definitions_are_rejected(bands: list[Band]) -> None:
    with pytest.raises(ValueError):
        band_for(bands, 1)


def test_single_default_band_matches_everything() -> None:
    assert band_for([default("any")], 0) == "any"
    assert band_for([default("any")], 1e9) == "any"


def test_days_since_clamps_future_moments_to_zero() -> None:
    now = datetime(2024, 6, 1, tzinfo=UTC)
    assert days_since(now - timedelta(days=14), now) == 14
    assert days_since(now + timedelta(days=3), now) == 0


def test_days_since_treats_naive_datetimes_as_utc() -> None:
    now = datetime(2024, 6, 1, tzinfo=UTC)
    assert days_since(datetime(2024, 5, 1), now) == 31


def test_activity_band_labels_last_commit() -> None:
    now = datetime(2024, 6, 1, tzinfo=UTC)
    assert activity_band(now - timedelta(days=14), now) == "recent (14)"
    assert activity_band(now - timedelta(days=400), now) == "prehistoric (400)"
