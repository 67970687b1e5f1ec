"""Tests for the aspect driver."""

from __future__ import annotations

import logging
from typing import Iterable, List

import pytest

from cohorttag.aspects import Aspect, extract_fingerprints
from cohorttag.models import Fingerprint


class _StaticAspect(Aspect[dict]):
    def __init__(self, name: str, fingerprints: List[Fingerprint]) -> None:
        self._name = name
        self._fingerprints = fingerprints

    @property
    def name(self) -> str:
        return self._name

    def extract(self, repository: dict) -> Iterable[Fingerprint]:
        return list(self._fingerprints)


class _BrokenAspect(Aspect[dict]):
    @property
    def name(self) -> str:
        return "docker-base-image"

    def extract(self, repository: dict) -> Iterable[Fingerprint]:
        raise OSError("Dockerfile unreadable")


def test_failing_aspect_is_recorded_and_others_still_run(caplog: pytest.LogCaptureFixture) -> None:
    aspects = [
        _StaticAspect("ci", [Fingerprint(type="ci", data=["jenkins"])]),
        _BrokenAspect(),
        _StaticAspect("branch-count", [Fingerprint(type="branch-count", data={"count": 3})]),
    ]
    with caplog.at_level(logging.WARNING, logger="cohorttag"):
        result = extract_fingerprints(aspects, {}, repo_id="org/app")

    assert [fp.type for fp in result.fingerprints] == ["ci", "branch-count"]
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.aspect == "docker-base-image"
    assert failure.repo_id == "org/app"
    assert "Dockerfile unreadable" in failure.message
    assert "docker-base-image" in caplog.text


def test_duplicate_fingerprints_are_dropped() -> None:
    fp = Fingerprint(type="npm-project-deps", path="web")
    aspects = [
        _StaticAspect("npm", [fp, Fingerprint(type="npm-project-deps", path="api")]),
        _StaticAspect("npm-again", [fp]),
    ]
    result = extract_fingerprints(aspects, {}, repo_id="org/app")
    assert [item.path for item in result.fingerprints] == ["web", "api"]


def test_result_converts_to_repository_fingerprints() -> None:
    result = extract_fingerprints([_BrokenAspect()], {}, repo_id="org/app")
    repository = result.to_repository("org/app")
    assert repository.fingerprints == ()
    assert repository.is_failed


def test_aspect_requires_name_and_extract() -> None:
    with pytest.raises(TypeError):
        Aspect()  # type: ignore[abstract]
