"""Known fingerprint types and narrow checks for their payloads.

Each producing aspect owns the shape of ``Fingerprint.data``. Rules never
destructure a payload directly: they call the ``parse_*`` function for the type
they care about, which returns a typed view or ``None`` when the fingerprint is
of another type or its payload is malformed. ``None`` is handled exactly like
a missing fingerprint.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .models import Fingerprint

# Fingerprint types whose presence alone carries meaning.
EXPOSED_SECRETS = "exposed-secrets"
DOCKER_BASE_IMAGE = "docker-base-image"
NPM_DEPENDENCIES = "npm-project-deps"
DIRECT_MAVEN_DEPENDENCIES = "direct-maven-dependencies"
TYPESCRIPT_VERSION = "typescript-version"
TSLINT = "tslint"
LEIN_DEPENDENCIES = "lein-dependencies"
SPRING_BOOT_VERSION = "spring-boot-version"
TRAVIS_SCRIPTS = "travis-scripts"
PYTHON_DEPENDENCIES = "python-dependencies"
CODE_OF_CONDUCT = "code-of-conduct"

# Fingerprint types with structured payloads.
GIT_RECENCY = "git-recency"
GIT_ACTIVES = "git-actives"
BRANCH_COUNT = "branch-count"
CODE_METRICS = "code-metrics"
LICENSE = "license"
CI = "ci"

# File-match and glob fingerprints are recognised by payload kind, not type.
FILE_MATCH_KIND = "file-match"
GLOB_KIND = "glob"

NO_LICENSE = "None"


@dataclass(frozen=True)
class GitRecencyData:
    last_commit: datetime


@dataclass(frozen=True)
class CountData:
    count: int


@dataclass(frozen=True)
class CodeMetricsData:
    lines: int
    files: Optional[int] = None


@dataclass(frozen=True)
class LicenseData:
    classification: str
    path: Optional[str] = None

    @property
    def has_license(self) -> bool:
        return bool(self.classification) and self.classification != NO_LICENSE


@dataclass(frozen=True)
class FileMatchData:
    """Files matched by a glob; shared shape of file-match and glob fingerprints."""

    kind: str
    glob: str
    matches: Tuple[str, ...]


def parse_git_recency(fp: Fingerprint) -> Optional[GitRecencyData]:
    """Accepts ``{"lastCommitTime": <epoch millis>}``, epoch millis, or an ISO date."""
    if fp.type != GIT_RECENCY:
        return None
    raw: Any = fp.data
    if isinstance(raw, Mapping):
        raw = raw.get("lastCommitTime")
    moment = _parse_moment(raw)
    if moment is None:
        return None
    return GitRecencyData(last_commit=moment)


def parse_git_actives(fp: Fingerprint) -> Optional[CountData]:
    if fp.type != GIT_ACTIVES:
        return None
    return _parse_count(fp.data)


def parse_branch_count(fp: Fingerprint) -> Optional[CountData]:
    if fp.type != BRANCH_COUNT:
        return None
    return _parse_count(fp.data)


def parse_code_metrics(fp: Fingerprint) -> Optional[CodeMetricsData]:
    if fp.type != CODE_METRICS or not isinstance(fp.data, Mapping):
        return None
    lines = _as_non_negative_int(fp.data.get("lines"))
    if lines is None:
        return None
    return CodeMetricsData(lines=lines, files=_as_non_negative_int(fp.data.get("files")))


def parse_license(fp: Fingerprint) -> Optional[LicenseData]:
    if fp.type != LICENSE or not isinstance(fp.data, Mapping):
        return None
    classification = fp.data.get("classification")
    if not isinstance(classification, str):
        return None
    path = fp.data.get("path")
    return LicenseData(classification=classification, path=path if isinstance(path, str) else None)


def parse_ci(fp: Fingerprint) -> Optional[List[str]]:
    """CI fingerprints carry the list of detected CI system names."""
    if fp.type != CI:
        return None
    data = fp.data
    if isinstance(data, str):
        return [data]
    if not isinstance(data, Sequence):
        return None
    return [item for item in data if isinstance(item, str)]


def parse_file_match(fp: Fingerprint) -> Optional[FileMatchData]:
    return _parse_matches(fp, FILE_MATCH_KIND)


def parse_glob_match(fp: Fingerprint) -> Optional[FileMatchData]:
    return _parse_matches(fp, GLOB_KIND)


def _parse_matches(fp: Fingerprint, kind: str) -> Optional[FileMatchData]:
    data = fp.data
    if not isinstance(data, Mapping) or data.get("kind") != kind:
        return None
    glob = data.get("glob")
    matches = data.get("matches")
    if not isinstance(glob, str) or not isinstance(matches, Sequence) or isinstance(matches, str):
        return None
    names: List[str] = []
    for match in matches:
        if isinstance(match, str):
            names.append(match)
        elif isinstance(match, Mapping) and isinstance(match.get("filename"), str):
            names.append(match["filename"])
    return FileMatchData(kind=kind, glob=glob, matches=tuple(names))


def _parse_count(data: Any) -> Optional[CountData]:
    if not isinstance(data, Mapping):
        return None
    count = _as_non_negative_int(data.get("count"))
    if count is None:
        return None
    return CountData(count=count)


def _as_non_negative_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and math.isfinite(value) and value >= 0:
        return int(value)
    return None


def _parse_moment(raw: Any) -> Optional[datetime]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return None
        try:
            return datetime.fromtimestamp(raw / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, datetime):
        return raw if raw.tzinfo is not None else raw.replace(tzinfo=UTC)
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None


__all__ = [
    "BRANCH_COUNT",
    "CI",
    "CODE_METRICS",
    "CODE_OF_CONDUCT",
    "CodeMetricsData",
    "CountData",
    "DIRECT_MAVEN_DEPENDENCIES",
    "DOCKER_BASE_IMAGE",
    "EXPOSED_SECRETS",
    "FILE_MATCH_KIND",
    "FileMatchData",
    "GIT_ACTIVES",
    "GIT_RECENCY",
    "GLOB_KIND",
    "GitRecencyData",
    "LEIN_DEPENDENCIES",
    "LICENSE",
    "LicenseData",
    "NO_LICENSE",
    "NPM_DEPENDENCIES",
    "PYTHON_DEPENDENCIES",
    "SPRING_BOOT_VERSION",
    "TRAVIS_SCRIPTS",
    "TSLINT",
    "TYPESCRIPT_VERSION",
    "parse_branch_count",
    "parse_ci",
    "parse_code_metrics",
    "parse_file_match",
    "parse_git_actives",
    "parse_git_recency",
    "parse_glob_match",
    "parse_license",
]
