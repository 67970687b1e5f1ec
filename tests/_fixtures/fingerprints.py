"""Factories for fingerprints with realistic payloads."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Sequence

from cohorttag import payloads
from cohorttag.models import ExtractionFailure, Fingerprint, RepositoryFingerprints


class FingerprintFactory:
    """Builds fingerprints relative to a fixed 'now'."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def recency(self, days_ago: float, *, path: str = "") -> Fingerprint:
        moment = self.now - timedelta(days=days_ago)
        return Fingerprint(
            type=payloads.GIT_RECENCY,
            path=path,
            data={"lastCommitTime": int(moment.timestamp() * 1000)},
        )

    def actives(self, count: int, *, path: str = "") -> Fingerprint:
        return Fingerprint(type=payloads.GIT_ACTIVES, path=path, data={"count": count})

    def branches(self, count: int) -> Fingerprint:
        return Fingerprint(type=payloads.BRANCH_COUNT, data={"count": count})

    def lines(self, count: int, *, path: str = "") -> Fingerprint:
        return Fingerprint(type=payloads.CODE_METRICS, path=path, data={"lines": count, "files": 3})

    def marker(self, fingerprint_type: str, *, path: str = "", name: str = "") -> Fingerprint:
        return Fingerprint(type=fingerprint_type, name=name, path=path, data={"present": True})

    def distinct(self, count: int, *, prefix: str = "aspect") -> List[Fingerprint]:
        return [Fingerprint(type=f"{prefix}-{index}", data={}) for index in range(count)]


def repository(
    repo_id: str,
    fingerprints: Iterable[Fingerprint] = (),
    *,
    failures: Sequence[str] = (),
) -> RepositoryFingerprints:
    return RepositoryFingerprints(
        repo_id=repo_id,
        fingerprints=tuple(fingerprints),
        failures=tuple(ExtractionFailure(repo_id=repo_id, message=msg) for msg in failures),
    )


__all__ = ["FingerprintFactory", "repository"]
