"""JSON-file fingerprint store and classification sink."""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence

from ..logging import get_logger
from ..models import (
    CommitRiskScore,
    ExtractionFailure,
    Fingerprint,
    RepositoryFingerprints,
    Tag,
)

_STORE_VERSION = 1

_LOGGER = get_logger("stores")


class StoreError(RuntimeError):
    """Raised when a fingerprint store cannot be read or written."""


class FingerprintSource(Protocol):
    """What the classifier needs from a fingerprint backend."""

    def list_all_repos(self) -> List[str]: ...

    def list_fingerprints(self, repo_id: str) -> List[Fingerprint]: ...

    def extraction_failures(self, repo_id: str) -> List[ExtractionFailure]: ...


def iter_cohort(source: FingerprintSource) -> Iterator[RepositoryFingerprints]:
    """Stream the cohort one repository at a time, in ``list_all_repos`` order."""
    for repo_id in source.list_all_repos():
        yield RepositoryFingerprints(
            repo_id=repo_id,
            fingerprints=tuple(source.list_fingerprints(repo_id)),
            failures=tuple(source.extraction_failures(repo_id)),
        )


class FingerprintStore:
    """Fingerprints for a cohort of repositories, kept in one JSON document.

    Layout::

        {"version": 1,
         "repositories": {
            "<repo id>": {
               "fingerprints": [{"type": ..., "name": ..., "path": ..., "data": ...}],
               "failures": [{"aspect": ..., "message": ...}]}}}

    Malformed fingerprint records are skipped with a warning rather than
    failing the whole load.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._repositories: Dict[str, RepositoryFingerprints] = {}
        self._dirty = False
        if self._path is not None and self._path.exists():
            self._load(self._path)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FingerprintStore":
        store = cls(None)
        store._repositories = _parse_document(payload, source="<memory>")
        return store

    def list_all_repos(self) -> List[str]:
        return list(self._repositories)

    def list_fingerprints(self, repo_id: str) -> List[Fingerprint]:
        repository = self._repositories.get(repo_id)
        return list(repository.fingerprints) if repository else []

    def extraction_failures(self, repo_id: str) -> List[ExtractionFailure]:
        repository = self._repositories.get(repo_id)
        return list(repository.failures) if repository else []

    def put(self, repository: RepositoryFingerprints) -> None:
        self._repositories[repository.repo_id] = repository
        self._dirty = True

    def remove(self, repo_id: str) -> None:
        if self._repositories.pop(repo_id, None) is not None:
            self._dirty = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": _STORE_VERSION,
            "repositories": {
                repo_id: _repository_to_dict(repository)
                for repo_id, repository in self._repositories.items()
            },
        }

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"{path} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise StoreError(f"Unable to read {path}: {exc}") from exc
        self._repositories = _parse_document(data, source=str(path))
        self._dirty = False


class ClassificationSink:
    """Collects tags and scores per repository and writes them as JSON."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}

    def persist_classification(
        self,
        repo_id: str,
        tags: Sequence[Tag],
        score: Optional[CommitRiskScore] = None,
    ) -> None:
        entry: Dict[str, object] = {"tags": [tag.to_dict() for tag in tags]}
        if score is not None:
            entry["score"] = score.value
            entry["breakdown"] = score.breakdown()
        self._entries[repo_id] = entry

    def persist(self) -> Path:
        payload = {
            "version": _STORE_VERSION,
            "generated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "repositories": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        return self._path


def fingerprint_from_dict(payload: object) -> Optional[Fingerprint]:
    if not isinstance(payload, dict):
        return None
    fp_type = payload.get("type")
    name = payload.get("name") or ""
    path = payload.get("path") or ""
    if not isinstance(fp_type, str) or not fp_type:
        return None
    if not isinstance(name, str) or not isinstance(path, str):
        return None
    return Fingerprint(type=fp_type, name=name, path=path, data=payload.get("data"))


def fingerprint_to_dict(fp: Fingerprint) -> Dict[str, Any]:
    return {"type": fp.type, "name": fp.name, "path": fp.path, "data": fp.data}


def _parse_document(data: object, *, source: str) -> Dict[str, RepositoryFingerprints]:
    if not isinstance(data, dict):
        raise StoreError(f"{source} must contain a JSON object")
    version = data.get("version", _STORE_VERSION)
    if version != _STORE_VERSION:
        raise StoreError(f"{source} has unsupported store version {version!r}")
    entries = data.get("repositories")
    if not isinstance(entries, dict):
        raise StoreError(f"{source} is missing a 'repositories' mapping")

    repositories: Dict[str, RepositoryFingerprints] = {}
    for repo_id, raw in entries.items():
        if not isinstance(repo_id, str) or not isinstance(raw, dict):
            _LOGGER.warning("Skipping malformed repository entry %r in %s", repo_id, source)
            continue
        repositories[repo_id] = _repository_from_dict(repo_id, raw)
    return repositories


def _repository_from_dict(repo_id: str, raw: Dict[str, Any]) -> RepositoryFingerprints:
    fingerprints: List[Fingerprint] = []
    raw_fingerprints = raw.get("fingerprints", [])
    if not isinstance(raw_fingerprints, list):
        raw_fingerprints = []
    for item in raw_fingerprints:
        fp = fingerprint_from_dict(item)
        if fp is None:
            _LOGGER.warning("Skipping malformed fingerprint for %s: %r", repo_id, item)
            continue
        fingerprints.append(fp)

    failures: List[ExtractionFailure] = []
    raw_failures = raw.get("failures")
    if raw_failures is None and raw.get("failure") is not None:
        raw_failures = [raw["failure"]]
    for item in raw_failures or []:
        failure = _failure_from_dict(repo_id, item)
        if failure is not None:
            failures.append(failure)

    return RepositoryFingerprints(
        repo_id=repo_id, fingerprints=tuple(fingerprints), failures=tuple(failures)
    )


def _failure_from_dict(repo_id: str, payload: object) -> Optional[ExtractionFailure]:
    if isinstance(payload, str):
        return ExtractionFailure(repo_id=repo_id, message=payload)
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    aspect = payload.get("aspect")
    if not isinstance(message, str):
        message = "extraction failed"
    return ExtractionFailure(
        repo_id=repo_id, message=message, aspect=aspect if isinstance(aspect, str) else None
    )


def _repository_to_dict(repository: RepositoryFingerprints) -> Dict[str, Any]:
    return {
        "fingerprints": [fingerprint_to_dict(fp) for fp in repository.fingerprints],
        "failures": [
            {"aspect": failure.aspect, "message": failure.message}
            for failure in repository.failures
        ],
    }


__all__ = [
    "ClassificationSink",
    "FingerprintSource",
    "FingerprintStore",
    "StoreError",
    "fingerprint_from_dict",
    "fingerprint_to_dict",
    "iter_cohort",
]
