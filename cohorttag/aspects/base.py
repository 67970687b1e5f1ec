"""Contract for aspects, the external producers of fingerprints."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Iterable, List, Sequence, Tuple, TypeVar

from ..logging import get_logger
from ..models import ExtractionFailure, Fingerprint, RepositoryFingerprints

RepositoryT = TypeVar("RepositoryT")

_LOGGER = get_logger("aspects")


class Aspect(ABC, Generic[RepositoryT]):
    """Produces fingerprints of one type from a repository."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Fingerprint type this aspect produces."""

    @abstractmethod
    def extract(self, repository: RepositoryT) -> Iterable[Fingerprint]:
        """Return the fingerprints found in ``repository`` (possibly none)."""


@dataclass(frozen=True)
class ExtractionResult:
    """Fingerprints gathered for one repository plus the aspects that failed."""

    fingerprints: Tuple[Fingerprint, ...]
    failures: Tuple[ExtractionFailure, ...]

    def to_repository(self, repo_id: str) -> RepositoryFingerprints:
        return RepositoryFingerprints(
            repo_id=repo_id, fingerprints=self.fingerprints, failures=self.failures
        )


def extract_fingerprints(
    aspects: Sequence[Aspect[RepositoryT]], repository: RepositoryT, *, repo_id: str
) -> ExtractionResult:
    """Run every aspect against ``repository``.

    An aspect that raises contributes no fingerprints and is recorded as an
    ``ExtractionFailure``; the remaining aspects still run. Fingerprints whose
    ``(type, name, path)`` repeats an earlier one are dropped.
    """
    fingerprints: List[Fingerprint] = []
    failures: List[ExtractionFailure] = []
    seen = set()
    for aspect in aspects:
        try:
            produced = list(aspect.extract(repository))
        except Exception as exc:
            _LOGGER.warning("Aspect %s failed for %s: %s", aspect.name, repo_id, exc)
            failures.append(ExtractionFailure(repo_id=repo_id, message=str(exc), aspect=aspect.name))
            continue
        for fp in produced:
            if fp.key in seen:
                _LOGGER.debug("Dropping duplicate fingerprint %s from %s", fp.key, aspect.name)
                continue
            seen.add(fp.key)
            fingerprints.append(fp)
        _LOGGER.debug("Aspect %s produced %d fingerprints", aspect.name, len(produced))
    return ExtractionResult(fingerprints=tuple(fingerprints), failures=tuple(failures))


__all__ = ["Aspect", "ExtractionResult", "extract_fingerprints"]
