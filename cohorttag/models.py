"""Core data models shared across cohorttag components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Severity(str, Enum):
    """How loudly a tag should be surfaced."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: object) -> "Severity":
        """Accept a Severity or its string value; raise ValueError otherwise."""
        if isinstance(value, Severity):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Unknown severity: {value!r}")


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARN: 1, Severity.ERROR: 2}


@dataclass(frozen=True)
class Fingerprint:
    """One typed signal about a repository, or about a sub-project within it."""

    type: str
    name: str = ""
    path: str = ""
    data: Any = field(default=None, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type:
            raise ValueError("Fingerprint type must be a non-empty string")
        if not self.name:
            object.__setattr__(self, "name", self.type)
        if self.path is None:
            object.__setattr__(self, "path", "")

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity of this fingerprint within one extraction of one repository."""
        return (self.type, self.name, self.path)

    @property
    def is_root(self) -> bool:
        return self.path == ""


@dataclass(frozen=True)
class ExtractionFailure:
    """Records that fingerprints for a repository could not be (fully) extracted."""

    repo_id: str
    message: str
    aspect: Optional[str] = None


@dataclass(frozen=True)
class RepositoryFingerprints:
    """All fingerprints for one repository at one point in time."""

    repo_id: str
    fingerprints: Tuple[Fingerprint, ...] = ()
    failures: Tuple[ExtractionFailure, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fingerprints", tuple(self.fingerprints))
        object.__setattr__(self, "failures", tuple(self.failures))

    @property
    def is_failed(self) -> bool:
        return bool(self.failures)

    def types(self) -> List[str]:
        """Distinct fingerprint types in first-seen order."""
        return list(dict.fromkeys(fp.type for fp in self.fingerprints))

    def of_type(self, fingerprint_type: str) -> List[Fingerprint]:
        return [fp for fp in self.fingerprints if fp.type == fingerprint_type]


@dataclass(frozen=True)
class Tag:
    """A classification attached to a repository by a tagger."""

    name: str
    description: str
    severity: Severity = Severity.INFO

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "description": self.description,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class TagContext:
    """Cohort-wide aggregates computed before combination taggers run."""

    average_fingerprint_count: float = 0.0
    repository_count: int = 0


@dataclass(frozen=True)
class CommitRiskInputs:
    """Facts about a single code change fed to the risk scorers."""

    changed_files: Tuple[str, ...] = ()
    fingerprints: Tuple[Fingerprint, ...] = ()
    indicators: Mapping[str, bool] = field(default_factory=dict, hash=False)
    repo_id: Optional[str] = None
    sha: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "changed_files", tuple(self.changed_files))
        object.__setattr__(self, "fingerprints", tuple(self.fingerprints))
        object.__setattr__(self, "indicators", dict(self.indicators))

    @property
    def changed_file_count(self) -> int:
        return len(self.changed_files)


@dataclass(frozen=True)
class ScoreContribution:
    """The output of one scorer for one change."""

    scorer: str
    score: float
    reason: str = ""


@dataclass(frozen=True)
class CommitRiskScore:
    """Aggregate risk for a change; higher means riskier."""

    value: float
    contributions: Tuple[ScoreContribution, ...] = ()

    def breakdown(self) -> Dict[str, float]:
        return {item.scorer: item.score for item in self.contributions}


@dataclass(frozen=True)
class RepositoryClassification:
    """Tags computed for one repository in one classification run."""

    repo_id: str
    tags: Tuple[Tag, ...] = ()
    failures: Tuple[ExtractionFailure, ...] = ()
    distinct_type_count: int = 0
    activity: Optional[str] = None

    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]

    def by_severity(self) -> List[Tag]:
        """Tags ordered error first; ties keep declaration order."""
        return sorted(self.tags, key=lambda tag: -tag.severity.rank)

    @property
    def worst_severity(self) -> Optional[Severity]:
        if not self.tags:
            return None
        return max((tag.severity for tag in self.tags), key=lambda sev: sev.rank)


@dataclass(frozen=True)
class CohortClassification:
    """Result of classifying a whole cohort."""

    tag_context: TagContext
    repositories: Tuple[RepositoryClassification, ...] = ()

    def tag_counts(self) -> Dict[str, int]:
        counts: Counter[str] = Counter()
        for repo in self.repositories:
            counts.update(set(repo.tag_names()))
        return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))

    def get(self, repo_id: str) -> Optional[RepositoryClassification]:
        for repo in self.repositories:
            if repo.repo_id == repo_id:
                return repo
        return None


__all__ = [
    "CohortClassification",
    "CommitRiskInputs",
    "CommitRiskScore",
    "ExtractionFailure",
    "Fingerprint",
    "RepositoryClassification",
    "RepositoryFingerprints",
    "ScoreContribution",
    "Severity",
    "Tag",
    "TagContext",
]
