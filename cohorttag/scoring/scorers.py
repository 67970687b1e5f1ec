"""Built-in commit risk scorers."""

from __future__ import annotations

from importlib import metadata
from pathlib import PurePosixPath
from typing import Iterable, List

from ..config import ClassificationConfig
from ..models import CommitRiskInputs, ScoreContribution
from ..taggers.base import RuleDefinitionError
from .engine import CommitRiskScorer, validate_scorers

_ENTRY_POINT_GROUP = "cohorttag.scorers"


def file_change_count(*, limit_to: int = 2, weight: float = 1.0) -> CommitRiskScorer:
    """Full ``weight`` when more than ``limit_to`` files changed."""

    def _score(inputs: CommitRiskInputs) -> ScoreContribution:
        count = inputs.changed_file_count
        if count > limit_to:
            return ScoreContribution(
                scorer="file-change-count",
                score=weight,
                reason=f"{count} files changed (limit {limit_to})",
            )
        return ScoreContribution(scorer="file-change-count", score=0.0)

    return CommitRiskScorer(name="file-change-count", score=_score)


def build_descriptor_changed(
    filename: str = "pom.xml", *, weight: float = 1.0
) -> CommitRiskScorer:
    """Full ``weight`` when a file with this basename is among the changed files."""
    name = f"{filename}-changed"

    def _score(inputs: CommitRiskInputs) -> ScoreContribution:
        touched = [path for path in inputs.changed_files if _basename(path) == filename]
        if touched:
            return ScoreContribution(
                scorer=name, score=weight, reason=f"{filename} changed: {', '.join(touched)}"
            )
        return ScoreContribution(scorer=name, score=0.0)

    return CommitRiskScorer(name=name, score=_score)


def pom_changed(*, weight: float = 1.0) -> CommitRiskScorer:
    return build_descriptor_changed("pom.xml", weight=weight)


def indicator(name: str, *, weight: float = 1.0) -> CommitRiskScorer:
    """Full ``weight`` when the change carries the named indicator set to true."""

    def _score(inputs: CommitRiskInputs) -> float:
        return weight if inputs.indicators.get(name) is True else 0.0

    return CommitRiskScorer(name=f"indicator:{name}", score=_score)


def fingerprint_present(fingerprint_type: str, *, weight: float = 1.0) -> CommitRiskScorer:
    """Full ``weight`` when a fingerprint of the type was produced for the change."""

    def _score(inputs: CommitRiskInputs) -> float:
        found = any(fp.type == fingerprint_type for fp in inputs.fingerprints)
        return weight if found else 0.0

    return CommitRiskScorer(name=f"fingerprint:{fingerprint_type}", score=_score)


def default_commit_risk_scorers(
    config: ClassificationConfig, *, include_plugins: bool = True
) -> List[CommitRiskScorer]:
    """Scorers configured for this run, followed by plugin-provided scorers.

    Plugins register an entry point in the ``cohorttag.scorers`` group that
    resolves to a callable taking the config and returning scorers.
    """
    scorers: List[CommitRiskScorer] = [
        file_change_count(limit_to=config.file_change_limit, weight=config.file_change_weight)
    ]
    for filename in config.build_descriptors:
        scorers.append(
            build_descriptor_changed(filename, weight=config.build_descriptor_weight)
        )
    for name in config.indicators:
        scorers.append(indicator(name, weight=config.indicator_weight))

    if include_plugins:
        for entry in _iter_entry_points():
            try:
                factory = entry.load()
            except Exception as exc:  # pragma: no cover - defensive guard
                raise RuntimeError(f"Failed to load scorer entry point '{entry.name}': {exc}") from exc
            if not callable(factory):
                raise RuleDefinitionError(f"Scorer entry point '{entry.name}' is not callable")
            scorers.extend(factory(config))

    return validate_scorers(scorers)


def _basename(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/")).name


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "build_descriptor_changed",
    "default_commit_risk_scorers",
    "file_change_count",
    "fingerprint_present",
    "indicator",
    "pom_changed",
]
