"""Evaluation of taggers, the cohort statistics pass and combination taggers."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..logging import get_logger
from ..models import Fingerprint, RepositoryFingerprints, Tag, TagContext
from .base import CombinationTagger, RuleEvaluationError, Tagger

_LOGGER = get_logger("taggers")


def evaluate_taggers(
    taggers: Sequence[Tagger], fingerprints: Sequence[Fingerprint]
) -> List[Tag]:
    """Apply each tagger to one repository's fingerprints, in declaration order."""
    fps = tuple(fingerprints)
    tags: List[Tag] = []
    for tagger in taggers:
        try:
            matched = bool(tagger.test(fps))
        except Exception as exc:
            raise RuleEvaluationError(tagger.name, exc) from exc
        if matched:
            tags.append(Tag(name=tagger.name, description=tagger.description, severity=tagger.severity))
    _LOGGER.debug("Taggers matched %d of %d rules", len(tags), len(taggers))
    return tags


def distinct_type_count(fingerprints: Iterable[Fingerprint]) -> int:
    return len({fp.type for fp in fingerprints})


def compute_tag_context(
    cohort: Iterable[RepositoryFingerprints], *, exclude_failed: bool = True
) -> TagContext:
    """Reduce the whole cohort to the aggregates combination taggers need.

    ``average_fingerprint_count`` is the mean number of distinct fingerprint
    types per repository; 0 for an empty cohort. Repositories whose extraction
    failed are left out of the mean when ``exclude_failed`` is set.
    """
    total = 0
    counted = 0
    skipped = 0
    for repository in cohort:
        if exclude_failed and repository.is_failed:
            skipped += 1
            continue
        total += distinct_type_count(repository.fingerprints)
        counted += 1

    average = total / counted if counted else 0.0
    if skipped:
        _LOGGER.info("Excluded %d failed repositories from cohort statistics", skipped)
    _LOGGER.debug(
        "Cohort statistics: %d repositories, average distinct types %.2f", counted, average
    )
    return TagContext(average_fingerprint_count=average, repository_count=counted)


def evaluate_combination_taggers(
    taggers: Sequence[CombinationTagger],
    fingerprints: Sequence[Fingerprint],
    tag_context: TagContext,
) -> List[Tag]:
    """Apply each combination tagger to one repository, given the cohort context."""
    fps = tuple(fingerprints)
    tags: List[Tag] = []
    for tagger in taggers:
        try:
            matched = bool(tagger.test(fps, tag_context))
        except Exception as exc:
            raise RuleEvaluationError(tagger.name, exc) from exc
        if matched:
            tags.append(Tag(name=tagger.name, description=tagger.description, severity=tagger.severity))
    return tags


__all__ = [
    "compute_tag_context",
    "distinct_type_count",
    "evaluate_combination_taggers",
    "evaluate_taggers",
]
