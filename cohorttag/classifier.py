"""Cohort classification pipeline: taggers, cohort statistics, combination taggers, risk."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .bands import activity_band
from .config import ClassificationConfig
from .logging import get_logger
from .models import (
    CohortClassification,
    CommitRiskInputs,
    CommitRiskScore,
    RepositoryClassification,
    RepositoryFingerprints,
    Tag,
    TagContext,
)
from .scoring import CommitRiskScorer, default_commit_risk_scorers, score_commit, validate_scorers
from .taggers import (
    Clock,
    CombinationTagger,
    Tagger,
    compute_tag_context,
    discover_rules,
    distinct_type_count,
    evaluate_combination_taggers,
    evaluate_taggers,
    validate_rules,
)
from .taggers.common import latest_commit


class Classifier:
    """Classifies repositories against a fixed, validated set of rules.

    Rules and scorers are checked when the classifier is built, so a malformed
    definition fails before any repository is looked at.
    """

    def __init__(
        self,
        config: ClassificationConfig | None = None,
        *,
        taggers: Optional[Iterable[Tagger]] = None,
        combination_taggers: Optional[Iterable[CombinationTagger]] = None,
        scorers: Optional[Iterable[CommitRiskScorer]] = None,
        clock: Optional[Clock] = None,
        include_plugins: bool = True,
    ) -> None:
        self.config = config or ClassificationConfig()
        self.clock: Clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("classifier")

        if taggers is None or combination_taggers is None:
            discovered = discover_rules(self.config, clock=clock, include_plugins=include_plugins)
            if taggers is None:
                taggers = discovered.taggers
            if combination_taggers is None:
                combination_taggers = discovered.combination_taggers
        self.taggers: Tuple[Tagger, ...] = tuple(validate_rules(taggers, Tagger))
        self.combination_taggers: Tuple[CombinationTagger, ...] = tuple(
            validate_rules(combination_taggers, CombinationTagger)
        )

        if scorers is None:
            self.scorers: Tuple[CommitRiskScorer, ...] = tuple(
                default_commit_risk_scorers(self.config, include_plugins=include_plugins)
            )
        else:
            self.scorers = tuple(validate_scorers(scorers))

        self.logger.debug(
            "Classifier ready with %d taggers, %d combination taggers, %d scorers",
            len(self.taggers),
            len(self.combination_taggers),
            len(self.scorers),
        )

    def classify_cohort(self, cohort: Iterable[RepositoryFingerprints]) -> CohortClassification:
        """Classify every repository in ``cohort``.

        The cohort is drained once. Statistics over the whole cohort are complete
        before any combination tagger runs; per-repository work may then fan out
        over ``config.workers`` threads. Results keep cohort order.
        """
        repositories = list(cohort)
        self.logger.info("Classifying cohort of %d repositories", len(repositories))

        tag_context = compute_tag_context(
            repositories, exclude_failed=self.config.exclude_failed_from_average
        )

        def _classify(repository: RepositoryFingerprints) -> RepositoryClassification:
            return self.classify_repository(repository, tag_context)

        results = self._map(_classify, repositories)
        failed = sum(1 for result in results if result.failures)
        if failed:
            self.logger.warning("%d repositories had extraction failures", failed)
        self.logger.info(
            "Cohort classified (average distinct fingerprint types %.2f)",
            tag_context.average_fingerprint_count,
        )
        return CohortClassification(tag_context=tag_context, repositories=tuple(results))

    def classify_repository(
        self, repository: RepositoryFingerprints, tag_context: TagContext
    ) -> RepositoryClassification:
        """Tag one repository given precomputed cohort statistics."""
        tags: List[Tag] = evaluate_taggers(self.taggers, repository.fingerprints)
        tags.extend(
            evaluate_combination_taggers(
                self.combination_taggers, repository.fingerprints, tag_context
            )
        )
        if repository.is_failed:
            self.logger.debug(
                "Repository %s classified with %d extraction failures",
                repository.repo_id,
                len(repository.failures),
            )
        return RepositoryClassification(
            repo_id=repository.repo_id,
            tags=tuple(tags),
            failures=repository.failures,
            distinct_type_count=distinct_type_count(repository.fingerprints),
            activity=self._activity(repository),
        )

    def score_change(self, inputs: CommitRiskInputs) -> CommitRiskScore:
        """Risk score for a single change using the configured scorers."""
        return score_commit(self.scorers, inputs)

    def _activity(self, repository: RepositoryFingerprints) -> Optional[str]:
        """Age band of the most recent commit, e.g. ``"recent (14)"``."""
        last_commit = latest_commit(repository.fingerprints)
        if last_commit is None:
            return None
        return activity_band(last_commit, self.clock())

    def _map(
        self,
        func: Callable[[RepositoryFingerprints], RepositoryClassification],
        repositories: Sequence[RepositoryFingerprints],
    ) -> List[RepositoryClassification]:
        workers = self.config.workers
        if workers <= 1 or len(repositories) <= 1:
            return [func(repository) for repository in repositories]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cohorttag") as pool:
            return list(pool.map(func, repositories))


def classify(
    cohort: Iterable[RepositoryFingerprints],
    config: ClassificationConfig | None = None,
    *,
    clock: Optional[Clock] = None,
) -> CohortClassification:
    """Classify a cohort with the built-in rules."""
    return Classifier(config, clock=clock).classify_cohort(cohort)


__all__ = ["Classifier", "classify"]
