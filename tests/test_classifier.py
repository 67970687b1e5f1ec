"""End-to-end tests for the cohort classification pipeline."""

from __future__ import annotations

from typing import Callable, List, Sequence

import pytest

from cohorttag import payloads
from cohorttag.classifier import Classifier, classify
from cohorttag.config import ClassificationConfig
from cohorttag.models import CommitRiskInputs, Fingerprint, RepositoryFingerprints, Severity
from cohorttag.taggers import CombinationTagger, RuleDefinitionError, RuleEvaluationError, Tagger, has_type
from tests._fixtures.fingerprints import FingerprintFactory, repository


def _cohort(fps: FingerprintFactory) -> List[RepositoryFingerprints]:
    return [
        repository(
            "org/busy",
            [
                fps.recency(2),
                fps.actives(5),
                fps.marker(payloads.NPM_DEPENDENCIES, path="web"),
                fps.marker(payloads.DOCKER_BASE_IMAGE),
                fps.lines(12000),
                Fingerprint(type=payloads.CI, data=["jenkins"]),
                Fingerprint(type=payloads.LICENSE, data={"classification": "MIT"}),
                fps.branches(3),
            ],
        ),
        repository("org/abandoned", [fps.recency(500), fps.actives(1)]),
        repository("org/broken", [], failures=["clone failed"]),
    ]


def test_classify_cohort_end_to_end(fps: FingerprintFactory, clock: Callable) -> None:
    result = Classifier(clock=clock, include_plugins=False).classify_cohort(_cohort(fps))

    assert result.tag_context.repository_count == 2
    assert result.tag_context.average_fingerprint_count == pytest.approx(5.0)
    assert [repo.repo_id for repo in result.repositories] == ["org/busy", "org/abandoned", "org/broken"]

    busy = result.get("org/busy")
    assert busy is not None
    assert busy.tag_names() == ["docker", "node", "monorepo", "jenkins", "huge (>10K)", "license", "hot"]

    abandoned = result.get("org/abandoned")
    assert abandoned is not None
    assert abandoned.tag_names() == ["solo", "dead?", "not understood"]
    assert abandoned.worst_severity is Severity.ERROR


def test_failed_repository_is_still_tagged(fps: FingerprintFactory, clock: Callable) -> None:
    result = Classifier(clock=clock, include_plugins=False).classify_cohort(_cohort(fps))
    broken = result.get("org/broken")
    assert broken is not None
    assert broken.failures[0].message == "clone failed"
    assert broken.tag_names() == ["not understood"]


def test_failed_repositories_counted_when_configured(fps: FingerprintFactory, clock: Callable) -> None:
    config = ClassificationConfig(exclude_failed_from_average=False)
    result = Classifier(config, clock=clock, include_plugins=False).classify_cohort(_cohort(fps))
    assert result.tag_context.repository_count == 3
    assert result.tag_context.average_fingerprint_count == pytest.approx(10 / 3)


def test_cohort_is_consumed_once_from_a_generator(fps: FingerprintFactory, clock: Callable) -> None:
    result = classify(iter(_cohort(fps)), clock=clock)
    assert len(result.repositories) == 3


def test_parallel_classification_keeps_cohort_order(fps: FingerprintFactory, clock: Callable) -> None:
    cohort = [repository(f"org/r{index}", fps.distinct(index % 7)) for index in range(40)]
    serial = Classifier(clock=clock, include_plugins=False).classify_cohort(cohort)
    parallel = Classifier(
        ClassificationConfig(workers=4), clock=clock, include_plugins=False
    ).classify_cohort(cohort)
    assert parallel == serial


def test_empty_cohort(clock: Callable) -> None:
    result = Classifier(clock=clock, include_plugins=False).classify_cohort([])
    assert result.repositories == ()
    assert result.tag_context.average_fingerprint_count == 0.0


def test_custom_rules_replace_builtins() -> None:
    classifier = Classifier(
        taggers=[Tagger("docker", "Docker status", has_type("docker-base-image"))],
        combination_taggers=[],
        include_plugins=False,
    )
    result = classifier.classify_cohort([repository("a", [Fingerprint(type="docker-base-image")])])
    assert result.repositories[0].tag_names() == ["docker"]


def test_malformed_rules_fail_at_construction() -> None:
    with pytest.raises(RuleDefinitionError):
        Classifier(taggers=["docker"], combination_taggers=[], include_plugins=False)  # type: ignore[list-item]
    with pytest.raises(RuleDefinitionError):
        Classifier(
            taggers=[CombinationTagger("x", "d", lambda fps, ctx: True)],  # type: ignore[list-item]
            include_plugins=False,
        )


def test_rule_errors_propagate() -> None:
    def _boom(fps: Sequence[Fingerprint]) -> bool:
        raise ValueError("bad payload")

    classifier = Classifier(taggers=[Tagger("boom", "d", _boom)], combination_taggers=[], include_plugins=False)
    with pytest.raises(RuleEvaluationError, match="boom"):
        classifier.classify_cohort([repository("a", [Fingerprint(type="x")])])


def test_score_change_uses_configured_scorers() -> None:
    classifier = Classifier(ClassificationConfig(file_change_limit=1), include_plugins=False)
    score = classifier.score_change(CommitRiskInputs(changed_files=["pom.xml", "src/App.java"]))
    assert score.value == 2.0
    assert [item.scorer for item in score.contributions] == ["file-change-count", "pom.xml-changed"]


def test_activity_band_reported_per_repository(fps: FingerprintFactory, clock: Callable) -> None:
    result = Classifier(clock=clock, include_plugins=False).classify_cohort(_cohort(fps))
    assert [repo.activity for repo in result.repositories] == ["current (2)", "prehistoric (500)", None]
