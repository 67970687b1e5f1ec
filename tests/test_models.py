"""Tests for cohorttag.models."""

from __future__ import annotations

import dataclasses

import pytest

from cohorttag.models import (
    CohortClassification,
    CommitRiskInputs,
    Fingerprint,
    RepositoryClassification,
    RepositoryFingerprints,
    Severity,
    Tag,
    TagContext,
)


def test_fingerprint_name_defaults_to_type_and_path_to_root() -> None:
    fp = Fingerprint(type="docker-base-image", path=None)  # type: ignore[arg-type]
    assert fp.name == "docker-base-image"
    assert fp.path == ""
    assert fp.is_root
    assert fp.key == ("docker-base-image", "docker-base-image", "")


def test_fingerprint_is_immutable() -> None:
    fp = Fingerprint(type="ci", data=["jenkins"])
    with pytest.raises(dataclasses.FrozenInstanceError):
        fp.type = "other"  # type: ignore[misc]


def test_fingerprint_requires_type() -> None:
    with pytest.raises(ValueError):
        Fingerprint(type="")


def test_repository_fingerprints_helpers() -> None:
    repo = RepositoryFingerprints(
        repo_id="org/app",
        fingerprints=[
            Fingerprint(type="ci", data=["jenkins"]),
            Fingerprint(type="npm-project-deps", path="web"),
            Fingerprint(type="npm-project-deps", path="api"),
        ],
    )
    assert repo.types() == ["ci", "npm-project-deps"]
    assert [fp.path for fp in repo.of_type("npm-project-deps")] == ["web", "api"]
    assert isinstance(repo.fingerprints, tuple)
    assert repo.is_failed is False


def test_severity_parse_and_rank() -> None:
    assert Severity.parse("WARN") is Severity.WARN
    assert Severity.parse(Severity.ERROR) is Severity.ERROR
    assert Severity.INFO.rank < Severity.WARN.rank < Severity.ERROR.rank
    with pytest.raises(ValueError):
        Severity.parse("fatal")


def test_repository_classification_orders_by_severity_stably() -> None:
    result = RepositoryClassification(
        repo_id="org/app",
        tags=(
            Tag("docker", "Docker status"),
            Tag("monorepo", "Contains multiple virtual projects", Severity.WARN),
            Tag("dead?", "No git activity", Severity.ERROR),
            Tag("node", "Node"),
        ),
    )
    assert [tag.name for tag in result.by_severity()] == ["dead?", "monorepo", "docker", "node"]
    assert result.worst_severity is Severity.ERROR
    assert RepositoryClassification(repo_id="empty").worst_severity is None


def test_cohort_tag_counts_count_repositories_not_tags() -> None:
    duplicate = Tag("not understood", "outlier", Severity.WARN)
    cohort = CohortClassification(
        tag_context=TagContext(),
        repositories=(
            RepositoryClassification(repo_id="a", tags=(duplicate, duplicate)),
            RepositoryClassification(repo_id="b", tags=(duplicate, Tag("docker", "Docker status"))),
        ),
    )
    assert cohort.tag_counts() == {"not understood": 2, "docker": 1}
    assert cohort.get("b") is not None
    assert cohort.get("missing") is None


def test_commit_risk_inputs_counts_changed_files() -> None:
    inputs = CommitRiskInputs(changed_files=["a.py", "b.py"])
    assert inputs.changed_file_count == 2
    assert inputs.changed_files == ("a.py", "b.py")


def test_records_with_payloads_are_hashable() -> None:
    fp = Fingerprint(type="npm-project-deps", path="web", data={"react": "18"})
    same = Fingerprint(type="npm-project-deps", path="web", data={"react": "18"})
    assert {fp: "web"}[same] == "web"
    assert hash(fp) == hash(Fingerprint(type="npm-project-deps", path="web", data={"react": "19"}))
    assert fp != Fingerprint(type="npm-project-deps", path="web", data={"react": "19"})

    inputs = CommitRiskInputs(changed_files=["pom.xml"], fingerprints=[fp], indicators={"touches-ci": True})
    assert inputs in {inputs}
