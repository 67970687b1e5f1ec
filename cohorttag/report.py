"""Plain-text and JSON renderings of classification results."""

from __future__ import annotations

from typing import Dict, List

from .models import CohortClassification, CommitRiskScore, RepositoryClassification

_SEVERITY_MARKERS = {"error": "!!", "warn": "! ", "info": "  "}


def repository_to_dict(result: RepositoryClassification) -> Dict[str, object]:
    return {
        "repo_id": result.repo_id,
        "tags": [tag.to_dict() for tag in result.tags],
        "distinct_type_count": result.distinct_type_count,
        "activity": result.activity,
        "failures": [
            {"aspect": failure.aspect, "message": failure.message} for failure in result.failures
        ],
    }


def cohort_to_dict(result: CohortClassification) -> Dict[str, object]:
    return {
        "tag_context": {
            "average_fingerprint_count": result.tag_context.average_fingerprint_count,
            "repository_count": result.tag_context.repository_count,
        },
        "repositories": [repository_to_dict(repo) for repo in result.repositories],
        "tag_counts": result.tag_counts(),
    }


def score_to_dict(score: CommitRiskScore) -> Dict[str, object]:
    return {
        "score": score.value,
        "contributions": [
            {"scorer": item.scorer, "score": item.score, "reason": item.reason}
            for item in score.contributions
        ],
    }


def render_cohort(result: CohortClassification) -> str:
    """Human-readable summary: one block per repository, most severe tags first."""
    lines: List[str] = []
    context = result.tag_context
    lines.append(
        f"{len(result.repositories)} repositories, "
        f"average {context.average_fingerprint_count:.2f} fingerprint types"
    )
    for repo in result.repositories:
        lines.append("")
        lines.append(f"{repo.repo_id} ({repo.distinct_type_count} fingerprint types)")
        if repo.activity is not None:
            lines.append(f"  last commit: {repo.activity}")
        if repo.failures:
            for failure in repo.failures:
                source = failure.aspect or "extraction"
                lines.append(f"  x {source} failed: {failure.message}")
        ordered = repo.by_severity()
        if not ordered:
            lines.append("     (no tags)")
        for tag in ordered:
            marker = _SEVERITY_MARKERS[tag.severity.value]
            lines.append(f"  {marker} {tag.name}: {tag.description}")

    counts = result.tag_counts()
    if counts:
        lines.append("")
        lines.append("Tag counts:")
        for name, count in counts.items():
            lines.append(f"  {name}: {count}")
    return "\n".join(lines) + "\n"


def render_score(score: CommitRiskScore) -> str:
    lines = [f"Commit risk score: {_format(score.value)}"]
    for item in score.contributions:
        reason = f" ({item.reason})" if item.reason else ""
        lines.append(f"  {item.scorer}: {_format(item.score)}{reason}")
    return "\n".join(lines) + "\n"


def _format(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


__all__ = [
    "cohort_to_dict",
    "render_cohort",
    "render_score",
    "repository_to_dict",
    "score_to_dict",
]
