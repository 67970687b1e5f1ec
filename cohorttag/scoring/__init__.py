"""Commit risk scoring."""

from .engine import CommitRiskScorer, score_commit, validate_scorers
from .scorers import (
    build_descriptor_changed,
    default_commit_risk_scorers,
    file_change_count,
    fingerprint_present,
    indicator,
    pom_changed,
)

__all__ = [
    "CommitRiskScorer",
    "build_descriptor_changed",
    "default_commit_risk_scorers",
    "file_change_count",
    "fingerprint_present",
    "indicator",
    "pom_changed",
    "score_commit",
    "validate_scorers",
]
