"""Commit risk scoring engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Set, Union

from ..logging import get_logger
from ..models import CommitRiskInputs, CommitRiskScore, ScoreContribution
from ..taggers.base import RuleDefinitionError, RuleEvaluationError

ScorerOutput = Union[float, int, ScoreContribution]
ScoreFunction = Callable[[CommitRiskInputs], ScorerOutput]
Reduction = Callable[[Iterable[float]], float]

_LOGGER = get_logger("scoring")


@dataclass(frozen=True)
class CommitRiskScorer:
    """A named, pure function from the facts of one change to a non-negative score.

    Scorers only see the change they score: never cohort state, never other
    scorers.
    """

    name: str
    score: ScoreFunction

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise RuleDefinitionError("Scorer name must be a non-empty string")
        if not callable(self.score):
            raise RuleDefinitionError(f"Scorer '{self.name}' score must be callable")

    def contribution(self, inputs: CommitRiskInputs) -> ScoreContribution:
        try:
            output = self.score(inputs)
        except Exception as exc:
            raise RuleEvaluationError(self.name, exc) from exc
        if isinstance(output, ScoreContribution):
            value, reason = output.score, output.reason
        else:
            value, reason = output, ""
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise RuleEvaluationError(self.name, ValueError(f"returned {value!r}, expected a number"))
        if value < 0:
            raise RuleEvaluationError(self.name, ValueError(f"returned negative score {value}"))
        return ScoreContribution(scorer=self.name, score=float(value), reason=reason)


def validate_scorers(scorers: Iterable[object]) -> List[CommitRiskScorer]:
    validated: List[CommitRiskScorer] = []
    names: Set[str] = set()
    for index, scorer in enumerate(scorers):
        if not isinstance(scorer, CommitRiskScorer):
            raise RuleDefinitionError(
                f"Scorer #{index} must be a CommitRiskScorer, got {type(scorer).__name__}"
            )
        if scorer.name in names:
            raise RuleDefinitionError(f"Duplicate scorer name '{scorer.name}'")
        names.add(scorer.name)
        validated.append(scorer)
    return validated


def score_commit(
    scorers: Sequence[CommitRiskScorer],
    inputs: CommitRiskInputs,
    *,
    reduction: Reduction = sum,
) -> CommitRiskScore:
    """Run every scorer on ``inputs`` and reduce their outputs (sum by default)."""
    contributions = tuple(scorer.contribution(inputs) for scorer in scorers)
    value = float(reduction(item.score for item in contributions))
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Score reduction produced an invalid total: {value!r}")
    _LOGGER.debug(
        "Scored change %s: %.2f from %d scorers",
        inputs.sha or "<unknown>",
        value,
        len(contributions),
    )
    return CommitRiskScore(value=value, contributions=contributions)


__all__ = [
    "CommitRiskScorer",
    "Reduction",
    "ScoreFunction",
    "score_commit",
    "validate_scorers",
]
