"""Rule definitions for single-repository and cohort-aware taggers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Set, Type, TypeVar

from ..models import Fingerprint, Severity, TagContext

FingerprintTest = Callable[[Sequence[Fingerprint]], bool]
CombinationTest = Callable[[Sequence[Fingerprint], TagContext], bool]


class RuleDefinitionError(ValueError):
    """Raised when a tagger or scorer definition is malformed."""


class RuleEvaluationError(RuntimeError):
    """Raised when a rule raises while being evaluated; always a bug in the rule."""

    def __init__(self, rule: str, cause: BaseException) -> None:
        super().__init__(f"Rule '{rule}' failed: {cause}")
        self.rule = rule


@dataclass(frozen=True)
class Tagger:
    """Tags a repository when ``test`` holds for its fingerprints."""

    name: str
    description: str
    test: FingerprintTest
    severity: Severity = Severity.INFO

    def __post_init__(self) -> None:
        _check_common(self.name, self.description, self.test)
        object.__setattr__(self, "severity", _coerce_severity(self.name, self.severity))


@dataclass(frozen=True)
class CombinationTagger:
    """Tags a repository using several fingerprints together and/or cohort statistics."""

    name: str
    description: str
    test: CombinationTest
    severity: Severity = Severity.INFO

    def __post_init__(self) -> None:
        _check_common(self.name, self.description, self.test)
        object.__setattr__(self, "severity", _coerce_severity(self.name, self.severity))


def any_fingerprint(predicate: Callable[[Fingerprint], bool]) -> FingerprintTest:
    """Lift a per-fingerprint predicate to a set-level test that holds if any fingerprint matches."""

    def _test(fingerprints: Sequence[Fingerprint]) -> bool:
        return any(predicate(fp) for fp in fingerprints)

    _test.__name__ = getattr(predicate, "__name__", "any_fingerprint")
    return _test


def has_type(fingerprint_type: str) -> FingerprintTest:
    """Test that holds when a fingerprint of the given type is present."""
    return any_fingerprint(lambda fp: fp.type == fingerprint_type)


RuleT = TypeVar("RuleT", Tagger, CombinationTagger)


def validate_rules(rules: Iterable[object], kind: Type[RuleT]) -> List[RuleT]:
    """Check every rule is of ``kind`` and return them as a list in declaration order.

    Duplicate names are allowed (several rules may emit the same tag) but the
    same rule object may only be registered once.
    """
    validated: List[RuleT] = []
    seen: Set[int] = set()
    for index, rule in enumerate(rules):
        if not isinstance(rule, kind):
            raise RuleDefinitionError(
                f"Rule #{index} must be a {kind.__name__}, got {type(rule).__name__}"
            )
        if id(rule) in seen:
            raise RuleDefinitionError(f"Rule '{rule.name}' is registered more than once")
        seen.add(id(rule))
        validated.append(rule)
    return validated


def _check_common(name: object, description: object, test: object) -> None:
    if not isinstance(name, str) or not name.strip():
        raise RuleDefinitionError("Tagger name must be a non-empty string")
    if not isinstance(description, str):
        raise RuleDefinitionError(f"Tagger '{name}' description must be a string")
    if not callable(test):
        raise RuleDefinitionError(f"Tagger '{name}' test must be callable")


def _coerce_severity(name: str, severity: object) -> Severity:
    try:
        return Severity.parse(severity)
    except ValueError as exc:
        raise RuleDefinitionError(f"Tagger '{name}': {exc}") from exc


__all__ = [
    "CombinationTagger",
    "CombinationTest",
    "FingerprintTest",
    "RuleDefinitionError",
    "RuleEvaluationError",
    "Tagger",
    "any_fingerprint",
    "has_type",
    "validate_rules",
]
