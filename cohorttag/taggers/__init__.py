"""Tagger definitions, evaluation and discovery of plugin-provided rules."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from typing import Iterable, List, Optional, Tuple

from ..config import ClassificationConfig
from ..logging import get_logger
from .base import (
    CombinationTagger,
    RuleDefinitionError,
    RuleEvaluationError,
    Tagger,
    any_fingerprint,
    has_type,
    validate_rules,
)
from .common import Clock, combination_taggers, taggers
from .engine import (
    compute_tag_context,
    distinct_type_count,
    evaluate_combination_taggers,
    evaluate_taggers,
)

_ENTRY_POINT_GROUP = "cohorttag.taggers"

_LOGGER = get_logger("taggers")


@dataclass(frozen=True)
class RuleSet:
    """Ordered single-repository and combination taggers for one run."""

    taggers: Tuple[Tagger, ...] = ()
    combination_taggers: Tuple[CombinationTagger, ...] = ()


def discover_rules(
    config: ClassificationConfig,
    *,
    clock: Optional[Clock] = None,
    include_plugins: bool = True,
) -> RuleSet:
    """Return the built-in rules followed by rules from installed plugins.

    A plugin registers an entry point in the ``cohorttag.taggers`` group that
    resolves to a callable taking the ``ClassificationConfig`` and returning an
    iterable of ``Tagger`` and/or ``CombinationTagger`` objects.
    """
    single: List[Tagger] = list(taggers(config, clock=clock))
    combined: List[CombinationTagger] = list(combination_taggers(config, clock=clock))

    if include_plugins:
        for entry in _iter_entry_points():
            try:
                factory = entry.load()
            except Exception as exc:  # pragma: no cover - defensive guard
                raise RuntimeError(f"Failed to load tagger entry point '{entry.name}': {exc}") from exc
            if not callable(factory):
                raise RuleDefinitionError(f"Tagger entry point '{entry.name}' is not callable")
            provided = factory(config)
            added = _split_rules(entry.name, provided, single, combined)
            _LOGGER.debug("Loaded %d rules from plugin %s", added, entry.name)

    return RuleSet(
        taggers=tuple(validate_rules(single, Tagger)),
        combination_taggers=tuple(validate_rules(combined, CombinationTagger)),
    )


def _split_rules(
    source: str,
    provided: Iterable[object],
    single: List[Tagger],
    combined: List[CombinationTagger],
) -> int:
    count = 0
    for rule in provided:
        if isinstance(rule, Tagger):
            single.append(rule)
        elif isinstance(rule, CombinationTagger):
            combined.append(rule)
        else:
            raise RuleDefinitionError(
                f"Plugin '{source}' returned {type(rule).__name__}, expected a Tagger"
            )
        count += 1
    return count


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "Clock",
    "CombinationTagger",
    "RuleDefinitionError",
    "RuleEvaluationError",
    "RuleSet",
    "Tagger",
    "any_fingerprint",
    "combination_taggers",
    "compute_tag_context",
    "discover_rules",
    "distinct_type_count",
    "evaluate_combination_taggers",
    "evaluate_taggers",
    "has_type",
    "taggers",
    "validate_rules",
]
