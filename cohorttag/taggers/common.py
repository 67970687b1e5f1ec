"""Built-in taggers and combination taggers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable, List, Optional, Sequence

from .. import payloads
from ..bands import SIZE_BANDS, band_for, days_since
from ..config import ClassificationConfig
from ..models import Fingerprint, Severity, TagContext
from .base import CombinationTagger, Tagger, any_fingerprint, has_type
from .engine import distinct_type_count

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def taggers(config: ClassificationConfig, *, clock: Optional[Clock] = None) -> List[Tagger]:
    """Single-repository taggers, in display order."""
    now = clock or _utc_now

    return [
        Tagger(
            name="vulnerable",
            description="Has exposed secrets",
            test=has_type(payloads.EXPOSED_SECRETS),
            severity=Severity.ERROR,
        ),
        Tagger("docker", "Docker status", has_type(payloads.DOCKER_BASE_IMAGE)),
        Tagger("node", "Node", has_type(payloads.NPM_DEPENDENCIES)),
        Tagger("maven", "Direct Maven dependencies", has_type(payloads.DIRECT_MAVEN_DEPENDENCIES)),
        Tagger("typescript", "TypeScript version", has_type(payloads.TYPESCRIPT_VERSION)),
        Tagger("tslint", "tslint (TypeScript)", has_type(payloads.TSLINT)),
        Tagger("clojure", "Lein dependencies", has_type(payloads.LEIN_DEPENDENCIES)),
        Tagger("spring-boot", "Spring Boot version", has_type(payloads.SPRING_BOOT_VERSION)),
        Tagger("travis", "Travis CI script", has_type(payloads.TRAVIS_SCRIPTS)),
        Tagger("python", "Python dependencies", has_type(payloads.PYTHON_DEPENDENCIES)),
        Tagger(
            name="monorepo",
            description="Contains multiple virtual projects",
            test=any_fingerprint(lambda fp: not fp.is_root),
            severity=Severity.WARN,
        ),
        Tagger("jenkins", "Jenkins", any_fingerprint(_ci_mentions("jenkins"))),
        Tagger("circleci", "circleci", any_fingerprint(_ci_mentions("circle"))),
        Tagger(
            "azure-pipelines",
            "Azure pipelines files",
            any_fingerprint(_file_match_named("azure-pipeline")),
        ),
        Tagger("snyk", "Snyk policy", any_fingerprint(_file_match_glob_contains("snyk"))),
        Tagger("CSharp", "C# build", any_fingerprint(_file_match_named("csproj"))),
        Tagger(
            "solo",
            "Projects with one committer",
            any_fingerprint(lambda fp: _count_is(payloads.parse_git_actives(fp), lambda n: n == 1)),
        ),
        Tagger(
            name=f">{config.max_branches} branches",
            description="git branch count",
            test=any_fingerprint(
                lambda fp: _count_is(
                    payloads.parse_branch_count(fp), lambda n: n > config.max_branches
                )
            ),
            severity=Severity.WARN,
        ),
        Tagger("huge (>10K)", "Repo size", any_fingerprint(_size_band_is("huge"))),
        Tagger("big (3-10K)", "Repo size", any_fingerprint(_size_band_is("big"))),
        Tagger("tiny (<200)", "Repo size", any_fingerprint(_size_band_is("tiny"))),
        Tagger(
            "code-of-conduct",
            "Repositories should have a code of conduct",
            has_type(payloads.CODE_OF_CONDUCT),
        ),
        Tagger(
            "changelog",
            "Repositories should have a changelog",
            any_fingerprint(_glob_found("CHANGELOG.md")),
        ),
        Tagger(
            "contributing",
            "Repositories should have a contributing",
            any_fingerprint(_glob_found("CONTRIBUTING.md")),
        ),
        Tagger(
            "license",
            "Repositories should have a license",
            any_fingerprint(_has_license),
        ),
        Tagger(
            name="dead?",
            description=f"No git activity in last {config.dead_days} days",
            test=lambda fps: _is_dead(fps, config.dead_days, now()),
            severity=Severity.ERROR,
        ),
    ]


def combination_taggers(
    config: ClassificationConfig, *, clock: Optional[Clock] = None
) -> List[CombinationTagger]:
    """Taggers that need cohort statistics or several fingerprint types at once."""
    now = clock or _utc_now
    fraction = config.min_average_aspect_count_fraction

    def _not_understood(fps: Sequence[Fingerprint], context: TagContext) -> bool:
        # Aspects such as git recency fire on everything, so the bar is a
        # fraction of the cohort mean rather than the mean itself.
        if context.average_fingerprint_count <= 0:
            return False
        return distinct_type_count(fps) < context.average_fingerprint_count * fraction

    def _hot(fps: Sequence[Fingerprint], _: TagContext) -> bool:
        last_commit = latest_commit(fps)
        committers = most_active_committers(fps)
        if last_commit is None or committers is None:
            return False
        return (
            days_since(last_commit, now()) < config.hot_days
            and committers >= config.hot_contributors
        )

    return [
        CombinationTagger(
            name="not understood",
            description="You may want to write aspects for these outlier projects",
            test=_not_understood,
            severity=Severity.WARN,
        ),
        CombinationTagger(
            name="hot",
            description="How hot is git",
            test=_hot,
        ),
    ]


def latest_commit(fingerprints: Sequence[Fingerprint]) -> Optional[datetime]:
    """Most recent commit across all well-formed git-recency fingerprints."""
    moments = [
        parsed.last_commit
        for parsed in (payloads.parse_git_recency(fp) for fp in fingerprints)
        if parsed is not None
    ]
    return max(moments) if moments else None


def most_active_committers(fingerprints: Sequence[Fingerprint]) -> Optional[int]:
    """Largest active-committer count across all well-formed git-actives fingerprints."""
    counts = [
        parsed.count
        for parsed in (payloads.parse_git_actives(fp) for fp in fingerprints)
        if parsed is not None
    ]
    return max(counts) if counts else None


def _is_dead(fps: Sequence[Fingerprint], dead_days: int, now: datetime) -> bool:
    last_commit = latest_commit(fps)
    if last_commit is None:
        return False
    return days_since(last_commit, now) > dead_days


def _count_is(
    parsed: Optional[payloads.CountData], check: Callable[[int], bool]
) -> bool:
    return parsed is not None and check(parsed.count)


def _size_band_is(name: str) -> Callable[[Fingerprint], bool]:
    def _test(fp: Fingerprint) -> bool:
        metrics = payloads.parse_code_metrics(fp)
        return metrics is not None and band_for(SIZE_BANDS, metrics.lines) == name

    return _test


def _ci_mentions(fragment: str) -> Callable[[Fingerprint], bool]:
    def _test(fp: Fingerprint) -> bool:
        systems = payloads.parse_ci(fp)
        return systems is not None and any(fragment in system for system in systems)

    return _test


def _file_match_named(fragment: str) -> Callable[[Fingerprint], bool]:
    def _test(fp: Fingerprint) -> bool:
        found = payloads.parse_file_match(fp)
        return found is not None and fragment in fp.name and bool(found.matches)

    return _test


def _file_match_glob_contains(fragment: str) -> Callable[[Fingerprint], bool]:
    def _test(fp: Fingerprint) -> bool:
        found = payloads.parse_file_match(fp)
        return found is not None and fragment in found.glob and bool(found.matches)

    return _test


def _glob_found(glob: str) -> Callable[[Fingerprint], bool]:
    def _test(fp: Fingerprint) -> bool:
        found = payloads.parse_glob_match(fp)
        return found is not None and found.glob == glob and bool(found.matches)

    return _test


def _has_license(fp: Fingerprint) -> bool:
    parsed = payloads.parse_license(fp)
    return parsed is not None and parsed.has_license


__all__ = [
    "Clock",
    "combination_taggers",
    "latest_commit",
    "most_active_committers",
    "taggers",
]
