"""CLI entrypoints for cohorttag commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .classifier import Classifier
from .config import ClassificationConfig, ConfigError, load_config
from .logging import configure_logging, get_logger
from .models import CommitRiskInputs, Fingerprint
from .report import cohort_to_dict, render_cohort, render_score, score_to_dict
from .stores import ClassificationSink, FingerprintStore, StoreError, iter_cohort
from .stores.fingerprint_store import fingerprint_from_dict
from .taggers import RuleDefinitionError, RuleEvaluationError

_SCORE_EXIT_CODE = 2

_LOGGER = get_logger("cli")


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    """Logging flags, accepted both before and after the subcommand.

    Subparsers suppress their defaults so a flag given before the command is
    not reset by the subparser.
    """

    def _default(value: object) -> object:
        return argparse.SUPPRESS if suppress_default else value

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=_default(False),
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=_default(False),
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=_default(None),
        help="Also write debug logs to this file.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .cohorttag.yml or the directory holding it (defaults to the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cohorttag",
        description="Classify a cohort of repositories from their extracted fingerprints.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser(
        "classify",
        help="Tag every repository in a fingerprint store.",
    )
    _add_logging_options(classify_parser, suppress_default=True)
    _add_config_option(classify_parser)
    classify_parser.add_argument("store", type=Path, help="JSON fingerprint store to classify.")
    classify_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the classification as JSON instead of text.",
    )
    classify_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Also write tags per repository to this JSON file.",
    )
    classify_parser.add_argument("--max-branches", type=int, default=None)
    classify_parser.add_argument("--dead-days", type=int, default=None)
    classify_parser.add_argument("--hot-days", type=int, default=None)
    classify_parser.add_argument("--hot-contributors", type=int, default=None)
    classify_parser.add_argument(
        "--min-fraction",
        type=float,
        default=None,
        help="Fraction of the cohort's average fingerprint types below which a repo is 'not understood'.",
    )
    classify_parser.add_argument("--workers", type=int, default=None)

    score_parser = subparsers.add_parser(
        "score",
        help="Compute the risk score of a single change.",
    )
    _add_logging_options(score_parser, suppress_default=True)
    _add_config_option(score_parser)
    score_parser.add_argument(
        "--changed-file",
        dest="changed_files",
        action="append",
        default=[],
        help="Path changed by the commit; repeat for each file.",
    )
    score_parser.add_argument(
        "--fingerprints",
        type=Path,
        default=None,
        help="JSON list of fingerprints produced for the change.",
    )
    score_parser.add_argument(
        "--indicator",
        dest="indicators",
        action="append",
        default=[],
        metavar="NAME",
        help="Domain condition that holds for the change; repeat for each one.",
    )
    score_parser.add_argument("--limit", type=int, default=None, help="Changed-file limit.")
    score_parser.add_argument("--sha", default=None)
    score_parser.add_argument("--json", action="store_true")
    score_parser.add_argument(
        "--fail-above",
        type=float,
        default=None,
        help=f"Exit with status {_SCORE_EXIT_CODE} when the score exceeds this value.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_logging_options(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for cohorttag commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )

    try:
        config = _load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "classify":
        try:
            config = config.with_overrides(
                max_branches=args.max_branches,
                dead_days=args.dead_days,
                hot_days=args.hot_days,
                hot_contributors=args.hot_contributors,
                min_average_aspect_count_fraction=args.min_fraction,
                workers=args.workers,
            )
            if not args.store.exists():
                raise StoreError(f"Fingerprint store not found: {args.store}")
            store = FingerprintStore(args.store)
            result = Classifier(config).classify_cohort(iter_cohort(store))
        except (ConfigError, StoreError, RuleDefinitionError) as exc:
            parser.exit(1, f"{exc}\n")
        except RuleEvaluationError as exc:
            parser.exit(1, f"cohorttag classify failed: {exc}\nRun with --verbose for more details.\n")

        if args.output is not None:
            sink = ClassificationSink(args.output)
            for repo in result.repositories:
                sink.persist_classification(repo.repo_id, repo.tags)
            written = sink.persist()
            _LOGGER.info("Classification written to %s", written)

        if args.json:
            print(json.dumps(cohort_to_dict(result), indent=2, sort_keys=True))
        else:
            print(render_cohort(result), end="")
    elif args.command == "score":
        try:
            config = config.with_overrides(file_change_limit=args.limit)
            fingerprints = _load_fingerprints(args.fingerprints)
            inputs = CommitRiskInputs(
                changed_files=tuple(args.changed_files),
                fingerprints=tuple(fingerprints),
                indicators={name: True for name in args.indicators},
                sha=args.sha,
            )
            score = Classifier(config).score_change(inputs)
        except (ConfigError, StoreError, RuleDefinitionError) as exc:
            parser.exit(1, f"{exc}\n")
        except RuleEvaluationError as exc:
            parser.exit(1, f"cohorttag score failed: {exc}\nRun with --verbose for more details.\n")

        if args.json:
            print(json.dumps(score_to_dict(score), indent=2, sort_keys=True))
        else:
            print(render_score(score), end="")
        if args.fail_above is not None and score.value > args.fail_above:
            parser.exit(
                _SCORE_EXIT_CODE,
                f"Commit risk {score.value:g} exceeds threshold {args.fail_above:g}\n",
            )
    elif args.command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _load_config(path: Optional[Path]) -> ClassificationConfig:
    return load_config(path if path is not None else Path.cwd())


def _load_fingerprints(path: Optional[Path]) -> List[Fingerprint]:
    if path is None:
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreError(f"Unable to read fingerprints from {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise StoreError(f"{path} must contain a JSON list of fingerprints")
    fingerprints: List[Fingerprint] = []
    for item in payload:
        fp = fingerprint_from_dict(item)
        if fp is None:
            _LOGGER.warning("Skipping malformed fingerprint in %s: %r", path, item)
            continue
        fingerprints.append(fp)
    return fingerprints


if __name__ == "__main__":
    main(sys.argv[1:])
