"""CLI entrypoints for doclint commands."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging, get_logger
from .pipeline import run_check
from .report import EXIT_USAGE, ReportFormatter


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doclint",
        description="Validate frontmatter and cross-references in a Markdown documentation corpus.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Check frontmatter, references, orphans, taxonomy and staleness.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    check_parser.add_argument(
        "--root",
        default=".",
        help="Documentation root directory (defaults to current directory).",
    )
    check_parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML or JSON config file (defaults to <root>/.doclint.yml).",
    )
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat orphans, taxonomy drift, staleness and frontmatter warnings as fatal.",
    )
    check_parser.add_argument(
        "--format",
        choices=("json", "table"),
        default="table",
        help="Report format written to stdout.",
    )
    check_parser.add_argument(
        "--output",
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    check_parser.add_argument(
        "--today",
        type=_parse_date,
        default=None,
        help="Evaluate staleness as of this date (YYYY-MM-DD).",
    )
    check_parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Worker threads for per-file stages (defaults to CPU count).",
    )
    check_parser.add_argument(
        "--log-file",
        default=None,
        help="Also write DEBUG-level logs to this file.",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for doclint commands; returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)
    logger = get_logger("cli")

    if args.command != "check":  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_USAGE, "Unknown command\n")

    config_path = Path(args.config) if args.config else None
    try:
        outcome = run_check(
            args.root,
            config_path=config_path,
            strict=bool(args.strict),
            today=args.today,
            workers=args.workers,
        )
    except ConfigError as exc:
        parser.exit(EXIT_USAGE, f"doclint: configuration error: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(EXIT_USAGE, f"doclint: {exc}\n")

    formatter = ReportFormatter(strict=outcome.config.strict)
    rendered = formatter.render(outcome.report, args.format)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
        logger.info("Report written to %s", output_path)
    else:
        sys.stdout.write(rendered)

    exit_code = formatter.exit_code(outcome.report)
    logger.debug("Exiting with status %d", exit_code)
    return exit_code


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())


__all__ = ["main", "run"]
