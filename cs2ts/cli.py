"""CLI entrypoints for cs2ts commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Callable

from .config import ConfigError, load_config
from .engine import Artifact, IncrementalEngine
from .logging import configure_logging, get_logger
from .models import ProcessingStats
from .watcher import WatchError, WatchSession

_ARTIFACT_BY_COMMAND = {
    "enums": Artifact.ENUMS,
    "schemas": Artifact.SCHEMAS,
}
_DESCRIPTIONS = {
    "enums": ("C# enums", "TypeScript enums"),
    "schemas": ("C# DTOs", "Zod schemas"),
}


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


def _add_watch_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Keep running and regenerate outputs when source files change.",
    )


def _add_directory_options(parser: argparse.ArgumentParser, source_label: str) -> None:
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=None,
        help=f"Directory containing {source_label} (defaults to input_dir in cs2ts.toml).",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Directory receiving generated TypeScript files (defaults to output_dir in cs2ts.toml).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cs2ts",
        description="Generate TypeScript enums and Zod schemas from C# sources.",
    )
    _add_verbose_option(parser)
    _add_watch_option(parser)
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to cs2ts.toml (defaults to the nearest one above the working directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    enums_parser = subparsers.add_parser(
        "enums",
        help="Generate TypeScript enums from C# enum declarations.",
    )
    _add_verbose_option(enums_parser, suppress_default=True)
    _add_watch_option(enums_parser, suppress_default=True)
    _add_directory_options(enums_parser, "C# enum files")

    schemas_parser = subparsers.add_parser(
        "schemas",
        help="Generate Zod schemas from C# record DTOs.",
    )
    _add_verbose_option(schemas_parser, suppress_default=True)
    _add_watch_option(schemas_parser, suppress_default=True)
    _add_directory_options(schemas_parser, "C# DTO files")
    schemas_parser.add_argument(
        "-l",
        "--localized",
        action="store_true",
        help="Wrap schemas in a factory that resolves messages through the i18n library.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for cs2ts commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        config = load_config(args.config).with_overrides(
            input_dir=args.input,
            output_dir=args.output,
            localized=bool(getattr(args, "localized", False)),
        )
        input_dir, output_dir = config.require_directories()
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    input_dir = input_dir.expanduser().resolve()
    output_dir = output_dir.expanduser().resolve()
    if not input_dir.exists():
        parser.exit(1, f"Input path not found: {input_dir}\n")

    watch = bool(args.watch)
    if watch and not input_dir.is_dir():
        parser.exit(1, f"--watch needs an input directory, got file {input_dir}\n")
    source_label, target_label = _DESCRIPTIONS[args.command]
    engine = IncrementalEngine(config, artifacts=[_ARTIFACT_BY_COMMAND[args.command]])

    # A single file input mirrors into output_dir from its own directory.
    input_root = input_dir if input_dir.is_dir() else input_dir.parent

    print(f"Processing {source_label}...")
    try:
        engine.process_path(input_dir, output_dir, input_root=input_root)
    except OSError as exc:
        if not watch:
            parser.exit(
                1, f"cs2ts {args.command} failed: {exc}\nRun with --verbose for more details.\n"
            )
        logger.error("Initial generation failed: %s", exc)
    else:
        print(f"{target_label} generated successfully")
    print(engine.stats.summary())

    if not watch:
        return

    def _report(path: Path, delta: ProcessingStats) -> None:
        print(f"{target_label} regenerated after change to {_relativize(path)}")
        print(delta.summary())

    try:
        _run_watch(engine, input_dir, output_dir, _report)
    except WatchError as exc:
        parser.exit(1, f"{exc}\n")
    except KeyboardInterrupt:
        print("Stopped watching.")


def _run_watch(
    engine: IncrementalEngine,
    input_dir: Path,
    output_dir: Path,
    report: Callable[[Path, ProcessingStats], None],
) -> None:
    session = WatchSession(engine, input_dir, output_dir, on_rebuild=report)
    asyncio.run(session.run())


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
