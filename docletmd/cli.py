"""CLI entrypoints for docletmd commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, PluginConfig, load_config
from .host import DocletHost, HostError
from .logging import configure_logging, get_logger
from .models import MalformedDocletError
from .publish import publish

logger = get_logger("cli")


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


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug-level logs to this file.",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    _add_log_file_option(parser, suppress_default=True)
    parser.add_argument(
        "doclets",
        help="JSON file holding the doclets produced by the extraction host (e.g. `jsdoc -X`).",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Configuration file (YAML or JSON). Defaults to ./.docletmd.yml when present.",
    )
    parser.add_argument(
        "--includes",
        default=None,
        help="Comma separated access levels to document (e.g. public,protected).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docletmd",
        description="Enrich documentation doclets and render them as markdown.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    enrich_parser = subparsers.add_parser(
        "enrich",
        help="Apply the doclet rules and module reconstruction, then print the doclets as JSON.",
    )
    _add_common_options(enrich_parser)
    enrich_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write the enriched doclets to this file instead of stdout.",
    )

    build_parser = subparsers.add_parser(
        "build",
        help="Enrich doclets and generate markdown documentation.",
    )
    _add_common_options(build_parser)
    build_parser.add_argument(
        "-d",
        "--destination",
        default=None,
        help="Output folder for the markdown files (overrides opts.destination).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docletmd commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        config = _load_config(args)
        host = DocletHost(config)
        logger.debug("Destination %s, includes %s", config.destination, ",".join(config.includes))
        doclets = host.run_file(Path(args.doclets))
    except (ConfigError, HostError, MalformedDocletError) as exc:
        parser.exit(1, f"docletmd {args.command} failed: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"docletmd {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    if args.command == "enrich":
        payload = json.dumps(doclets, indent=2, default=str)
        if args.output:
            Path(args.output).write_text(payload + "\n", encoding="utf-8")
            print(f"Enriched doclets written to {_relativize(Path(args.output))}")
        else:
            print(payload)
    elif args.command == "build":
        result = publish(doclets, config)
        print(
            f"{len(result.files_written)} file(s) written to {_relativize(config.destination)}"
        )
        if not result.success:
            parser.exit(1, f"{len(result.errors)} file(s) could not be generated\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _load_config(args: argparse.Namespace) -> PluginConfig:
    config = load_config(Path(args.config) if args.config else Path.cwd())
    destination = getattr(args, "destination", None)
    return config.with_overrides(
        destination=Path(destination).resolve() if destination else None,
        includes=args.includes,
    )


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
