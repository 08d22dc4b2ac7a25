"""CLI entrypoints for contextintel commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from .config import ConfigError, EngineConfig, load_config
from .logging import configure_logging
from .orchestrator import ContextIntelligenceOrchestrator


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


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contextintel",
        description="Analyze design exports for intent, flows, accessibility, tokens and layout.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a design export JSON file.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "input",
        help="Design JSON (or a bundle with designSpec/prototypeData/designContext).",
    )
    analyze_parser.add_argument("--prototype", help="Prototype data JSON file.")
    analyze_parser.add_argument("--context", help="Design context JSON file.")
    analyze_parser.add_argument(
        "--config",
        help="Path to .contextintel.yml or the directory containing it.",
    )
    analyze_parser.add_argument(
        "--sequential",
        action="store_true",
        help="Run the analysis modules one after another.",
    )
    analyze_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Bypass the result cache for this run.",
    )
    analyze_parser.add_argument("--output", help="Write the JSON result to this file.")
    analyze_parser.add_argument(
        "--compact",
        action="store_true",
        help="Emit single-line JSON.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP analysis service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for contextintel commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "analyze":
        _run_analyze(parser, args)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        payload = _read_json(args.input)
        prototype = _read_json(args.prototype) if args.prototype else None
        context = _read_json(args.context) if args.context else None
    except (OSError, ValueError) as exc:
        parser.exit(2, f"Could not read input: {exc}\n")

    design_spec: Any = payload
    if isinstance(payload, dict) and "designSpec" in payload:
        design_spec = payload.get("designSpec")
        prototype = prototype if prototype is not None else payload.get("prototypeData")
        context = context if context is not None else payload.get("designContext")

    try:
        config = load_config(Path(args.config)) if args.config else EngineConfig()
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    if args.no_cache:
        config = replace(config, analysis=replace(config.analysis, caching=False))

    options: dict[str, Any] = {}
    if args.sequential:
        options["parallelAnalysis"] = False

    orchestrator = ContextIntelligenceOrchestrator(config)
    result = orchestrator.analyze(design_spec, prototype, context, options)

    indent = None if args.compact else 2
    rendered = json.dumps(result.to_json_dict(), indent=indent)
    if args.output:
        target = Path(args.output)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(rendered + "\n", encoding="utf-8")
        print(f"Analysis written to {_relativize(target)}")
    else:
        print(rendered)


def _read_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
