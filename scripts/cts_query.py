#!/usr/bin/env python3
"""Resolve a CTS citation against a CEX source from the command line.

Runs one TextService operation and writes the JSON result to stdout,
with a one-line summary on stderr. Exit code is 0 for "Success" and 1
for "Exception".

Usage:
    python3 scripts/cts_query.py --source data/iliad.cex passage urn:cts:greekLit:tlg0012.tlg001:1.1-1.5
    python3 scripts/cts_query.py --source https://example.org/cex/iliad.cex works
    python3 scripts/cts_query.py --config config.json --cex iliad catalog urn:cts:greekLit:tlg0012.tlg001:
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from citeserve.config import ServiceConfig, load_config
from citeserve.errors import ConfigError
from citeserve.io_utils import dump_json_stdout
from citeserve.service import TextService

log = logging.getLogger("cts_query")

OPERATIONS = ("passage", "urns", "first", "last", "previous", "next", "works", "catalog")
_NEEDS_URN = {"passage", "urns", "first", "last", "previous", "next"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve a CTS URN against a CEX source."
    )
    parser.add_argument("operation", choices=OPERATIONS, help="Operation to run")
    parser.add_argument("urn", nargs="?", default=None, help="CTS URN to resolve")
    parser.add_argument(
        "--source",
        default=None,
        help="CEX file path or URL (overrides the config's default source)",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Path to a JSON service config"
    )
    parser.add_argument(
        "--cex",
        default=None,
        help="Named source, read from <cex_source><name>.cex",
    )
    parser.add_argument(
        "--match-mode",
        choices=("strict", "compat"),
        default=None,
        help="Reference character set (default: from config, else compat)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Fetch timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def resolve_config(args: argparse.Namespace) -> ServiceConfig:
    config = load_config(args.config) if args.config is not None else ServiceConfig()
    overrides: dict[str, Any] = {}
    if args.source is not None:
        overrides["test_cex_source"] = args.source
    if args.match_mode is not None:
        overrides["match_mode"] = args.match_mode
    if args.timeout is not None:
        overrides["fetch_timeout"] = args.timeout
    return replace(config, **overrides) if overrides else config


def run(service: TextService, operation: str, urn: str | None, cex: str | None) -> dict[str, Any]:
    """Dispatch one operation and return the JSON-ready result."""
    if operation == "works":
        return service.work_urns(cex).to_dict()
    if operation == "catalog":
        return service.catalog(urn, cex).to_dict()
    if urn is None:
        raise ValueError(f"operation {operation!r} requires a URN")
    method = {
        "passage": service.passage,
        "urns": service.urns,
        "first": service.first,
        "last": service.last,
        "previous": service.previous,
        "next": service.next,
    }[operation]
    return method(urn, cex).to_dict()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.operation in _NEEDS_URN and not args.urn:
        parser.error(f"operation {args.operation!r} requires a URN")

    try:
        config = resolve_config(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    result = run(TextService(config), args.operation, args.urn, args.cex)
    dump_json_stdout(result)

    count = len(result.get("nodes", result.get("urns", [])))
    print(
        f"{args.operation}: {result['status']} ({count} item(s))"
        + (f" - {result['message']}" if "message" in result else ""),
        file=sys.stderr,
    )
    return 0 if result["status"] == "Success" else 1


if __name__ == "__main__":
    sys.exit(main())
