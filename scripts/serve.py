#!/usr/bin/env python3
"""Run the CTS text service under uvicorn.

Logs go to stderr and to a timestamped file under ``--log-dir``.

Usage:
    python3 scripts/serve.py --config config.json
    python3 scripts/serve.py --config config.json --port 8080 --log-dir logs
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

import uvicorn

_ROOT = Path(__file__).resolve().parent.parent
for _path in (_ROOT, _ROOT / "src"):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from citeserve.config import load_config  # noqa: E402
from citeserve.errors import ConfigError  # noqa: E402
from service.api.server import create_app  # noqa: E402

log = logging.getLogger("serve")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the CTS text service.")
    parser.add_argument(
        "--config", type=Path, default=Path("config.json"), help="JSON service config"
    )
    parser.add_argument("--host", default=None, help="Bind host (default: from config)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: from config)")
    parser.add_argument(
        "--log-dir", type=Path, default=Path("logs"), help="Directory for log files"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def log_file_path(log_dir: Path, now: datetime | None = None) -> Path:
    """``<log_dir>/YYYY_MM_DD_HH-MM-SS.log``"""
    stamp = (now or datetime.now()).strftime("%Y_%m_%d_%H-%M-%S")
    return log_dir / f"{stamp}.log"


def configure_logging(log_dir: Path, *, verbose: bool = False) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_file_path(log_dir)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr), logging.FileHandler(path)],
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return path


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    path = configure_logging(args.log_dir, verbose=args.verbose)
    log.info("Logging to file: %s", path)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        log.error("%s", exc)
        return 2

    host = args.host or config.host
    port = args.port or config.port
    log.info("Listening at %s:%d", host, port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
