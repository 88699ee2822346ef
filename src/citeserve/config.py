"""Service configuration.

Loaded from a JSON file whose keys follow the legacy ``config.json``::

    {
      "host": "127.0.0.1",
      "port": ":8000",
      "cex_source": "https://example.org/cex/",
      "test_cex_source": "https://example.org/cex/default.cex",
      "match_mode": "compat",
      "fetch_timeout": 10,
      "strict_ingest": true,
      "allowed_origins": ["*"]
    }

``port`` may be an int or a legacy ``":8000"`` string. The config is an
immutable value handed to each service call; nothing re-reads it per
request.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import orjson

from citeserve.errors import ConfigError
from citeserve.io_utils import load_json
from citeserve.types import MatchMode

CONFIG_ENV = "CITESERVE_CONFIG"
ORIGINS_ENV = "ORIGIN_ALLOWED"
DEFAULT_CONFIG_PATH = Path("config.json")

_MATCH_MODES: tuple[MatchMode, ...] = ("strict", "compat")


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    cex_source: str = ""            # prefix; "<cex_source><name>.cex"
    test_cex_source: str = ""       # used when a request names no source
    match_mode: MatchMode = "compat"
    fetch_timeout: float = 10.0     # seconds
    strict_ingest: bool = True
    allowed_origins: tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        if self.match_mode not in _MATCH_MODES:
            raise ConfigError(
                f"match_mode must be one of {_MATCH_MODES}, got {self.match_mode!r}"
            )
        if self.fetch_timeout <= 0:
            raise ConfigError(f"fetch_timeout must be > 0, got {self.fetch_timeout}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ServiceConfig:
        """Build a config from parsed JSON. Unknown keys are ignored."""
        if not isinstance(raw, dict):
            raise ConfigError("Config root must be a JSON object")
        kwargs: dict[str, Any] = {}
        try:
            if "host" in raw:
                kwargs["host"] = str(raw["host"])
            if "port" in raw:
                kwargs["port"] = _parse_port(raw["port"])
            if "cex_source" in raw:
                kwargs["cex_source"] = str(raw["cex_source"])
            if "test_cex_source" in raw:
                kwargs["test_cex_source"] = str(raw["test_cex_source"])
            if "match_mode" in raw:
                kwargs["match_mode"] = raw["match_mode"]
            if "fetch_timeout" in raw:
                kwargs["fetch_timeout"] = float(raw["fetch_timeout"])
            if "strict_ingest" in raw:
                kwargs["strict_ingest"] = bool(raw["strict_ingest"])
            if "allowed_origins" in raw:
                kwargs["allowed_origins"] = _parse_origins(raw["allowed_origins"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid config value: {exc}") from exc
        return cls(**kwargs)


def _parse_port(value: Any) -> int:
    if isinstance(value, str):
        value = value.strip().rsplit(":", 1)[-1]
    return int(value)


def _parse_origins(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(o.strip() for o in value.split(",") if o.strip())
    return tuple(str(o) for o in value)


def load_config(path: Path) -> ServiceConfig:
    """Load a ServiceConfig from a JSON file."""
    try:
        raw = load_json(path)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except orjson.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
    return ServiceConfig.from_dict(raw)


def config_from_env(default_path: Path = DEFAULT_CONFIG_PATH) -> ServiceConfig:
    """Resolve config the way the server does at startup.

    ``$CITESERVE_CONFIG`` (or ``default_path``) names the file; a missing
    default file yields built-in defaults, a missing explicit file is an
    error. ``$ORIGIN_ALLOWED`` overrides ``allowed_origins``.
    """
    explicit = os.environ.get(CONFIG_ENV)
    path = Path(explicit) if explicit else default_path
    if path.exists() or explicit:
        config = load_config(path)
    else:
        config = ServiceConfig()
    origins = os.environ.get(ORIGINS_ENV)
    if origins:
        config = replace(config, allowed_origins=_parse_origins(origins))
    return config
