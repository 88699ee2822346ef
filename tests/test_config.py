"""Tests for citeserve.config module."""
from __future__ import annotations

from pathlib import Path

import pytest

from citeserve.config import (
    CONFIG_ENV,
    ORIGINS_ENV,
    ServiceConfig,
    config_from_env,
    load_config,
)
from citeserve.errors import ConfigError
from citeserve.io_utils import save_json


class TestFromDict:
    def test_defaults(self) -> None:
        config = ServiceConfig.from_dict({})
        assert config == ServiceConfig()
        assert config.match_mode == "compat"
        assert config.strict_ingest is True

    def test_legacy_port_string(self) -> None:
        assert ServiceConfig.from_dict({"port": ":8080"}).port == 8080
        assert ServiceConfig.from_dict({"port": 9000}).port == 9000

    def test_all_keys(self) -> None:
        config = ServiceConfig.from_dict({
            "host": "0.0.0.0",
            "cex_source": "https://example.org/cex/",
            "test_cex_source": "https://example.org/cex/default.cex",
            "match_mode": "strict",
            "fetch_timeout": 3,
            "strict_ingest": False,
            "allowed_origins": "https://a.org, https://b.org",
            "unknown": "ignored",
        })
        assert config.host == "0.0.0.0"
        assert config.cex_source == "https://example.org/cex/"
        assert config.match_mode == "strict"
        assert config.fetch_timeout == 3.0
        assert config.strict_ingest is False
        assert config.allowed_origins == ("https://a.org", "https://b.org")

    @pytest.mark.parametrize(
        "raw",
        [
            {"port": "abc"},
            {"port": 70000},
            {"match_mode": "loose"},
            {"fetch_timeout": 0},
            {"fetch_timeout": None},
        ],
    )
    def test_invalid_values(self, raw: dict) -> None:
        with pytest.raises(ConfigError):
            ServiceConfig.from_dict(raw)

    def test_root_must_be_object(self) -> None:
        with pytest.raises(ConfigError, match="JSON object"):
            ServiceConfig.from_dict(["host"])  # type: ignore[arg-type]


class TestLoadConfig:
    def test_round_trip_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        save_json({"port": ":8001", "test_cex_source": "data/a.cex"}, path)
        config = load_config(path)
        assert config.port == 8001
        assert config.test_cex_source == "data/a.cex"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_bad_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_config(path)


class TestConfigFromEnv:
    def test_missing_default_uses_builtins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv(CONFIG_ENV, raising=False)
        monkeypatch.delenv(ORIGINS_ENV, raising=False)
        assert config_from_env(tmp_path / "config.json") == ServiceConfig()

    def test_explicit_path_must_exist(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "missing.json"))
        with pytest.raises(ConfigError):
            config_from_env(tmp_path / "config.json")

    def test_env_path_and_origins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "svc.json"
        save_json({"host": "example.org"}, path)
        monkeypatch.setenv(CONFIG_ENV, str(path))
        monkeypatch.setenv(ORIGINS_ENV, "https://a.org")
        config = config_from_env(tmp_path / "config.json")
        assert config.host == "example.org"
        assert config.allowed_origins == ("https://a.org",)
