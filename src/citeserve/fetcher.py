"""Content fetcher: location identifier in, raw CEX bytes out.

Locations are ``http(s)://`` URLs, ``file://`` URLs, or filesystem paths.
Every failure (connection error, timeout, non-200 status, missing file)
surfaces as SourceUnavailableError so a request can report it instead of
dying.
"""
from __future__ import annotations

import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote, urlparse

from citeserve.config import ServiceConfig
from citeserve.errors import SourceUnavailableError

log = logging.getLogger(__name__)

CEX_SUFFIX = ".cex"


class ContentFetcher(Protocol):
    def fetch(self, location: str) -> bytes: ...


class SourceFetcher:
    """Fetch sources over HTTP(S) or from local files.

    ``timeout`` bounds each HTTP request (connect and read), in seconds.
    """

    def __init__(self, *, timeout: float = 10.0, user_agent: str = "citeserve") -> None:
        self._timeout = timeout
        self._user_agent = user_agent

    def fetch(self, location: str) -> bytes:
        scheme = urlparse(location).scheme.lower()
        if scheme in ("http", "https"):
            return self._fetch_http(location)
        if scheme == "file":
            return self._read_file(Path(unquote(urlparse(location).path)))
        return self._read_file(Path(location))

    def _fetch_http(self, url: str) -> bytes:
        req = urllib.request.Request(
            url,
            headers={"User-Agent": self._user_agent},
            method="GET",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                status = resp.status
                if status != 200:
                    raise SourceUnavailableError(f"Status error fetching {url}: {status}")
                return resp.read()
        except urllib.error.HTTPError as exc:
            raise SourceUnavailableError(f"Status error fetching {url}: {exc.code}") from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise SourceUnavailableError(f"GET error fetching {url}: {exc}") from exc

    def _read_file(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SourceUnavailableError(f"Could not read source {path}: {exc}") from exc


def source_location(config: ServiceConfig, cex: str | None = None) -> str:
    """Where to fetch the source for a request.

    A named source ``cex`` maps to ``<cex_source><cex>.cex``; no name means
    the configured default source.
    """
    if cex:
        if "/" in cex or "\\" in cex or ".." in cex:
            raise SourceUnavailableError(f"Invalid source name: {cex!r}")
        location = f"{config.cex_source}{cex}{CEX_SUFFIX}"
        log.info("CEX file provided in request: %s. Using %s.", cex, location)
        return location
    if not config.test_cex_source:
        raise SourceUnavailableError("No source named and no default source configured")
    log.info("No CEX file provided in request. Using %s from config.", config.test_cex_source)
    return config.test_cex_source
