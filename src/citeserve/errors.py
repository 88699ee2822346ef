"""Failure taxonomy for citation resolution.

Every error a single resolution request can hit derives from
``CitationError``. The text service catches these at the request boundary
and turns them into ``Exception`` status results; nothing here is meant to
escape a request.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from citeserve.types import MalformedRecord


class CitationError(RuntimeError):
    """Base class for recoverable resolution failures."""

    kind: str = "CitationError"


class InvalidURNError(CitationError):
    """Raised when a citation string fails structural CTS validation."""

    kind = "InvalidURN"


class NoMatchingWorkError(CitationError):
    """Raised when a citation's stem matches no work in the source."""

    kind = "NoMatchingWork"


class NoMatchingNodeError(CitationError):
    """Raised when a reference matches no node by any precedence rule."""

    kind = "NoMatchingNode"


class InvalidRangeError(CitationError):
    """Raised when a range reference cannot be turned into a forward slice."""

    kind = "InvalidRange"


class SourceUnavailableError(CitationError):
    """Raised when the content fetcher cannot deliver the source bytes."""

    kind = "SourceUnavailable"


class MalformedSourceError(CitationError):
    """Raised when a source cannot be ingested.

    ``records`` holds the offending lines when the failure is per-record
    (wrong field count); it is empty for whole-source failures such as a
    missing block marker or undecodable bytes.
    """

    kind = "MalformedSource"

    def __init__(
        self,
        message: str,
        records: tuple[MalformedRecord, ...] = (),
    ) -> None:
        super().__init__(message)
        self.records = records


class ConfigError(ValueError):
    """Raised when the service configuration is invalid."""
