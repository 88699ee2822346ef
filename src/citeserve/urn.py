"""CTS URN parsing and structural validation.

A CTS URN has four or five colon-separated fields::

    urn:cts:<namespace>:<work>[:<reference>]

The first four fields are the *stem*; the optional fifth is the
*reference*, a dot/colon-delimited path that may denote a range
``start-end``. Validation checks only the field count and the two
literal prefixes, nothing about character sets.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from citeserve.errors import InvalidRangeError, InvalidURNError

log = logging.getLogger(__name__)

STEM_FIELDS = 4
RANGE_SEPARATOR = "-"


@dataclass(frozen=True, slots=True)
class CtsUrn:
    """A citation split into its work stem and optional passage reference."""

    stem: str
    reference: str | None = None

    def __str__(self) -> str:
        if self.reference is None:
            return self.stem
        return f"{self.stem}:{self.reference}"

    @property
    def is_range(self) -> bool:
        return self.reference is not None and RANGE_SEPARATOR in self.reference


def is_cts_urn(s: str) -> bool:
    """Return True if ``s`` is structurally a CTS URN (4 or 5 fields)."""
    fields = s.split(":")
    if len(fields) < STEM_FIELDS:
        log.debug("Not a valid CTS URN %r: not enough fields (should be 4 or 5)", s)
        return False
    if len(fields) > STEM_FIELDS + 1:
        log.debug("Not a valid CTS URN %r: too many fields (should be 4 or 5)", s)
        return False
    if fields[0] != "urn":
        log.debug("Not a valid CTS URN %r: first field must be urn", s)
        return False
    if fields[1] != "cts":
        log.debug("Not a valid CTS URN %r: second field must be cts", s)
        return False
    return True


def is_range(s: str) -> bool:
    """Return True if the reference field of ``s`` contains a hyphen."""
    fields = s.split(":")
    return len(fields) > STEM_FIELDS and RANGE_SEPARATOR in fields[STEM_FIELDS]


def urn_stem(s: str) -> str:
    """Crop ``s`` to its first four fields."""
    return ":".join(s.split(":")[:STEM_FIELDS])


def catalog_key(s: str) -> str:
    """Stem plus trailing colon, the form work URNs take in a CEX catalog."""
    return urn_stem(s) + ":"


def parse_cts(s: str) -> CtsUrn:
    """Validate ``s`` and split it, leaving ``reference`` None for a bare stem."""
    if not is_cts_urn(s):
        raise InvalidURNError(f"{s} is not valid CTS.")
    fields = s.split(":")
    reference = fields[STEM_FIELDS] if len(fields) > STEM_FIELDS else None
    return CtsUrn(stem=":".join(fields[:STEM_FIELDS]), reference=reference)


def split_cts(s: str) -> CtsUrn:
    """Split a five-field URN into stem and reference.

    Raises InvalidURNError if ``s`` has no reference field.
    """
    fields = s.split(":")
    if len(fields) <= STEM_FIELDS:
        raise InvalidURNError(f"{s} has no passage reference to split.")
    return CtsUrn(
        stem=":".join(fields[:STEM_FIELDS]),
        reference=fields[STEM_FIELDS],
    )


def split_range(reference: str) -> tuple[str, str]:
    """Split ``start-end`` into its two boundaries.

    Either side may be empty, meaning "from the first node" or "to the last
    node". More than one hyphen raises InvalidRangeError.
    """
    parts = reference.split(RANGE_SEPARATOR)
    if len(parts) != 2:
        raise InvalidRangeError(
            f"Range reference {reference!r} must have exactly one '{RANGE_SEPARATOR}'"
        )
    return parts[0], parts[1]
