"""Catalog index over ``#!ctscatalog`` entries."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from citeserve.types import Catalog, CatalogEntry
from citeserve.urn import catalog_key, is_cts_urn

log = logging.getLogger(__name__)


def build_catalog(entries: Iterable[CatalogEntry]) -> Catalog:
    """Keep entries with a valid CTS URN, first occurrence of each URN wins."""
    kept: dict[str, CatalogEntry] = {}
    dropped = 0
    for entry in entries:
        if not is_cts_urn(entry.urn):
            dropped += 1
            continue
        kept.setdefault(entry.urn, entry)
    if dropped:
        log.debug("Dropped %d catalog entries with invalid URNs", dropped)
    return Catalog(entries=tuple(kept.values()))


def catalog_urns(catalog: Catalog) -> list[str]:
    return [entry.urn for entry in catalog.entries]


def membership(catalog: Catalog, urn: str) -> bool:
    """True if the work ``urn`` belongs to is registered.

    ``urn`` is cropped to its stem plus a trailing colon before the lookup,
    which is how catalog entries name works. Entries are compared in the
    same cropped form so an entry written without the trailing colon still
    answers for itself.
    """
    key = catalog_key(urn)
    return any(catalog_key(entry.urn) == key for entry in catalog.entries)
