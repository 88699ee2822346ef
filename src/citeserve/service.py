"""Per-request text service: fetch, ingest, resolve, report.

Each public method answers one request from scratch. The source is
fetched and ingested, a Work or Catalog is built, the citation is
resolved, and the outcome is returned as a result dataclass. Every
CitationError is turned into an ``Exception`` result here; no state
survives the call.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from citeserve import catalog as catalog_index
from citeserve import navigator
from citeserve.cex import (
    decode_source,
    ingest_catalog_records,
    ingest_text_records,
    partition_results,
)
from citeserve.config import ServiceConfig
from citeserve.errors import (
    CitationError,
    InvalidURNError,
    MalformedSourceError,
    SourceUnavailableError,
)
from citeserve.fetcher import ContentFetcher, SourceFetcher, source_location
from citeserve.sequencer import build_work, distinct_stems, select_stem, work_urns
from citeserve.types import (
    EXCEPTION,
    SUCCESS,
    Catalog,
    CatalogResult,
    CiteVersionResult,
    MalformedRecord,
    NodeResult,
    ResolvedNode,
    TextRecord,
    UrnListResult,
    VersionResult,
    Work,
)
from citeserve.urn import catalog_key, parse_cts

log = logging.getLogger(__name__)

TEXTS_VERSION = "1.1.0"

SERVICE_CITE = "/cite"
SERVICE_TEXTS = "/texts"
SERVICE_TEXTS_VERSION = "/texts/version"
SERVICE_FIRST = "/texts/first"
SERVICE_LAST = "/texts/last"
SERVICE_PREVIOUS = "/texts/previous"
SERVICE_NEXT = "/texts/next"
SERVICE_URNS = "/texts/urns"
SERVICE_CATALOG = "/catalog"

_SOURCE_UNAVAILABLE_MESSAGE = "Couldn't open source. No internet connection?"


class TextService:
    """Resolve CTS citations against CEX sources named by a ServiceConfig."""

    def __init__(
        self,
        config: ServiceConfig,
        fetcher: ContentFetcher | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or SourceFetcher(timeout=config.fetch_timeout)

    # ------------------------------------------------------------------
    # Version endpoints
    # ------------------------------------------------------------------

    def cite_version(self) -> CiteVersionResult:
        return CiteVersionResult(
            service=SERVICE_CITE,
            versions={"texts": TEXTS_VERSION, "textcatalog": ""},
        )

    def texts_version(self) -> VersionResult:
        return VersionResult(service=SERVICE_TEXTS_VERSION, version=TEXTS_VERSION)

    # ------------------------------------------------------------------
    # Texts
    # ------------------------------------------------------------------

    def work_urns(self, cex: str | None = None) -> UrnListResult:
        """Every work stem present in the source's ``#!ctsdata`` block."""
        try:
            records = self._text_records(cex)
        except CitationError as exc:
            log.info("%s failed [%s]: %s", SERVICE_TEXTS, exc.kind, exc)
            return UrnListResult(
                request_urn=None,
                status=EXCEPTION,
                service=SERVICE_TEXTS,
                message=_message(exc),
            )
        return UrnListResult(
            request_urn=None,
            status=SUCCESS,
            service=SERVICE_TEXTS,
            urns=tuple(work_urns(records)),
        )

    def first(self, urn: str, cex: str | None = None) -> NodeResult:
        return self._nodes(SERVICE_FIRST, urn, cex, lambda work: [navigator.first_node(work)])

    def last(self, urn: str, cex: str | None = None) -> NodeResult:
        return self._nodes(SERVICE_LAST, urn, cex, lambda work: [navigator.last_node(work)])

    def previous(self, urn: str, cex: str | None = None) -> NodeResult:
        return self._nodes(SERVICE_PREVIOUS, urn, cex, lambda work: navigator.previous_node(work, urn))

    def next(self, urn: str, cex: str | None = None) -> NodeResult:
        return self._nodes(SERVICE_NEXT, urn, cex, lambda work: navigator.next_node(work, urn))

    def passage(self, urn: str, cex: str | None = None) -> NodeResult:
        mode = self.config.match_mode
        return self._nodes(SERVICE_TEXTS, urn, cex, lambda work: navigator.passage(work, urn, mode))

    def urns(self, urn: str, cex: str | None = None) -> UrnListResult:
        """URNs of the nodes ``urn`` addresses (no text, no neighbors)."""
        try:
            work = self._work_for(urn, cex)
            found = navigator.passage_urns(work, urn, self.config.match_mode)
        except CitationError as exc:
            log.info("%s %s failed [%s]: %s", SERVICE_URNS, urn, exc.kind, exc)
            return UrnListResult(
                request_urn=urn,
                status=EXCEPTION,
                service=SERVICE_URNS,
                message=_message(exc),
            )
        return UrnListResult(
            request_urn=urn,
            status=SUCCESS,
            service=SERVICE_URNS,
            urns=tuple(found),
        )

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def catalog(self, urn: str | None = None, cex: str | None = None) -> CatalogResult:
        """List catalog URNs, or check whether ``urn``'s work is registered."""
        key = catalog_key(urn) if urn else None
        if key is not None:
            try:
                parse_cts(key)
            except InvalidURNError as exc:
                log.info("%s %s failed [%s]: %s", SERVICE_CATALOG, urn, exc.kind, exc)
                return CatalogResult(status=EXCEPTION, service=SERVICE_CATALOG, message=str(exc))
        try:
            catalog = self._catalog(cex)
        except CitationError as exc:
            log.info("%s failed [%s]: %s", SERVICE_CATALOG, exc.kind, exc)
            return CatalogResult(status=EXCEPTION, service=SERVICE_CATALOG, message=_message(exc))

        urns = tuple(catalog_index.catalog_urns(catalog))
        if not urn:
            return CatalogResult(
                status=SUCCESS,
                service=SERVICE_CATALOG,
                message="No URN specified. Printing URNs in catalog",
                urns=urns,
            )
        if catalog_index.membership(catalog, urn):
            return CatalogResult(
                status=SUCCESS,
                service=SERVICE_CATALOG,
                message=f"{key} is in the CTS Catalog.",
            )
        return CatalogResult(
            status=EXCEPTION,
            service=SERVICE_CATALOG,
            message=f"{key} is not in the CTS Catalog. Printing URNs in catalog",
            urns=urns,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _nodes(
        self,
        service: str,
        urn: str,
        cex: str | None,
        resolve: Callable[[Work], list[ResolvedNode]],
    ) -> NodeResult:
        try:
            work = self._work_for(urn, cex)
            nodes = resolve(work)
        except CitationError as exc:
            log.info("%s %s failed [%s]: %s", service, urn, exc.kind, exc)
            return NodeResult(
                request_urn=urn,
                status=EXCEPTION,
                service=service,
                message=_message(exc),
            )
        log.debug("%s %s resolved %d node(s)", service, urn, len(nodes))
        return NodeResult(request_urn=urn, status=SUCCESS, service=service, nodes=tuple(nodes))

    def _fetch_source(self, cex: str | None) -> str:
        location = source_location(self.config, cex)
        return decode_source(self.fetcher.fetch(location))

    def _text_records(self, cex: str | None) -> list[TextRecord]:
        records, errors = partition_results(ingest_text_records(self._fetch_source(cex)))
        self._check_malformed(errors)
        return records

    def _catalog(self, cex: str | None) -> Catalog:
        entries, errors = partition_results(ingest_catalog_records(self._fetch_source(cex)))
        self._check_malformed(errors)
        return catalog_index.build_catalog(entries)

    def _check_malformed(self, errors: list[MalformedRecord]) -> None:
        if not errors:
            return
        for bad in errors:
            log.warning("Malformed record: %s", bad.describe())
        if self.config.strict_ingest:
            raise MalformedSourceError(
                f"Malformed source: {len(errors)} bad record(s)",
                tuple(errors),
            )

    def _work_for(self, urn: str, cex: str | None) -> Work:
        parse_cts(urn)
        records = self._text_records(cex)
        stem = select_stem(distinct_stems(records), urn)
        return build_work(records, stem)


def _message(exc: CitationError) -> str:
    if isinstance(exc, SourceUnavailableError):
        return f"{_SOURCE_UNAVAILABLE_MESSAGE} ({exc})"
    if isinstance(exc, MalformedSourceError) and exc.records:
        return f"{exc}, first at {exc.records[0].describe()}"
    return str(exc)
