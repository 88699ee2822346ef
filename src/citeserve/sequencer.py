"""Turn ingested text records into a Work for one stem."""
from __future__ import annotations

from collections.abc import Iterable

from citeserve.errors import NoMatchingWorkError
from citeserve.types import TextNode, TextRecord, Work
from citeserve.urn import urn_stem


def distinct_stems(records: Iterable[TextRecord]) -> list[str]:
    """Every distinct 4-field stem among ``records``, first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        seen.setdefault(urn_stem(record.urn), None)
    return list(seen)


def work_urns(records: Iterable[TextRecord]) -> list[str]:
    """Distinct work URNs in catalog form (stem with trailing colon)."""
    return [stem + ":" for stem in distinct_stems(records)]


def stem_addresses(stem: str, query: str) -> bool:
    """True if ``query`` is ``stem`` itself or a citation below it."""
    return query == stem or query.startswith(stem + ":")


def select_stem(stems: Iterable[str], query: str) -> str:
    """Pick the single stem ``query`` addresses.

    Raises NoMatchingWorkError when no stem (or, in a corrupt stem list,
    more than one) qualifies.
    """
    candidates = [s for s in stems if stem_addresses(s, query)]
    if len(candidates) != 1:
        raise NoMatchingWorkError(f"No results for {query}")
    return candidates[0]


def build_work(records: Iterable[TextRecord], stem: str) -> Work:
    """Build the Work for ``stem`` from records in ingestion order.

    Records of other stems are skipped. A URN seen twice keeps its first
    position; later duplicates are dropped so sequences stay gap-free.
    """
    nodes: list[TextNode] = []
    seen: set[str] = set()
    for record in records:
        if urn_stem(record.urn) != stem or record.urn in seen:
            continue
        seen.add(record.urn)
        nodes.append(TextNode(urn=record.urn, text=record.text, sequence=len(nodes) + 1))
    return Work(work_urn=stem, nodes=tuple(nodes))
