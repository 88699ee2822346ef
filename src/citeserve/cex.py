"""Record ingester for CEX (CITE Exchange) sources.

A CEX source is plain text split into blocks by ``#!<name>`` marker lines.
Two blocks are read here:

    #!ctsdata      urn#text
    #!ctscatalog   urn#citationScheme#groupName#workTitle#versionLabel#
                   exemplarLabel#online[#lang]

Lines starting with ``//`` are comments. Blank lines are ignored. Every
remaining line becomes an ``Ok`` record or an ``Err(MalformedRecord)``;
callers decide whether a malformed line sinks the whole request.
"""
from __future__ import annotations

from typing import TypeVar

from citeserve.errors import MalformedSourceError
from citeserve.types import CatalogEntry, Err, MalformedRecord, Ok, Result, TextRecord

T = TypeVar("T")

BLOCK_PREFIX = "#!"
CTSDATA = "ctsdata"
CTSCATALOG = "ctscatalog"
FIELD_SEPARATOR = "#"
COMMENT_PREFIX = "//"

_TEXT_FIELDS = (2,)
_CATALOG_FIELDS = (7, 8)


def decode_source(raw: bytes) -> str:
    """Decode CEX bytes as UTF-8, tolerating a byte-order mark."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedSourceError(f"Source is not valid UTF-8: {exc}") from exc


def _block_lines(source: str, block: str) -> list[tuple[int, str]]:
    """Return ``(line_number, line)`` pairs inside ``#!<block>``.

    The block runs from the marker line to the next line starting with
    ``#!`` (or end of source). Line numbers are 1-based over the source.
    """
    marker = BLOCK_PREFIX + block
    lines = source.splitlines()
    start: int | None = None
    for i, line in enumerate(lines):
        if line.strip() == marker:
            start = i + 1
            break
    if start is None:
        raise MalformedSourceError(f"Source has no {marker} block")

    out: list[tuple[int, str]] = []
    for i in range(start, len(lines)):
        line = lines[i]
        if line.startswith(BLOCK_PREFIX):
            break
        out.append((i + 1, line))
    return out


def extract_block(source: str, block: str) -> str:
    """Raw text of ``#!<block>`` with comment and blank lines removed."""
    return "\n".join(line for _, line in _content_lines(source, block))


def _content_lines(source: str, block: str) -> list[tuple[int, str]]:
    return [
        (n, line)
        for n, line in _block_lines(source, block)
        if line.strip() and not line.lstrip().startswith(COMMENT_PREFIX)
    ]


def _split_fields(
    block: str,
    line_number: int,
    line: str,
    expected: tuple[int, ...],
) -> Result[list[str], MalformedRecord]:
    fields = line.split(FIELD_SEPARATOR)
    if len(fields) not in expected:
        return Err(MalformedRecord(
            block=block,
            line_number=line_number,
            field_count=len(fields),
            expected=expected,
            line=line,
        ))
    return Ok(fields)


def ingest_text_records(source: str) -> list[Result[TextRecord, MalformedRecord]]:
    """Parse the ``#!ctsdata`` block into ordered text records."""
    results: list[Result[TextRecord, MalformedRecord]] = []
    for n, line in _content_lines(source, CTSDATA):
        match _split_fields(CTSDATA, n, line, _TEXT_FIELDS):
            case Ok(value=fields):
                results.append(Ok(TextRecord(urn=fields[0].strip(), text=fields[1])))
            case Err() as err:
                results.append(err)
    return results


def ingest_catalog_records(source: str) -> list[Result[CatalogEntry, MalformedRecord]]:
    """Parse the ``#!ctscatalog`` block into catalog entries.

    A header row comes through as an entry whose ``urn`` is literally
    ``urn``; the catalog index drops it with the other invalid URNs.
    """
    results: list[Result[CatalogEntry, MalformedRecord]] = []
    for n, line in _content_lines(source, CTSCATALOG):
        match _split_fields(CTSCATALOG, n, line, _CATALOG_FIELDS):
            case Ok(value=fields):
                results.append(Ok(CatalogEntry(
                    urn=fields[0].strip(),
                    citation_scheme=fields[1],
                    group_name=fields[2],
                    work_title=fields[3],
                    version_label=fields[4],
                    exemplar_label=fields[5],
                    online=fields[6],
                    language=fields[7] if len(fields) > 7 else None,
                )))
            case Err() as err:
                results.append(err)
    return results


def partition_results(
    results: list[Result[T, MalformedRecord]],
) -> tuple[list[T], list[MalformedRecord]]:
    """Split results into (values, errors), each in source order."""
    values: list[T] = []
    errors: list[MalformedRecord] = []
    for result in results:
        match result:
            case Ok(value=v):
                values.append(v)
            case Err(error=e):
                errors.append(e)
    return values, errors
