"""Tests for citeserve.cex record ingestion."""
from __future__ import annotations

from pathlib import Path

import pytest

from citeserve.cex import (
    decode_source,
    extract_block,
    ingest_catalog_records,
    ingest_text_records,
    partition_results,
)
from citeserve.errors import MalformedSourceError
from citeserve.types import Err, Ok, TextRecord

FIXTURE = Path(__file__).parent / "fixtures" / "sample.cex"


def _sample() -> str:
    return decode_source(FIXTURE.read_bytes())


class TestDecode:
    def test_strips_bom(self) -> None:
        assert decode_source(b"\xef\xbb\xbf#!ctsdata\n") == "#!ctsdata\n"

    def test_invalid_utf8(self) -> None:
        with pytest.raises(MalformedSourceError, match="UTF-8"):
            decode_source(b"\xff\xfe\xfa")


class TestExtractBlock:
    def test_stops_at_next_marker(self) -> None:
        block = extract_block(_sample(), "ctsdata")
        assert "#!relations" not in block
        assert "urn#relation#target" not in block
        assert block.splitlines()[0].startswith("urn:cts:greekLit:tlg0012.tlg001.msA:1.1#")

    def test_drops_comments_and_blanks(self) -> None:
        block = extract_block(_sample(), "ctsdata")
        assert "//" not in block
        assert "" not in block.splitlines()

    def test_missing_block(self) -> None:
        with pytest.raises(MalformedSourceError, match="#!ctsdata"):
            extract_block("#!ctscatalog\nurn#a\n", "ctsdata")


class TestIngestText:
    def test_records_in_source_order(self) -> None:
        records, errors = partition_results(ingest_text_records(_sample()))
        assert errors == []
        assert len(records) == 8
        assert records[0] == TextRecord(
            urn="urn:cts:greekLit:tlg0012.tlg001.msA:1.1",
            text="Μῆνιν ἄειδε θεὰ Πηληϊάδεω Ἀχιλῆος",
        )
        assert records[-1].urn == "urn:cts:latinLit:phi0959.phi006.sample:1.2.1"

    def test_wrong_field_count_is_reported_per_line(self) -> None:
        source = "\n".join([
            "#!ctsdata",
            "urn:cts:ns:work:1#one",
            "urn:cts:ns:work:2#two#extra",
            "urn:cts:ns:work:3",
            "urn:cts:ns:work:4#four",
        ])
        results = ingest_text_records(source)
        assert [type(r) for r in results] == [Ok, Err, Err, Ok]
        records, errors = partition_results(results)
        assert [r.urn for r in records] == ["urn:cts:ns:work:1", "urn:cts:ns:work:4"]
        assert [e.line_number for e in errors] == [3, 4]
        assert errors[0].field_count == 3
        assert errors[1].field_count == 1
        assert errors[0].expected == (2,)
        assert "line 3" in errors[0].describe()

    def test_text_keeps_inner_whitespace(self) -> None:
        records, _ = partition_results(
            ingest_text_records("#!ctsdata\nurn:cts:ns:work:1#  spaced text \n")
        )
        assert records[0].text == "  spaced text "


class TestIngestCatalog:
    def test_all_rows_parsed(self) -> None:
        entries, errors = partition_results(ingest_catalog_records(_sample()))
        assert errors == []
        # header, two works, one duplicate, one non-CTS row
        assert len(entries) == 5
        iliad = entries[1]
        assert iliad.urn == "urn:cts:greekLit:tlg0012.tlg001.msA:"
        assert iliad.citation_scheme == "book/line"
        assert iliad.group_name == "Homeric epic"
        assert iliad.work_title == "Iliad"
        assert iliad.version_label == "Venetus A"
        assert iliad.exemplar_label == ""
        assert iliad.online == "true"
        assert iliad.language == "grc"

    def test_language_is_optional(self) -> None:
        source = "#!ctscatalog\nurn:cts:ns:work:#line#Group#Title#Version##true\n"
        entries, errors = partition_results(ingest_catalog_records(source))
        assert errors == []
        assert entries[0].language is None

    def test_short_row_is_malformed(self) -> None:
        source = "#!ctscatalog\nurn:cts:ns:work:#line#Group\n"
        entries, errors = partition_results(ingest_catalog_records(source))
        assert entries == []
        assert errors[0].block == "ctscatalog"
        assert errors[0].expected == (7, 8)
