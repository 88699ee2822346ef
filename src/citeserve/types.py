"""Core types shared by every layer of the resolver.

Type hierarchy:
  Ok[T] / Err[E]   Strict algebraic Result type (used by the ingester)
  TextRecord       One ``urn#text`` line of a ``#!ctsdata`` block
  MalformedRecord  Typed failure for a line with the wrong field count
  TextNode         A citable node at a fixed position within a Work
  Work             Ordered, 1-indexed node sequence sharing one stem
  CatalogEntry     One ``#!ctscatalog`` line
  Catalog          Deduplicated catalog entries
  ResolvedNode     A node annotated with its absolute neighbors
  NodeResult, UrnListResult, CatalogResult   per-request outcomes

All dataclasses are frozen and use slots=True. A Work or Catalog is built
for one request and discarded afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")

# ---------------------------------------------------------------------------
# Result ADT
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success case of Result[T, E].

    Usage::

        for result in ingest_text_records(source):
            match result:
                case Ok(value=record): keep(record)
                case Err(error=bad): report(bad.line_number)
    """
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure case of Result[T, E].

    Keeps the typed reason so a caller can report every offending line
    instead of stopping at the first one.
    """
    error: E


Result: TypeAlias = Ok[T] | Err[E]

MatchMode: TypeAlias = Literal["strict", "compat"]
Status: TypeAlias = Literal["Success", "Exception"]

SUCCESS: Status = "Success"
EXCEPTION: Status = "Exception"


# ---------------------------------------------------------------------------
# Ingested records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TextRecord:
    """One citable line from a ``#!ctsdata`` block."""

    urn: str
    text: str


@dataclass(frozen=True, slots=True)
class MalformedRecord:
    """A source line whose field count does not fit its block type."""

    block: str              # "ctsdata" | "ctscatalog"
    line_number: int        # 1-based, counted from the start of the source
    field_count: int
    expected: tuple[int, ...]
    line: str

    def describe(self) -> str:
        want = " or ".join(str(n) for n in self.expected)
        return (
            f"#!{self.block} line {self.line_number}: expected {want} "
            f"fields, got {self.field_count}"
        )


# ---------------------------------------------------------------------------
# Work / nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TextNode:
    """A citable node. ``sequence`` is its 1-based position in the Work."""

    urn: str
    text: str
    sequence: int

    def __post_init__(self) -> None:
        if self.sequence < 1:
            raise ValueError(f"TextNode.sequence must be >= 1, got {self.sequence}")


@dataclass(frozen=True, slots=True)
class Work:
    """Ordered node sequence for a single work stem.

    Invariants (enforced in __post_init__):
        - every node URN starts with ``work_urn``
        - sequences are exactly 1..N in order
    """

    work_urn: str
    nodes: tuple[TextNode, ...]

    def __post_init__(self) -> None:
        for pos, node in enumerate(self.nodes, start=1):
            if node.sequence != pos:
                raise ValueError(
                    f"Work {self.work_urn}: node {node.urn} has sequence "
                    f"{node.sequence}, expected {pos}"
                )
            if node.urn != self.work_urn and not node.urn.startswith(self.work_urn + ":"):
                raise ValueError(
                    f"Work {self.work_urn}: node {node.urn} belongs to another stem"
                )

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def urns(self) -> list[str]:
        return [n.urn for n in self.nodes]

    def index_of(self, urn: str) -> int | None:
        """Zero-based index of the node whose URN equals ``urn`` exactly."""
        for i, node in enumerate(self.nodes):
            if node.urn == urn:
                return i
        return None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One ``#!ctscatalog`` line. ``language`` is the optional 8th field."""

    urn: str
    citation_scheme: str
    group_name: str
    work_title: str
    version_label: str
    exemplar_label: str
    online: str
    language: str | None = None


@dataclass(frozen=True, slots=True)
class Catalog:
    """Catalog entries, unique by ``urn``, in first-seen order."""

    entries: tuple[CatalogEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------------------------
# Resolution results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ResolvedNode:
    """A node plus the URNs of its absolute neighbors in the full Work."""

    urn: str
    text: str | None
    previous: str | None
    next: str | None
    sequence: int

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"urn": self.urn}
        if self.text is not None:
            out["text"] = self.text
        if self.previous is not None:
            out["previous"] = self.previous
        if self.next is not None:
            out["next"] = self.next
        out["sequence"] = self.sequence
        return out


@dataclass(frozen=True, slots=True)
class NodeResult:
    request_urn: str | None
    status: Status
    service: str
    message: str | None = None
    nodes: tuple[ResolvedNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out = _envelope(self.request_urn, self.status, self.service, self.message)
        out["nodes"] = [n.to_dict() for n in self.nodes]
        return out


@dataclass(frozen=True, slots=True)
class UrnListResult:
    request_urn: str | None
    status: Status
    service: str
    message: str | None = None
    urns: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out = _envelope(self.request_urn, self.status, self.service, self.message)
        out["urns"] = list(self.urns)
        return out


@dataclass(frozen=True, slots=True)
class CatalogResult:
    status: Status
    service: str
    message: str | None = None
    urns: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out = _envelope(None, self.status, self.service, self.message)
        out["urns"] = list(self.urns)
        return out


@dataclass(frozen=True, slots=True)
class VersionResult:
    """``/texts/version`` payload."""

    service: str
    version: str
    status: Status = SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "service": self.service, "version": self.version}


@dataclass(frozen=True, slots=True)
class CiteVersionResult:
    """``/cite`` payload: one version string per CITE sub-service."""

    service: str
    versions: dict[str, str] = field(default_factory=dict)
    status: Status = SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "service": self.service,
            "versions": dict(self.versions),
        }


def _envelope(
    request_urn: str | None,
    status: Status,
    service: str,
    message: str | None,
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if request_urn is not None:
        out["requestUrn"] = request_urn
    out["status"] = status
    out["service"] = service
    if message is not None:
        out["message"] = message
    return out
