"""Core data models shared across doclint components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class RawDocument:
    """A file split into its frontmatter mapping and body text."""

    path: str
    frontmatter: Mapping[str, Any]
    body: str
    body_offset: int = 1


@dataclass(frozen=True)
class LoadError:
    """A file that could not be loaded."""

    path: str
    reason: str
    kind: str


@dataclass(frozen=True)
class FieldError:
    """A single frontmatter field problem."""

    field: str
    reason: str
    severity: str = "error"


@dataclass(frozen=True)
class ValidatedDocument:
    """Frontmatter narrowed into typed fields after successful validation."""

    path: str
    title: str
    category: str
    type: str
    tags: Tuple[str, ...]
    status: Optional[str]
    updated: date
    version: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one document: either a document or errors."""

    path: str
    document: Optional[ValidatedDocument]
    errors: Tuple[FieldError, ...] = ()
    warnings: Tuple[FieldError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.document is not None


class Resolution(str, Enum):
    """Three-way classification of a reference mention."""

    RESOLVED = "resolved"
    DANGLING = "dangling"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ReferenceMention:
    """One occurrence of a cross-reference inside a document body."""

    source_path: str
    raw_target: str
    line: int
    rule: str
    resolution: Resolution
    resolved_path: Optional[str] = None
    candidates: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReferenceGraph:
    """Immutable directed graph of document references."""

    nodes: Tuple[str, ...]
    edges: Tuple[Tuple[str, str], ...]
    unresolved: Tuple[ReferenceMention, ...] = ()
    _in_degree: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({}), repr=False, compare=False
    )

    def __post_init__(self) -> None:
        node_set = set(self.nodes)
        for source, target in self.edges:
            if source not in node_set or target not in node_set:
                raise ValueError(f"Edge {source} -> {target} references an unknown node")
        counts = Counter(target for source, target in self.edges if source != target)
        object.__setattr__(self, "_in_degree", MappingProxyType(dict(counts)))

    def in_degree(self, path: str) -> int:
        """Number of inbound edges from other documents (self-links excluded)."""
        return self._in_degree.get(path, 0)

    def inbound(self, path: str) -> Tuple[str, ...]:
        """Distinct documents referencing ``path``, sorted."""
        return tuple(sorted({source for source, target in self.edges if target == path and source != path}))

    def outbound(self, path: str) -> Tuple[str, ...]:
        return tuple(sorted({target for source, target in self.edges if source == path}))


@dataclass(frozen=True)
class DanglingReference:
    source_path: str
    raw_target: str
    line: int


@dataclass(frozen=True)
class AmbiguousReference:
    source_path: str
    raw_target: str
    line: int
    candidates: Tuple[str, ...]


@dataclass(frozen=True)
class TaxonomyViolation:
    path: str
    field: str
    value: str
    reason: str


@dataclass(frozen=True)
class StaleDocument:
    path: str
    type: str
    updated: str
    threshold_days: int


@dataclass(frozen=True)
class IntegrityReport:
    """Every problem found in one run, grouped by issue category.

    Converts to and from the camelCase JSON layout consumed by CI tooling;
    ``IntegrityReport.from_dict(report.to_dict()) == report`` holds.
    """

    load_errors: Tuple[LoadError, ...] = ()
    frontmatter_errors: Mapping[str, Tuple[FieldError, ...]] = field(default_factory=dict)
    frontmatter_warnings: Mapping[str, Tuple[FieldError, ...]] = field(default_factory=dict)
    dangling_references: Tuple[DanglingReference, ...] = ()
    ambiguous_references: Tuple[AmbiguousReference, ...] = ()
    orphan_documents: Tuple[str, ...] = ()
    taxonomy_violations: Tuple[TaxonomyViolation, ...] = ()
    stale_documents: Tuple[StaleDocument, ...] = ()
    stats: Mapping[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loadErrors": [
                {"path": err.path, "reason": err.reason, "kind": err.kind}
                for err in self.load_errors
            ],
            "frontmatterErrors": _field_errors_to_dict(self.frontmatter_errors),
            "frontmatterWarnings": _field_errors_to_dict(self.frontmatter_warnings),
            "danglingReferences": [
                {"sourcePath": ref.source_path, "rawTarget": ref.raw_target, "line": ref.line}
                for ref in self.dangling_references
            ],
            "ambiguousReferences": [
                {
                    "sourcePath": ref.source_path,
                    "rawTarget": ref.raw_target,
                    "line": ref.line,
                    "candidates": list(ref.candidates),
                }
                for ref in self.ambiguous_references
            ],
            "orphanDocuments": list(self.orphan_documents),
            "taxonomyViolations": [
                {"path": v.path, "field": v.field, "value": v.value, "reason": v.reason}
                for v in self.taxonomy_violations
            ],
            "staleDocuments": [
                {
                    "path": doc.path,
                    "type": doc.type,
                    "updated": doc.updated,
                    "thresholdDays": doc.threshold_days,
                }
                for doc in self.stale_documents
            ],
            "stats": dict(self.stats),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "IntegrityReport":
        return cls(
            load_errors=tuple(
                LoadError(path=item["path"], reason=item["reason"], kind=item["kind"])
                for item in payload.get("loadErrors", [])
            ),
            frontmatter_errors=_field_errors_from_dict(payload.get("frontmatterErrors", {})),
            frontmatter_warnings=_field_errors_from_dict(payload.get("frontmatterWarnings", {})),
            dangling_references=tuple(
                DanglingReference(
                    source_path=item["sourcePath"], raw_target=item["rawTarget"], line=item["line"]
                )
                for item in payload.get("danglingReferences", [])
            ),
            ambiguous_references=tuple(
                AmbiguousReference(
                    source_path=item["sourcePath"],
                    raw_target=item["rawTarget"],
                    line=item["line"],
                    candidates=tuple(item["candidates"]),
                )
                for item in payload.get("ambiguousReferences", [])
            ),
            orphan_documents=tuple(payload.get("orphanDocuments", [])),
            taxonomy_violations=tuple(
                TaxonomyViolation(
                    path=item["path"], field=item["field"], value=item["value"], reason=item["reason"]
                )
                for item in payload.get("taxonomyViolations", [])
            ),
            stale_documents=tuple(
                StaleDocument(
                    path=item["path"],
                    type=item["type"],
                    updated=item["updated"],
                    threshold_days=item["thresholdDays"],
                )
                for item in payload.get("staleDocuments", [])
            ),
            stats=dict(payload.get("stats", {})),
        )


def _field_errors_to_dict(
    errors: Mapping[str, Tuple[FieldError, ...]],
) -> Dict[str, List[Dict[str, str]]]:
    return {
        path: [
            {"field": err.field, "reason": err.reason, "severity": err.severity}
            for err in field_errors
        ]
        for path, field_errors in sorted(errors.items())
    }


def _field_errors_from_dict(payload: Mapping[str, Any]) -> Dict[str, Tuple[FieldError, ...]]:
    return {
        path: tuple(
            FieldError(field=item["field"], reason=item["reason"], severity=item["severity"])
            for item in items
        )
        for path, items in payload.items()
    }


__all__ = [
    "AmbiguousReference",
    "DanglingReference",
    "FieldError",
    "IntegrityReport",
    "LoadError",
    "RawDocument",
    "ReferenceGraph",
    "ReferenceMention",
    "Resolution",
    "StaleDocument",
    "TaxonomyViolation",
    "ValidatedDocument",
    "ValidationResult",
]
