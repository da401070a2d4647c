"""Integrity checks run over validated documents and the reference graph."""

from __future__ import annotations

import posixpath
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, timedelta
from fnmatch import fnmatchcase
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from .config import LintConfig
from .logging import get_logger
from .models import (
    AmbiguousReference,
    DanglingReference,
    FieldError,
    IntegrityReport,
    LoadError,
    ReferenceGraph,
    Resolution,
    StaleDocument,
    TaxonomyViolation,
    ValidatedDocument,
    ValidationResult,
)

logger = get_logger("checks")


@dataclass(frozen=True)
class CheckContext:
    """Immutable inputs shared by every check in a run."""

    documents: Tuple[ValidatedDocument, ...]
    graph: ReferenceGraph
    config: LintConfig
    today: date


class Check(Protocol):
    """Protocol implemented by integrity checks."""

    name: str

    def run(self, context: CheckContext) -> Tuple[Any, ...]:
        """Return the report section owned by this check."""


class DanglingReferenceCheck:
    """Mentions that resolve to no loaded document, reported verbatim."""

    name = "dangling_references"

    def run(self, context: CheckContext) -> Tuple[DanglingReference, ...]:
        found = [
            DanglingReference(
                source_path=mention.source_path, raw_target=mention.raw_target, line=mention.line
            )
            for mention in context.graph.unresolved
            if mention.resolution is Resolution.DANGLING
        ]
        return tuple(sorted(found, key=lambda ref: (ref.source_path, ref.line, ref.raw_target)))


class AmbiguousReferenceCheck:
    """Mentions matching more than one document by suffix."""

    name = "ambiguous_references"

    def run(self, context: CheckContext) -> Tuple[AmbiguousReference, ...]:
        found = [
            AmbiguousReference(
                source_path=mention.source_path,
                raw_target=mention.raw_target,
                line=mention.line,
                candidates=tuple(sorted(mention.candidates)),
            )
            for mention in context.graph.unresolved
            if mention.resolution is Resolution.AMBIGUOUS
        ]
        return tuple(sorted(found, key=lambda ref: (ref.source_path, ref.line, ref.raw_target)))


class OrphanCheck:
    """Documents no other document references, minus the entry points."""

    name = "orphan_documents"

    def run(self, context: CheckContext) -> Tuple[str, ...]:
        patterns = context.config.entry_points
        return tuple(
            path
            for path in context.graph.nodes
            if context.graph.in_degree(path) == 0 and not is_entry_point(path, patterns)
        )


class TaxonomyCheck:
    """Category, type and tags outside the controlled vocabulary."""

    name = "taxonomy_violations"

    def run(self, context: CheckContext) -> Tuple[TaxonomyViolation, ...]:
        config = context.config
        vocabulary = set(config.tag_vocabulary)
        violations: List[TaxonomyViolation] = []
        for doc in sorted(context.documents, key=lambda item: item.path):
            if config.category_enum and doc.category not in config.category_enum:
                violations.append(
                    TaxonomyViolation(
                        path=doc.path,
                        field="category",
                        value=doc.category,
                        reason=f"not one of: {', '.join(config.category_enum)}",
                    )
                )
            if config.type_enum and doc.type not in config.type_enum:
                violations.append(
                    TaxonomyViolation(
                        path=doc.path,
                        field="type",
                        value=doc.type,
                        reason=f"not one of: {', '.join(config.type_enum)}",
                    )
                )
            if vocabulary:
                for tag in doc.tags:
                    if tag not in vocabulary:
                        violations.append(
                            TaxonomyViolation(
                                path=doc.path,
                                field="tags",
                                value=tag,
                                reason="not in the tag vocabulary",
                            )
                        )
        return tuple(violations)


class StalenessCheck:
    """Documents whose ``updated`` date is older than their type allows."""

    name = "stale_documents"

    def run(self, context: CheckContext) -> Tuple[StaleDocument, ...]:
        staleness = context.config.staleness
        stale: List[StaleDocument] = []
        for doc in sorted(context.documents, key=lambda item: item.path):
            threshold = staleness.threshold_for(doc.type)
            if doc.updated < context.today - timedelta(days=threshold):
                stale.append(
                    StaleDocument(
                        path=doc.path,
                        type=doc.type,
                        updated=doc.updated.isoformat(),
                        threshold_days=threshold,
                    )
                )
        return tuple(stale)


DEFAULT_CHECKS: Tuple[Check, ...] = (
    DanglingReferenceCheck(),
    AmbiguousReferenceCheck(),
    OrphanCheck(),
    TaxonomyCheck(),
    StalenessCheck(),
)


def is_entry_point(path: str, patterns: Sequence[str]) -> bool:
    """Return True when ``path`` matches an entry point pattern.

    Patterns without a slash match the file name in any directory.
    """
    name = posixpath.basename(path)
    for pattern in patterns:
        target = path if "/" in pattern else name
        if fnmatchcase(target, pattern.lstrip("/")):
            return True
    return False


class IntegrityChecker:
    """Runs the independent checks and folds everything into one report."""

    def __init__(
        self,
        config: LintConfig,
        *,
        today: date | None = None,
        checks: Sequence[Check] | None = None,
        workers: int | None = None,
    ) -> None:
        self.config = config
        self.today = today or date.today()
        self.checks = tuple(checks) if checks is not None else DEFAULT_CHECKS
        self.workers = workers

    def run(
        self,
        *,
        graph: ReferenceGraph,
        validations: Sequence[ValidationResult],
        load_errors: Sequence[LoadError] = (),
    ) -> IntegrityReport:
        documents = tuple(result.document for result in validations if result.document is not None)
        context = CheckContext(documents=documents, graph=graph, config=self.config, today=self.today)

        if self.workers == 1:
            outcomes = [check.run(context) for check in self.checks]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outcomes = list(pool.map(lambda check: check.run(context), self.checks))
        sections: Dict[str, Tuple[Any, ...]] = {
            check.name: outcome for check, outcome in zip(self.checks, outcomes)
        }
        for name, outcome in sections.items():
            logger.debug("Check %s reported %d issue(s)", name, len(outcome))

        errors: Dict[str, Tuple[FieldError, ...]] = {}
        warnings: Dict[str, Tuple[FieldError, ...]] = {}
        for result in sorted(validations, key=lambda item: item.path):
            if result.errors:
                errors[result.path] = result.errors
            if result.warnings:
                warnings[result.path] = result.warnings

        stats = {
            "documents": len(graph.nodes),
            "validDocuments": len(documents),
            "mentions": len(graph.edges) + len(graph.unresolved),
            "edges": len(graph.edges),
        }

        return IntegrityReport(
            load_errors=tuple(sorted(load_errors, key=lambda err: err.path)),
            frontmatter_errors=errors,
            frontmatter_warnings=warnings,
            dangling_references=sections.get("dangling_references", ()),
            ambiguous_references=sections.get("ambiguous_references", ()),
            orphan_documents=sections.get("orphan_documents", ()),
            taxonomy_violations=sections.get("taxonomy_violations", ()),
            stale_documents=sections.get("stale_documents", ()),
            stats=stats,
        )


__all__ = [
    "AmbiguousReferenceCheck",
    "Check",
    "CheckContext",
    "DanglingReferenceCheck",
    "IntegrityChecker",
    "OrphanCheck",
    "StalenessCheck",
    "TaxonomyCheck",
    "is_entry_point",
]
