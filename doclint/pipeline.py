"""Pipeline orchestration for a single doclint run."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TypeVar

from .checks import IntegrityChecker
from .config import LintConfig, load_config, resolve_config_path
from .extractor import PathIndex, ReferenceExtractor
from .graph import GraphBuilder
from .loader import DocumentLoader
from .logging import get_logger
from .models import IntegrityReport, ReferenceGraph, ReferenceMention, ValidationResult
from .validator import FrontmatterValidator, Schema

_T = TypeVar("_T")
_R = TypeVar("_R")


@dataclass(frozen=True)
class RunOutcome:
    """Everything produced by one run, for callers that need more than the report."""

    report: IntegrityReport
    graph: ReferenceGraph
    mentions: tuple[ReferenceMention, ...]
    validations: tuple[ValidationResult, ...]
    config: LintConfig


class Pipeline:
    """Coordinates loading, validation, extraction, graph building and checks."""

    def __init__(
        self,
        config: LintConfig | None = None,
        *,
        today: date | None = None,
        workers: int | None = None,
    ) -> None:
        self.config = config or LintConfig()
        self.today = today
        self.workers = workers or self.config.workers or os.cpu_count() or 1
        self.logger = get_logger("pipeline")

    @classmethod
    def from_root(
        cls,
        root: Path,
        *,
        config_path: Path | None = None,
        strict: bool = False,
        today: date | None = None,
        workers: int | None = None,
    ) -> "Pipeline":
        """Build a pipeline using ``config_path`` or the root's .doclint.yml."""
        resolved = resolve_config_path(root, config_path)
        config = load_config(resolved)
        if resolved is not None:
            get_logger("pipeline").debug("Loaded configuration from %s", resolved)
        if strict and not config.strict:
            config = replace(config, strict=True)
        return cls(config, today=today, workers=workers)

    def run(self, root: Path | str) -> RunOutcome:
        root_path = Path(root).expanduser().resolve()
        self.logger.info("Checking documentation under %s", root_path)

        loader = DocumentLoader(
            extensions=self.config.extensions,
            exclude_paths=self.config.exclude_paths,
            workers=self.workers,
        )
        loaded = loader.load(root_path)
        self.logger.debug(
            "Loaded %d documents (%d failed)", len(loaded.documents), len(loaded.errors)
        )

        validator = FrontmatterValidator(Schema.from_config(self.config))
        validations = self._fan_out(validator.validate, loaded.documents)
        for result in validations:
            for error in result.errors:
                self.logger.warning("%s: %s: %s", result.path, error.field, error.reason)

        index = PathIndex.build(loaded.paths)
        extractor = ReferenceExtractor(index, rules=self.config.reference_rules)
        mentions: List[ReferenceMention] = []
        for document_mentions in self._fan_out(extractor.extract, loaded.documents):
            mentions.extend(document_mentions)
        self.logger.debug("Extracted %d reference mentions", len(mentions))

        graph = GraphBuilder().build(loaded.paths, mentions)
        checker = IntegrityChecker(self.config, today=self.today, workers=self.workers)
        report = checker.run(graph=graph, validations=validations, load_errors=loaded.errors)

        return RunOutcome(
            report=report,
            graph=graph,
            mentions=tuple(mentions),
            validations=tuple(validations),
            config=self.config,
        )

    def _fan_out(self, func: Callable[[_T], _R], items: Sequence[_T]) -> List[_R]:
        # Results keep input order, so downstream output stays deterministic.
        if self.workers == 1 or len(items) <= 1:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(func, items))


def run_check(
    root: Path | str,
    *,
    config_path: Path | None = None,
    strict: bool = False,
    today: date | None = None,
    workers: Optional[int] = None,
) -> RunOutcome:
    """Convenience wrapper used by the CLI and tests."""
    root_path = Path(root).expanduser()
    pipeline = Pipeline.from_root(
        root_path, config_path=config_path, strict=strict, today=today, workers=workers
    )
    return pipeline.run(root_path)


__all__ = ["Pipeline", "RunOutcome", "run_check"]
