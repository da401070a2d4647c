"""doclint - integrity and cross-reference checks for Markdown documentation."""

from doclint.checks import IntegrityChecker
from doclint.config import ConfigError, LintConfig, load_config
from doclint.extractor import PathIndex, ReferenceExtractor
from doclint.graph import GraphBuilder
from doclint.loader import DocumentLoader
from doclint.models import IntegrityReport, ReferenceGraph, ReferenceMention
from doclint.pipeline import Pipeline, run_check
from doclint.report import ReportFormatter
from doclint.validator import FrontmatterValidator, Schema

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DocumentLoader",
    "FrontmatterValidator",
    "GraphBuilder",
    "IntegrityChecker",
    "IntegrityReport",
    "LintConfig",
    "PathIndex",
    "Pipeline",
    "ReferenceExtractor",
    "ReferenceGraph",
    "ReferenceMention",
    "ReportFormatter",
    "Schema",
    "load_config",
    "run_check",
]
