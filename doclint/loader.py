"""Corpus discovery and frontmatter splitting."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import yaml

from .logging import get_logger
from .models import LoadError, RawDocument

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

_OPENING_DELIMITER = "---"
_CLOSING_DELIMITERS = {"---", "..."}

logger = get_logger("loader")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or the config excludes."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        target = rel_path
        if self.anchored or self.has_slash:
            if fnmatchcase(target, self.pattern):
                return True
            if self.directory_only and target.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in target.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    has_slash = "/" in pattern
    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash=has_slash,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def split_frontmatter(text: str) -> Tuple[Optional[str], str, int]:
    """Split ``text`` into (frontmatter block, body, first body line number).

    Returns ``None`` for the block when the text has no leading delimiter.
    Raises ValueError when the opening delimiter is never closed.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != _OPENING_DELIMITER:
        return None, text, 1

    for index in range(1, len(lines)):
        if lines[index].rstrip() in _CLOSING_DELIMITERS:
            block = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            return block, body, index + 2
    raise ValueError("opening '---' delimiter has no matching closing delimiter")


def parse_document(rel_path: str, text: str) -> Union[RawDocument, LoadError]:
    """Turn file contents into a RawDocument, or a LoadError describing why not."""
    try:
        block, body, offset = split_frontmatter(text)
    except ValueError as exc:
        return LoadError(path=rel_path, reason=str(exc), kind="malformed_frontmatter")

    if block is None:
        return RawDocument(path=rel_path, frontmatter={}, body=body, body_offset=offset)

    try:
        loaded = yaml.safe_load(block)
    except (yaml.YAMLError, ValueError) as exc:
        # Timestamps like 2023-02-30 scan as dates but fail in the constructor.
        reason = " ".join(str(exc).split())
        return LoadError(path=rel_path, reason=f"invalid YAML: {reason}", kind="invalid_yaml")

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        return LoadError(
            path=rel_path,
            reason=f"frontmatter must be a mapping, got {type(loaded).__name__}",
            kind="invalid_yaml",
        )
    frontmatter = {str(key): value for key, value in loaded.items()}
    return RawDocument(path=rel_path, frontmatter=frontmatter, body=body, body_offset=offset)


@dataclass(frozen=True)
class LoadResult:
    """Documents loaded in one run plus per-file failures.

    ``paths`` covers every discovered file, including failed ones, so that
    broken files remain valid reference targets.
    """

    documents: Tuple[RawDocument, ...]
    errors: Tuple[LoadError, ...]
    paths: Tuple[str, ...]


class DocumentLoader:
    """Walks a corpus root and loads every matching file."""

    def __init__(
        self,
        extensions: Sequence[str] = (".md",),
        exclude_paths: Sequence[str] = (),
        workers: int | None = None,
    ) -> None:
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.exclude_paths = tuple(exclude_paths)
        self.workers = workers

    def load(self, root: Union[str, Path]) -> LoadResult:
        """Return every document under ``root``; per-file failures never abort."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Documentation root not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Documentation root is not a directory: {root}")

        rules = self._load_ignore_rules(root_path)
        rel_paths = sorted(
            path.relative_to(root_path).as_posix() for path in self._iter_files(root_path, rules)
        )
        logger.debug("Discovered %d candidate files under %s", len(rel_paths), root_path)

        def _load_one(rel_path: str) -> Union[RawDocument, LoadError]:
            return self._load_file(root_path, rel_path)

        if self.workers == 1 or len(rel_paths) <= 1:
            outcomes = [_load_one(rel_path) for rel_path in rel_paths]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outcomes = list(pool.map(_load_one, rel_paths))

        documents: List[RawDocument] = []
        errors: List[LoadError] = []
        for outcome in outcomes:
            if isinstance(outcome, LoadError):
                logger.warning("Failed to load %s: %s", outcome.path, outcome.reason)
                errors.append(outcome)
            else:
                documents.append(outcome)

        return LoadResult(documents=tuple(documents), errors=tuple(errors), paths=tuple(rel_paths))

    def _load_file(self, root: Path, rel_path: str) -> Union[RawDocument, LoadError]:
        try:
            text = (root / rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return LoadError(path=rel_path, reason=f"unreadable: {exc}", kind="unreadable")
        return parse_document(rel_path, text)

    def _load_ignore_rules(self, root: Path) -> List[IgnoreRule]:
        rules = _parse_gitignore(root / ".gitignore")
        for pattern in self.exclude_paths:
            rule = _build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return rules

    def _iter_files(self, root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            filtered_dirs = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                filtered_dirs.append(name)
            dirnames[:] = filtered_dirs

            for filename in sorted(filenames):
                if Path(filename).suffix.lower() not in self.extensions:
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield current_dir / filename


__all__ = ["DocumentLoader", "LoadResult", "parse_document", "split_frontmatter"]
