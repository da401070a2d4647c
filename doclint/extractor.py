"""Cross-reference extraction and resolution against the loaded corpus."""

from __future__ import annotations

import posixpath
import re
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_REFERENCE_RULES
from .models import RawDocument, ReferenceMention, Resolution

_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
_TOKEN_PATTERN = re.compile(r"[\w@./\-]+\.md\b")
_AT_PATTERN = re.compile(r"(?<![\w@])@[\w./\-]+\.md\b")
_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_LIST_ITEM_PATTERN = re.compile(r"^\s*[-*+]\s+")
_EXTERNAL_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_URL_PATTERN = re.compile(r"(?<![\w.])[a-zA-Z][a-zA-Z0-9+.\-]*://[^\s<>()\[\]]+")
_FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
_BOLD_RELATED_PATTERN = re.compile(r"^\s*\*\*related documents:?\*\*:?\s*$", re.IGNORECASE)

RELATED_SECTION_TITLE = "related documents"


def strip_mention_prefix(raw: str) -> str:
    """Strip a leading ``@`` or ``./`` from a matched reference."""
    target = raw.strip()
    if target.startswith("@"):
        target = target[1:]
    while target.startswith("./"):
        target = target[2:]
    return target


def normalise_target(raw: str) -> str:
    """Reduce a reported target to the corpus-relative path used for lookup."""
    target = strip_mention_prefix(raw).replace("\\", "/")
    target = target.split("#", 1)[0].split("?", 1)[0]
    return target.lstrip("/")


@dataclass(frozen=True)
class PathIndex:
    """Immutable lookup of loaded paths used for suffix-based resolution."""

    paths: frozenset
    by_name: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    @classmethod
    def build(cls, paths: Iterable[str]) -> "PathIndex":
        path_set = frozenset(paths)
        grouped: dict[str, List[str]] = defaultdict(list)
        for path in path_set:
            grouped[posixpath.basename(path)].append(path)
        by_name = {name: tuple(sorted(items)) for name, items in grouped.items()}
        return cls(paths=path_set, by_name=MappingProxyType(by_name))

    def resolve(
        self, target: str, *, source_path: Optional[str] = None
    ) -> Tuple[Resolution, Optional[str], Tuple[str, ...]]:
        """Classify ``target`` as resolved, dangling or ambiguous.

        A ``source_path`` enables resolution relative to the mentioning
        document before falling back to corpus-wide matching.
        """
        if not target:
            return Resolution.DANGLING, None, ()

        if source_path is not None:
            relative = posixpath.normpath(posixpath.join(posixpath.dirname(source_path), target))
            if relative.startswith("../") or relative == "..":
                return Resolution.DANGLING, None, ()
            if relative in self.paths:
                return Resolution.RESOLVED, relative, ()

        cleaned = posixpath.normpath(target)
        if cleaned.startswith(".."):
            return Resolution.DANGLING, None, ()
        if cleaned in self.paths:
            return Resolution.RESOLVED, cleaned, ()

        name = posixpath.basename(cleaned)
        candidates = tuple(
            path for path in self.by_name.get(name, ()) if path == cleaned or path.endswith(f"/{cleaned}")
        )
        if len(candidates) == 1:
            return Resolution.RESOLVED, candidates[0], ()
        if len(candidates) > 1:
            return Resolution.AMBIGUOUS, None, candidates
        return Resolution.DANGLING, None, ()


@dataclass(frozen=True)
class _Match:
    rule: str
    target: str
    start: int
    end: int


class ReferenceExtractor:
    """Finds reference mentions in a document body and resolves them."""

    def __init__(self, index: PathIndex, rules: Sequence[str] = DEFAULT_REFERENCE_RULES) -> None:
        self.index = index
        self.rules = tuple(rules)

    def extract(self, document: RawDocument) -> List[ReferenceMention]:
        mentions: List[ReferenceMention] = []
        for line_number, line, in_related in self._iter_lines(document):
            for match in self._match_line(line, in_related):
                relative = match.rule == "link" and not match.target.startswith("/")
                source = document.path if relative else None
                resolution, resolved, candidates = self.index.resolve(
                    normalise_target(match.target), source_path=source
                )
                mentions.append(
                    ReferenceMention(
                        source_path=document.path,
                        raw_target=strip_mention_prefix(match.target),
                        line=line_number,
                        rule=match.rule,
                        resolution=resolution,
                        resolved_path=resolved,
                        candidates=candidates,
                    )
                )
        return mentions

    def extract_all(self, documents: Sequence[RawDocument]) -> List[ReferenceMention]:
        mentions: List[ReferenceMention] = []
        for document in documents:
            mentions.extend(self.extract(document))
        return mentions

    def _iter_lines(self, document: RawDocument) -> Iterator[Tuple[int, str, bool]]:
        in_code = False
        related_level: Optional[int] = None
        for offset, line in enumerate(document.body.splitlines()):
            line_number = document.body_offset + offset
            if _FENCE_PATTERN.match(line):
                in_code = not in_code
                continue
            if in_code:
                continue

            heading = _HEADING_PATTERN.match(line)
            if heading:
                level = len(heading.group(1))
                title = " ".join(heading.group(2).strip("*_ ").rstrip(":").split()).lower()
                if title == RELATED_SECTION_TITLE:
                    related_level = level
                elif related_level is not None and level <= related_level:
                    related_level = None
                continue
            if _BOLD_RELATED_PATTERN.match(line):
                # Bold pseudo-heading; any real heading closes it.
                related_level = 7
                continue

            yield line_number, line, related_level is not None

    def _match_line(self, line: str, in_related: bool) -> List[_Match]:
        claimed: List[Tuple[int, int]] = []
        found: List[_Match] = []

        def _claim(rule: str, target: str, start: int, end: int) -> None:
            if any(start < c_end and end > c_start for c_start, c_end in claimed):
                return
            claimed.append((start, end))
            found.append(_Match(rule=rule, target=target, start=start, end=end))

        if "link" in self.rules:
            for match in _LINK_PATTERN.finditer(line):
                target = match.group(2)
                if _EXTERNAL_PATTERN.match(target) or target.startswith("#"):
                    claimed.append((match.start(), match.end()))
                    continue
                path = target.split("#", 1)[0].split("?", 1)[0]
                if path.lower().endswith(".md"):
                    _claim("link", target, match.start(), match.end())
                else:
                    claimed.append((match.start(), match.end()))

        for match in _URL_PATTERN.finditer(line):
            claimed.append((match.start(), match.end()))

        if "related" in self.rules and in_related and _LIST_ITEM_PATTERN.match(line):
            for match in _TOKEN_PATTERN.finditer(line):
                _claim("related", match.group(0), match.start(), match.end())

        if "at" in self.rules:
            for match in _AT_PATTERN.finditer(line):
                _claim("at", match.group(0), match.start(), match.end())

        if "prose" in self.rules:
            for match in _TOKEN_PATTERN.finditer(line):
                _claim("prose", match.group(0), match.start(), match.end())

        found.sort(key=lambda item: item.start)
        return found


__all__ = ["PathIndex", "ReferenceExtractor", "normalise_target", "strip_mention_prefix"]
