"""Report rendering (JSON and table) and exit status policy."""

from __future__ import annotations

import json
from typing import Dict, List, Tuple

from jinja2 import DictLoader, Environment

from .models import IntegrityReport

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2

# Always block CI.
FATAL_SECTIONS: Tuple[str, ...] = (
    "loadErrors",
    "frontmatterErrors",
    "danglingReferences",
    "ambiguousReferences",
)
# Block CI only in strict mode.
WARNING_SECTIONS: Tuple[str, ...] = (
    "frontmatterWarnings",
    "orphanDocuments",
    "taxonomyViolations",
    "staleDocuments",
)

_SECTION_LABELS: Dict[str, str] = {
    "loadErrors": "Load errors",
    "frontmatterErrors": "Frontmatter errors",
    "danglingReferences": "Dangling references",
    "ambiguousReferences": "Ambiguous references",
    "frontmatterWarnings": "Frontmatter warnings",
    "orphanDocuments": "Orphan documents",
    "taxonomyViolations": "Taxonomy violations",
    "staleDocuments": "Stale documents",
}

_TABLE_TEMPLATE = """\
doclint report: {{ stats.documents }} documents, {{ stats.edges }} resolved references
{{ rule }}
{{ "%-24s"|format("Issue") }} {{ "%-9s"|format("Severity") }} {{ "%6s"|format("Count") }}
{{ rule }}
{% for row in summary %}
{{ "%-24s"|format(row.label) }} {{ "%-9s"|format(row.severity) }} {{ "%6d"|format(row.count) }}
{% endfor %}
{{ rule }}
{% for row in summary if row.lines %}

{{ row.label }} ({{ row.severity }})
{% for line in row.lines %}
  {{ line }}
{% endfor %}
{% endfor %}

Result: {{ verdict }}
"""

_env = Environment(
    loader=DictLoader({"table.txt": _TABLE_TEMPLATE}),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


class ReportFormatter:
    """Renders an IntegrityReport and decides the process exit status."""

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict

    def to_json(self, report: IntegrityReport) -> str:
        return json.dumps(report.to_dict(), indent=2, sort_keys=True) + "\n"

    def to_table(self, report: IntegrityReport) -> str:
        payload = report.to_dict()
        summary = []
        for key in FATAL_SECTIONS + WARNING_SECTIONS:
            section = payload[key]
            summary.append(
                {
                    "label": _SECTION_LABELS[key],
                    "severity": self._severity(key),
                    "count": _count(section),
                    "lines": _describe(key, section),
                }
            )
        verdict = "FAILED" if self.exit_code(report) == EXIT_FATAL else "OK"
        template = _env.get_template("table.txt")
        return template.render(
            stats=payload["stats"], summary=summary, verdict=verdict, rule="-" * 41
        )

    def render(self, report: IntegrityReport, fmt: str = "table") -> str:
        if fmt == "json":
            return self.to_json(report)
        if fmt == "table":
            return self.to_table(report)
        raise ValueError(f"Unknown report format: {fmt}")

    def exit_code(self, report: IntegrityReport) -> int:
        payload = report.to_dict()
        blocking = FATAL_SECTIONS + WARNING_SECTIONS if self.strict else FATAL_SECTIONS
        if any(_count(payload[key]) for key in blocking):
            return EXIT_FATAL
        return EXIT_OK

    def _severity(self, key: str) -> str:
        if key in FATAL_SECTIONS or self.strict:
            return "error"
        return "warning"


def _count(section: object) -> int:
    if isinstance(section, dict):
        return sum(len(items) for items in section.values())
    if isinstance(section, list):
        return len(section)
    return 0


def _describe(key: str, section: object) -> List[str]:
    lines: List[str] = []
    if key in ("frontmatterErrors", "frontmatterWarnings") and isinstance(section, dict):
        for path, items in section.items():
            for item in items:
                lines.append(f"{path}: {item['field']}: {item['reason']}")
    elif key == "loadErrors" and isinstance(section, list):
        lines.extend(f"{item['path']}: {item['reason']}" for item in section)
    elif key == "danglingReferences" and isinstance(section, list):
        lines.extend(f"{item['sourcePath']}:{item['line']}: {item['rawTarget']}" for item in section)
    elif key == "ambiguousReferences" and isinstance(section, list):
        lines.extend(
            f"{item['sourcePath']}:{item['line']}: {item['rawTarget']} -> {', '.join(item['candidates'])}"
            for item in section
        )
    elif key == "orphanDocuments" and isinstance(section, list):
        lines.extend(section)
    elif key == "taxonomyViolations" and isinstance(section, list):
        lines.extend(
            f"{item['path']}: {item['field']} '{item['value']}' {item['reason']}" for item in section
        )
    elif key == "staleDocuments" and isinstance(section, list):
        lines.extend(
            f"{item['path']}: {item['type']} updated {item['updated']} "
            f"(threshold {item['thresholdDays']} days)"
            for item in section
        )
    return lines


__all__ = [
    "EXIT_FATAL",
    "EXIT_OK",
    "EXIT_USAGE",
    "FATAL_SECTIONS",
    "ReportFormatter",
    "WARNING_SECTIONS",
]
