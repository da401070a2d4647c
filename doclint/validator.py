"""Frontmatter schema validation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_REQUIRED_FIELDS, DEFAULT_STATUSES, LintConfig
from .models import FieldError, RawDocument, ValidatedDocument, ValidationResult

# Declared field order; errors are always reported in this order.
FIELD_ORDER: Tuple[str, ...] = ("title", "category", "type", "status", "updated", "version", "tags")

_VERSION_PATTERN = re.compile(
    r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Schema:
    """Which frontmatter fields are required and which statuses are allowed."""

    required_fields: Tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    status_enum: Tuple[str, ...] = DEFAULT_STATUSES

    @classmethod
    def from_config(cls, config: LintConfig) -> "Schema":
        return cls(required_fields=tuple(config.required_fields), status_enum=tuple(config.status_enum))

    def is_required(self, name: str) -> bool:
        # Staleness checks depend on `updated`, so it cannot be made optional.
        return name == "updated" or name in self.required_fields

    def ordered_fields(self) -> List[str]:
        extra = [name for name in self.required_fields if name not in FIELD_ORDER]
        return list(FIELD_ORDER) + extra


class FrontmatterValidator:
    """Narrows raw frontmatter into a ValidatedDocument or field-level errors."""

    def __init__(self, schema: Schema | None = None) -> None:
        self.schema = schema or Schema()

    def validate(self, document: RawDocument) -> ValidationResult:
        frontmatter = document.frontmatter
        errors: List[FieldError] = []
        warnings: List[FieldError] = []
        values: Dict[str, Any] = {}

        for name in self.schema.ordered_fields():
            raw = frontmatter.get(name, MISSING)
            if raw is MISSING or raw is None:
                if self.schema.is_required(name):
                    errors.append(FieldError(field=name, reason="required field is missing"))
                values[name] = None
                continue

            value, problem = self._check_field(name, raw)
            if problem is None:
                values[name] = value
            elif problem.severity == "warning":
                warnings.append(problem)
                values[name] = value
            else:
                errors.append(problem)
                values[name] = None

        if errors:
            return ValidationResult(
                path=document.path, document=None, errors=tuple(errors), warnings=tuple(warnings)
            )

        extra = {key: value for key, value in frontmatter.items() if key not in FIELD_ORDER}
        validated = ValidatedDocument(
            path=document.path,
            title=values["title"] or "",
            category=values["category"] or "",
            type=values["type"] or "",
            tags=values["tags"] or (),
            status=values["status"],
            updated=values["updated"],
            version=values["version"],
            extra=MappingProxyType(extra),
        )
        return ValidationResult(path=document.path, document=validated, warnings=tuple(warnings))

    def validate_all(self, documents: Sequence[RawDocument]) -> List[ValidationResult]:
        return [self.validate(document) for document in documents]

    def _check_field(self, name: str, raw: Any) -> Tuple[Any, Optional[FieldError]]:
        if name in ("title", "category", "type"):
            return _check_text(name, raw)
        if name == "status":
            text, problem = _check_text(name, raw)
            if problem is not None:
                return None, problem
            if self.schema.status_enum and text not in self.schema.status_enum:
                allowed = ", ".join(self.schema.status_enum)
                return None, FieldError(field=name, reason=f"'{text}' is not one of: {allowed}")
            return text, None
        if name == "updated":
            return _check_date(name, raw)
        if name == "version":
            return _check_version(name, raw)
        if name == "tags":
            return _check_tags(name, raw)
        # Custom required fields only need to be present and non-empty.
        if isinstance(raw, (str, list, dict)) and not raw:
            return None, FieldError(field=name, reason="must not be empty")
        return raw, None


def _check_text(name: str, raw: Any) -> Tuple[Optional[str], Optional[FieldError]]:
    if not isinstance(raw, str):
        return None, FieldError(field=name, reason=f"expected a string, got {_type_name(raw)}")
    text = raw.strip()
    if not text:
        return None, FieldError(field=name, reason="must not be empty")
    return text, None


def _check_date(name: str, raw: Any) -> Tuple[Optional[date], Optional[FieldError]]:
    if isinstance(raw, datetime):
        return raw.date(), None
    if isinstance(raw, date):
        return raw, None
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw.strip()), None
        except ValueError:
            pass
    return None, FieldError(field=name, reason=f"expected an ISO date (YYYY-MM-DD), got {raw!r}")


def _check_version(name: str, raw: Any) -> Tuple[Optional[str], Optional[FieldError]]:
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        return None, FieldError(field=name, reason=f"expected a version string, got {_type_name(raw)}")
    text = str(raw).strip()
    if not _VERSION_PATTERN.match(text):
        return text, FieldError(
            field=name,
            reason=f"'{text}' does not follow MAJOR.MINOR.PATCH",
            severity="warning",
        )
    return text, None


def _check_tags(name: str, raw: Any) -> Tuple[Optional[Tuple[str, ...]], Optional[FieldError]]:
    if isinstance(raw, str):
        return (raw,), None
    if not isinstance(raw, list):
        return None, FieldError(field=name, reason=f"expected a list of strings, got {_type_name(raw)}")
    bad = [item for item in raw if not isinstance(item, str)]
    if bad:
        return None, FieldError(field=name, reason=f"expected a list of strings, found {bad[0]!r}")
    return tuple(raw), None


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "mapping"
    if isinstance(value, (date, datetime)):
        return "date"
    return type(value).__name__


__all__ = ["FIELD_ORDER", "FrontmatterValidator", "Schema"]
