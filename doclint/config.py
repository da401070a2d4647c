"""Configuration loading for doclint (.doclint.yml or JSON)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .logging import get_logger

CONFIG_FILENAME = ".doclint.yml"

DEFAULT_REQUIRED_FIELDS = ("title", "category", "type", "status", "updated")
DEFAULT_CATEGORIES = ("security", "seo", "performance", "tools", "webdesign", "testing")
DEFAULT_TYPES = ("howto", "reference", "concept", "tutorial", "explanation")
DEFAULT_STATUSES = ("stable", "draft", "deprecated")
DEFAULT_ENTRY_POINTS = ("README.md", "index.md", "_index.md")
DEFAULT_REFERENCE_RULES = ("link", "related", "at")
KNOWN_REFERENCE_RULES = ("link", "related", "at", "prose")

_KNOWN_KEYS = {
    "requiredFields",
    "categoryEnum",
    "typeEnum",
    "statusEnum",
    "tagVocabulary",
    "stalenessThresholds",
    "entryPoints",
    "extensions",
    "excludePaths",
    "referenceRules",
    "strict",
    "workers",
}

logger = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class StalenessConfig:
    """Freshness thresholds in days, keyed by document type."""

    default: int = 365
    by_type: Dict[str, int] = field(
        default_factory=lambda: {"reference": 365, "howto": 180}
    )

    def threshold_for(self, doc_type: str) -> int:
        """Return the threshold for ``doc_type``, falling back to the default."""
        return self.by_type.get(doc_type, self.default)


@dataclass(frozen=True)
class LintConfig:
    """Represents the settings defined in .doclint.yml."""

    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    category_enum: tuple[str, ...] = DEFAULT_CATEGORIES
    type_enum: tuple[str, ...] = DEFAULT_TYPES
    status_enum: tuple[str, ...] = DEFAULT_STATUSES
    tag_vocabulary: tuple[str, ...] = ()
    staleness: StalenessConfig = field(default_factory=StalenessConfig)
    entry_points: tuple[str, ...] = DEFAULT_ENTRY_POINTS
    extensions: tuple[str, ...] = (".md",)
    exclude_paths: tuple[str, ...] = ()
    reference_rules: tuple[str, ...] = DEFAULT_REFERENCE_RULES
    strict: bool = False
    workers: Optional[int] = None
    source: Optional[Path] = None


def resolve_config_path(root: Path, explicit: Path | None) -> Path | None:
    """Return the configuration file to load, or None when defaults apply."""
    if explicit is not None:
        path = explicit.expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path.resolve()
    candidate = root / CONFIG_FILENAME
    if candidate.is_file():
        return candidate.resolve()
    return None


def load_config(config_path: Path | None) -> LintConfig:
    """Load configuration from disk; ``None`` yields the defaults."""
    if config_path is None:
        return LintConfig()

    data = _read_config(config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a mapping at the root")

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))

    defaults = LintConfig()
    required = _as_str_list(data.get("requiredFields"), "requiredFields")
    categories = _as_str_list(data.get("categoryEnum"), "categoryEnum")
    types = _as_str_list(data.get("typeEnum"), "typeEnum")
    statuses = _as_str_list(data.get("statusEnum"), "statusEnum")
    entry_points = _as_str_list(data.get("entryPoints"), "entryPoints")
    extensions = _as_str_list(data.get("extensions"), "extensions")
    rules = _as_str_list(data.get("referenceRules"), "referenceRules")

    unknown_rules = sorted(set(rules or ()) - set(KNOWN_REFERENCE_RULES))
    if unknown_rules:
        raise ConfigError(f"Unknown referenceRules: {', '.join(unknown_rules)}")

    return LintConfig(
        required_fields=required if required is not None else defaults.required_fields,
        category_enum=categories if categories is not None else defaults.category_enum,
        type_enum=types if types is not None else defaults.type_enum,
        status_enum=statuses if statuses is not None else defaults.status_enum,
        tag_vocabulary=_as_str_list(data.get("tagVocabulary"), "tagVocabulary") or (),
        staleness=_parse_staleness(data.get("stalenessThresholds")),
        entry_points=entry_points if entry_points is not None else defaults.entry_points,
        extensions=tuple(_normalise_extension(ext) for ext in extensions)
        if extensions
        else defaults.extensions,
        exclude_paths=_as_str_list(data.get("excludePaths"), "excludePaths") or (),
        reference_rules=rules if rules is not None else defaults.reference_rules,
        strict=_as_bool(data.get("strict"), "strict"),
        workers=_as_positive_int(data.get("workers"), "workers"),
        source=config_path,
    )


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}

    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _parse_staleness(value: Any) -> StalenessConfig:
    if value is None:
        return StalenessConfig()
    if not isinstance(value, dict):
        raise ConfigError("stalenessThresholds must be a mapping of type to days")

    default = StalenessConfig().default
    by_type: Dict[str, int] = {}
    for key, raw in value.items():
        days = _as_positive_int(raw, f"stalenessThresholds.{key}")
        if days is None:
            continue
        if key == "default":
            default = days
        else:
            by_type[str(key)] = days
    return StalenessConfig(default=default, by_type=by_type)


def _normalise_extension(value: str) -> str:
    value = value.strip().lower()
    return value if value.startswith(".") else f".{value}"


def _as_str_list(value: Any, key: str) -> Optional[tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence):
        result: List[str] = []
        for item in value:
            if not isinstance(item, (str, int, float)) or isinstance(item, bool):
                raise ConfigError(f"{key} must be a list of strings")
            result.append(str(item))
        return tuple(result)
    raise ConfigError(f"{key} must be a list of strings")


def _as_bool(value: Any, key: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"{key} must be a boolean")


def _as_positive_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a positive integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value)
        except ValueError as exc:
            raise ConfigError(f"{key} must be a positive integer") from exc
    else:
        raise ConfigError(f"{key} must be a positive integer")
    if number <= 0:
        raise ConfigError(f"{key} must be a positive integer")
    return number


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "LintConfig",
    "StalenessConfig",
    "load_config",
    "resolve_config_path",
]
