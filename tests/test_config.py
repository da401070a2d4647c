"""Tests for doclint.config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from doclint.config import (
    DEFAULT_CATEGORIES,
    ConfigError,
    LintConfig,
    StalenessConfig,
    load_config,
    resolve_config_path,
)


def test_load_config_returns_defaults_when_missing() -> None:
    config = load_config(None)

    assert isinstance(config, LintConfig)
    assert config.required_fields == ("title", "category", "type", "status", "updated")
    assert config.category_enum == DEFAULT_CATEGORIES
    assert config.type_enum == ("howto", "reference", "concept", "tutorial", "explanation")
    assert config.tag_vocabulary == ()
    assert config.entry_points == ("README.md", "index.md", "_index.md")
    assert config.extensions == (".md",)
    assert config.strict is False
    assert config.staleness.threshold_for("reference") == 365
    assert config.staleness.threshold_for("howto") == 180


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".doclint.yml"
    config_file.write_text(
        """
requiredFields: [title, category, type, updated]
categoryEnum:
  - security
  - seo
typeEnum: [howto, reference]
tagVocabulary: [ssl, backup]
stalenessThresholds:
  reference: 400
  howto: 90
  default: 30
entryPoints:
  - README.md
  - guides/start.md
excludePaths:
  - drafts/
extensions: [md, markdown]
referenceRules: [link, related]
strict: true
workers: 2
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.required_fields == ("title", "category", "type", "updated")
    assert config.category_enum == ("security", "seo")
    assert config.type_enum == ("howto", "reference")
    assert config.tag_vocabulary == ("ssl", "backup")
    assert config.staleness == StalenessConfig(default=30, by_type={"reference": 400, "howto": 90})
    assert config.staleness.threshold_for("concept") == 30
    assert config.entry_points == ("README.md", "guides/start.md")
    assert config.exclude_paths == ("drafts/",)
    assert config.extensions == (".md", ".markdown")
    assert config.reference_rules == ("link", "related")
    assert config.strict is True
    assert config.workers == 2
    assert config.source == config_file


def test_load_config_reads_json(tmp_path: Path) -> None:
    config_file = tmp_path / "doclint.json"
    config_file.write_text(
        json.dumps({"categoryEnum": ["tools"], "stalenessThresholds": {"default": 10}}),
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.category_enum == ("tools",)
    assert config.staleness.default == 10
    assert config.staleness.by_type == {}


def test_load_config_rejects_malformed_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / ".doclint.yml"
    config_file.write_text("categoryEnum: [security\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    config_file = tmp_path / ".doclint.yml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(config_file)


@pytest.mark.parametrize(
    "content",
    [
        "stalenessThresholds: 12\n",
        "stalenessThresholds:\n  howto: -3\n",
        "workers: zero\n",
        "strict: maybe\n",
        "referenceRules: [links]\n",
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, content: str) -> None:
    config_file = tmp_path / ".doclint.yml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_resolve_config_path_prefers_explicit_then_root(tmp_path: Path) -> None:
    assert resolve_config_path(tmp_path, None) is None

    default_file = tmp_path / ".doclint.yml"
    default_file.write_text("strict: false\n", encoding="utf-8")
    assert resolve_config_path(tmp_path, None) == default_file.resolve()

    explicit = tmp_path / "other.yml"
    explicit.write_text("strict: true\n", encoding="utf-8")
    assert resolve_config_path(tmp_path, explicit) == explicit.resolve()


def test_resolve_config_path_rejects_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        resolve_config_path(tmp_path, tmp_path / "missing.yml")
