"""End-to-end runs of the doclint pipeline over throwaway corpora."""

from __future__ import annotations

from datetime import date

from doclint.pipeline import Pipeline, run_check
from doclint.config import LintConfig, StalenessConfig
from doclint.models import Resolution
from doclint.report import ReportFormatter
from tests._fixtures.corpus_builder import CorpusBuilder

TODAY = date(2025, 12, 1)


def _seed_security_corpus(corpus: CorpusBuilder) -> None:
    corpus.document(
        "README.md",
        """
        # Knowledge base

        ## Related Documents
        - @tools/howto-backup-recovery.md
        - @seo/ref-technical-seo.md
        """,
        category="tools",
        type="reference",
    )
    corpus.document(
        "tools/howto-backup-recovery.md",
        """
        # Backup and recovery

        ## Related Documents

        - ref-security-checklist.md - Security audit checklist
        """,
        category="tools",
    )
    corpus.document(
        "security/ref-security-checklist.md",
        "# Checklist\n",
        type="reference",
    )
    corpus.document(
        "seo/ref-technical-seo.md",
        "# Technical SEO\n",
        category="seo",
        type="reference",
    )


def test_related_document_resolves_by_unique_basename(corpus: CorpusBuilder) -> None:
    _seed_security_corpus(corpus)

    outcome = run_check(corpus.path(), today=TODAY, workers=1)

    backup_mentions = [
        m for m in outcome.mentions if m.source_path == "tools/howto-backup-recovery.md"
    ]
    assert [(m.raw_target, m.resolved_path) for m in backup_mentions] == [
        ("ref-security-checklist.md", "security/ref-security-checklist.md")
    ]
    report = outcome.report
    assert report.dangling_references == ()
    assert report.ambiguous_references == ()
    assert report.orphan_documents == ()
    assert report.frontmatter_errors == {}
    assert ReportFormatter().exit_code(report) == 0


def test_inbound_edges_and_orphans(corpus: CorpusBuilder) -> None:
    _seed_security_corpus(corpus)
    corpus.document("performance/howto-caching.md", "# Caching\n", category="performance")

    outcome = run_check(corpus.path(), today=TODAY, workers=1)

    assert outcome.graph.in_degree("security/ref-security-checklist.md") == 1
    assert outcome.report.orphan_documents == ("performance/howto-caching.md",)


def test_ambiguous_basename_is_reported_and_fatal(corpus: CorpusBuilder) -> None:
    corpus.document(
        "README.md",
        """
        ## Related Documents
        - howto-caching.md
        """,
    )
    corpus.document("performance/howto-caching.md", "# A\n", category="performance")
    corpus.document("tools/howto-caching.md", "# B\n", category="tools")

    outcome = run_check(corpus.path(), today=TODAY, workers=1)

    ambiguous = outcome.report.ambiguous_references
    assert len(ambiguous) == 1
    assert ambiguous[0].candidates == ("performance/howto-caching.md", "tools/howto-caching.md")
    assert outcome.graph.edges == ()
    assert ReportFormatter().exit_code(outcome.report) == 1


def test_qualified_path_disambiguates(corpus: CorpusBuilder) -> None:
    corpus.document(
        "README.md",
        """
        ## Related Documents
        - @tools/howto-caching.md
        - @performance/howto-caching.md
        """,
    )
    corpus.document("performance/howto-caching.md", "# A\n", category="performance")
    corpus.document("tools/howto-caching.md", "# B\n", category="tools")

    outcome = run_check(corpus.path(), today=TODAY, workers=1)

    assert all(m.resolution is Resolution.RESOLVED for m in outcome.mentions)
    assert outcome.report.ambiguous_references == ()
    assert outcome.report.orphan_documents == ()


def test_stale_reference_document(corpus: CorpusBuilder) -> None:
    corpus.document("README.md", "- @seo/ref-technical-seo.md\n")
    corpus.document(
        "seo/ref-technical-seo.md",
        "# Technical SEO\n",
        category="seo",
        type="reference",
        updated="2023-01-01",
    )
    config = LintConfig(staleness=StalenessConfig(default=365, by_type={"reference": 365}))

    outcome = Pipeline(config, today=TODAY, workers=1).run(corpus.path())

    assert [doc.path for doc in outcome.report.stale_documents] == ["seo/ref-technical-seo.md"]
    assert ReportFormatter().exit_code(outcome.report) == 0
    assert ReportFormatter(strict=True).exit_code(outcome.report) == 1


def test_broken_files_are_reported_but_remain_link_targets(corpus: CorpusBuilder) -> None:
    corpus.document(
        "README.md",
        """
        ## Related Documents
        - broken.md
        - untitled.md
        """,
    )
    corpus.write(
        {
            "seo/broken.md": "---\ntitle: Broken\n# never closed\n",
            "seo/untitled.md": "# No frontmatter at all\n",
        }
    )

    outcome = run_check(corpus.path(), today=TODAY, workers=1)
    report = outcome.report

    assert [err.path for err in report.load_errors] == ["seo/broken.md"]
    assert list(report.frontmatter_errors) == ["seo/untitled.md"]
    assert [e.field for e in report.frontmatter_errors["seo/untitled.md"]] == [
        "title",
        "category",
        "type",
        "status",
        "updated",
    ]
    assert report.dangling_references == ()
    assert "seo/broken.md" in outcome.graph.nodes
    assert outcome.graph.in_degree("seo/broken.md") == 1
    assert ReportFormatter().exit_code(report) == 1


def test_repeated_runs_produce_identical_json(corpus: CorpusBuilder) -> None:
    _seed_security_corpus(corpus)
    corpus.document("tools/howto-extra.md", "- [Missing](nowhere.md)\n", category="tools")
    formatter = ReportFormatter()

    first = formatter.to_json(run_check(corpus.path(), today=TODAY).report)
    second = formatter.to_json(run_check(corpus.path(), today=TODAY, workers=1).report)

    assert first == second


def test_root_config_file_is_picked_up(corpus: CorpusBuilder) -> None:
    corpus.write({".doclint.yml": "entryPoints: [start.md]\ntagVocabulary: [ssl]\n"})
    corpus.document("start.md", "# Start\n", tags=("ssl", "misc"))

    outcome = run_check(corpus.path(), today=TODAY, workers=1)

    assert outcome.report.orphan_documents == ()
    assert [(v.field, v.value) for v in outcome.report.taxonomy_violations] == [("tags", "misc")]
