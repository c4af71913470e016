"""Tests for the text and GitHub Actions renderers."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo
from dephealth.engines.report.assembler import assemble_report
from dephealth.engines.update_classifier.models import UpdateCandidate
from dephealth.engines.vuln_feed.models import VulnerabilityFinding
from dephealth.formatters.ci import markdown_summary, render_ci, write_step_summary
from dephealth.formatters.text import render_text

PROJECT = ProjectInfo(
    name="app",
    version="1.0.0",
    description="",
    ecosystem="npm",
    manifest_path="/work/app/package.json",
)

# ── helpers ──────────────────────────────────────────────────────────────


def _candidate(name, distance, latest):
    return UpdateCandidate(
        name=name,
        current_version="1.0.0",
        declared_constraint="^1.0.0",
        latest_version=latest,
        kind="production",
        distance=distance,
    )


def _report(outdated=(), vulns=()):
    deps = [
        Dependency(name=c.name, declared_constraint="^1.0.0", installed_version=None, kind=c.kind)
        for c in outdated
    ]
    return assemble_report(
        PROJECT,
        deps,
        list(outdated),
        list(vulns),
        now=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


MIXED = dict(
    outdated=[
        _candidate("express", "minor", "1.1.0"),
        _candidate("react", "major", "2.0.0"),
        _candidate("lodash", "patch", "1.0.1"),
    ],
    vulns=[
        VulnerabilityFinding(
            package_name="lodash",
            severity="critical",
            title="Prototype Pollution",
            cve="CVE-2020-8203",
            url="https://osv.dev/vulnerability/GHSA-p6mc-m468-83gw",
            affected_range="<4.17.19",
            fixed_version="4.17.19",
        ),
        VulnerabilityFinding(package_name="minimist", severity="moderate", title="Pollution"),
        VulnerabilityFinding(package_name="ms", severity="low", title="ReDoS"),
    ],
)


# ── text ─────────────────────────────────────────────────────────────────


class TestRenderText:
    def test_clean_report(self):
        text = click.unstyle(render_text(_report()))

        assert "Dependency Health Check Report" in text
        assert "Project: app" in text
        assert "All packages are up to date!" in text
        assert "No security vulnerabilities found!" in text
        assert "RECOMMENDATIONS" not in text

    def test_sections(self):
        text = click.unstyle(render_text(_report(**MIXED)))

        assert "Outdated Packages: 3" in text
        assert "Major updates: 1" in text
        assert "Security Issues: 3" in text
        assert "Critical: 1" in text
        assert "OUTDATED PACKAGES" in text
        assert "CRITICAL lodash: Prototype Pollution [CVE-2020-8203]" in text
        assert "2 packages can be safely updated (dephealth --fix)" in text

    def test_table_columns_aligned(self):
        lines = click.unstyle(render_text(_report(**MIXED))).splitlines()
        start = lines.index("OUTDATED PACKAGES") + 1
        header, rule, *rows = lines[start : start + 5]

        assert header.split() == ["Package", "Current", "Latest", "Type", "Update", "Safe?"]
        assert set(rule.strip()) <= {"-", " "}
        assert rows[0].split() == ["express", "1.0.0", "1.1.0", "production", "minor", "yes"]
        assert rows[1].split()[-1] == "no"
        assert header.index("Latest") == rows[0].index("1.1.0")

    def test_verbose_details(self):
        quiet = click.unstyle(render_text(_report(**MIXED)))
        verbose = click.unstyle(render_text(_report(**MIXED), verbose=True))

        assert "affected: <4.17.19" not in quiet
        assert "affected: <4.17.19" in verbose
        assert "fixed in: 4.17.19" in verbose
        assert "https://osv.dev/vulnerability/GHSA-p6mc-m468-83gw" in verbose

    def test_trailing_newline(self):
        assert render_text(_report()).endswith("\n")


# ── CI ───────────────────────────────────────────────────────────────────


class TestRenderCi:
    def test_annotations(self):
        lines = render_ci(_report(**MIXED)).splitlines()

        assert lines[0] == "::group::Dependency Health Check Results"
        assert "Total Dependencies: 3" in lines
        assert "::error::Found 1 CRITICAL severity vulnerabilities" in lines
        assert "::error file=package.json::lodash: Prototype Pollution" in lines
        assert "::warning::Found 1 MODERATE severity vulnerabilities" in lines
        assert "::notice::Found 1 LOW severity vulnerabilities" in lines
        assert "::warning::1 packages have major updates available" in lines
        assert "::warning file=package.json::react: 1.0.0 → 2.0.0 (major)" in lines
        assert "::notice::1 packages have minor updates available" in lines
        assert "::notice::1 packages have patch updates available" in lines
        assert lines[-1] == "::endgroup::"

    def test_clean(self):
        lines = render_ci(_report()).splitlines()
        assert not any(line.startswith(("::error", "::warning", "::notice")) for line in lines)


class TestStepSummary:
    def test_markdown(self):
        md = markdown_summary(_report(**MIXED))

        assert md.startswith("## Dependency Health Check")
        assert "| lodash | CRITICAL | Prototype Pollution |" in md
        assert "| react | 1.0.0 | 2.0.0 | major |" in md

    def test_truncated_after_ten_rows(self):
        outdated = [_candidate(f"pkg{i}", "patch", "1.0.1") for i in range(13)]
        md = markdown_summary(_report(outdated))

        assert "| pkg9 |" in md
        assert "| pkg10 |" not in md
        assert "*... and 3 more*" in md

    def test_written_inside_actions(self, tmp_path):
        target = tmp_path / "summary.md"
        env = {"GITHUB_ACTIONS": "true", "GITHUB_STEP_SUMMARY": str(target)}

        assert write_step_summary(_report(**MIXED), env) is True
        assert "### Outdated Packages" in target.read_text()

    def test_skipped_outside_actions(self, tmp_path):
        target = tmp_path / "summary.md"
        assert write_step_summary(_report(**MIXED), {"GITHUB_STEP_SUMMARY": str(target)}) is False
        assert not target.exists()

    def test_skipped_when_clean(self, tmp_path):
        target = tmp_path / "summary.md"
        env = {"GITHUB_ACTIONS": "true", "GITHUB_STEP_SUMMARY": str(target)}
        assert write_step_summary(_report(), env) is False
        assert not target.exists()
