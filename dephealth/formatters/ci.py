"""GitHub Actions output: workflow annotations and a step-summary table."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dephealth.engines.report.assembler import Report

_MAX_SUMMARY_ROWS = 10

_ANNOTATION_LEVELS = {
    "critical": "error",
    "high": "error",
    "moderate": "warning",
}


def render_ci(report: Report) -> str:
    """Render workflow commands (``::group::``, ``::error::`` ...) for *report*."""
    manifest = Path(report.project.manifest_path).name or "manifest"
    out = ["::group::Dependency Health Check Results"]
    out.append(f"Total Dependencies: {len(report.dependencies)}")
    out.append(f"Outdated Packages: {len(report.outdated)}")
    out.append(f"Security Vulnerabilities: {len(report.vulnerabilities)}")
    out.append("")

    for severity in ("critical", "high", "moderate"):
        findings = report.vulnerabilities_by_severity.get(severity, [])
        if not findings:
            continue
        level = _ANNOTATION_LEVELS[severity]
        out.append(f"::{level}::Found {len(findings)} {severity.upper()} severity vulnerabilities")
        for v in findings:
            out.append(f"::{level} file={manifest}::{v.package_name}: {v.title}")
    low = report.severity_counts["low"]
    if low:
        out.append(f"::notice::Found {low} LOW severity vulnerabilities")

    major = report.outdated_by_distance.get("major", [])
    if major:
        out.append(f"::warning::{len(major)} packages have major updates available")
        for c in major:
            out.append(
                f"::warning file={manifest}::{c.name}: "
                f"{c.current_version} → {c.latest_version} (major)"
            )
    for distance in ("minor", "patch"):
        n = report.distance_counts[distance]
        if n:
            out.append(f"::notice::{n} packages have {distance} updates available")

    out.append("::endgroup::")
    return "\n".join(out) + "\n"


def markdown_summary(report: Report) -> str:
    lines = ["## Dependency Health Check", "", "### Summary"]
    lines.append(f"- **Total Dependencies:** {len(report.dependencies)}")
    lines.append(f"- **Outdated:** {len(report.outdated)}")
    lines.append(f"- **Vulnerabilities:** {len(report.vulnerabilities)}")
    lines.append("")

    if report.vulnerabilities:
        lines += ["### Security Vulnerabilities", ""]
        lines.append("| Package | Severity | Description |")
        lines.append("|---------|----------|-------------|")
        for v in report.vulnerabilities:
            lines.append(f"| {v.package_name} | {v.severity.upper()} | {v.title or 'N/A'} |")
        lines.append("")

    if report.outdated:
        lines += ["### Outdated Packages", ""]
        lines.append("| Package | Current | Latest | Type |")
        lines.append("|---------|---------|--------|------|")
        for c in report.outdated[:_MAX_SUMMARY_ROWS]:
            lines.append(f"| {c.name} | {c.current_version} | {c.latest_version} | {c.distance} |")
        extra = len(report.outdated) - _MAX_SUMMARY_ROWS
        if extra > 0:
            lines += ["", f"*... and {extra} more*"]

    return "\n".join(lines) + "\n"


def write_step_summary(report: Report, env: Mapping[str, str] | None = None) -> bool:
    """Append the markdown summary to ``$GITHUB_STEP_SUMMARY`` inside Actions.

    Returns True when a summary was written.
    """
    env = os.environ if env is None else env
    target = env.get("GITHUB_STEP_SUMMARY")
    if not env.get("GITHUB_ACTIONS") or not target or not report.has_issues:
        return False
    with open(target, "a", encoding="utf-8") as f:
        f.write(markdown_summary(report))
    return True
