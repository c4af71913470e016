"""Human-readable console report."""

from __future__ import annotations

import click

from dephealth.engines.report.assembler import Report

_SEVERITY_COLORS = {
    "critical": "red",
    "high": "red",
    "moderate": "yellow",
    "low": "white",
}


def _table(rows: list[list[str]]) -> list[str]:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    lines = []
    for idx, row in enumerate(rows):
        lines.append("  " + "  ".join(cell.ljust(w) for cell, w in zip(row, widths, strict=True)))
        if idx == 0:
            lines.append("  " + "  ".join("-" * w for w in widths))
    return lines


def render_text(report: Report, *, verbose: bool = False) -> str:
    """Render *report* as styled text; styles are dropped by ``click.echo`` off a TTY."""
    out: list[str] = []
    project = report.project

    out.append(click.style("Dependency Health Check Report", bold=True, fg="cyan"))
    out.append("=" * 50)
    out.append(f"Project: {project.name or 'Unknown'}")
    out.append(f"Type: {project.ecosystem} ({project.manifest_path})")
    out.append(f"Scanned: {report.timestamp.isoformat(timespec='seconds')}")
    out.append("")

    # ── summary ──
    counts = report.dependency_counts
    out.append(click.style(f"Total Dependencies: {counts['total']}", bold=True))
    out.append(f"  Production: {counts['production']}")
    out.append(f"  Development: {counts['development']}")
    out.append("")

    if report.outdated:
        out.append(click.style(f"Outdated Packages: {len(report.outdated)}", fg="yellow"))
        for distance, n in report.distance_counts.items():
            if n:
                out.append(f"  {distance.capitalize()} updates: {n}")
    else:
        out.append(click.style("All packages are up to date!", fg="green"))
    out.append("")

    if report.vulnerabilities:
        out.append(click.style(f"Security Issues: {len(report.vulnerabilities)}", fg="red"))
        for severity in ("critical", "high", "moderate", "low"):
            n = report.severity_counts[severity]
            if n:
                label = click.style(f"{severity.capitalize()}:", fg=_SEVERITY_COLORS[severity])
                out.append(f"  {label} {n}")
    else:
        out.append(click.style("No security vulnerabilities found!", fg="green"))
    out.append("")

    # ── details ──
    if report.outdated:
        out.append(click.style("OUTDATED PACKAGES", bold=True, fg="yellow"))
        rows = [["Package", "Current", "Latest", "Type", "Update", "Safe?"]]
        for c in report.outdated:
            rows.append(
                [
                    c.name,
                    c.current_version,
                    c.latest_version,
                    c.kind,
                    c.distance,
                    "yes" if c.safe else "no",
                ]
            )
        out.extend(_table(rows))
        out.append("")

    if report.vulnerabilities:
        out.append(click.style("SECURITY VULNERABILITIES", bold=True, fg="red"))
        for v in report.vulnerabilities:
            sev = click.style(v.severity.upper(), fg=_SEVERITY_COLORS[v.severity])
            ident = f" [{v.cve}]" if v.cve else ""
            out.append(f"  {sev} {v.package_name}: {v.title}{ident}")
            if verbose:
                if v.affected_range:
                    out.append(f"      affected: {v.affected_range}")
                if v.fixed_version:
                    out.append(f"      fixed in: {v.fixed_version}")
                if v.url:
                    out.append(f"      {v.url}")
        out.append("")

    if report.recommendations:
        out.append(click.style("RECOMMENDATIONS", bold=True))
        for rec in report.recommendations:
            out.append(f"  - {rec.message} ({rec.action})")

    return "\n".join(out).rstrip() + "\n"
