"""CLI entry point: dephealth.

Usage:
    dephealth                         # check the project in the current directory
    dephealth path/to/project --json  # machine-readable report
    dephealth --fix                   # apply safe (patch/minor) updates
    dephealth --ci --threshold high   # GitHub Actions annotations, fail on high+
"""

from __future__ import annotations

import asyncio
import json
import sys
import traceback
from pathlib import Path

import click

from dephealth import __version__
from dephealth.checker import DependencyChecker
from dephealth.core.logging import setup_logging
from dephealth.engines.dependency_scanner.models import ScanOptions
from dephealth.engines.fix_applicator.applicator import FixResult
from dephealth.engines.report.assembler import Report
from dephealth.engines.report.policy import EXIT_FAILURE, FailPolicy, determine_exit_code
from dephealth.engines.report.schemas import report_to_dict
from dephealth.engines.update_classifier.models import LookupFailure
from dephealth.engines.vuln_feed.models import SEVERITY_LEVELS
from dephealth.exceptions import DepHealthError
from dephealth.formatters.ci import render_ci, write_step_summary
from dephealth.formatters.text import render_text


async def _check(
    project_root: Path, options: ScanOptions
) -> tuple[Report, DependencyChecker, list[LookupFailure]]:
    async with DependencyChecker(project_root, options=options) as checker:
        report = await checker.run()
    failures = checker.last_classification.failures if checker.last_classification else []
    return report, checker, failures


def _fail(exc: BaseException, verbose: bool) -> None:
    click.echo(f"Error: {exc}", err=True)
    if verbose:
        click.echo(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True
        )
    sys.exit(EXIT_FAILURE)


def _echo_fix_result(result: FixResult, manifest: str, *, err: bool) -> None:
    if not result.applied:
        click.echo("No safe updates to apply.", err=err)
        return
    verb = "Would update" if result.dry_run else "Updated"
    click.echo(f"{verb} {result.applied_count} packages in {manifest}", err=err)
    for c in result.applied:
        click.echo(f"  {c.name}: {c.current_version} -> {c.latest_version} ({c.distance})", err=err)


@click.command()
@click.argument(
    "project_path",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("-j", "--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option("--ci", is_flag=True, help="Output GitHub Actions annotations")
@click.option("-f", "--fix", is_flag=True, help="Automatically apply safe updates")
@click.option("--dry-run", is_flag=True, help="Show what would be updated without writing")
@click.option("-i", "--ignore", default=None, help="Comma-separated list of packages to ignore")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Save the JSON report to a file",
)
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-critical output")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed information")
@click.option("--production", is_flag=True, help="Check only production dependencies")
@click.option("--dev", is_flag=True, help="Check only development dependencies")
@click.option("--fail-on-high", is_flag=True, help="Exit 1 if high/critical vulnerabilities found")
@click.option("--fail-on-outdated", is_flag=True, help="Exit 1 on any outdated package")
@click.option(
    "--threshold",
    type=click.Choice(SEVERITY_LEVELS),
    default=None,
    help="Exit 1 on any vulnerability at or above this severity",
)
@click.version_option(__version__, prog_name="dephealth")
def main(
    project_path: Path,
    as_json: bool,
    ci: bool,
    fix: bool,
    dry_run: bool,
    ignore: str | None,
    output: Path | None,
    quiet: bool,
    verbose: bool,
    production: bool,
    dev: bool,
    fail_on_high: bool,
    fail_on_outdated: bool,
    threshold: str | None,
) -> None:
    """Check the health of your project dependencies."""
    setup_logging(verbose=verbose)

    if production and dev:
        raise click.UsageError("--production and --dev are mutually exclusive")
    options = ScanOptions.from_ignore_list(
        ignore, production_only=production, development_only=dev
    )

    try:
        report, checker, failures = asyncio.run(_check(project_path, options))
    except DepHealthError as exc:
        _fail(exc, verbose)
        return

    if verbose:
        for failure in failures:
            click.echo(f"Warning: Could not check {failure.name}: {failure.error}", err=True)

    # ── render ──
    if as_json:
        click.echo(json.dumps(report_to_dict(report), indent=2))
    elif ci:
        click.echo(render_ci(report), nl=False)
        write_step_summary(report)
    else:
        click.echo(render_text(report, verbose=verbose), nl=False)

    if output is not None:
        try:
            output.write_text(
                json.dumps(report_to_dict(report), indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            _fail(exc, verbose)
            return
        if not quiet and not as_json:
            click.echo(f"\nReport saved to {output}")

    # ── fix ──
    if fix or dry_run:
        manifest = Path(report.project.manifest_path).name
        if not quiet and not as_json:
            click.echo("\nApplying safe updates..." if not dry_run else "\nDry run:")
        try:
            result = checker.apply_fixes(report.outdated, dry_run=dry_run)
        except DepHealthError as exc:
            _fail(exc, verbose)
            return
        if not quiet:
            _echo_fix_result(result, manifest, err=as_json)

    policy = FailPolicy(
        fail_on_high=fail_on_high,
        fail_on_outdated=fail_on_outdated,
        threshold=threshold,  # type: ignore[arg-type]
    )
    sys.exit(determine_exit_code(report, policy))


if __name__ == "__main__":
    main()
