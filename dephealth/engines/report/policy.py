"""Exit-code policy applied to a finished report."""

from __future__ import annotations

from dataclasses import dataclass

from dephealth.engines.report.assembler import Report
from dephealth.engines.vuln_feed.models import Severity, severity_rank

EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass(frozen=True)
class FailPolicy:
    fail_on_high: bool = False
    fail_on_outdated: bool = False
    threshold: Severity | None = None


def determine_exit_code(report: Report, policy: FailPolicy) -> int:
    """0 unless the report trips one of the configured fail conditions."""
    counts = report.severity_counts

    if policy.fail_on_high and (counts["high"] or counts["critical"]):
        return EXIT_FAILURE

    if policy.fail_on_outdated and report.outdated:
        return EXIT_FAILURE

    if policy.threshold is not None:
        floor = severity_rank(policy.threshold)
        if any(severity_rank(v.severity) >= floor for v in report.vulnerabilities):
            return EXIT_FAILURE

    return EXIT_OK
