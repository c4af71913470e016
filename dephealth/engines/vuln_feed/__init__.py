"""Vulnerability feeds: npm audit and OSV back-ends behind one finding model."""

from dephealth.engines.vuln_feed.models import (
    SEVERITY_LEVELS,
    Severity,
    VulnerabilityFinding,
    map_severity,
)

__all__ = ["SEVERITY_LEVELS", "Severity", "VulnerabilityFinding", "map_severity"]
