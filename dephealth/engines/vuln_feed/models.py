"""Data models for vulnerability findings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Severity = Literal["low", "moderate", "high", "critical"]

# Ascending order; index comparisons implement "at or above threshold".
SEVERITY_LEVELS: tuple[Severity, ...] = ("low", "moderate", "high", "critical")

_SEVERITY_MAP: dict[str, Severity] = {
    "critical": "critical",
    "high": "high",
    "medium": "moderate",
    "moderate": "moderate",
    "low": "low",
}


def map_severity(label: str | None) -> Severity:
    """Map an upstream severity label onto the four-level taxonomy.

    Matching is case-insensitive; unknown or missing labels map to
    ``"moderate"`` so that no finding is ever dropped.
    """
    if not label:
        return "moderate"
    return _SEVERITY_MAP.get(label.strip().lower(), "moderate")


def severity_rank(severity: Severity) -> int:
    return SEVERITY_LEVELS.index(severity)


@dataclass(frozen=True)
class VulnerabilityFinding:
    """One known security issue affecting a declared package."""

    package_name: str
    severity: Severity
    title: str
    cve: str | None = None
    url: str | None = None
    affected_range: str | None = None
    fixed_version: str | None = None
    fix_available: bool | None = None
