"""Report assembler: pure aggregation of one scan's results."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo
from dephealth.engines.update_classifier.models import UpdateCandidate, UpdateDistance
from dephealth.engines.vuln_feed.models import SEVERITY_LEVELS, Severity, VulnerabilityFinding

DISTANCES: tuple[UpdateDistance, ...] = ("major", "minor", "patch", "unknown")

FIX_COMMAND = "dephealth --fix"


@dataclass(frozen=True)
class Recommendation:
    type: str
    priority: str
    message: str
    action: str


@dataclass
class Report:
    """Everything one scan produced, plus the counts downstream decisions use."""

    project: ProjectInfo
    dependencies: list[Dependency]
    outdated: list[UpdateCandidate]
    vulnerabilities: list[VulnerabilityFinding]
    timestamp: datetime
    outdated_by_distance: dict[UpdateDistance, list[UpdateCandidate]] = field(default_factory=dict)
    vulnerabilities_by_severity: dict[Severity, list[VulnerabilityFinding]] = field(
        default_factory=dict
    )
    recommendations: list[Recommendation] = field(default_factory=list)

    @property
    def dependency_counts(self) -> dict[str, int]:
        kinds = Counter(d.kind for d in self.dependencies)
        return {
            "total": len(self.dependencies),
            "production": kinds["production"],
            "development": kinds["development"],
        }

    @property
    def distance_counts(self) -> dict[UpdateDistance, int]:
        return {d: len(self.outdated_by_distance.get(d, [])) for d in DISTANCES}

    @property
    def severity_counts(self) -> dict[Severity, int]:
        return {s: len(self.vulnerabilities_by_severity.get(s, [])) for s in SEVERITY_LEVELS}

    @property
    def safe_updates(self) -> list[UpdateCandidate]:
        return [c for c in self.outdated if c.safe]

    @property
    def has_issues(self) -> bool:
        return bool(self.outdated or self.vulnerabilities)


def group_outdated(
    outdated: list[UpdateCandidate],
) -> dict[UpdateDistance, list[UpdateCandidate]]:
    """Group candidates by distance; every distance key is present."""
    groups: dict[UpdateDistance, list[UpdateCandidate]] = {d: [] for d in DISTANCES}
    for candidate in outdated:
        groups.setdefault(candidate.distance, []).append(candidate)
    return groups


def group_vulnerabilities(
    vulnerabilities: list[VulnerabilityFinding],
) -> dict[Severity, list[VulnerabilityFinding]]:
    """Group findings by severity; every severity key is present."""
    groups: dict[Severity, list[VulnerabilityFinding]] = {s: [] for s in SEVERITY_LEVELS}
    for finding in vulnerabilities:
        groups[finding.severity].append(finding)
    return groups


def build_recommendations(
    outdated_by_distance: dict[UpdateDistance, list[UpdateCandidate]],
    vulnerabilities_by_severity: dict[Severity, list[VulnerabilityFinding]],
) -> list[Recommendation]:
    recs: list[Recommendation] = []

    safe = len(outdated_by_distance["patch"]) + len(outdated_by_distance["minor"])
    if safe:
        recs.append(
            Recommendation(
                type="update",
                priority="medium",
                message=f"{safe} packages can be safely updated",
                action=FIX_COMMAND,
            )
        )

    major = len(outdated_by_distance["major"])
    if major:
        recs.append(
            Recommendation(
                type="review",
                priority="low",
                message=f"{major} major version updates available",
                action="Review breaking changes before updating",
            )
        )

    critical = len(vulnerabilities_by_severity["critical"])
    if critical:
        recs.append(
            Recommendation(
                type="security",
                priority="critical",
                message=f"{critical} critical vulnerabilities found",
                action="Update affected packages immediately",
            )
        )

    high = len(vulnerabilities_by_severity["high"])
    if high:
        recs.append(
            Recommendation(
                type="security",
                priority="high",
                message=f"{high} high severity vulnerabilities found",
                action="Update affected packages as soon as possible",
            )
        )

    return recs


def assemble_report(
    project: ProjectInfo,
    dependencies: list[Dependency],
    outdated: list[UpdateCandidate],
    vulnerabilities: list[VulnerabilityFinding],
    *,
    now: datetime | None = None,
) -> Report:
    by_distance = group_outdated(outdated)
    by_severity = group_vulnerabilities(vulnerabilities)
    return Report(
        project=project,
        dependencies=list(dependencies),
        outdated=list(outdated),
        vulnerabilities=list(vulnerabilities),
        timestamp=now or datetime.now(timezone.utc),
        outdated_by_distance=by_distance,
        vulnerabilities_by_severity=by_severity,
        recommendations=build_recommendations(by_distance, by_severity),
    )
