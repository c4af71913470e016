"""Machine-readable report schemas (``--json`` / ``--output``)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dephealth.engines.report.assembler import Report


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    version: str
    description: str
    type: str = Field(validation_alias="ecosystem")
    file: str = Field(validation_alias="manifest_path")


class SummaryOut(BaseModel):
    total: int
    production: int
    development: int
    outdated: int
    vulnerabilities: int


class DependencyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    version: str = Field(validation_alias="declared_constraint")
    installed: str | None = Field(validation_alias="installed_version")
    type: str = Field(validation_alias="kind")


class OutdatedOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    name: str
    current: str = Field(validation_alias="current_version")
    wanted: str = Field(validation_alias="declared_constraint")
    latest: str = Field(validation_alias="latest_version")
    type: str = Field(validation_alias="kind")
    update_type: str = Field(validation_alias="distance", serialization_alias="updateType")
    safe: bool
    breaking: bool


class VulnerabilityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    package: str = Field(validation_alias="package_name")
    severity: str
    title: str
    cve: str | None = None
    url: str | None = None
    range: str | None = Field(default=None, validation_alias="affected_range")
    fixed_in: str | None = Field(
        default=None, validation_alias="fixed_version", serialization_alias="fixedIn"
    )
    fix_available: bool | None = Field(
        default=None, validation_alias="fix_available", serialization_alias="fixAvailable"
    )


class RecommendationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    priority: str
    message: str
    action: str


class ReportOut(BaseModel):
    project: ProjectOut
    timestamp: datetime
    summary: SummaryOut
    dependencies: list[DependencyOut]
    outdated: list[OutdatedOut]
    vulnerabilities: list[VulnerabilityOut]
    recommendations: list[RecommendationOut]

    @classmethod
    def from_report(cls, report: Report) -> ReportOut:
        counts = report.dependency_counts
        return cls(
            project=ProjectOut.model_validate(report.project),
            timestamp=report.timestamp,
            summary=SummaryOut(
                total=counts["total"],
                production=counts["production"],
                development=counts["development"],
                outdated=len(report.outdated),
                vulnerabilities=len(report.vulnerabilities),
            ),
            dependencies=[DependencyOut.model_validate(d) for d in report.dependencies],
            outdated=[OutdatedOut.model_validate(c) for c in report.outdated],
            vulnerabilities=[VulnerabilityOut.model_validate(v) for v in report.vulnerabilities],
            recommendations=[RecommendationOut.model_validate(r) for r in report.recommendations],
        )


def report_to_dict(report: Report) -> dict[str, Any]:
    """JSON-ready dict using the camelCase keys renderers and CI consume."""
    return ReportOut.from_report(report).model_dump(mode="json", by_alias=True)
