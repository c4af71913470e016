"""OSV (https://osv.dev) vulnerability feed."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from dephealth.core.http import RegistryClient
from dephealth.engines.dependency_scanner.constraints import extract_operator, strip_operators
from dephealth.engines.dependency_scanner.models import Dependency
from dephealth.engines.vuln_feed.models import VulnerabilityFinding, map_severity

log = structlog.get_logger("dephealth.engine")

OSV_VULN_URL = "https://osv.dev/vulnerability/{id}"


def pinned_version(dep: Dependency) -> str | None:
    """Concrete version to query OSV with, or None if the dependency is unpinned."""
    if dep.installed_version:
        return dep.installed_version
    constraint = dep.declared_constraint.strip()
    if extract_operator(constraint) not in ("==", ""):
        return None
    version = strip_operators(constraint)
    if not version or not version[0].isdigit() or "," in version:
        return None
    return version


async def query_osv(
    client: RegistryClient,
    osv_url: str,
    ecosystem: str,
    dependencies: list[Dependency],
    *,
    concurrency: int = 8,
    timeout: float | None = None,
) -> list[VulnerabilityFinding]:
    """Query OSV for every pinned dependency with bounded concurrency.

    Lookups are best-effort: a failed query yields no findings for that
    dependency and never aborts the batch. Unpinned dependencies are not
    queried, since OSV would return every advisory ever filed for them.
    """
    sem = asyncio.Semaphore(concurrency)

    async def _one(dep: Dependency, version: str) -> list[VulnerabilityFinding]:
        payload = {"package": {"name": dep.name, "ecosystem": ecosystem}, "version": version}
        async with sem:
            data = await client.post_json(
                f"{osv_url}/v1/query", payload, package=dep.name, timeout=timeout
            )
        return parse_osv_response(dep.name, data)

    queries = [(dep, v) for dep in dependencies if (v := pinned_version(dep)) is not None]
    results = await asyncio.gather(*(_one(d, v) for d, v in queries), return_exceptions=True)

    findings: list[VulnerabilityFinding] = []
    for (dep, _), result in zip(queries, results, strict=True):
        if isinstance(result, BaseException):
            log.debug("osv.lookup_failed", package=dep.name, error=str(result))
            continue
        findings.extend(result)
    return findings


def parse_osv_response(package_name: str, data: Any) -> list[VulnerabilityFinding]:
    """Convert an OSV ``/v1/query`` response into findings."""
    if not isinstance(data, dict):
        return []
    findings: list[VulnerabilityFinding] = []
    for vuln in data.get("vulns") or []:
        if not isinstance(vuln, dict):
            continue
        vuln_id = vuln.get("id") or ""
        introduced, fixed = _first_range(vuln)
        findings.append(
            VulnerabilityFinding(
                package_name=package_name,
                severity=map_severity((vuln.get("database_specific") or {}).get("severity")),
                title=vuln.get("summary") or _first_line(vuln.get("details")) or vuln_id,
                cve=_cve_of(vuln),
                url=OSV_VULN_URL.format(id=vuln_id) if vuln_id else None,
                affected_range=_format_range(introduced, fixed),
                fixed_version=fixed,
                fix_available=fixed is not None,
            )
        )
    return findings


def _cve_of(vuln: dict[str, Any]) -> str | None:
    for ident in [vuln.get("id"), *(vuln.get("aliases") or [])]:
        if isinstance(ident, str) and ident.startswith("CVE-"):
            return ident
    return None


def _first_range(vuln: dict[str, Any]) -> tuple[str | None, str | None]:
    """(introduced, fixed) from the first ECOSYSTEM range carrying events."""
    for affected in vuln.get("affected") or []:
        for rng in affected.get("ranges") or []:
            introduced = fixed = None
            for event in rng.get("events") or []:
                introduced = introduced or event.get("introduced")
                fixed = fixed or event.get("fixed")
            if introduced or fixed:
                return introduced, fixed
    return None, None


def _format_range(introduced: str | None, fixed: str | None) -> str | None:
    parts = []
    if introduced and introduced != "0":
        parts.append(f">={introduced}")
    if fixed:
        parts.append(f"<{fixed}")
    return ",".join(parts) or None


def _first_line(text: str | None) -> str:
    return text.strip().split("\n", 1)[0] if text else ""
