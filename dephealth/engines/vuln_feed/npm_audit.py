"""``npm audit --json`` runner and report parser."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import structlog

from dephealth.engines.vuln_feed.models import VulnerabilityFinding, map_severity

log = structlog.get_logger("dephealth.engine")

_AUDIT_CMD = ["npm", "audit", "--json"]


async def run_npm_audit(project_root: Path, *, timeout: float = 60.0) -> list[VulnerabilityFinding]:
    """Run ``npm audit --json`` in *project_root* and parse its report.

    npm exits non-zero whenever it finds vulnerabilities, so the exit code
    is ignored and stdout is parsed regardless. Any failure (npm missing,
    timeout, unparsable output) yields an empty list.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *_AUDIT_CMD,
            cwd=str(project_root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        log.debug("npm.audit_unavailable", error=str(exc))
        return []

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        log.warning("npm.audit_timeout", timeout=timeout)
        return []

    try:
        data = json.loads(stdout.decode("utf-8", errors="replace"))
    except json.JSONDecodeError:
        log.debug("npm.audit_bad_json", returncode=proc.returncode)
        return []
    return parse_audit_report(data)


def parse_audit_report(data: Any) -> list[VulnerabilityFinding]:
    """Flatten an npm audit (v7+) report into findings.

    One finding is produced per advisory object in each package's ``via``
    list; string entries in ``via`` only point at other vulnerable
    packages and are skipped.
    """
    if not isinstance(data, dict):
        return []
    vulnerabilities = data.get("vulnerabilities")
    if not isinstance(vulnerabilities, dict):
        return []

    findings: list[VulnerabilityFinding] = []
    for package_name, info in vulnerabilities.items():
        if not isinstance(info, dict):
            continue
        via = info.get("via")
        if not isinstance(via, list):
            continue
        fix_available = info.get("fixAvailable")
        for advisory in via:
            if not isinstance(advisory, dict) or not advisory.get("title"):
                continue
            findings.append(
                VulnerabilityFinding(
                    package_name=package_name,
                    severity=map_severity(info.get("severity") or advisory.get("severity")),
                    title=advisory["title"],
                    url=advisory.get("url"),
                    affected_range=info.get("range") or advisory.get("range"),
                    fix_available=bool(fix_available) if fix_available is not None else None,
                )
            )
    return findings
