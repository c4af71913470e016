"""Scanner for pip projects (requirements.txt + PyPI + OSV)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from dephealth.core.config import Settings
from dephealth.core.http import RegistryClient
from dephealth.engines.dependency_scanner.constraints import extract_prefix
from dephealth.engines.dependency_scanner.manifest_io import read_manifest, write_manifest_atomic
from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo, ScanOptions
from dephealth.engines.dependency_scanner.registry import register_scanner
from dephealth.engines.update_classifier.models import UpdateCandidate
from dephealth.engines.vuln_feed.models import VulnerabilityFinding
from dephealth.engines.vuln_feed.osv import query_osv
from dephealth.exceptions import RegistryError

log = structlog.get_logger("dephealth.engine")

# One requirement line: name, optional extras, constraint, then an optional
# environment marker and/or trailing comment that rewrites must keep.
_REQ_LINE_RE = re.compile(
    r"^(?P<lead>\s*)"
    r"(?P<name>[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)"
    r"(?P<extras>\s*\[[^\]]*\])?"
    r"\s*"
    r"(?P<constraint>[^;#]*?)"
    r"(?P<tail>\s*(?:[;#].*)?)$"
)

ANY_VERSION = "*"

# A version specifier starts with an operator, a digit, "*" or "(", or is absent.
_SPECIFIER_START_RE = re.compile(r"^(?:$|[<>=!~^*(0-9])")


def canonicalize_name(name: str) -> str:
    """Normalize a package name per PEP 503 (``My_Pkg.x`` → ``my-pkg-x``)."""
    return re.sub(r"[-_.]+", "-", name).lower()


def _match_requirement(line: str) -> re.Match[str] | None:
    """Match a requirement line, or None for blanks, comments, options and URLs."""
    stripped = line.strip()
    if not stripped or stripped.startswith(("#", "-")):
        return None
    m = _REQ_LINE_RE.match(line)
    if m is None or not _SPECIFIER_START_RE.match(m.group("constraint")):
        return None
    return m


class PipScanner:
    ecosystem = "python"
    manifest_file = "requirements.txt"

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._pypi = RegistryClient("PyPI", client=client, timeout=settings.latest_timeout)
        self._osv = RegistryClient("OSV", client=client, timeout=settings.latest_timeout)

    # ── manifest ─────────────────────────────────────────────────────────

    def identify_project(self, project_root: Path) -> ProjectInfo:
        path = project_root / self.manifest_file
        read_manifest(path)  # unreadable manifests fail here, not later
        return ProjectInfo(
            name=project_root.resolve().name or "unnamed-project",
            version="0.0.0",
            description="Python project",
            ecosystem=self.ecosystem,
            manifest_path=str(path),
        )

    def list_dependencies(self, project_root: Path, options: ScanOptions) -> list[Dependency]:
        content = read_manifest(project_root / self.manifest_file)
        if not options.includes("production"):
            # requirements.txt only declares runtime dependencies
            return []

        ignored = {canonicalize_name(n) for n in options.ignore}
        deps: list[Dependency] = []
        seen: set[str] = set()
        for line in content.splitlines():
            m = _match_requirement(line)
            if m is None:
                continue
            name = m.group("name")
            key = canonicalize_name(name)
            if key in ignored:
                continue
            if key in seen:
                log.debug("pip.duplicate_requirement", package=name)
                continue
            seen.add(key)
            deps.append(
                Dependency(
                    name=name,
                    declared_constraint=m.group("constraint").strip() or ANY_VERSION,
                    installed_version=None,
                    kind="production",
                )
            )
        return deps

    def rewrite_manifest(self, project_root: Path, candidates: list[UpdateCandidate]) -> list[str]:
        """Rewrite only the lines naming an updated package.

        Extras, environment markers, trailing comments and line endings on
        rewritten lines are kept; every other line is left byte-identical.
        A requirement with no operator is pinned with ``==``.
        """
        path = project_root / self.manifest_file
        content = read_manifest(path)
        latest = {canonicalize_name(c.name): c.latest_version for c in candidates}

        out: list[str] = []
        rewritten: set[str] = set()
        for line in content.splitlines(keepends=True):
            body = line.rstrip("\r\n")
            ending = line[len(body):]
            m = _match_requirement(body)
            if m is None or canonicalize_name(m.group("name")) not in latest:
                out.append(line)
                continue
            key = canonicalize_name(m.group("name"))
            version = latest[key]
            prefix = extract_prefix(m.group("constraint").strip()) or "=="
            start, end = m.span("constraint")
            out.append(f"{body[:start]}{prefix}{version}{body[end:]}{ending}")
            rewritten.add(key)

        if rewritten:
            write_manifest_atomic(path, "".join(out))
            log.info("pip.manifest_rewritten", path=str(path), updated=len(rewritten))
        return [c.name for c in candidates if canonicalize_name(c.name) in rewritten]

    # ── registry ─────────────────────────────────────────────────────────

    def _json_url(self, name: str) -> str:
        return f"{self._settings.pypi_url}/{quote(name)}/json"

    async def resolve_latest_version(self, name: str) -> str:
        data = await self._pypi.get_json(self._json_url(name), package=name)
        info = data.get("info") if isinstance(data, dict) else None
        version = info.get("version") if isinstance(info, dict) else None
        if not isinstance(version, str) or not version:
            raise RegistryError(f"PyPI returned no version for {name}")
        return version

    async def fetch_package_metadata(self, name: str) -> dict[str, Any] | None:
        return await self._pypi.get_json(
            self._json_url(name),
            package=name,
            timeout=self._settings.metadata_timeout,
            allow_missing=True,
        )

    # ── vulnerabilities ──────────────────────────────────────────────────

    async def find_vulnerabilities(
        self, project_root: Path, dependencies: list[Dependency]
    ) -> list[VulnerabilityFinding]:
        return await query_osv(
            self._osv,
            self._settings.osv_url,
            "PyPI",
            dependencies,
            concurrency=self._settings.concurrency,
        )


register_scanner(PipScanner)
