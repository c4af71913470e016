"""Scanner for npm projects (package.json + node_modules + npm registry)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from dephealth.core.config import Settings
from dephealth.core.http import RegistryClient
from dephealth.engines.dependency_scanner.constraints import render_constraint
from dephealth.engines.dependency_scanner.manifest_io import read_manifest, write_manifest_atomic
from dephealth.engines.dependency_scanner.models import (
    Dependency,
    DependencyKind,
    ProjectInfo,
    ScanOptions,
)
from dephealth.engines.dependency_scanner.registry import register_scanner
from dephealth.engines.update_classifier.models import UpdateCandidate
from dephealth.engines.vuln_feed.models import VulnerabilityFinding
from dephealth.engines.vuln_feed.npm_audit import run_npm_audit
from dephealth.exceptions import ManifestReadError, RegistryError

log = structlog.get_logger("dephealth.engine")

_SECTIONS: dict[DependencyKind, str] = {
    "production": "dependencies",
    "development": "devDependencies",
}


class NpmScanner:
    ecosystem = "npm"
    manifest_file = "package.json"

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._registry = RegistryClient(
            "npm registry", client=client, timeout=settings.latest_timeout
        )

    # ── manifest ─────────────────────────────────────────────────────────

    def _load(self, project_root: Path) -> tuple[Path, dict[str, Any]]:
        path = project_root / self.manifest_file
        content = read_manifest(path)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ManifestReadError(str(path), f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ManifestReadError(str(path), "top-level value must be an object")
        return path, data

    def identify_project(self, project_root: Path) -> ProjectInfo:
        path, data = self._load(project_root)
        return ProjectInfo(
            name=data.get("name") or "unnamed-project",
            version=data.get("version") or "0.0.0",
            description=data.get("description") or "",
            ecosystem=self.ecosystem,
            manifest_path=str(path),
        )

    def list_dependencies(self, project_root: Path, options: ScanOptions) -> list[Dependency]:
        path, data = self._load(project_root)
        deps: list[Dependency] = []

        for kind, section in _SECTIONS.items():
            if not options.includes(kind):
                continue
            entries = data.get(section) or {}
            if not isinstance(entries, dict):
                raise ManifestReadError(str(path), f'"{section}" must be an object')

            for name, constraint in entries.items():
                if name in options.ignore:
                    continue
                if not isinstance(constraint, str):
                    log.debug("npm.non_string_constraint", package=name, section=section)
                    continue
                deps.append(
                    Dependency(
                        name=name,
                        declared_constraint=constraint,
                        installed_version=self._installed_version(project_root, name),
                        kind=kind,
                    )
                )

        return deps

    @staticmethod
    def _installed_version(project_root: Path, name: str) -> str | None:
        """Version from ``node_modules/<name>/package.json``; None if not installed."""
        pkg_json = project_root / "node_modules" / name / "package.json"
        try:
            data = json.loads(pkg_json.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        version = data.get("version") if isinstance(data, dict) else None
        return version if isinstance(version, str) else None

    def rewrite_manifest(self, project_root: Path, candidates: list[UpdateCandidate]) -> list[str]:
        path, data = self._load(project_root)
        rewritten: list[str] = []
        for candidate in candidates:
            entries = data.get(_SECTIONS[candidate.kind])
            if not isinstance(entries, dict):
                continue
            current = entries.get(candidate.name)
            if not isinstance(current, str) or not current:
                continue
            entries[candidate.name] = render_constraint(current, candidate.latest_version)
            rewritten.append(candidate.name)

        if rewritten:
            write_manifest_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
            log.info("npm.manifest_rewritten", path=str(path), updated=len(rewritten))
        return rewritten

    # ── registry ─────────────────────────────────────────────────────────

    def _package_url(self, name: str) -> str:
        # Scoped names keep their "@" but encode the slash: @scope%2Fname
        return f"{self._settings.npm_registry}/{quote(name, safe='@')}"

    async def resolve_latest_version(self, name: str) -> str:
        data = await self._registry.get_json(f"{self._package_url(name)}/latest", package=name)
        version = data.get("version") if isinstance(data, dict) else None
        if not isinstance(version, str) or not version:
            raise RegistryError(f"npm registry returned no version for {name}")
        return version

    async def fetch_package_metadata(self, name: str) -> dict[str, Any] | None:
        return await self._registry.get_json(
            self._package_url(name),
            package=name,
            timeout=self._settings.metadata_timeout,
            allow_missing=True,
        )

    # ── vulnerabilities ──────────────────────────────────────────────────

    async def find_vulnerabilities(
        self, project_root: Path, dependencies: list[Dependency]
    ) -> list[VulnerabilityFinding]:
        return await run_npm_audit(project_root, timeout=self._settings.audit_timeout)


register_scanner(NpmScanner)
