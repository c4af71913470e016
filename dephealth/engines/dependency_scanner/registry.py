"""Scanner registry: the per-ecosystem interface and manifest detection."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx

from dephealth.core.config import Settings
from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo, ScanOptions
from dephealth.engines.update_classifier.models import UpdateCandidate
from dephealth.engines.vuln_feed.models import VulnerabilityFinding
from dephealth.exceptions import ProjectTypeUndetected


@runtime_checkable
class ManifestScanner(Protocol):
    """Interface that every ecosystem scanner must satisfy."""

    ecosystem: str
    manifest_file: str

    def identify_project(self, project_root: Path) -> ProjectInfo: ...

    def list_dependencies(self, project_root: Path, options: ScanOptions) -> list[Dependency]: ...

    async def resolve_latest_version(self, name: str) -> str: ...

    async def fetch_package_metadata(self, name: str) -> dict[str, Any] | None: ...

    async def find_vulnerabilities(
        self, project_root: Path, dependencies: list[Dependency]
    ) -> list[VulnerabilityFinding]: ...

    def rewrite_manifest(
        self, project_root: Path, candidates: list[UpdateCandidate]
    ) -> list[str]: ...


class ScannerFactory(Protocol):
    ecosystem: str
    manifest_file: str

    def __call__(self, settings: Settings, client: httpx.AsyncClient) -> ManifestScanner: ...


# Insertion order is detection priority.
SCANNER_REGISTRY: dict[str, ScannerFactory] = {}


def register_scanner(factory: ScannerFactory) -> None:
    """Register a scanner class by its ecosystem name."""
    SCANNER_REGISTRY[factory.ecosystem] = factory


def detect_scanner(project_root: Path) -> ScannerFactory:
    """Return the first registered scanner whose manifest exists in *project_root*.

    Raises :class:`ProjectTypeUndetected` when no manifest matches.
    """
    for factory in SCANNER_REGISTRY.values():
        if (project_root / factory.manifest_file).is_file():
            return factory
    raise ProjectTypeUndetected(
        str(project_root), [f.manifest_file for f in SCANNER_REGISTRY.values()]
    )
