"""DependencyChecker: detect → scan → classify → audit → report → fix."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import structlog

# Ensure scanners are registered before any detection runs.
import dephealth.engines.dependency_scanner.scanners  # noqa: F401
from dephealth.core.config import Settings, load_settings
from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo, ScanOptions
from dephealth.engines.dependency_scanner.registry import ManifestScanner, detect_scanner
from dephealth.engines.fix_applicator.applicator import FixResult, apply_fixes
from dephealth.engines.report.assembler import Report, assemble_report
from dephealth.engines.update_classifier.classifier import classify
from dephealth.engines.update_classifier.models import ClassificationResult, UpdateCandidate
from dephealth.engines.vuln_feed.models import VulnerabilityFinding

log = structlog.get_logger("dephealth.engine")


class DependencyChecker:
    """One dependency health check against an explicit project root.

    The manifest is read during :meth:`scan_dependencies` and written at
    most once, by :meth:`apply_fixes`.
    """

    def __init__(
        self,
        project_root: Path | str,
        *,
        options: ScanOptions | None = None,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.options = options or ScanOptions()
        self.settings = settings or load_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=self.settings.latest_timeout,
            follow_redirects=True,
        )
        self._scanner: ManifestScanner | None = None
        self.project: ProjectInfo | None = None
        self.last_classification: ClassificationResult | None = None

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> DependencyChecker:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── pipeline steps ────────────────────────────────────────────────────

    @property
    def scanner(self) -> ManifestScanner:
        if self._scanner is None:
            raise RuntimeError("Project type not detected. Call detect() first.")
        return self._scanner

    def detect(self) -> ProjectInfo:
        """Pick the scanner for this project and read its identifying metadata.

        Raises :class:`ProjectTypeUndetected` or :class:`ManifestReadError`.
        """
        factory = detect_scanner(self.project_root)
        self._scanner = factory(self.settings, self._client)
        self.project = self._scanner.identify_project(self.project_root)
        log.debug(
            "checker.detected",
            ecosystem=self.project.ecosystem,
            manifest=self.project.manifest_path,
        )
        return self.project

    def scan_dependencies(self) -> list[Dependency]:
        return self.scanner.list_dependencies(self.project_root, self.options)

    async def check_outdated(self, dependencies: list[Dependency]) -> list[UpdateCandidate]:
        result = await classify(
            dependencies, self.scanner, concurrency=self.settings.concurrency
        )
        self.last_classification = result
        return result.candidates

    async def check_vulnerabilities(
        self, dependencies: list[Dependency]
    ) -> list[VulnerabilityFinding]:
        """Best-effort vulnerability lookup; a failing feed yields no findings."""
        try:
            return await self.scanner.find_vulnerabilities(self.project_root, dependencies)
        except Exception:
            log.warning("checker.vulnerability_feed_failed", exc_info=True)
            return []

    async def run(self) -> Report:
        """Run the read-only part of the pipeline and assemble the report."""
        project = self.detect()
        dependencies = self.scan_dependencies()
        outdated, vulnerabilities = await asyncio.gather(
            self.check_outdated(dependencies),
            self.check_vulnerabilities(dependencies),
        )
        return assemble_report(project, dependencies, outdated, vulnerabilities)

    def apply_fixes(self, outdated: list[UpdateCandidate], *, dry_run: bool = False) -> FixResult:
        return apply_fixes(outdated, self.scanner, self.project_root, dry_run=dry_run)
