"""Shared fixtures for dephealth tests (no network access required)."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from dephealth.core.config import Settings
from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo, ScanOptions
from dephealth.engines.update_classifier.models import UpdateCandidate
from dephealth.engines.vuln_feed.models import VulnerabilityFinding
from dephealth.exceptions import PackageNotFoundError, RegistryError


@pytest.fixture
def settings() -> Settings:
    return Settings(
        npm_registry="https://registry.test",
        pypi_url="https://pypi.test/pypi",
        osv_url="https://osv.test",
        concurrency=4,
    )


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` whose requests are answered by *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def npm_registry() -> Callable[[dict[str, str]], Callable[[httpx.Request], httpx.Response]]:
    """Handler for a fake npm registry answering ``/<name>/latest`` from *latest*."""

    def _make(latest: dict[str, str]) -> Callable[[httpx.Request], httpx.Response]:
        def handler(request: httpx.Request) -> httpx.Response:
            name = request.url.path.removeprefix("/").removesuffix("/latest")
            if name in latest:
                return httpx.Response(200, json={"name": name, "version": latest[name]})
            return httpx.Response(404, json={"error": "Not found"})

        return handler

    return _make


@pytest.fixture
def write_package_json(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    def _write(data: dict[str, Any]) -> Path:
        path = tmp_path / "package.json"
        path.write_text(json.dumps(data, indent=2) + "\n")
        return path

    return _write


class FakeScanner:
    """In-memory scanner: canned latest versions, injectable failures."""

    ecosystem = "fake"
    manifest_file = "fake.json"

    def __init__(
        self,
        latest: dict[str, str] | None = None,
        *,
        missing: set[str] | None = None,
        broken: set[str] | None = None,
        dependencies: list[Dependency] | None = None,
        findings: list[VulnerabilityFinding] | None = None,
        unmatched: set[str] | None = None,
    ) -> None:
        self.latest = latest or {}
        self.missing = missing or set()
        self.broken = broken or set()
        self.dependencies = dependencies or []
        self.findings = findings or []
        self.unmatched = unmatched or set()
        self.lookups: list[str] = []
        self.rewrites: list[list[UpdateCandidate]] = []

    def identify_project(self, project_root: Path) -> ProjectInfo:
        return ProjectInfo(
            name="fake-project",
            version="1.0.0",
            description="",
            ecosystem=self.ecosystem,
            manifest_path=str(project_root / self.manifest_file),
        )

    def list_dependencies(self, project_root: Path, options: ScanOptions) -> list[Dependency]:
        return [
            d
            for d in self.dependencies
            if d.name not in options.ignore and options.includes(d.kind)
        ]

    async def resolve_latest_version(self, name: str) -> str:
        self.lookups.append(name)
        if name in self.missing:
            raise PackageNotFoundError(name, "fake registry")
        if name in self.broken:
            raise RegistryError(f"fake registry timed out for {name}")
        return self.latest[name]

    async def fetch_package_metadata(self, name: str) -> dict[str, Any] | None:
        return None if name in self.missing else {"name": name}

    async def find_vulnerabilities(
        self, project_root: Path, dependencies: list[Dependency]
    ) -> list[VulnerabilityFinding]:
        return list(self.findings)

    def rewrite_manifest(
        self, project_root: Path, candidates: list[UpdateCandidate]
    ) -> list[str]:
        self.rewrites.append(list(candidates))
        return [c.name for c in candidates if c.name not in self.unmatched]


@pytest.fixture
def fake_scanner_cls() -> type[FakeScanner]:
    return FakeScanner
