"""Tests for the pip (requirements.txt) scanner."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from dephealth.engines.dependency_scanner.models import Dependency, ScanOptions
from dephealth.engines.dependency_scanner.scanners.pip_requirements import (
    PipScanner,
    canonicalize_name,
)
from dephealth.engines.update_classifier.models import UpdateCandidate
from dephealth.exceptions import ManifestReadError, PackageNotFoundError, RegistryError

# ── helpers ──────────────────────────────────────────────────────────────

REQUIREMENTS = """\
# runtime deps
--index-url https://pypi.org/simple
-r base.txt

requests==2.31.0
Flask>=2.0.0  # web
django[argon2]==4.2.0; python_version >= "3.8"
numpy
git+https://github.com/org/repo.git#egg=repo
mypkg @ https://example.com/mypkg-1.0.tar.gz
"""


def _candidate(name, current, latest, constraint=None, distance="minor"):
    return UpdateCandidate(
        name=name,
        current_version=current,
        declared_constraint=constraint or f"=={current}",
        latest_version=latest,
        kind="production",
        distance=distance,
    )


def _write(tmp_path, text):
    path = tmp_path / "requirements.txt"
    path.write_bytes(text.encode())
    return path


def _scanner(settings, client=None):
    return PipScanner(settings, client or httpx.AsyncClient())


# ── canonicalize_name ────────────────────────────────────────────────────


class TestCanonicalizeName:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("requests", "requests"),
            ("Flask", "flask"),
            ("zope.interface", "zope-interface"),
            ("My_Pkg", "my-pkg"),
            ("a--b__c..d", "a-b-c-d"),
        ],
    )
    def test_pep503(self, name, expected):
        assert canonicalize_name(name) == expected


# ── manifest ─────────────────────────────────────────────────────────────


class TestIdentifyProject:
    def test_uses_directory_name(self, tmp_path, settings):
        project = tmp_path / "my-service"
        project.mkdir()
        _write(project, "requests==2.31.0\n")
        info = _scanner(settings).identify_project(project)

        assert info.name == "my-service"
        assert info.version == "0.0.0"
        assert info.description == "Python project"
        assert info.ecosystem == "python"
        assert info.manifest_path == str(project / "requirements.txt")

    def test_unreadable(self, tmp_path, settings):
        (tmp_path / "requirements.txt").write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(ManifestReadError):
            _scanner(settings).identify_project(tmp_path)


class TestListDependencies:
    def test_parses_requirements(self, tmp_path, settings):
        _write(tmp_path, REQUIREMENTS)
        deps = _scanner(settings).list_dependencies(tmp_path, ScanOptions())

        assert [(d.name, d.declared_constraint) for d in deps] == [
            ("requests", "==2.31.0"),
            ("Flask", ">=2.0.0"),
            ("django", "==4.2.0"),
            ("numpy", "*"),
        ]
        assert all(d.kind == "production" for d in deps)
        assert all(d.installed_version is None for d in deps)

    def test_dev_only_is_empty(self, tmp_path, settings):
        _write(tmp_path, REQUIREMENTS)
        scanner = _scanner(settings)
        assert scanner.list_dependencies(tmp_path, ScanOptions(development_only=True)) == []

    def test_ignore(self, tmp_path, settings):
        _write(tmp_path, REQUIREMENTS)
        options = ScanOptions.from_ignore_list("requests,numpy")
        deps = _scanner(settings).list_dependencies(tmp_path, options)
        assert [d.name for d in deps] == ["Flask", "django"]

    def test_ignore_matches_canonical_names(self, tmp_path, settings):
        _write(tmp_path, REQUIREMENTS + "Zope.Interface==6.0.0\n")
        options = ScanOptions.from_ignore_list("Django,flask,zope_interface")
        deps = _scanner(settings).list_dependencies(tmp_path, options)
        assert [d.name for d in deps] == ["requests", "numpy"]

    def test_duplicates_collapsed(self, tmp_path, settings):
        _write(tmp_path, "My_Pkg==1.0.0\nmy-pkg==2.0.0\n")
        deps = _scanner(settings).list_dependencies(tmp_path, ScanOptions())
        assert [(d.name, d.declared_constraint) for d in deps] == [("My_Pkg", "==1.0.0")]

    def test_crlf(self, tmp_path, settings):
        _write(tmp_path, "requests==2.31.0\r\nflask==2.0.0\r\n")
        deps = _scanner(settings).list_dependencies(tmp_path, ScanOptions())
        assert [d.declared_constraint for d in deps] == ["==2.31.0", "==2.0.0"]

    def test_empty_file(self, tmp_path, settings):
        _write(tmp_path, "")
        assert _scanner(settings).list_dependencies(tmp_path, ScanOptions()) == []


class TestRewriteManifest:
    def test_only_matching_lines_change(self, tmp_path, settings):
        path = _write(tmp_path, REQUIREMENTS)
        updated = _scanner(settings).rewrite_manifest(
            tmp_path, [_candidate("requests", "2.31.0", "2.32.3")]
        )

        assert updated == ["requests"]
        assert path.read_text() == REQUIREMENTS.replace("requests==2.31.0", "requests==2.32.3")

    def test_keeps_extras_markers_and_comments(self, tmp_path, settings):
        path = _write(tmp_path, REQUIREMENTS)
        _scanner(settings).rewrite_manifest(
            tmp_path,
            [
                _candidate("Flask", "2.0.0", "2.3.3", constraint=">=2.0.0"),
                _candidate("django", "4.2.0", "4.2.16", distance="patch"),
            ],
        )
        lines = path.read_text().splitlines()

        assert "Flask>=2.3.3  # web" in lines
        assert 'django[argon2]==4.2.16; python_version >= "3.8"' in lines

    def test_bare_name_pinned(self, tmp_path, settings):
        path = _write(tmp_path, "numpy\n")
        _scanner(settings).rewrite_manifest(
            tmp_path, [_candidate("numpy", "1.26.0", "1.26.4", constraint="*")]
        )
        assert path.read_text() == "numpy==1.26.4\n"

    def test_name_match_is_canonical(self, tmp_path, settings):
        path = _write(tmp_path, "Zope.Interface==6.0.0\n")
        _scanner(settings).rewrite_manifest(
            tmp_path, [_candidate("zope-interface", "6.0.0", "6.4.0")]
        )
        assert path.read_text() == "Zope.Interface==6.4.0\n"

    def test_crlf_preserved(self, tmp_path, settings):
        path = _write(tmp_path, "requests==2.31.0\r\nflask==2.0.0\r\n")
        _scanner(settings).rewrite_manifest(tmp_path, [_candidate("flask", "2.0.0", "2.0.3")])
        assert path.read_bytes() == b"requests==2.31.0\r\nflask==2.0.3\r\n"

    def test_no_trailing_newline(self, tmp_path, settings):
        path = _write(tmp_path, "requests==2.31.0")
        _scanner(settings).rewrite_manifest(
            tmp_path, [_candidate("requests", "2.31.0", "2.32.3")]
        )
        assert path.read_bytes() == b"requests==2.32.3"

    def test_no_match_does_not_write(self, tmp_path, settings):
        path = _write(tmp_path, "requests==2.31.0\n")
        mtime = path.stat().st_mtime_ns
        updated = _scanner(settings).rewrite_manifest(
            tmp_path, [_candidate("flask", "2.0.0", "2.0.3")]
        )
        assert updated == []
        assert path.stat().st_mtime_ns == mtime


# ── registry ─────────────────────────────────────────────────────────────


class TestRegistryLookups:
    @pytest.mark.asyncio
    async def test_latest_version(self, settings, mock_client):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"info": {"name": "requests", "version": "2.32.3"}})

        async with mock_client(handler) as client:
            version = await _scanner(settings, client).resolve_latest_version("requests")

        assert version == "2.32.3"
        assert seen == ["https://pypi.test/pypi/requests/json"]

    @pytest.mark.asyncio
    async def test_not_found(self, settings, mock_client):
        async with mock_client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(PackageNotFoundError, match="PyPI"):
                await _scanner(settings, client).resolve_latest_version("nope")

    @pytest.mark.asyncio
    async def test_missing_info(self, settings, mock_client):
        async with mock_client(lambda r: httpx.Response(200, json={})) as client:
            with pytest.raises(RegistryError, match="no version"):
                await _scanner(settings, client).resolve_latest_version("x")

    @pytest.mark.asyncio
    async def test_metadata_missing(self, settings, mock_client):
        async with mock_client(lambda r: httpx.Response(404)) as client:
            assert await _scanner(settings, client).fetch_package_metadata("nope") is None


# ── vulnerabilities ──────────────────────────────────────────────────────


class TestFindVulnerabilities:
    @pytest.mark.asyncio
    async def test_queries_osv_for_pypi(self, tmp_path, settings):
        deps = [Dependency("requests", "==2.31.0", None, "production")]
        with patch(
            "dephealth.engines.dependency_scanner.scanners.pip_requirements.query_osv",
            new=AsyncMock(return_value=[]),
        ) as osv:
            await _scanner(settings).find_vulnerabilities(tmp_path, deps)

        args, kwargs = osv.await_args
        assert args[1:] == ("https://osv.test", "PyPI", deps)
        assert kwargs == {"concurrency": settings.concurrency}
