"""Semantic-version parsing and update-distance rules."""

from __future__ import annotations

import semver

from dephealth.engines.dependency_scanner.constraints import strip_operators
from dephealth.engines.dependency_scanner.models import Dependency
from dephealth.engines.update_classifier.models import UpdateDistance


def parse_semver(version: str | None) -> semver.Version | None:
    """Parse ``major.minor.patch[-prerelease][+build]``; None if not valid SemVer."""
    if not version:
        return None
    try:
        return semver.Version.parse(version.strip())
    except (ValueError, TypeError):
        return None


def current_version_of(dep: Dependency) -> str | None:
    """The concrete version a dependency is on right now.

    Prefers the locally installed version; otherwise the declared
    constraint with its operator stripped, provided that is valid SemVer
    (``"^4.17.1"`` → ``"4.17.1"``, ``">=2.1,<3.0"`` → None).
    """
    if dep.installed_version:
        return dep.installed_version
    cleaned = strip_operators(dep.declared_constraint)
    return cleaned if parse_semver(cleaned) is not None else None


def classify_distance(current: str, latest: str) -> UpdateDistance:
    """Semantic distance from *current* to *latest*.

    A *latest* that is not newer than *current* is ``"none"``. Otherwise
    components are compared in major, minor, patch priority; anything
    that does not parse as SemVer is ``"unknown"``.
    """
    cur = parse_semver(current)
    new = parse_semver(latest)
    if cur is None or new is None:
        return "unknown"
    if new.compare(cur) <= 0:
        return "none"
    if new.major > cur.major:
        return "major"
    if new.minor > cur.minor:
        return "minor"
    if new.patch > cur.patch:
        return "patch"
    return "none"
