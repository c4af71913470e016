"""Dependency scanner engine: read manifests into a uniform dependency list."""

from dephealth.engines.dependency_scanner.models import Dependency, ProjectInfo, ScanOptions

__all__ = ["Dependency", "ProjectInfo", "ScanOptions"]
