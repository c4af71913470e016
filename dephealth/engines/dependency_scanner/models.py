"""Data models for the dependency scanner engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

DependencyKind = Literal["production", "development"]


@dataclass(frozen=True)
class Dependency:
    """A single dependency declared in a manifest file."""

    name: str
    declared_constraint: str
    installed_version: str | None
    kind: DependencyKind

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("dependency name must be non-empty")


@dataclass(frozen=True)
class ProjectInfo:
    """Identifying metadata for the scanned project."""

    name: str
    version: str
    description: str
    ecosystem: str = ""
    manifest_path: str = ""


@dataclass(frozen=True)
class ScanOptions:
    """Filters applied by ``list_dependencies``.

    ``production_only`` and ``development_only`` are mutually exclusive.
    """

    ignore: frozenset[str] = field(default_factory=frozenset)
    production_only: bool = False
    development_only: bool = False

    def __post_init__(self) -> None:
        if self.production_only and self.development_only:
            raise ValueError("production_only and development_only cannot both be set")

    @classmethod
    def from_ignore_list(cls, ignore: str | None, **kwargs: bool) -> ScanOptions:
        """Build options from a comma-separated ignore string (``"a, b"``)."""
        names = frozenset(p.strip() for p in (ignore or "").split(",") if p.strip())
        return cls(ignore=names, **kwargs)

    def includes(self, kind: DependencyKind) -> bool:
        if kind == "production":
            return not self.development_only
        return not self.production_only
