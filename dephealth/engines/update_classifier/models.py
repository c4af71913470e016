"""Data models for the update classifier engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from dephealth.engines.dependency_scanner.models import DependencyKind

UpdateDistance = Literal["none", "patch", "minor", "major", "unknown"]

SAFE_DISTANCES: frozenset[str] = frozenset({"patch", "minor"})


@dataclass(frozen=True)
class UpdateCandidate:
    """The classifier's verdict for one outdated dependency.

    ``safe`` and ``breaking`` are derived from ``distance`` so they can
    never contradict it or each other.
    """

    name: str
    current_version: str
    declared_constraint: str
    latest_version: str
    kind: DependencyKind
    distance: UpdateDistance

    @property
    def safe(self) -> bool:
        return self.distance in SAFE_DISTANCES

    @property
    def breaking(self) -> bool:
        return self.distance == "major"


@dataclass(frozen=True)
class LookupFailure:
    """A per-dependency lookup that failed and was isolated from the batch."""

    name: str
    error_type: str
    error: str


@dataclass
class ClassificationResult:
    """Output of one classification pass."""

    candidates: list[UpdateCandidate] = field(default_factory=list)
    failures: list[LookupFailure] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # no usable current version
