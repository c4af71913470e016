"""Fix applicator: write safe updates back to the manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from dephealth.engines.update_classifier.models import UpdateCandidate

if TYPE_CHECKING:
    from dephealth.engines.dependency_scanner.registry import ManifestScanner

log = structlog.get_logger("dephealth.engine")


@dataclass
class FixResult:
    """Outcome of one fix pass; ``applied`` is empty when nothing was safe."""

    applied: list[UpdateCandidate] = field(default_factory=list)
    skipped: list[UpdateCandidate] = field(default_factory=list)
    dry_run: bool = False

    @property
    def applied_count(self) -> int:
        return len(self.applied)


def select_safe(outdated: list[UpdateCandidate]) -> list[UpdateCandidate]:
    """Candidates eligible for auto-apply: patch or minor, never major/unknown."""
    return [c for c in outdated if c.safe and not c.breaking]


def apply_fixes(
    outdated: list[UpdateCandidate],
    scanner: ManifestScanner,
    project_root: Path,
    *,
    dry_run: bool = False,
) -> FixResult:
    """Apply every safe update in one manifest rewrite.

    An empty safe set is a successful no-op: the manifest is not touched.
    Only candidates the scanner actually rewrote count as applied; a safe
    candidate with no matching manifest entry is moved to ``skipped``.
    The rewrite itself is atomic, so a :class:`ManifestWriteError` leaves
    the original manifest intact.
    """
    safe = select_safe(outdated)
    result = FixResult(
        applied=safe,
        skipped=[c for c in outdated if c not in safe],
        dry_run=dry_run,
    )

    if not safe:
        log.info("fix.nothing_to_apply", outdated=len(outdated))
        return result

    if dry_run:
        log.info("fix.dry_run", would_apply=len(safe))
        return result

    rewritten = set(scanner.rewrite_manifest(project_root, safe))
    result.applied = [c for c in safe if c.name in rewritten]
    unmatched = [c for c in safe if c.name not in rewritten]
    if unmatched:
        log.warning("fix.not_in_manifest", packages=[c.name for c in unmatched])
        result.skipped.extend(unmatched)
    log.info("fix.applied", applied=result.applied_count, skipped=len(result.skipped))
    return result
