"""Update classifier: find outdated dependencies and rate each update."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from dephealth.engines.dependency_scanner.models import Dependency
from dephealth.engines.update_classifier.models import (
    ClassificationResult,
    LookupFailure,
    UpdateCandidate,
)
from dephealth.engines.update_classifier.versions import classify_distance, current_version_of

if TYPE_CHECKING:
    from dephealth.engines.dependency_scanner.registry import ManifestScanner

log = structlog.get_logger("dephealth.engine")


def build_candidate(dep: Dependency, current: str, latest: str) -> UpdateCandidate | None:
    """Candidate for *dep*, or None when it is already on *latest*."""
    if current == latest:
        return None
    distance = classify_distance(current, latest)
    if distance == "none":
        return None
    return UpdateCandidate(
        name=dep.name,
        current_version=current,
        declared_constraint=dep.declared_constraint,
        latest_version=latest,
        kind=dep.kind,
        distance=distance,
    )


async def classify(
    dependencies: list[Dependency],
    scanner: ManifestScanner,
    *,
    concurrency: int = 8,
) -> ClassificationResult:
    """Resolve the latest version of every dependency and classify the gap.

    Registry lookups run concurrently, at most *concurrency* at a time.
    A failed lookup only affects its own dependency: it is logged at
    debug level, recorded in ``result.failures`` and the batch carries
    on. Dependencies without a usable current version are skipped
    before any network call. Candidates keep the input order.
    """
    result = ClassificationResult()
    sem = asyncio.Semaphore(concurrency)

    checkable: list[tuple[Dependency, str]] = []
    for dep in dependencies:
        current = current_version_of(dep)
        if current is None:
            log.debug("classifier.no_current_version", package=dep.name)
            result.skipped.append(dep.name)
            continue
        checkable.append((dep, current))

    async def _latest(name: str) -> str:
        async with sem:
            return await scanner.resolve_latest_version(name)

    latest_versions = await asyncio.gather(
        *(_latest(dep.name) for dep, _ in checkable), return_exceptions=True
    )

    for (dep, current), latest in zip(checkable, latest_versions, strict=True):
        if isinstance(latest, BaseException):
            if not isinstance(latest, Exception):
                raise latest
            log.debug(
                "classifier.lookup_failed",
                package=dep.name,
                error_type=type(latest).__name__,
                error=str(latest),
            )
            result.failures.append(
                LookupFailure(name=dep.name, error_type=type(latest).__name__, error=str(latest))
            )
            continue
        candidate = build_candidate(dep, current, latest)
        if candidate is not None:
            result.candidates.append(candidate)

    log.debug(
        "classifier.done",
        checked=len(checkable),
        outdated=len(result.candidates),
        failed=len(result.failures),
        skipped=len(result.skipped),
    )
    return result
