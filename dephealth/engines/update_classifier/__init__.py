"""Update classifier engine: semantic distance and safety of available updates."""

from dephealth.engines.update_classifier.classifier import build_candidate, classify
from dephealth.engines.update_classifier.models import (
    ClassificationResult,
    LookupFailure,
    UpdateCandidate,
)

__all__ = [
    "ClassificationResult",
    "LookupFailure",
    "UpdateCandidate",
    "build_candidate",
    "classify",
]
