"""Ecosystem scanners: auto-registered on import, in detection priority order."""

from dephealth.engines.dependency_scanner.scanners import (
    npm_package_json,  # noqa: F401
    pip_requirements,  # noqa: F401
)
