"""Custom exceptions for dephealth."""


class DepHealthError(Exception):
    """Base exception for all dephealth errors."""


class ManifestReadError(DepHealthError):
    """Raised when a manifest exists but cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read manifest {path}: {reason}")


class ManifestWriteError(DepHealthError):
    """Raised when updated versions cannot be persisted to the manifest."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write manifest {path}: {reason}")


class ProjectTypeUndetected(DepHealthError):
    """Raised when no supported manifest file exists in the project root."""

    def __init__(self, project_root: str, candidates: list[str]):
        self.project_root = project_root
        self.candidates = candidates
        super().__init__(
            f"Could not detect project type in {project_root}. "
            f"No {' or '.join(candidates)} found."
        )


class PackageNotFoundError(DepHealthError):
    """Raised when the registry has no record of a package."""

    def __init__(self, name: str, registry: str):
        self.name = name
        self.registry = registry
        super().__init__(f"Package {name} not found in {registry}")


class RegistryError(DepHealthError):
    """Raised on network, HTTP or payload failures talking to a registry."""
