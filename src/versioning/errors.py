"""Errors raised during dependency resolution. All of them are fatal to a run."""

from typing import Dict, List, Sequence

from .models import NuGetVersion, VersionRange


class ResolutionError(Exception):
    """Base class for resolution failures."""


class MetadataFetchError(ResolutionError):
    """The metadata source failed to answer (transport error, bad status, bad payload)."""


class RegistryEmptyError(ResolutionError):
    """A package id has no listed versions."""

    def __init__(self, package_id: str):
        self.package_id = package_id
        super().__init__(f"No versions found for {package_id}")


class BadPinError(ResolutionError):
    """A requested version is unparseable or absent from the registry."""

    def __init__(self, package_id: str, requested: str, available: Sequence[NuGetVersion] = ()):
        self.package_id = package_id
        self.requested = requested
        self.available = list(available)
        if self.available:
            listing = ", ".join(str(v) for v in self.available)
            message = (
                f"Specified version {requested} for {package_id} not found, "
                f"here are all versions available: {listing}"
            )
        else:
            message = f"Unable to parse version {requested} for {package_id}"
        super().__init__(message)


class NoRangeMatchError(ResolutionError):
    """No listed version satisfies a declared dependency range."""

    def __init__(self, dependency_id: str, version_range: VersionRange, requirer_id: str, requirer_version: NuGetVersion):
        self.dependency_id = dependency_id
        self.version_range = version_range
        self.requirer_id = requirer_id
        self.requirer_version = requirer_version
        super().__init__(
            f"No matched version found for dependency {dependency_id} ({version_range.pretty()}) "
            f"from {requirer_id}:{requirer_version}"
        )


class VersionConflictError(ResolutionError):
    """One or more package ids have no version satisfying every requirement."""

    def __init__(self, conflicts: Dict[str, List[VersionRange]]):
        self.conflicts = conflicts
        details = "; ".join(
            f"{pkg} requires {', '.join(r.pretty() for r in ranges)}"
            for pkg, ranges in conflicts.items()
        )
        super().__init__(f"Conflicted versions found for {', '.join(conflicts)}: {details}")
