"""Dependency resolution: versions, ranges, graph building and reconciliation."""

from .errors import (
    BadPinError,
    MetadataFetchError,
    NoRangeMatchError,
    RegistryEmptyError,
    ResolutionError,
    VersionConflictError,
)
from .models import (
    DependencyDecl,
    DependencyNode,
    NuGetVersion,
    PackageIdentity,
    ResolvedSet,
    RootSpec,
    VersionRange,
)
from .provider import MetadataProvider
from .service import VersionResolutionService

__all__ = [
    "BadPinError",
    "MetadataFetchError",
    "NoRangeMatchError",
    "RegistryEmptyError",
    "ResolutionError",
    "VersionConflictError",
    "DependencyDecl",
    "DependencyNode",
    "NuGetVersion",
    "PackageIdentity",
    "ResolvedSet",
    "RootSpec",
    "VersionRange",
    "MetadataProvider",
    "VersionResolutionService",
]
