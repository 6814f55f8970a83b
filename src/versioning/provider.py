"""Metadata provider contract consumed by the resolver."""

from abc import ABC, abstractmethod
from typing import List

from .models import DependencyDecl, NuGetVersion


class MetadataProvider(ABC):
    """Source of package versions and declared dependencies.

    Both operations may fail on network or registry errors; implementations
    raise MetadataFetchError for those.
    """

    @abstractmethod
    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        """Return every listed version of a package; empty when it does not exist."""

    @abstractmethod
    def list_dependencies(self, package_id: str, version: NuGetVersion) -> List[DependencyDecl]:
        """Return the distinct dependencies declared by one package version."""


def distinct_dependencies(decls: List[DependencyDecl]) -> List[DependencyDecl]:
    """Collapse duplicate (id, range) declarations, keeping first-seen order.

    Packages repeat the same dependency once per target framework group.
    """
    seen = set()
    result: List[DependencyDecl] = []
    for decl in decls:
        key = (decl.id.lower(), decl.range)
        if key in seen:
            continue
        seen.add(key)
        result.append(decl)
    return result
