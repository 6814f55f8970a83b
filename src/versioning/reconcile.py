"""Flattening of the dependency forest and global version reconciliation."""

import logging
from typing import Dict, Iterable, Iterator, List

from common.logging_utils import extra_context, is_debug_enabled

from .errors import VersionConflictError
from .models import DependencyNode, NuGetVersion, PackageIdentity, ResolvedSet, VersionRange

logger = logging.getLogger(__name__)


def flatten(nodes: Iterable[DependencyNode]) -> Iterator[DependencyNode]:
    """Yield every node of the forest in pre-order."""
    for node in nodes:
        yield node
        yield from flatten(node.dependencies)


def group_requirements(nodes: Iterable[DependencyNode]) -> Dict[str, List[DependencyNode]]:
    """Group flattened nodes by case-insensitive package id, keeping first-seen order."""
    groups: Dict[str, List[DependencyNode]] = {}
    for node in flatten(nodes):
        groups.setdefault(node.identity.key, []).append(node)
    return groups


def pick_version(group: List[DependencyNode]):
    """Pick the lowest candidate version in a group satisfying every requirement.

    Candidates are only the versions provisionally chosen within the group.
    Returns None when no candidate satisfies all requirements.
    """
    candidates: List[NuGetVersion] = sorted({node.identity.version for node in group})
    if len(candidates) == 1:
        return candidates[0]
    for candidate in candidates:
        if all(node.requirement.satisfies(candidate) for node in group):
            return candidate
    return None


def reconcile(roots: List[DependencyNode]) -> ResolvedSet:
    """Commit one version per package id across the complete forest.

    Must only run once the whole forest is built: a package's final version
    depends on every requirement edge pointing at it.

    Raises:
        VersionConflictError: Naming every package id without a satisfying version.
    """
    resolved: List[PackageIdentity] = []
    conflicts: Dict[str, List[VersionRange]] = {}

    for group in group_requirements(roots).values():
        package_id = group[0].identity.id
        version = pick_version(group)
        if version is None:
            ranges: List[VersionRange] = []
            for node in group:
                if node.requirement not in ranges:
                    ranges.append(node.requirement)
            conflicts[package_id] = ranges
            continue
        if is_debug_enabled(logger):
            logger.debug(
                "Package version reconciled",
                extra=extra_context(
                    event="decision", component="reconcile", action="pick_version",
                    target=package_id, outcome=str(version), edges=len(group),
                ),
            )
        resolved.append(PackageIdentity(package_id, version))

    if conflicts:
        raise VersionConflictError(conflicts)
    return ResolvedSet(resolved)
