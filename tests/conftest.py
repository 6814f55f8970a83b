"""Shared fixtures: an in-memory NuGet registry."""

import threading
from collections import Counter
from typing import Dict, List

import pytest

from versioning.models import DependencyDecl, NuGetVersion
from versioning.parser import parse_range
from versioning.provider import MetadataProvider


class FakeRegistry(MetadataProvider):
    """Metadata provider backed by a dict: {id: {version: {dep_id: range}}}.

    Declaration order follows dict order. Call counts are recorded per
    lowercased id (and version) so tests can assert memoization.
    """

    def __init__(self, packages: Dict[str, Dict[str, Dict[str, str]]]):
        self.packages = {pid.lower(): versions for pid, versions in packages.items()}
        self.version_calls: Counter = Counter()
        self.dependency_calls: Counter = Counter()
        self.downloads: List[tuple] = []
        self._lock = threading.Lock()

    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        with self._lock:
            self.version_calls[package_id.lower()] += 1
        return [NuGetVersion.parse(v) for v in self.packages.get(package_id.lower(), {})]

    def list_dependencies(self, package_id: str, version: NuGetVersion) -> List[DependencyDecl]:
        with self._lock:
            self.dependency_calls[(package_id.lower(), str(version))] += 1
        for raw, deps in self.packages[package_id.lower()].items():
            if NuGetVersion.parse(raw) == version:
                return [DependencyDecl(dep_id, parse_range(spec)) for dep_id, spec in deps.items()]
        raise KeyError(f"{package_id} {version}")

    def download_package(self, package_id: str, version: NuGetVersion) -> bytes:
        self.downloads.append((package_id, str(version)))
        return f"{package_id}:{version}".encode()


@pytest.fixture
def make_registry():
    """Factory for FakeRegistry instances."""
    return FakeRegistry


@pytest.fixture
def v():
    """Shorthand for NuGetVersion.parse."""
    return NuGetVersion.parse
