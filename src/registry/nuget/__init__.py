"""NuGet registry package.

This package provides NuGet feed support:
- nuspec.py: dependency extraction from .nuspec manifests
- client.py: HTTP interactions with the NuGet V3 API (service index, flat container)

Public API is preserved at registry.nuget without shims.
"""

# Patch points exposed for tests (e.g., monkeypatch in tests)
from common.http_client import get_json, robust_get, safe_get  # noqa: F401

# Public API re-exports
from .nuspec import parse_nuspec_dependencies  # noqa: F401
from .client import NuGetClient  # noqa: F401

__all__ = [
    "parse_nuspec_dependencies",
    "NuGetClient",
    # Patch points for tests
    "get_json",
    "robust_get",
    "safe_get",
]
