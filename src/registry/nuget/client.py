"""NuGet registry client: version listing, nuspec dependencies and nupkg download via the V3 API."""
from __future__ import annotations

import logging
import threading
import urllib.parse
from typing import Any, Dict, List, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.errors import MetadataFetchError
from versioning.models import DependencyDecl, NuGetVersion
from versioning.provider import MetadataProvider

import registry.nuget as nuget_pkg
from .nuspec import parse_nuspec_dependencies

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


def _fetch_v3_service_index(url: str) -> Dict[str, Any]:
    """Fetch and parse a NuGet V3 service index.

    Raises:
        MetadataFetchError: If the index cannot be retrieved or is not JSON.
    """
    status_code, _, index_data = nuget_pkg.get_json(url, headers=HEADERS_JSON)
    if status_code != 200 or not isinstance(index_data, dict):
        raise MetadataFetchError(f"Unable to load NuGet service index {safe_url(url)} (HTTP {status_code})")
    return index_data


def _get_package_base_url(service_index: Dict[str, Any]) -> Optional[str]:
    """Return the flat-container (PackageBaseAddress) URL from a service index."""
    for resource in service_index.get("resources", []):
        if resource.get("@type") == Constants.NUGET_PACKAGE_BASE_TYPE:
            base_url = resource.get("@id")
            if base_url:
                return base_url if base_url.endswith("/") else base_url + "/"
    return None


def _quote(value: str) -> str:
    return urllib.parse.quote(value.lower(), safe="")


class NuGetClient(MetadataProvider):
    """Metadata provider and artifact source backed by a NuGet V3 feed."""

    def __init__(self, source: Optional[str] = None):
        self.source = source or Constants.REGISTRY_URL_NUGET_V3
        self._base_url: Optional[str] = None
        self._lock = threading.Lock()

    def package_base_url(self) -> str:
        """Resolve the flat-container base URL once per client."""
        with self._lock:
            if self._base_url is None:
                base_url = _get_package_base_url(_fetch_v3_service_index(self.source))
                if not base_url:
                    raise MetadataFetchError(
                        f"NuGet source {safe_url(self.source)} does not expose {Constants.NUGET_PACKAGE_BASE_TYPE}"
                    )
                self._base_url = base_url
            return self._base_url

    def versions_url(self, package_id: str) -> str:
        return f"{self.package_base_url()}{_quote(package_id)}/index.json"

    def nuspec_url(self, package_id: str, version: NuGetVersion) -> str:
        pid = _quote(package_id)
        return f"{self.package_base_url()}{pid}/{_quote(version.normalized)}/{pid}.nuspec"

    def nupkg_url(self, package_id: str, version: NuGetVersion) -> str:
        pid = _quote(package_id)
        ver = _quote(version.normalized)
        return f"{self.package_base_url()}{pid}/{ver}/{pid}.{ver}{Constants.PACKAGE_EXTENSION}"

    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        """List every published version of a package, ascending.

        Returns an empty list when the feed does not know the package.

        Raises:
            MetadataFetchError: On transport errors or unexpected responses.
        """
        url = self.versions_url(package_id)
        status_code, _, data = nuget_pkg.get_json(url, headers=HEADERS_JSON)
        if status_code == 404:
            logger.warning(
                "Package not found in NuGet registry",
                extra=extra_context(
                    event="http_response", outcome="not_found", target=package_id, package_manager="nuget",
                ),
            )
            return []
        if status_code != 200 or not isinstance(data, dict):
            raise MetadataFetchError(f"Failed to list versions for {package_id} (HTTP {status_code})")

        versions: List[NuGetVersion] = []
        for raw in data.get("versions", []):
            parsed = NuGetVersion.try_parse(raw) if isinstance(raw, str) else None
            if parsed is None:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Skipping unparseable version",
                        extra=extra_context(
                            event="anomaly", component="client", action="list_versions",
                            target=package_id, outcome=str(raw), package_manager="nuget",
                        ),
                    )
                continue
            versions.append(parsed)
        versions.sort()

        if is_debug_enabled(logger):
            logger.debug(
                "NuGet versions fetched",
                extra=extra_context(
                    event="package_found", component="client", action="list_versions",
                    outcome="success", target=package_id, count=len(versions), package_manager="nuget",
                ),
            )
        return versions

    def list_dependencies(self, package_id: str, version: NuGetVersion) -> List[DependencyDecl]:
        """Read the dependencies declared in one version's nuspec.

        Raises:
            MetadataFetchError: When the nuspec cannot be fetched or parsed.
        """
        url = self.nuspec_url(package_id, version)
        status_code, _, text = nuget_pkg.robust_get(url)
        if status_code != 200:
            raise MetadataFetchError(
                f"Failed to fetch nuspec for {package_id} {version} (HTTP {status_code})"
            )
        try:
            return parse_nuspec_dependencies(text, package_id)
        except ValueError as exc:
            raise MetadataFetchError(str(exc)) from exc

    def download_package(self, package_id: str, version: NuGetVersion) -> bytes:
        """Download the .nupkg for one package version.

        Raises:
            MetadataFetchError: On transport errors or a non-200 response.
        """
        url = self.nupkg_url(package_id, version)
        try:
            res = nuget_pkg.safe_get(url, context="nuget", fatal=False)
        except requests.RequestException as exc:
            raise MetadataFetchError(f"Failed to download {package_id} {version}: {exc}") from exc
        if res.status_code != 200:
            raise MetadataFetchError(f"Failed to download {package_id} {version} (HTTP {res.status_code})")
        return res.content
