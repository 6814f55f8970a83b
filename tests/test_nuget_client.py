"""Tests for NuGet client functionality."""

from unittest.mock import patch, MagicMock

import pytest
import requests

from registry.nuget.client import NuGetClient, _fetch_v3_service_index, _get_package_base_url
from versioning.errors import MetadataFetchError
from versioning.models import NuGetVersion

SERVICE_INDEX = {
    "version": "3.0.0",
    "resources": [
        {"@id": "https://api.nuget.org/v3/registration5-gz-semver2/", "@type": "RegistrationsBaseUrl/3.6.0"},
        {"@id": "https://api.nuget.org/v3-flatcontainer/", "@type": "PackageBaseAddress/3.0.0"},
    ],
}
BASE = "https://api.nuget.org/v3-flatcontainer/"

NUSPEC = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>TestPackage</id>
    <version>1.0.0</version>
    <dependencies>
      <group targetFramework="net6.0">
        <dependency id="Dep.One" version="1.2.0" />
      </group>
    </dependencies>
  </metadata>
</package>"""


class TestServiceIndex:
    """Service index discovery."""

    def test_finds_package_base_address(self):
        assert _get_package_base_url(SERVICE_INDEX) == BASE

    def test_appends_trailing_slash(self):
        index = {"resources": [{"@id": "https://feed.example/flat", "@type": "PackageBaseAddress/3.0.0"}]}
        assert _get_package_base_url(index) == "https://feed.example/flat/"

    def test_returns_none_when_resource_missing(self):
        assert _get_package_base_url({"resources": [SERVICE_INDEX["resources"][0]]}) is None

    @patch('registry.nuget.client.nuget_pkg.get_json')
    def test_service_index_failure_raises(self, mock_get_json):
        mock_get_json.return_value = (404, {}, None)
        with pytest.raises(MetadataFetchError, match="service index"):
            _fetch_v3_service_index("https://feed.example/v3/index.json")

    @patch('registry.nuget.client.nuget_pkg.get_json')
    def test_source_without_flat_container_raises(self, mock_get_json):
        mock_get_json.return_value = (200, {}, {"resources": []})
        with pytest.raises(MetadataFetchError, match="PackageBaseAddress"):
            NuGetClient("https://feed.example/v3/index.json").package_base_url()


class TestListVersions:
    """Version listing from the flat container."""

    @patch('registry.nuget.client.nuget_pkg.get_json')
    def test_lists_sorted_versions_and_skips_invalid(self, mock_get_json):
        mock_get_json.side_effect = [
            (200, {}, SERVICE_INDEX),
            (200, {}, {"versions": ["2.0.0", "1.0.0-beta", "garbage", "1.0.0"]}),
        ]
        versions = NuGetClient().list_versions("TestPackage")

        assert [str(v) for v in versions] == ["1.0.0-beta", "1.0.0", "2.0.0"]
        assert mock_get_json.call_args_list[1][0][0] == BASE + "testpackage/index.json"

    @patch('registry.nuget.client.nuget_pkg.get_json')
    def test_unknown_package_has_no_versions(self, mock_get_json):
        mock_get_json.side_effect = [(200, {}, SERVICE_INDEX), (404, {}, None)]
        assert NuGetClient().list_versions("Missing") == []

    @patch('registry.nuget.client.nuget_pkg.get_json')
    def test_transport_failure_raises(self, mock_get_json):
        mock_get_json.side_effect = [(200, {}, SERVICE_INDEX), (0, {}, None)]
        with pytest.raises(MetadataFetchError, match="TestPackage"):
            NuGetClient().list_versions("TestPackage")

    @patch('registry.nuget.client.nuget_pkg.get_json')
    def test_service_index_fetched_once(self, mock_get_json):
        mock_get_json.side_effect = [
            (200, {}, SERVICE_INDEX),
            (200, {}, {"versions": ["1.0.0"]}),
            (200, {}, {"versions": ["2.0.0"]}),
        ]
        client = NuGetClient()
        client.list_versions("A")
        client.list_versions("B")
        assert mock_get_json.call_count == 3


class TestDependenciesAndDownload:
    """nuspec and nupkg retrieval."""

    @pytest.fixture
    def client(self):
        client = NuGetClient()
        with patch('registry.nuget.client.nuget_pkg.get_json', return_value=(200, {}, SERVICE_INDEX)):
            client.package_base_url()
        return client

    def test_urls_use_lowercase_id_and_normalized_version(self, client):
        version = NuGetVersion.parse("13.0.1.0-Beta+meta")
        assert client.nuspec_url("Newtonsoft.Json", version) == BASE + "newtonsoft.json/13.0.1-beta/newtonsoft.json.nuspec"
        assert client.nupkg_url("Newtonsoft.Json", NuGetVersion.parse("13.0.1")) == (
            BASE + "newtonsoft.json/13.0.1/newtonsoft.json.13.0.1.nupkg"
        )

    @patch('registry.nuget.client.nuget_pkg.robust_get')
    def test_list_dependencies_parses_nuspec(self, mock_robust_get, client):
        mock_robust_get.return_value = (200, {}, NUSPEC)
        decls = client.list_dependencies("TestPackage", NuGetVersion.parse("1.0.0"))
        assert [(d.id, str(d.range)) for d in decls] == [("Dep.One", "1.2.0")]

    @patch('registry.nuget.client.nuget_pkg.robust_get')
    def test_missing_nuspec_raises(self, mock_robust_get, client):
        mock_robust_get.return_value = (404, {}, "")
        with pytest.raises(MetadataFetchError, match="nuspec for TestPackage 1.0.0"):
            client.list_dependencies("TestPackage", NuGetVersion.parse("1.0.0"))

    @patch('registry.nuget.client.nuget_pkg.robust_get')
    def test_malformed_nuspec_raises(self, mock_robust_get, client):
        mock_robust_get.return_value = (200, {}, "<package>")
        with pytest.raises(MetadataFetchError):
            client.list_dependencies("TestPackage", NuGetVersion.parse("1.0.0"))

    @patch('registry.nuget.client.nuget_pkg.safe_get')
    def test_download_returns_content(self, mock_safe_get, client):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.content = b"PK\x03\x04"
        mock_safe_get.return_value = mock_response

        assert client.download_package("TestPackage", NuGetVersion.parse("1.0.0")) == b"PK\x03\x04"
        assert mock_safe_get.call_args[1]["fatal"] is False

    @patch('registry.nuget.client.nuget_pkg.safe_get')
    def test_download_failures_raise(self, mock_safe_get, client):
        mock_safe_get.side_effect = requests.ConnectionError("boom")
        with pytest.raises(MetadataFetchError, match="boom"):
            client.download_package("TestPackage", NuGetVersion.parse("1.0.0"))

        mock_safe_get.side_effect = None
        mock_safe_get.return_value = MagicMock(status_code=404)
        with pytest.raises(MetadataFetchError, match="HTTP 404"):
            client.download_package("TestPackage", NuGetVersion.parse("1.0.0"))
