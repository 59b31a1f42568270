"""Tests for the single-registry resolver."""
import pytest
import requests

from registry.maven.models import FailureKind, PackageIdentity, RegistryFailure, RegistryResult
from registry.maven.resolver import RegistryResolver, normalize_registry_url

from conftest import BASE_URL, PACKAGE_PATH, mock_generic_package, pom

IDENTITY = PackageIdentity("org.example", "package")
METADATA_URL = f"{BASE_URL}/{PACKAGE_PATH}/maven-metadata.xml"


class TestNormalizeRegistryUrl:
    """URL validation before any request."""

    @pytest.mark.parametrize("url,expected", [
        ("https://clojars.org/repo", "https://clojars.org/repo"),
        ("https://clojars.org/repo/", "https://clojars.org/repo"),
        ("https://clojars.org/repo///", "https://clojars.org/repo"),
        ("  http://mirror.local:8081/maven/  ", "http://mirror.local:8081/maven"),
    ])
    def test_normalizes(self, url, expected):
        assert normalize_registry_url(url) == expected

    @pytest.mark.parametrize("url", [
        "${project.baseUri}../../repository/",
        "https://${env.NEXUS_HOST}/repository",
        "https://{{ registry }}/repo",
        "",
        "not a url",
    ])
    def test_invalid(self, url):
        failure = normalize_registry_url(url)
        assert isinstance(failure, RegistryFailure)
        assert failure.kind is FailureKind.INVALID_URL

    @pytest.mark.parametrize("url", ["ftp://repo.example.com", "s3://bucket/repo"])
    def test_unsupported(self, url):
        failure = normalize_registry_url(url)
        assert failure.kind is FailureKind.UNSUPPORTED_PROTOCOL


class TestResolve:
    """Fetch, parse and probe against one registry."""

    def test_success(self, transport):
        mock_generic_package(transport)
        result = RegistryResolver(transport).resolve(BASE_URL, IDENTITY)

        assert isinstance(result, RegistryResult)
        assert result.registry_url == BASE_URL
        assert list(result.versions) == ["1.0.0", "1.0.1", "1.0.2", "2.0.0"]
        assert result.versions["1.0.0"].release_timestamp == "2020-01-01T01:00:00.000Z"
        assert result.versions["1.0.1"].release_timestamp is None  # 404 probe keeps the version
        assert result.versions["1.0.2"].release_timestamp is None  # 500 probe keeps the version
        assert result.versions["2.0.0"].release_timestamp == "2020-01-01T02:00:00.000Z"
        assert result.source_url == "https://github.com/example/test"
        assert result.homepage == "https://package.example.org/about"

    def test_only_latest_descriptor_is_fetched(self, transport):
        mock_generic_package(transport)
        RegistryResolver(transport).resolve(BASE_URL, IDENTITY)
        poms = [url for url in transport.urls("GET") if url.endswith(".pom")]
        assert poms == [f"{BASE_URL}/{PACKAGE_PATH}/2.0.0/package-2.0.0.pom"]

    def test_latest_falls_back_to_highest_version(self, transport):
        meta = ("<metadata><versioning><versions><version>1.10</version>"
                "<version>1.9</version></versions></versioning></metadata>")
        mock_generic_package(transport, meta=meta, latest="1.10", jars={})
        result = RegistryResolver(transport).resolve(BASE_URL, IDENTITY)
        assert result.source_url == "https://github.com/example/test"
        assert f"{BASE_URL}/{PACKAGE_PATH}/1.10/package-1.10.pom" in transport.urls("GET")

    def test_trailing_slash(self, transport):
        mock_generic_package(transport)
        result = RegistryResolver(transport).resolve(BASE_URL + "/", IDENTITY)
        assert result.registry_url == BASE_URL
        assert METADATA_URL in transport.urls()

    @pytest.mark.parametrize("route,kind", [
        (None, FailureKind.NOT_FOUND),
        ((403, ""), FailureKind.UNAUTHORIZED),
        ((401, ""), FailureKind.UNAUTHORIZED),
        ((503, ""), FailureKind.TRANSPORT_ERROR),
        (requests.ConnectionError("unknown"), FailureKind.TRANSPORT_ERROR),
        ((200, "non-sense"), FailureKind.MALFORMED_DOCUMENT),
        ((200, "<metadata/>"), FailureKind.INVALID_STRUCTURE),
    ])
    def test_index_failures(self, transport, route, kind):
        if route is not None:
            transport.add("GET", METADATA_URL, route)
        result = RegistryResolver(transport).resolve(BASE_URL, IDENTITY)
        assert isinstance(result, RegistryFailure)
        assert result.kind is kind
        assert result.registry_url == BASE_URL
        assert transport.urls() == [METADATA_URL]

    def test_invalid_url_makes_no_request(self, transport):
        result = RegistryResolver(transport).resolve("${project.baseUri}../../repository/", IDENTITY)
        assert result.kind is FailureKind.INVALID_URL
        assert transport.calls == []

    @pytest.mark.parametrize("pom_route", [None, (500, ""), (200, "###"), (200, "<html/>")])
    def test_descriptor_failure_keeps_versions(self, transport, pom_route):
        mock_generic_package(transport, pom_body=None)
        if pom_route is not None:
            transport.add("GET", f"{BASE_URL}/{PACKAGE_PATH}/2.0.0/package-2.0.0.pom", pom_route)
        result = RegistryResolver(transport).resolve(BASE_URL, IDENTITY)
        assert list(result.versions) == ["1.0.0", "1.0.1", "1.0.2", "2.0.0"]
        assert result.source_url is None

    def test_parent_fetched_from_same_registry(self, transport):
        child = pom(parent=("org.example", "parent", "3"))
        parent = pom(artifact="parent", version="3", scm="scm:git:https://github.com/example/parent")
        mock_generic_package(transport, pom_body=child)
        transport.add("GET", f"{BASE_URL}/org/example/parent/3/parent-3.pom", (200, parent))

        result = RegistryResolver(transport).resolve(BASE_URL, IDENTITY)

        assert result.source_url == "https://github.com/example/parent"

    def test_probe_disabled(self, transport):
        mock_generic_package(transport)
        result = RegistryResolver(transport, probe_enabled=False).resolve(BASE_URL, IDENTITY)
        assert transport.urls("HEAD") == []
        assert all(meta.release_timestamp is None for meta in result.versions.values())
        assert len(result.versions) == 4

    def test_auth_headers_from_lookup(self, transport):
        mock_generic_package(transport)
        seen = []

        def auth_lookup(host_type, host):
            seen.append((host_type, host))
            return {"Authorization": "Bearer 123test"}

        RegistryResolver(transport, auth_lookup).resolve(BASE_URL, IDENTITY)

        assert seen == [("maven", "clojars.org")]
        assert all(headers == {"Authorization": "Bearer 123test"} for _, _, headers in transport.calls)

    def test_empty_version_list(self, transport):
        transport.add("GET", METADATA_URL, (200, "<metadata><versioning><versions/></versioning></metadata>"))
        result = RegistryResolver(transport).resolve(BASE_URL, IDENTITY)
        assert isinstance(result, RegistryResult)
        assert result.versions == {}
        assert transport.urls() == [METADATA_URL]
