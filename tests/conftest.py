"""Shared fixtures: an in-memory transport and Maven registry documents."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from constants import Constants

BASE_URL = "https://clojars.org/repo"
CUSTOM_URL = "https://custom.registry.example.com"
PACKAGE_PATH = "org/example/package"

METADATA_XML = """<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>org.example</groupId>
  <artifactId>package</artifactId>
  <versioning>
    <latest>2.0.0</latest>
    <release>2.0.0</release>
    <versions>
      <version>1.0.0</version>
      <version>1.0.1</version>
      <version>1.0.2</version>
      <version>2.0.0</version>
    </versions>
    <lastUpdated>20200101000000</lastUpdated>
  </versioning>
</metadata>
"""

METADATA_EXTRA_XML = """<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>org.example</groupId>
  <artifactId>package</artifactId>
  <versioning>
    <latest>3.0.0</latest>
    <release>3.0.0</release>
    <versions>
      <version>1.0.0</version>
      <version>2.0.0</version>
      <version>3.0.0</version>
    </versions>
  </versioning>
</metadata>
"""

METADATA_INVALID_XML = """<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>org.example</groupId>
  <artifactId>package</artifactId>
</metadata>
"""

POM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.example</groupId>
  <artifactId>package</artifactId>
  <version>2.0.0</version>
  <url>https://package.example.org/about</url>
  <scm>
    <url>https://github.com/example/test</url>
  </scm>
</project>
"""

POM_SCM_PREFIX_XML = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.example</groupId>
  <artifactId>package</artifactId>
  <version>2.0.0</version>
  <scm>
    <url>scm:https://github.com/example/test</url>
  </scm>
</project>
"""


def pom(group="org.example", artifact="package", version="2.0.0", scm=None, url=None, parent=None):
    """Build a minimal namespaced POM."""
    parts = [
        '<project xmlns="http://maven.apache.org/POM/4.0.0">',
        f"<groupId>{group}</groupId>",
        f"<artifactId>{artifact}</artifactId>",
        f"<version>{version}</version>",
    ]
    if parent:
        pg, pa, pv = parent
        parts.append(f"<parent><groupId>{pg}</groupId><artifactId>{pa}</artifactId><version>{pv}</version></parent>")
    if url:
        parts.append(f"<url>{url}</url>")
    if scm:
        parts.append(f"<scm><url>{scm}</url></scm>")
    parts.append("</project>")
    return "".join(parts)


def make_response(status_code=200, text="", headers=None):
    """MagicMock standing in for requests.Response."""
    res = MagicMock()
    res.status_code = status_code
    res.text = text
    res.headers = headers or {}
    return res


class FakeTransport:
    """Routes GET/HEAD by exact URL; unknown URLs answer 404.

    A route value may be a response, an exception instance (raised), or a
    ``(status, text, headers)`` tuple.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, url, value):
        self.routes[(method, url)] = value
        return self

    def _dispatch(self, method, url, headers):
        self.calls.append((method, url, dict(headers or {})))
        value = self.routes.get((method, url))
        if value is None:
            return make_response(404)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, tuple):
            return make_response(*value)
        return value

    def get(self, url, headers=None):
        return self._dispatch("GET", url, headers)

    def head(self, url, headers=None):
        return self._dispatch("HEAD", url, headers)

    def urls(self, method=None):
        return [url for m, url, _ in self.calls if method is None or m == method]


def timestamp_for(version):
    major, minor, patch = (int(x) for x in version.split("."))
    return f"2020-01-01T{major:02d}:{minor:02d}:{patch:02d}.000Z"


def mock_generic_package(transport, base=BASE_URL, meta=METADATA_XML, pom_body=POM_XML,
                         latest="2.0.0", jars=None):
    """Register the documents of org.example:package on ``base``."""
    if jars is None:
        jars = {"1.0.0": 200, "1.0.1": 404, "1.0.2": 500, "2.0.0": 200}
    if meta is not None:
        transport.add("GET", f"{base}/{PACKAGE_PATH}/maven-metadata.xml", (200, meta))
    if pom_body is not None:
        transport.add("GET", f"{base}/{PACKAGE_PATH}/{latest}/package-{latest}.pom", (200, pom_body))
    for version, status in jars.items():
        transport.add(
            "HEAD",
            f"{base}/{PACKAGE_PATH}/{version}/package-{version}.pom",
            (status, "", {"Last-Modified": timestamp_for(version)}),
        )
    return transport


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture(autouse=True)
def _restore_constants():
    """Config tests write onto Constants; put the defaults back afterwards."""
    saved = {
        name: getattr(Constants, name)
        for name in ("DEFAULT_REGISTRY_URLS", "REQUEST_TIMEOUT", "PROBE_ENABLED", "DESCRIPTOR_MAX_PARENT_DEPTH")
    }
    yield
    for name, value in saved.items():
        setattr(Constants, name, value)


@pytest.fixture
def connection_error():
    return requests.ConnectionError("unknown")
