"""
Property files: reading locations, parsing documents, merging tables.

A location names a property document:

- a bare filesystem path (``/etc/app/app.properties``)
- a ``file:`` URL (``file:/etc/app/app.properties``, ``file:///etc/...``)
- an ``http:``/``https:`` URL, fetched with httpx
- ``package:<dotted.package>/<resource>``, a resource shipped inside an
  installed Python package

The document format is chosen by extension: ``.xml`` is the Java properties
XML format, ``.yaml``/``.yml`` is hierarchical YAML flattened to dotted keys,
and anything else is parsed as a Java ``.properties`` file.

Documents are merged in order; a later document's key replaces an earlier
one's. The resulting FileTable is immutable.
"""

from __future__ import annotations

import collections.abc as _cabc
import importlib.resources as _resources
import logging as _logging
import pathlib as _pathlib
import typing as _typing
import urllib.parse as _urlparse
import urllib.request as _urlrequest
import xml.etree.ElementTree as _ElementTree

import httpx as _httpx
import jproperties as _jproperties
import yaml as _yaml

import propresolver.constants as constants
import propresolver.lookup.base as base

_logger = _logging.getLogger(__name__)


class LocationError(base.ConfigurationError):
    """A property location could not be read or parsed."""

    def __init__(self, location: str, message: str, *, missing: bool = False) -> None:
        self.location = location
        self.missing = missing
        super().__init__(f"Cannot load properties from '{location}': {message}")


# =============================================================================
# Reading locations
# =============================================================================


def _read_path(location: str, path: str) -> bytes:
    try:
        return _pathlib.Path(path).read_bytes()
    except FileNotFoundError as e:
        raise LocationError(location, "file not found", missing=True) from e
    except PermissionError as e:
        raise LocationError(location, f"permission denied: {e}") from e
    except OSError as e:
        raise LocationError(location, f"cannot read file: {e}") from e


def _read_http(location: str, client: _httpx.Client | None, timeout: float) -> bytes:
    try:
        if client is not None:
            response = client.get(location)
        else:
            response = _httpx.get(location, timeout=timeout, follow_redirects=True)
    except _httpx.HTTPError as e:
        raise LocationError(location, f"request failed: {e}") from e

    if response.status_code == 404:
        raise LocationError(location, "HTTP 404", missing=True)
    if response.is_error:
        raise LocationError(location, f"HTTP {response.status_code}")
    return response.content


def _read_package(location: str, spec: str) -> bytes:
    package, _, resource = spec.partition("/")
    if not package or not resource:
        raise LocationError(location, "expected package:<package>/<resource>")
    try:
        return _resources.files(package).joinpath(resource).read_bytes()
    except ModuleNotFoundError as e:
        raise LocationError(location, f"no such package: {package}", missing=True) from e
    except FileNotFoundError as e:
        raise LocationError(location, "resource not found", missing=True) from e
    except OSError as e:
        raise LocationError(location, f"cannot read resource: {e}") from e


def read_location(
    location: str,
    *,
    http_client: _httpx.Client | None = None,
    http_timeout: float = constants.DEFAULT_HTTP_TIMEOUT,
) -> bytes:
    """
    Read the raw bytes a location points to.

    Args:
        location: Path or URL.
        http_client: Client for http(s) locations; a one-off request is made
            when omitted.
        http_timeout: Timeout for one-off http(s) requests.

    Returns:
        Document contents.

    Raises:
        LocationError: If the location is unsupported or cannot be read.
    """
    parts = _urlparse.urlsplit(location)
    scheme = parts.scheme.lower()

    # No scheme, or a Windows drive letter
    if len(scheme) <= 1:
        return _read_path(location, location)
    if scheme == "file":
        return _read_path(location, _urlrequest.url2pathname(parts.path))
    if scheme in ("http", "https"):
        return _read_http(location, http_client, http_timeout)
    if scheme == "package":
        return _read_package(location, location[len("package:"):].lstrip("/"))
    raise LocationError(location, f"unsupported scheme '{parts.scheme}'")


# =============================================================================
# Parsing documents
# =============================================================================


def parse_properties(data: bytes) -> dict[str, str]:
    """Parse Java ``.properties`` syntax."""
    props = _jproperties.Properties()
    props.load(data, constants.PROPERTIES_ENCODING)
    return {key: value for key, value in props.properties.items()}


def parse_xml_properties(data: bytes) -> dict[str, str]:
    """
    Parse the Java properties XML format.

    Expected shape::

        <properties>
          <comment>optional</comment>
          <entry key="db.url">jdbc:...</entry>
        </properties>
    """
    root = _ElementTree.fromstring(data)
    if root.tag != "properties":
        raise ValueError(f"root element must be <properties>, got <{root.tag}>")
    result: dict[str, str] = {}
    for entry in root.iter("entry"):
        key = entry.get("key")
        if key is None:
            raise ValueError("<entry> without a key attribute")
        result[key] = entry.text or ""
    return result


def _scalar_to_str(value: _typing.Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten(data: _cabc.Mapping[str, _typing.Any], prefix: str = "") -> dict[str, str]:
    """
    Flatten nested mappings into dotted keys.

    ``{"db": {"url": "x", "pool": 5}}`` becomes
    ``{"db.url": "x", "db.pool": "5"}``. Null values are skipped; lists are
    kept as their YAML flow representation.
    """
    result: dict[str, str] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, _cabc.Mapping):
            result.update(flatten(value, path))
        elif value is None:
            continue
        elif isinstance(value, list):
            result[path] = _yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            result[path] = _scalar_to_str(value)
    return result


def parse_yaml_properties(data: bytes) -> dict[str, str]:
    """Parse hierarchical YAML into flat dotted properties."""
    parsed = _yaml.safe_load(data)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"document must be a mapping, got {type(parsed).__name__}")
    return flatten(parsed)


def parse_document(location: str, data: bytes) -> dict[str, str]:
    """
    Parse a document according to the extension of its location.

    Raises:
        LocationError: If the document is malformed.
    """
    suffix = _pathlib.PurePosixPath(_urlparse.urlsplit(location).path).suffix.lower()
    try:
        if suffix == ".xml":
            return parse_xml_properties(data)
        if suffix in (".yaml", ".yml"):
            return parse_yaml_properties(data)
        return parse_properties(data)
    except (
        ValueError,
        UnicodeDecodeError,
        _ElementTree.ParseError,
        _jproperties.PropertyError,
        _yaml.YAMLError,
    ) as e:
        raise LocationError(location, f"malformed document: {e}") from e


# =============================================================================
# File table
# =============================================================================


class FileTable(base.PropertySource, _cabc.Mapping[str, str]):
    """
    Immutable merged view of one or more property documents.

    Keys are unique after merging; for each key the table remembers which
    location supplied the winning value.
    """

    name = "files"

    def __init__(
        self,
        values: _cabc.Mapping[str, str] | None = None,
        origins: _cabc.Mapping[str, str] | None = None,
    ) -> None:
        self._values = dict(values or {})
        self._origins = dict(origins or {})

    @classmethod
    def merge(cls, documents: _cabc.Iterable[tuple[str, _cabc.Mapping[str, str]]]) -> FileTable:
        """
        Merge documents in order, later documents winning.

        Args:
            documents: (location, properties) pairs in load order.
        """
        values: dict[str, str] = {}
        origins: dict[str, str] = {}
        for location, properties in documents:
            for key, value in properties.items():
                values[key] = value
                origins[key] = location
        return cls(values, origins)

    def lookup(self, key: str) -> str | None:
        value = self._values.get(key)
        return value or None

    def origin(self, key: str) -> str | None:
        """Location that supplied ``key``, or None if absent."""
        return self._origins.get(key)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> _typing.Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        entries = ", ".join(f"{k!r} <- {self._origins.get(k)!r}" for k in self._values)
        return f"FileTable({entries})"


def load_file_table(
    locations: _cabc.Iterable[str],
    *,
    ignore_resource_not_found: bool = False,
    http_client: _httpx.Client | None = None,
    http_timeout: float = constants.DEFAULT_HTTP_TIMEOUT,
) -> FileTable:
    """
    Read and merge property documents in order.

    Args:
        locations: Concrete (already placeholder-resolved) locations.
        ignore_resource_not_found: Skip locations that do not exist instead
            of failing. Unreadable or malformed documents still fail.
        http_client: Client used for http(s) locations.
        http_timeout: Timeout for http(s) locations without a client.

    Returns:
        The merged, immutable table.

    Raises:
        LocationError: If a location cannot be read or parsed.
    """
    documents: list[tuple[str, dict[str, str]]] = []
    for location in locations:
        try:
            data = read_location(location, http_client=http_client, http_timeout=http_timeout)
        except LocationError as e:
            if e.missing and ignore_resource_not_found:
                _logger.warning("Skipping missing property location %s", location)
                continue
            raise
        properties = parse_document(location, data)
        _logger.debug("Loaded %d properties from %s", len(properties), location)
        documents.append((location, properties))
    return FileTable.merge(documents)
