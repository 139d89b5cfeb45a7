"""
Property resolution across directory, environment and property files.

Two settings decide where a value comes from:

- PrecedenceOrder: whether the directory or the environment is probed first.
- OverrideMode: FALLBACK lets property files win and uses the directory and
  environment only for keys the files lack; OVERRIDE probes the directory and
  environment before the files and, if still unresolved, once more after.

Property-file locations may themselves contain placeholders. These are
resolved against the directory and environment only, because the files are
not loaded yet, when ``initialize()`` runs.

Example:
    >>> resolver = PropertyResolver(
    ...     ["file:${configDirectory}/application.properties"],
    ...     environment=EnvironmentLookup({"configDirectory": "/etc/app"}),
    ... )
    >>> resolver.initialize()
    >>> resolver.get("db.url")
"""

from __future__ import annotations

import collections.abc as _cabc
import logging as _logging
import threading as _threading
import typing as _typing

import httpx as _httpx

import propresolver.config.types as types
import propresolver.constants as constants
import propresolver.lookup.base as base
import propresolver.lookup.directory as directory_lookup
import propresolver.lookup.environment as environment_lookup
import propresolver.lookup.files as files
import propresolver.placeholders as placeholders

if _typing.TYPE_CHECKING:
    import propresolver.config.settings as config_settings

_logger = _logging.getLogger(__name__)


class ResolverStateError(base.ConfigurationError):
    """The resolver was used out of lifecycle order."""

    pass


class MissingPropertyError(base.ConfigurationError):
    """A required property has no value in any source."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Required property '{key}' is not defined in any source")


# =============================================================================
# Orchestration
# =============================================================================


def build_probes(
    order: types.PrecedenceOrder,
    *,
    directory: base.Lookup | None = None,
    environment: base.Lookup | None = None,
) -> list[base.Lookup]:
    """
    Order the external sources per ``order``, dropping disabled ones.

    Args:
        order: Which source goes first.
        directory: Directory lookup, or None when disabled.
        environment: Environment lookup, or None when disabled.
    """
    if order is types.PrecedenceOrder.DIRECTORY_FIRST:
        pair = [directory, environment]
    else:
        pair = [environment, directory]
    return [source for source in pair if source is not None]


def _table_value(file_table: _cabc.Mapping[str, str] | None, key: str) -> str | None:
    if file_table is None:
        return None
    return file_table.get(key) or None


def get_property(
    key: str,
    order: types.PrecedenceOrder,
    mode: types.OverrideMode,
    file_table: _cabc.Mapping[str, str] | None,
    *,
    directory: base.Lookup | None = None,
    environment: base.Lookup | None = None,
) -> str | None:
    """
    Look a key up across all sources.

    Args:
        key: Property name.
        order: Precedence between directory and environment.
        mode: Whether external sources override the file table.
        file_table: Merged property files, or None before they are loaded.
        directory: Directory lookup, or None when disabled.
        environment: Environment lookup, or None when disabled.

    Returns:
        The first non-empty value, or None. Absence is never an error.
    """
    probes = build_probes(order, directory=directory, environment=environment)
    if mode is types.OverrideMode.OVERRIDE:
        value = base.probe(key, probes)
        if value is None:
            value = _table_value(file_table, key)
        if value is None:
            value = base.probe(key, probes)
        return value

    value = _table_value(file_table, key)
    if value is None:
        value = base.probe(key, probes)
    return value


# =============================================================================
# Resolver
# =============================================================================


class PropertyResolver:
    """
    Loads property files and answers lookups with placeholder expansion.

    Configure the resolver (locations, precedence, mode, directory on/off),
    then call ``initialize()`` exactly once. After that it is read-only and
    safe to share between threads.

    Args:
        locations: Property locations, later ones overriding earlier ones.
            May contain placeholders.
        search_directory: Consult the directory at all.
        precedence: Directory-first or environment-first.
        mode: FALLBACK or OVERRIDE.
        directory: Directory lookup. None means no directory source.
        environment: Environment lookup. Defaults to the process environment
            with no system properties.
        placeholder_resolver: Placeholder syntax. Defaults to ``${...}``.
        ignore_resource_not_found: Skip missing locations.
        http_client: Client for http(s) locations.
        http_timeout: Timeout for http(s) locations without a client.
    """

    def __init__(
        self,
        locations: _cabc.Iterable[str] = (),
        *,
        search_directory: bool = True,
        precedence: types.PrecedenceOrder = types.PrecedenceOrder.ENVIRONMENT_FIRST,
        mode: types.OverrideMode = types.OverrideMode.FALLBACK,
        directory: base.Lookup | None = None,
        environment: base.Lookup | None = None,
        placeholder_resolver: placeholders.PlaceholderResolver | None = None,
        ignore_resource_not_found: bool = False,
        http_client: _httpx.Client | None = None,
        http_timeout: float = constants.DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._locations: list[str] = list(locations)
        self._search_directory = search_directory
        self._precedence = types.PrecedenceOrder(precedence)
        self._mode = types.OverrideMode(mode)
        self._directory = directory
        self._environment = (
            environment if environment is not None else environment_lookup.EnvironmentLookup()
        )
        self._placeholders = placeholder_resolver or placeholders.PlaceholderResolver()
        self._ignore_resource_not_found = ignore_resource_not_found
        self._http_client = http_client
        self._http_timeout = http_timeout

        self._resolved_locations: tuple[str, ...] | None = None
        self._file_table: files.FileTable | None = None

    @classmethod
    def from_settings(
        cls,
        settings: config_settings.ResolverSettings,
        **overrides: _typing.Any,
    ) -> PropertyResolver:
        """
        Build an uninitialized resolver from settings.

        Args:
            settings: Validated resolver settings.
            overrides: Constructor arguments that replace the derived ones
                (e.g. a fake ``directory`` in tests).
        """
        kwargs: dict[str, _typing.Any] = {
            "search_directory": settings.search_directory,
            "precedence": settings.precedence,
            "mode": settings.system_properties_mode,
            "directory": (
                directory_lookup.DirectoryLookup.from_config(settings.directory)
                if settings.search_directory
                else None
            ),
            "environment": environment_lookup.EnvironmentLookup(settings.system_properties),
            "placeholder_resolver": placeholders.PlaceholderResolver.from_config(settings.placeholder),
            "ignore_resource_not_found": settings.ignore_resource_not_found,
            "http_timeout": settings.http.timeout,
        }
        kwargs.update(overrides)
        return cls(settings.locations, **kwargs)

    # =========================================================================
    # Configuration (before initialize)
    # =========================================================================

    def _require_configurable(self) -> None:
        if self.initialized:
            raise ResolverStateError("Resolver is already initialized; configuration is frozen")

    def _require_initialized(self) -> files.FileTable:
        if self._file_table is None:
            raise ResolverStateError("Resolver has not been initialized")
        return self._file_table

    @property
    def initialized(self) -> bool:
        return self._file_table is not None

    @property
    def locations(self) -> tuple[str, ...]:
        """Configured (raw, possibly templated) locations."""
        return tuple(self._locations)

    def set_location(self, location: str) -> None:
        """Replace all locations with a single one."""
        self._require_configurable()
        self._locations = [location]

    def set_locations(self, locations: _cabc.Iterable[str]) -> None:
        """Replace all locations. Later locations override earlier ones."""
        self._require_configurable()
        self._locations = list(locations)

    @property
    def search_directory(self) -> bool:
        return self._search_directory

    @search_directory.setter
    def search_directory(self, value: bool) -> None:
        self._require_configurable()
        self._search_directory = value

    @property
    def precedence(self) -> types.PrecedenceOrder:
        return self._precedence

    @precedence.setter
    def precedence(self, value: types.PrecedenceOrder | str) -> None:
        self._require_configurable()
        self._precedence = types.PrecedenceOrder(value)

    @property
    def mode(self) -> types.OverrideMode:
        return self._mode

    @mode.setter
    def mode(self, value: types.OverrideMode | str) -> None:
        self._require_configurable()
        self._mode = types.OverrideMode(value)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _external_probes(self) -> list[base.Lookup]:
        directory = self._directory if self._search_directory else None
        return build_probes(self._precedence, directory=directory, environment=self._environment)

    def resolve_locations(self) -> list[str]:
        """
        Substitute placeholders in the configured locations.

        Only the directory and environment are consulted. Each location gets
        its own cycle tracking. Unresolvable placeholders stay in place.
        """
        probes = self._external_probes()
        resolved = []
        for location in self._locations:
            concrete = self._placeholders.resolve(location, probes)
            if concrete != location:
                _logger.debug("Resolved location %s -> %s", location, concrete)
            resolved.append(concrete)
        return resolved

    def initialize(self) -> None:
        """
        Resolve locations, load the property files and freeze the resolver.

        Raises:
            ResolverStateError: If called more than once.
            LocationError: If a location cannot be read or parsed.
            DirectoryUnavailableError: If the directory cannot be reached
                while resolving locations.
        """
        self._require_configurable()
        locations = self.resolve_locations()
        table = files.load_file_table(
            locations,
            ignore_resource_not_found=self._ignore_resource_not_found,
            http_client=self._http_client,
            http_timeout=self._http_timeout,
        )
        self._resolved_locations = tuple(locations)
        self._file_table = table
        _logger.info(
            "Loaded %d properties from %d locations", len(table), len(locations)
        )

    @property
    def resolved_locations(self) -> tuple[str, ...]:
        """Concrete locations that were loaded."""
        self._require_initialized()
        return self._resolved_locations or ()

    @property
    def file_table(self) -> files.FileTable:
        """The merged property-file table."""
        return self._require_initialized()

    # =========================================================================
    # Lookups (after initialize)
    # =========================================================================

    def get_property(self, key: str) -> str | None:
        """
        Raw value of ``key`` per precedence and override mode.

        Placeholders inside the value are not expanded.
        """
        table = self._require_initialized()
        directory = self._directory if self._search_directory else None
        return get_property(
            key,
            self._precedence,
            self._mode,
            table,
            directory=directory,
            environment=self._environment,
        )

    def resolve(self, text: str) -> str:
        """Substitute every placeholder in ``text``."""
        self._require_initialized()
        return self._placeholders.resolve(text, [self.get_property])

    def get(self, key: str, default: str | None = None) -> str | None:
        """
        Value of ``key`` with placeholders expanded.

        Args:
            key: Property name.
            default: Returned when no source has the key.

        Raises:
            CircularReferenceError: If the value refers back to ``key``.
        """
        raw = self.get_property(key)
        if raw is None:
            return default
        return self._placeholders.resolve(raw, [self.get_property], {key})

    def require(self, key: str) -> str:
        """
        Like ``get`` but a missing key is an error.

        Raises:
            MissingPropertyError: If no source has the key.
        """
        value = self.get(key)
        if value is None:
            raise MissingPropertyError(key)
        return value

    def resolved_properties(self) -> dict[str, str]:
        """Every property-file key with its effective, expanded value."""
        table = self._require_initialized()
        return {key: self.get(key) or "" for key in table}


# Global default resolver
_default_resolver: PropertyResolver | None = None
_default_resolver_lock = _threading.Lock()


def get_default_resolver() -> PropertyResolver:
    """
    Get the process-wide resolver.

    Lazily built from ``ResolverSettings()`` and initialized on first use.
    Concurrent first calls build it once.
    """
    global _default_resolver
    resolver = _default_resolver
    if resolver is not None:
        return resolver
    with _default_resolver_lock:
        if _default_resolver is None:
            # Import here to avoid circular imports
            import propresolver.config as config

            resolver = PropertyResolver.from_settings(config.ResolverSettings())
            resolver.initialize()
            _default_resolver = resolver
        return _default_resolver


def reset_default_resolver() -> None:
    """Drop the process-wide resolver (for tests)."""
    global _default_resolver
    with _default_resolver_lock:
        _default_resolver = None
