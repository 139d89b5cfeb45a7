"""Configuration type definitions for resolver settings.

This module defines the enums and Pydantic models nested within the main
ResolverSettings class:

- PrecedenceOrder: which of directory / environment is probed first
- OverrideMode: whether directory / environment values override files
- PlaceholderConfig: placeholder syntax
- DirectoryConfig: Consul connection and key prefix
- HttpConfig: fetching of http(s) property locations

Design decision: section types use `extra="allow"` so unknown keys are
preserved and can be reported with `collect_all_extra_fields()`.
"""

import enum as _enum
import typing as _typing

import pydantic as _pydantic

import propresolver.constants as constants


class PrecedenceOrder(str, _enum.Enum):
    """Which external source is consulted first."""

    DIRECTORY_FIRST = "DIRECTORY_FIRST"
    ENVIRONMENT_FIRST = "ENVIRONMENT_FIRST"

    @classmethod
    def _missing_(cls, value: object) -> "PrecedenceOrder | None":
        # Legacy spellings: SYSTEM_FIRST / JNDI_FIRST, any case
        if not isinstance(value, str):
            return None
        normalized = value.strip().upper()
        aliases = {
            "SYSTEM_FIRST": cls.ENVIRONMENT_FIRST,
            "JNDI_FIRST": cls.DIRECTORY_FIRST,
        }
        if normalized in aliases:
            return aliases[normalized]
        for member in cls:
            if member.value == normalized:
                return member
        return None


class OverrideMode(str, _enum.Enum):
    """How directory / environment values relate to property-file values."""

    FALLBACK = "FALLBACK"
    """Files are authoritative; external sources only fill gaps."""

    OVERRIDE = "OVERRIDE"
    """External sources are checked before and after the files."""

    @classmethod
    def _missing_(cls, value: object) -> "OverrideMode | None":
        if not isinstance(value, str):
            return None
        normalized = value.strip().upper()
        for member in cls:
            if member.value == normalized:
                return member
        return None


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for config section types.

    Unknown fields are preserved rather than silently dropped so typos can be
    audited.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but not in the schema."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(
        self,
        prefix: str = "",
    ) -> dict[str, _typing.Any]:
        """
        Recursively collect extra fields from this config and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"directory.hots": "consul.local"}
        """
        result: dict[str, _typing.Any] = {}
        for key, value in self.get_extra_fields().items():
            path = f"{prefix}.{key}" if prefix else key
            result[path] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))
        return result


class PlaceholderConfig(ConfigBase):
    """
    Placeholder syntax.

    YAML section: placeholder.*
    """

    prefix: str = _pydantic.Field(
        default=constants.DEFAULT_PLACEHOLDER_PREFIX, min_length=1
    )
    """Opening delimiter."""

    suffix: str = _pydantic.Field(
        default=constants.DEFAULT_PLACEHOLDER_SUFFIX, min_length=1
    )
    """Closing delimiter."""

    value_separator: str | None = None
    """Separator for inline defaults (``${key:default}``); None disables them."""

    @_pydantic.field_validator("value_separator")
    @classmethod
    def _empty_separator_disables(cls, v: str | None) -> str | None:
        return v or None


class DirectoryConfig(ConfigBase):
    """
    Directory (Consul KV) connection settings.

    YAML section: directory.*
    """

    host: str = constants.DEFAULT_DIRECTORY_HOST
    """Consul agent host."""

    port: int = _pydantic.Field(default=constants.DEFAULT_DIRECTORY_PORT, ge=1, le=65535)
    """Consul HTTP API port."""

    scheme: _typing.Literal["http", "https"] = "http"
    """Transport scheme."""

    token: _pydantic.SecretStr | None = None
    """ACL token."""

    datacenter: str | None = None
    """Datacenter to query (agent default when unset)."""

    verify: bool = True
    """Verify TLS certificates for https."""

    timeout: float | None = _pydantic.Field(default=None, gt=0)
    """Request timeout in seconds (client default when unset)."""

    prefix: str = constants.DEFAULT_DIRECTORY_PREFIX
    """Namespace prefix prepended to every key."""


class HttpConfig(ConfigBase):
    """
    Settings for http(s) property locations.

    YAML section: http.*
    """

    timeout: float = _pydantic.Field(default=constants.DEFAULT_HTTP_TIMEOUT, gt=0)
    """Request timeout in seconds."""
