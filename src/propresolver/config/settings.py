"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with PROPRESOLVER_ prefix
3. .env file (if PROPRESOLVER_ENV_FILE points at one)
4. Layered YAML config files:
   - Project config: .propresolver/config.yaml (highest)
   - User config: ~/.config/propresolver/config.yaml
   - Built-in defaults: bundled defaults/config.yaml (lowest)

Nested config uses double underscore delimiter:
  PROPRESOLVER_DIRECTORY__HOST=consul.internal
  PROPRESOLVER_PLACEHOLDER__VALUE_SEPARATOR=:
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import propresolver.config.sources as sources
import propresolver.config.types as types
import propresolver.constants as constants

LogLevel = _typing.Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    Only an explicit PROPRESOLVER_ENV_FILE is honoured. If it is set but the
    file does not exist, nothing is loaded rather than falling back silently.
    """
    if env_file := _os.environ.get(constants.ENV_FILE):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


class ResolverSettings(_pydantic_settings.BaseSettings):
    """
    Resolver configuration settings.

    All settings can be overridden via environment variables with the
    PROPRESOLVER_ prefix. For nested config, use double underscore:
    PROPRESOLVER_DIRECTORY__PORT=8501

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (PROPRESOLVER_*)
    3. .env file
    4. Project config (.propresolver/config.yaml)
    5. User config (~/.config/propresolver/config.yaml)
    6. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix=constants.ENV_PREFIX,
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (PROPRESOLVER_* env vars)
        3. dotenv_settings (.env file)
        4. yaml_settings (layered config.yaml files)
        5. (defaults via Field definitions), lowest
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.LayeredYamlSettingsSource(settings_cls, _pathlib.Path.cwd()),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "ResolverSettings":
        """Create settings without loading any .env file (test isolation)."""
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    version: int = _pydantic.Field(default=1, description="Config schema version")

    search_directory: bool = _pydantic.Field(
        default=True,
        description="Look keys up in the directory service",
    )

    precedence: types.PrecedenceOrder = _pydantic.Field(
        default=types.PrecedenceOrder.ENVIRONMENT_FIRST,
        description="Whether directory or environment values are tried first",
    )

    system_properties_mode: types.OverrideMode = _pydantic.Field(
        default=types.OverrideMode.FALLBACK,
        description="Whether directory/environment values override property files",
    )

    locations: list[str] = _pydantic.Field(
        default_factory=list,
        description="Property file locations, possibly containing placeholders",
    )

    ignore_resource_not_found: bool = _pydantic.Field(
        default=False,
        description="Skip missing property files instead of failing",
    )

    placeholder: types.PlaceholderConfig = _pydantic.Field(
        default_factory=types.PlaceholderConfig
    )
    """Placeholder syntax."""

    system_properties: dict[str, str] = _pydantic.Field(default_factory=dict)
    """System properties consulted after the process environment."""

    directory: types.DirectoryConfig = _pydantic.Field(
        default_factory=types.DirectoryConfig
    )
    """Directory (Consul KV) connection."""

    http: types.HttpConfig = _pydantic.Field(default_factory=types.HttpConfig)
    """Fetching of http(s) locations."""

    log_level: LogLevel = _pydantic.Field(
        default="WARNING",
        description="Logging level used by the command-line tool",
    )

    @_pydantic.field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: _typing.Any) -> _typing.Any:
        return v.upper() if isinstance(v, str) else v

    @_pydantic.field_validator("locations", mode="before")
    @classmethod
    def _single_location(cls, v: _typing.Any) -> _typing.Any:
        # A lone string is one location
        if isinstance(v, str):
            return [v]
        return v

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Get unknown fields at the top level of the settings."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Recursively collect all unknown fields, keyed by dotted path.

        Use this to audit config files for typos.
        """
        result: dict[str, _typing.Any] = dict(self.get_extra_fields())
        for field_name in ["placeholder", "directory", "http"]:
            nested = getattr(self, field_name)
            result.update(nested.collect_all_extra_fields(prefix=field_name))
        return result
