"""Tests for ResolverSettings: defaults and layer precedence."""

import pathlib as _pathlib

import pydantic as _pydantic
import pytest as _pytest

import propresolver.config as config
import propresolver.config.sources as sources


def _write_yaml(path: _pathlib.Path, content: str) -> _pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@_pytest.fixture
def user_config() -> _pathlib.Path:
    """User config path inside the isolated config dir."""
    return sources.get_user_config_path()


@_pytest.fixture
def project_config(isolated_config: _pathlib.Path) -> _pathlib.Path:
    """Project config path inside the test's working directory."""
    return sources.get_project_config_path(isolated_config)


class TestSettingsDefaults:
    """Defaults come from the bundled config.yaml."""

    def test_defaults(self) -> None:
        """A clean environment yields the documented defaults."""
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.version == 1
        assert settings.search_directory is True
        assert settings.precedence is config.PrecedenceOrder.ENVIRONMENT_FIRST
        assert settings.system_properties_mode is config.OverrideMode.FALLBACK
        assert settings.locations == []
        assert settings.ignore_resource_not_found is False
        assert settings.system_properties == {}
        assert settings.log_level == "WARNING"

    def test_section_defaults(self) -> None:
        """Nested sections are populated."""
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.placeholder.prefix == "${"
        assert settings.placeholder.suffix == "}"
        assert settings.placeholder.value_separator is None
        assert settings.directory.host == "127.0.0.1"
        assert settings.directory.port == 8500
        assert settings.directory.prefix == "app/env/"
        assert settings.http.timeout == 10.0

    def test_no_extra_fields_in_defaults(self) -> None:
        """The bundled defaults contain no unknown keys."""
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.collect_all_extra_fields() == {}


class TestSettingsLayers:
    """Constructor > environment > project > user > built-in."""

    def test_user_config(self, user_config: _pathlib.Path) -> None:
        """The user config overrides built-in defaults."""
        _write_yaml(user_config, "system_properties_mode: OVERRIDE\n")
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.system_properties_mode is config.OverrideMode.OVERRIDE

    def test_project_over_user(
        self, user_config: _pathlib.Path, project_config: _pathlib.Path
    ) -> None:
        """The project config overrides the user config."""
        _write_yaml(user_config, "precedence: ENVIRONMENT_FIRST\ndirectory:\n  host: user\n")
        _write_yaml(project_config, "precedence: JNDI_FIRST\n")
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.precedence is config.PrecedenceOrder.DIRECTORY_FIRST
        # Sections merge key by key
        assert settings.directory.host == "user"
        assert settings.directory.port == 8500

    def test_env_over_project(
        self, project_config: _pathlib.Path, monkeypatch: _pytest.MonkeyPatch
    ) -> None:
        """PROPRESOLVER_* variables override config files."""
        _write_yaml(project_config, "directory:\n  host: project\n  port: 9000\n")
        monkeypatch.setenv("PROPRESOLVER_DIRECTORY__HOST", "consul.env")
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.directory.host == "consul.env"
        assert settings.directory.port == 9000

    def test_init_over_env(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Constructor arguments win over everything."""
        monkeypatch.setenv("PROPRESOLVER_SEARCH_DIRECTORY", "false")
        settings = config.ResolverSettings.construct_without_dotenv(search_directory=True)
        assert settings.search_directory is True

    def test_env_complex_values(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Lists and dicts are read from JSON environment values."""
        monkeypatch.setenv("PROPRESOLVER_LOCATIONS", '["/etc/a.properties", "/etc/b.yaml"]')
        monkeypatch.setenv("PROPRESOLVER_SYSTEM_PROPERTIES", '{"configDirectory": "/etc"}')
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.locations == ["/etc/a.properties", "/etc/b.yaml"]
        assert settings.system_properties == {"configDirectory": "/etc"}

    def test_project_locations(self, project_config: _pathlib.Path) -> None:
        """Locations keep their placeholders."""
        _write_yaml(
            project_config,
            "locations:\n"
            "  - file:${configDirectory}/application.properties\n"
            "  - package:myapp/defaults.yaml\n",
        )
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.locations == [
            "file:${configDirectory}/application.properties",
            "package:myapp/defaults.yaml",
        ]

    def test_malformed_project_config(self, project_config: _pathlib.Path) -> None:
        """Broken config files are reported with their path."""
        _write_yaml(project_config, "locations: [\n")
        with _pytest.raises(sources.ConfigFileError) as exc_info:
            config.ResolverSettings.construct_without_dotenv()
        assert exc_info.value.path == project_config


class TestSettingsValidation:
    """Field coercion and validation."""

    def test_single_location_string(self) -> None:
        """A lone string is one location."""
        settings = config.ResolverSettings.construct_without_dotenv(locations="/etc/app.properties")
        assert settings.locations == ["/etc/app.properties"]

    def test_log_level_case(self) -> None:
        """Log levels are case-insensitive."""
        settings = config.ResolverSettings.construct_without_dotenv(log_level="debug")
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Unknown log levels are rejected."""
        with _pytest.raises(_pydantic.ValidationError):
            config.ResolverSettings.construct_without_dotenv(log_level="LOUD")

    def test_invalid_precedence(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Unknown precedence names are rejected."""
        monkeypatch.setenv("PROPRESOLVER_PRECEDENCE", "FILES_FIRST")
        with _pytest.raises(_pydantic.ValidationError):
            config.ResolverSettings.construct_without_dotenv()

    def test_invalid_port(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Nested values are validated too."""
        monkeypatch.setenv("PROPRESOLVER_DIRECTORY__PORT", "0")
        with _pytest.raises(_pydantic.ValidationError):
            config.ResolverSettings.construct_without_dotenv()

    def test_extra_fields_collected(self, project_config: _pathlib.Path) -> None:
        """Typos anywhere in the config are reported by dotted path."""
        _write_yaml(
            project_config,
            "serch_directory: false\ndirectory:\n  hots: consul.local\n",
        )
        settings = config.ResolverSettings.construct_without_dotenv()
        assert settings.collect_all_extra_fields() == {
            "serch_directory": False,
            "directory.hots": "consul.local",
        }
