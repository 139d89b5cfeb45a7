"""Tests for source ordering: precedence order and override mode."""

import propresolver.config.types as types
import propresolver.resolver as resolver_mod

DIRECTORY_FIRST = types.PrecedenceOrder.DIRECTORY_FIRST
ENVIRONMENT_FIRST = types.PrecedenceOrder.ENVIRONMENT_FIRST
FALLBACK = types.OverrideMode.FALLBACK
OVERRIDE = types.OverrideMode.OVERRIDE


class CountingLookup:
    """dict-backed lookup that counts how often each key is asked for."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = values or {}
        self.calls: list[str] = []

    def __call__(self, key: str) -> str | None:
        self.calls.append(key)
        return self.values.get(key)


class TestBuildProbes:
    """Tests for build_probes."""

    def test_directory_first(self) -> None:
        """DIRECTORY_FIRST puts the directory in front."""
        d, e = CountingLookup(), CountingLookup()
        assert resolver_mod.build_probes(DIRECTORY_FIRST, directory=d, environment=e) == [d, e]

    def test_environment_first(self) -> None:
        """ENVIRONMENT_FIRST puts the environment in front."""
        d, e = CountingLookup(), CountingLookup()
        assert resolver_mod.build_probes(ENVIRONMENT_FIRST, directory=d, environment=e) == [e, d]

    def test_disabled_sources_dropped(self) -> None:
        """None means the source is not consulted."""
        e = CountingLookup()
        assert resolver_mod.build_probes(DIRECTORY_FIRST, environment=e) == [e]
        assert resolver_mod.build_probes(ENVIRONMENT_FIRST) == []


class TestFallbackMode:
    """Property files are authoritative."""

    def test_file_wins(self) -> None:
        """A file value hides directory and environment values."""
        directory = CountingLookup({"a": "dir"})
        environment = CountingLookup({"a": "env"})
        value = resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, FALLBACK, {"a": "file"},
            directory=directory, environment=environment,
        )
        assert value == "file"
        assert directory.calls == []
        assert environment.calls == []

    def test_probes_fill_gaps(self) -> None:
        """Keys missing from the files come from the probes."""
        value = resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, FALLBACK, {},
            directory=CountingLookup({"a": "dir"}),
            environment=CountingLookup({"a": "env"}),
        )
        assert value == "env"

    def test_empty_file_value_falls_through(self) -> None:
        """An empty file value is absent."""
        value = resolver_mod.get_property(
            "a", DIRECTORY_FIRST, FALLBACK, {"a": ""},
            directory=CountingLookup({"a": "dir"}),
        )
        assert value == "dir"

    def test_probes_consulted_once(self) -> None:
        """FALLBACK asks each probe once for a missing key."""
        environment = CountingLookup()
        assert resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, FALLBACK, {}, environment=environment
        ) is None
        assert environment.calls == ["a"]


class TestOverrideMode:
    """Directory and environment values win."""

    def test_external_wins(self) -> None:
        """A probe value hides the file value."""
        value = resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, OVERRIDE, {"a": "file"},
            environment=CountingLookup({"a": "env"}),
        )
        assert value == "env"

    def test_file_used_when_external_missing(self) -> None:
        """The file value is used when the probes have nothing."""
        value = resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, OVERRIDE, {"a": "file"},
            directory=CountingLookup(), environment=CountingLookup(),
        )
        assert value == "file"

    def test_probes_retried_after_files(self) -> None:
        """A key absent everywhere is probed before and after the files."""
        directory = CountingLookup()
        environment = CountingLookup()
        value = resolver_mod.get_property(
            "a", DIRECTORY_FIRST, OVERRIDE, {},
            directory=directory, environment=environment,
        )
        assert value is None
        assert directory.calls == ["a", "a"]
        assert environment.calls == ["a", "a"]

    def test_no_file_table(self) -> None:
        """Before files are loaded only the probes count."""
        value = resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, OVERRIDE, None,
            environment=CountingLookup({"a": "env"}),
        )
        assert value == "env"


class TestPrecedence:
    """Directory versus environment."""

    def test_directory_first(self) -> None:
        """DIRECTORY_FIRST prefers the directory value."""
        value = resolver_mod.get_property(
            "a", DIRECTORY_FIRST, FALLBACK, {},
            directory=CountingLookup({"a": "dir"}),
            environment=CountingLookup({"a": "env"}),
        )
        assert value == "dir"

    def test_environment_first(self) -> None:
        """ENVIRONMENT_FIRST prefers the environment value."""
        value = resolver_mod.get_property(
            "a", ENVIRONMENT_FIRST, FALLBACK, {},
            directory=CountingLookup({"a": "dir"}),
            environment=CountingLookup({"a": "env"}),
        )
        assert value == "env"

    def test_second_probe_used_when_first_empty(self) -> None:
        """An empty value in the first probe falls through to the second."""
        value = resolver_mod.get_property(
            "a", DIRECTORY_FIRST, OVERRIDE, {},
            directory=CountingLookup({"a": ""}),
            environment=CountingLookup({"a": "env"}),
        )
        assert value == "env"

    def test_directory_disabled(self) -> None:
        """Without a directory only the environment is asked."""
        value = resolver_mod.get_property(
            "a", DIRECTORY_FIRST, FALLBACK, {}, environment=CountingLookup({"a": "env"})
        )
        assert value == "env"
