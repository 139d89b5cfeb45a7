"""
Shared pytest fixtures for propresolver tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import collections.abc as _cabc
import os as _os
import pathlib as _pathlib
import typing as _typing

import pytest as _pytest

import propresolver.lookup.directory as directory
import propresolver.resolver as resolver_mod

# =============================================================================
# Environment isolation
# =============================================================================


@_pytest.fixture(autouse=True)
def isolated_config(
    monkeypatch: _pytest.MonkeyPatch,
    tmp_path: _pathlib.Path,
) -> _typing.Iterator[_pathlib.Path]:
    """Keep user/project config files and PROPRESOLVER_* variables out of tests.

    Points the user config dir at an empty temp directory, runs the test from
    a clean working directory and drops the process-wide resolver.

    Returns:
        The working directory the test runs in.
    """
    for key in list(_os.environ):
        if key.startswith("PROPRESOLVER_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("PROPRESOLVER_CONFIG_DIR", str(tmp_path / "user-config"))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    resolver_mod.reset_default_resolver()
    yield workdir
    resolver_mod.reset_default_resolver()


# =============================================================================
# Fake directory
# =============================================================================


class FakeDirectoryClient:
    """In-memory DirectoryClient that records every call."""

    def __init__(
        self,
        entries: _cabc.Mapping[str, str],
        calls: list[tuple[str, ...]],
        error: BaseException | None = None,
    ) -> None:
        self._entries = entries
        self._calls = calls
        self._error = error

    def get(self, key: str) -> str | None:
        self._calls.append(("get", key))
        if self._error is not None:
            raise self._error
        return self._entries.get(key)

    def close(self) -> None:
        self._calls.append(("close",))


class FakeDirectory:
    """Handle returned by the ``fake_directory`` fixture."""

    def __init__(
        self,
        entries: dict[str, str],
        prefix: str,
        error: BaseException | None,
    ) -> None:
        self.entries = entries
        self.calls: list[tuple[str, ...]] = []
        self.error = error
        self.lookup = directory.DirectoryLookup(self.connect, prefix=prefix)

    def connect(self) -> FakeDirectoryClient:
        self.calls.append(("connect",))
        return FakeDirectoryClient(self.entries, self.calls, self.error)

    @property
    def gets(self) -> list[str]:
        """Fully-qualified keys requested so far."""
        return [call[1] for call in self.calls if call[0] == "get"]


@_pytest.fixture
def fake_directory() -> _typing.Callable[..., FakeDirectory]:
    """Factory for DirectoryLookup instances backed by a dict.

    Keys in ``entries`` are fully qualified, i.e. include the prefix.

    Example:
        def test_x(fake_directory):
            fake = fake_directory({"app/env/db.url": "jdbc:x"})
            assert fake.lookup.lookup("db.url") == "jdbc:x"
    """

    def _make(
        entries: dict[str, str] | None = None,
        *,
        prefix: str = "app/env/",
        error: BaseException | None = None,
    ) -> FakeDirectory:
        return FakeDirectory(dict(entries or {}), prefix, error)

    return _make


# =============================================================================
# Property files
# =============================================================================


@_pytest.fixture
def write_file(tmp_path: _pathlib.Path) -> _typing.Callable[[str, str], _pathlib.Path]:
    """Write a text file under a temp ``files`` directory and return its path."""
    base_dir = tmp_path / "files"

    def _write(relative: str, content: str) -> _pathlib.Path:
        path = base_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
