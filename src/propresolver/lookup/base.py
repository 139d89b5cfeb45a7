"""
Base types shared by all property sources.

A property source is anything that can answer ``lookup(key)`` with a string
or ``None``. The resolver accepts either a ``PropertySource`` instance or any
plain callable with the same shape, so tests and host applications can pass
lambdas or bound methods without subclassing.
"""

from __future__ import annotations

import abc as _abc
import collections.abc as _cabc
import typing as _typing


class ConfigurationError(Exception):
    """Fatal configuration problem; aborts startup."""

    pass


class PropertySource(_abc.ABC):
    """Abstract provider of property values."""

    name: str = "source"
    """Short label used in log messages."""

    @_abc.abstractmethod
    def lookup(self, key: str) -> str | None:
        """
        Look up a single key.

        Args:
            key: Property name.

        Returns:
            The value, or None when this source has no (or an empty) value.
        """
        ...

    def __call__(self, key: str) -> str | None:
        return self.lookup(key)


Lookup: _typing.TypeAlias = _cabc.Callable[[str], str | None]
"""Anything callable as ``lookup(key) -> str | None``."""


def probe(key: str, sources: _cabc.Iterable[Lookup]) -> str | None:
    """
    Query sources in order and return the first non-empty value.

    Empty strings count as absent, so a blank value in one source falls
    through to the next.
    """
    for source in sources:
        value = source(key)
        if value:
            return value
    return None
