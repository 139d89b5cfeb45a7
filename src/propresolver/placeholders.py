"""
Recursive ``${key}`` placeholder substitution.

Tokens are found left to right. The closing delimiter is the first suffix
after the opening prefix; braces are not balanced, so ``${a${b}}`` looks up
the key ``a${b``. Each value found is itself resolved before it is inserted,
and scanning resumes after the inserted text.

A key is "visited" while its value is being expanded. Meeting it again in
that expansion is a circular reference. Once an expansion finishes the key is
released, so ``${a}-${a}`` is fine.

Placeholders with no value anywhere are left verbatim.
"""

from __future__ import annotations

import collections.abc as _cabc
import logging as _logging

import propresolver.config.types as types
import propresolver.constants as constants
import propresolver.lookup.base as base

_logger = _logging.getLogger(__name__)


class CircularReferenceError(ValueError):
    """A placeholder refers back to itself, directly or transitively."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Circular placeholder reference '{key}' in property definitions")


class MalformedPlaceholderError(ValueError):
    """A placeholder has an empty or whitespace-only key."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Malformed placeholder '{token}': key must not be blank")


class PlaceholderResolver:
    """
    Substitutes placeholders using an ordered list of sources.

    Args:
        prefix: Opening delimiter.
        suffix: Closing delimiter.
        value_separator: Enables ``${key<sep>default}`` when set.
    """

    def __init__(
        self,
        prefix: str = constants.DEFAULT_PLACEHOLDER_PREFIX,
        suffix: str = constants.DEFAULT_PLACEHOLDER_SUFFIX,
        value_separator: str | None = None,
    ) -> None:
        if not prefix or not suffix:
            raise ValueError("placeholder prefix and suffix must be non-empty")
        self._prefix = prefix
        self._suffix = suffix
        self._value_separator = value_separator or None

    @classmethod
    def from_config(cls, config: types.PlaceholderConfig) -> PlaceholderResolver:
        """Build a resolver from placeholder settings."""
        return cls(config.prefix, config.suffix, config.value_separator)

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def suffix(self) -> str:
        return self._suffix

    def has_placeholders(self, text: str) -> bool:
        """Whether ``text`` contains at least one complete token."""
        start = text.find(self._prefix)
        return start != -1 and text.find(self._suffix, start + len(self._prefix)) != -1

    def resolve(
        self,
        raw: str,
        sources: _cabc.Iterable[base.Lookup],
        visited: set[str] | None = None,
    ) -> str:
        """
        Substitute every placeholder in ``raw``.

        Args:
            raw: Text possibly containing placeholders.
            sources: Lookups tried in order for each key; the first non-empty
                value wins.
            visited: Keys currently being expanded. A fresh set is used when
                omitted; pass one only to continue an enclosing expansion.

        Returns:
            The substituted text. Unresolvable placeholders are kept as-is.

        Raises:
            CircularReferenceError: If a key recurs within its own expansion.
            MalformedPlaceholderError: If a key is blank.
        """
        if visited is None:
            visited = set()
        return self._resolve(raw, list(sources), visited)

    def _resolve(self, raw: str, sources: list[base.Lookup], visited: set[str]) -> str:
        result = raw
        start = result.find(self._prefix)
        while start != -1:
            end = result.find(self._suffix, start + len(self._prefix))
            if end == -1:
                break
            token_end = end + len(self._suffix)
            key = result[start + len(self._prefix):end]
            if not key.strip():
                raise MalformedPlaceholderError(result[start:token_end])
            if key in visited:
                raise CircularReferenceError(key)

            visited.add(key)
            try:
                value = self._lookup(key, result[start:token_end], sources, visited)
            finally:
                visited.discard(key)

            if value is None:
                _logger.debug("Could not resolve placeholder %s", key)
                next_from = token_end
            else:
                result = result[:start] + value + result[token_end:]
                next_from = start + len(value)
            start = result.find(self._prefix, next_from)
        return result

    def _lookup(
        self,
        key: str,
        token: str,
        sources: list[base.Lookup],
        visited: set[str],
    ) -> str | None:
        value = base.probe(key, sources)
        if value is None and self._value_separator and self._value_separator in key:
            actual, _, default = key.partition(self._value_separator)
            if not actual.strip():
                raise MalformedPlaceholderError(token)
            value = base.probe(actual, sources)
            if value is None:
                value = default
        if value is None:
            return None
        return self._resolve(value, sources, visited)
