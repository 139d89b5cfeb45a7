"""
Password lookup table for keystore callbacks.

Security layers that need a keystore or key password ask for it by
identifier (usually a key alias). The table maps identifiers to password
templates which are resolved through a PropertyResolver, so the secrets
themselves can live in the directory or the environment rather than in the
wiring that builds the table:

    >>> table = PasswordTable(resolver, {"server-key": "${keystore.password}"})
    >>> table.lookup("server-key")
"""

from __future__ import annotations

import collections.abc as _cabc
import typing as _typing

import propresolver.resolver as resolver_mod


class PasswordTable(_cabc.Mapping[str, str]):
    """
    Identifier to password mapping with placeholder-resolved values.

    Args:
        resolver: Initialized resolver used to expand templates.
        passwords: Identifier to password (or template) mapping.
    """

    def __init__(
        self,
        resolver: resolver_mod.PropertyResolver,
        passwords: _cabc.Mapping[str, str] | None = None,
    ) -> None:
        self._resolver = resolver
        self._passwords = dict(passwords or {})

    @classmethod
    def from_properties(
        cls,
        resolver: resolver_mod.PropertyResolver,
        prefix: str,
    ) -> PasswordTable:
        """
        Collect every property whose key starts with ``prefix``.

        ``keystore.password.server-key=secret`` with prefix
        ``keystore.password.`` yields the identifier ``server-key``.
        """
        passwords = {
            key[len(prefix):]: value
            for key, value in resolver.resolved_properties().items()
            if key.startswith(prefix) and len(key) > len(prefix)
        }
        return cls(resolver, passwords)

    def lookup(self, identifier: str) -> str | None:
        """Password for ``identifier``, or None if unknown or blank."""
        template = self._passwords.get(identifier)
        if template is None:
            return None
        return self._resolver.resolve(template) or None

    def __getitem__(self, identifier: str) -> str:
        value = self.lookup(identifier)
        if value is None:
            raise KeyError(identifier)
        return value

    def __iter__(self) -> _typing.Iterator[str]:
        return iter(self._passwords)

    def __len__(self) -> int:
        return len(self._passwords)

    def __repr__(self) -> str:
        # Identifiers only; never the secrets
        return f"PasswordTable(identifiers={sorted(self._passwords)!r})"
