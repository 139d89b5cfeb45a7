"""Environment variable and system-property lookup."""

from __future__ import annotations

import collections.abc as _cabc
import logging as _logging
import os as _os

import propresolver.lookup.base as base

_logger = _logging.getLogger(__name__)


class EnvironmentLookup(base.PropertySource):
    """
    Looks keys up in the process environment, then in system properties.

    System properties are a plain mapping supplied by the host application
    (from configuration or ``-D key=value`` on the command line). The
    environment is read live on every lookup, so changes made after
    construction are visible.
    """

    name = "environment"

    def __init__(
        self,
        system_properties: _cabc.Mapping[str, str] | None = None,
        *,
        environ: _cabc.Mapping[str, str] | None = None,
    ) -> None:
        self._system_properties = dict(system_properties or {})
        self._environ = environ

    @property
    def system_properties(self) -> dict[str, str]:
        """Copy of the system-properties mapping."""
        return dict(self._system_properties)

    def lookup(self, key: str) -> str | None:
        environ = self._environ if self._environ is not None else _os.environ
        value = environ.get(key)
        if value:
            _logger.debug("Retrieved environment variable %s", key)
            return value
        value = self._system_properties.get(key)
        if value:
            _logger.debug("Retrieved system property %s", key)
            return value
        return None
