"""
Directory lookup backed by an external naming service.

The directory is a hierarchical key/value service queried under a fixed
namespace prefix. The production client talks to a Consul agent's KV store;
anything implementing ``DirectoryClient`` can stand in for it.

Every lookup opens its own client connection and closes it on every exit
path. A missing key is an ordinary ``None``; failing to reach the service is
fatal and surfaces as ``DirectoryUnavailableError``.
"""

from __future__ import annotations

import collections.abc as _cabc
import contextlib as _contextlib
import logging as _logging
import typing as _typing

import consul as _consul
import requests as _requests
import requests.adapters as _requests_adapters

import propresolver.config.types as types
import propresolver.constants as constants
import propresolver.lookup.base as base

_logger = _logging.getLogger(__name__)


class DirectoryUnavailableError(base.ConfigurationError):
    """The naming service could not be reached or refused the request."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Directory lookup failed for '{key}': {message}")


class DirectoryValueError(base.ConfigurationError):
    """A directory entry holds a value that is not text."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Invalid directory value for '{key}': {message}")


class DirectoryClient(_typing.Protocol):
    """Connection to a naming service."""

    def get(self, key: str) -> str | None:
        """Return the value stored at the fully-qualified key, or None."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...


class TimeoutAdapter(_requests_adapters.HTTPAdapter):
    """HTTPAdapter applying a default timeout to requests that set none."""

    def __init__(self, timeout: float) -> None:
        super().__init__()
        self.timeout = timeout

    def send(
        self, request: _requests.PreparedRequest, **kwargs: _typing.Any
    ) -> _requests.Response:
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


class ConsulDirectoryClient:
    """
    DirectoryClient over the Consul KV HTTP API.

    Values are stored as raw bytes in Consul and decoded as UTF-8.
    """

    def __init__(self, client: _consul.Consul) -> None:
        self._client = client

    @property
    def consul(self) -> _consul.Consul:
        """The wrapped Consul client."""
        return self._client

    @classmethod
    def connect(cls, config: types.DirectoryConfig) -> ConsulDirectoryClient:
        """
        Open a client from directory settings.

        The Consul client has no timeout setting of its own, so a configured
        timeout is installed on its HTTP session.

        Args:
            config: Validated directory configuration.

        Returns:
            A new client. The caller owns it and must close it.
        """
        client = _consul.Consul(
            host=config.host,
            port=config.port,
            scheme=config.scheme,
            token=config.token.get_secret_value() if config.token else None,
            dc=config.datacenter,
            verify=config.verify,
        )
        if config.timeout is not None:
            adapter = TimeoutAdapter(config.timeout)
            client.http.session.mount("http://", adapter)
            client.http.session.mount("https://", adapter)
        return cls(client)

    def get(self, key: str) -> str | None:
        _index, data = self._client.kv.get(key)
        if data is None:
            return None
        value = data.get("Value")
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DirectoryValueError(key, f"not valid UTF-8 ({e.reason})") from e
        return value

    def close(self) -> None:
        self._client.http.session.close()


class DirectoryLookup(base.PropertySource):
    """
    Looks keys up in the directory under a fixed namespace prefix.

    Args:
        connect: Zero-argument factory returning a fresh DirectoryClient.
        prefix: Namespace prepended to every key.
    """

    name = "directory"

    def __init__(
        self,
        connect: _cabc.Callable[[], DirectoryClient],
        *,
        prefix: str = constants.DEFAULT_DIRECTORY_PREFIX,
    ) -> None:
        self._connect = connect
        self._prefix = prefix

    @classmethod
    def from_config(cls, config: types.DirectoryConfig) -> DirectoryLookup:
        """Build a Consul-backed lookup from directory settings."""
        return cls(lambda: ConsulDirectoryClient.connect(config), prefix=config.prefix)

    @property
    def prefix(self) -> str:
        """Namespace prefix applied to keys."""
        return self._prefix

    def lookup(self, key: str) -> str | None:
        qualified = self._prefix + key
        try:
            client = self._connect()
        except base.ConfigurationError:
            raise
        except (_consul.ConsulException, OSError, TypeError, ValueError) as e:
            raise DirectoryUnavailableError(qualified, f"cannot create client: {e}") from e

        try:
            with _contextlib.closing(client):
                value = client.get(qualified)
        except base.ConfigurationError:
            raise
        except (_consul.ConsulException, OSError) as e:
            raise DirectoryUnavailableError(qualified, str(e)) from e

        if not value:
            return None
        _logger.debug("Retrieved directory property %s", key)
        return value
