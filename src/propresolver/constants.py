"""
Shared constants for propresolver.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Placeholder syntax
DEFAULT_PLACEHOLDER_PREFIX = "${"
"""Opening delimiter of a placeholder token."""

DEFAULT_PLACEHOLDER_SUFFIX = "}"
"""Closing delimiter of a placeholder token."""

# Directory (Consul KV) defaults
DEFAULT_DIRECTORY_PREFIX = "app/env/"
"""Namespace prefix prepended to every directory key.

Plays the role of the application-environment naming context: a key
``db.url`` is looked up at ``app/env/db.url``.
"""

DEFAULT_DIRECTORY_HOST = "127.0.0.1"
"""Default Consul agent host."""

DEFAULT_DIRECTORY_PORT = 8500
"""Default Consul HTTP API port."""

# Location loading
DEFAULT_HTTP_TIMEOUT = 10.0
"""Timeout in seconds for fetching http(s) property locations."""

PROPERTIES_ENCODING = "utf-8"
"""Encoding used to decode .properties documents."""

# Environment variables read by the settings layer
ENV_PREFIX = "PROPRESOLVER_"
"""Prefix for environment variables that configure the resolver itself."""

ENV_CONFIG_DIR = "PROPRESOLVER_CONFIG_DIR"
"""Override for the user config directory."""

ENV_FILE = "PROPRESOLVER_ENV_FILE"
"""Explicit .env file to load settings from."""
