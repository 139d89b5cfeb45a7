"""
propresolver - layered property resolution

Loads properties from a directory service, the process environment and
ordered property files, and expands ``${...}`` placeholders, including those
inside the property-file locations themselves.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("propresolver")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from propresolver.config import (  # noqa: E402
    OverrideMode,
    PrecedenceOrder,
    ResolverSettings,
)
from propresolver.lookup import (  # noqa: E402
    ConfigurationError,
    DirectoryLookup,
    DirectoryUnavailableError,
    DirectoryValueError,
    EnvironmentLookup,
    FileTable,
    LocationError,
)
from propresolver.placeholders import (  # noqa: E402
    CircularReferenceError,
    MalformedPlaceholderError,
    PlaceholderResolver,
)
from propresolver.resolver import (  # noqa: E402
    MissingPropertyError,
    PropertyResolver,
    ResolverStateError,
    get_default_resolver,
    get_property,
)
from propresolver.security import PasswordTable  # noqa: E402

__all__ = [
    "__version__",
    "__version_info__",
    "CircularReferenceError",
    "ConfigurationError",
    "DirectoryLookup",
    "DirectoryUnavailableError",
    "DirectoryValueError",
    "EnvironmentLookup",
    "FileTable",
    "LocationError",
    "MalformedPlaceholderError",
    "MissingPropertyError",
    "OverrideMode",
    "PasswordTable",
    "PlaceholderResolver",
    "PrecedenceOrder",
    "PropertyResolver",
    "ResolverSettings",
    "ResolverStateError",
    "get_default_resolver",
    "get_property",
]
