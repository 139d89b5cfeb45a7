"""
Property sources: directory, environment and property files.
"""

from propresolver.lookup.base import ConfigurationError, Lookup, PropertySource, probe
from propresolver.lookup.directory import (
    ConsulDirectoryClient,
    DirectoryClient,
    DirectoryLookup,
    DirectoryUnavailableError,
    DirectoryValueError,
)
from propresolver.lookup.environment import EnvironmentLookup
from propresolver.lookup.files import FileTable, LocationError, load_file_table, read_location

__all__ = [
    "ConfigurationError",
    "ConsulDirectoryClient",
    "DirectoryClient",
    "DirectoryLookup",
    "DirectoryUnavailableError",
    "DirectoryValueError",
    "EnvironmentLookup",
    "FileTable",
    "Lookup",
    "LocationError",
    "PropertySource",
    "load_file_table",
    "probe",
    "read_location",
]
