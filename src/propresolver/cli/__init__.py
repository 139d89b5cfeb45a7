"""
CLI module for propresolver.

Provides the command-line interface using Click.
"""

from propresolver.cli.main import cli

__all__ = ["cli"]
