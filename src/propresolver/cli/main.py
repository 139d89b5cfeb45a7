"""
Main CLI entry point for propresolver.

Provides a small command-line interface using Click for inspecting what a
resolver configuration produces: single values, substituted text, the full
resolved property set and the concrete property-file locations.
"""

import json as _json
import logging as _logging
import os as _os
import sys as _sys
import typing as _typing

import click as _click
import pydantic as _pydantic
import rich.console as _rich_console
import rich.syntax as _rich_syntax
import yaml as _yaml

import propresolver
import propresolver.config as config
import propresolver.lookup.base as base
import propresolver.placeholders as placeholders
import propresolver.resolver as resolver_mod

CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

# Errors that mean "this configuration cannot be resolved", reported without a traceback
RESOLUTION_ERRORS = (
    base.ConfigurationError,
    placeholders.CircularReferenceError,
    placeholders.MalformedPlaceholderError,
)


def _parse_system_properties(
    ctx: _click.Context,  # noqa: ARG001 - required by click callback interface
    param: _click.Parameter,
    values: tuple[str, ...],
) -> dict[str, str]:
    """Parse repeated ``-D KEY=VALUE`` options into a dict."""
    result: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise _click.BadParameter(f"expected KEY=VALUE, got '{item}'", param=param)
        result[key.strip()] = value
    return result


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(propresolver.__version__, "-v", "--version", prog_name="propresolver")
@_click.option(
    "-l",
    "--location",
    "locations",
    multiple=True,
    help="Property file location (repeatable; replaces configured locations)",
)
@_click.option(
    "--precedence",
    type=_click.Choice(
        ["DIRECTORY_FIRST", "ENVIRONMENT_FIRST", "JNDI_FIRST", "SYSTEM_FIRST"],
        case_sensitive=False,
    ),
    default=None,
    help="Whether the directory or the environment is consulted first",
)
@_click.option(
    "--mode",
    type=_click.Choice(["FALLBACK", "OVERRIDE"], case_sensitive=False),
    default=None,
    help="Whether directory/environment values override property files",
)
@_click.option(
    "--directory/--no-directory",
    "search_directory",
    default=None,
    help="Enable/disable directory (Consul) lookups",
)
@_click.option(
    "-D",
    "system_properties",
    multiple=True,
    metavar="KEY=VALUE",
    callback=_parse_system_properties,
    help="Set a system property (repeatable)",
)
@_click.option(
    "--log-level",
    type=_click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging level (default from config: WARNING)",
)
@_click.pass_context
def cli(
    ctx: _click.Context,
    locations: tuple[str, ...],
    precedence: str | None,
    mode: str | None,
    search_directory: bool | None,
    system_properties: dict[str, str],
    log_level: str | None,
) -> None:
    """propresolver - resolve layered properties and ${...} placeholders.

    Settings come from PROPRESOLVER_* environment variables and
    .propresolver/config.yaml; options given here take precedence.

    Examples:
        propresolver -l file:/etc/app/app.properties get db.url
        propresolver -D configDirectory=/etc/app resolve 'url=${db.url}'
        propresolver show --json
    """
    overrides: dict[str, _typing.Any] = {}
    if locations:
        overrides["locations"] = list(locations)
    if precedence is not None:
        overrides["precedence"] = precedence
    if mode is not None:
        overrides["system_properties_mode"] = mode
    if search_directory is not None:
        overrides["search_directory"] = search_directory
    if log_level is not None:
        overrides["log_level"] = log_level

    try:
        settings = config.ResolverSettings(**overrides)
    except (_pydantic.ValidationError, config.ConfigFileError) as e:
        raise _click.ClickException(str(e)) from e

    if system_properties:
        settings = settings.model_copy(
            update={"system_properties": {**settings.system_properties, **system_properties}}
        )

    _logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=_sys.stderr,
    )

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _build_resolver(ctx: _click.Context) -> resolver_mod.PropertyResolver:
    """Build an uninitialized resolver from the group's settings."""
    settings: config.ResolverSettings = ctx.obj["settings"]
    return resolver_mod.PropertyResolver.from_settings(settings)


def _initialized_resolver(ctx: _click.Context) -> resolver_mod.PropertyResolver:
    resolver = _build_resolver(ctx)
    try:
        resolver.initialize()
    except RESOLUTION_ERRORS as e:
        raise _click.ClickException(str(e)) from e
    return resolver


@cli.command(name="get")
@_click.argument("key")
@_click.option("--raw", is_flag=True, help="Print the value without expanding placeholders")
@_click.pass_context
def get_cmd(ctx: _click.Context, key: str, raw: bool) -> None:
    """Print the value of KEY. Exits with status 1 if it is not defined."""
    resolver = _initialized_resolver(ctx)
    try:
        value = resolver.get_property(key) if raw else resolver.get(key)
    except RESOLUTION_ERRORS as e:
        raise _click.ClickException(str(e)) from e

    if value is None:
        _click.echo(f"Property not found: {key}", err=True)
        ctx.exit(1)
    _click.echo(value)


@cli.command(name="resolve")
@_click.argument("text")
@_click.pass_context
def resolve_cmd(ctx: _click.Context, text: str) -> None:
    """Print TEXT with every placeholder substituted.

    Placeholders with no value anywhere are printed unchanged.
    """
    resolver = _initialized_resolver(ctx)
    try:
        _click.echo(resolver.resolve(text))
    except RESOLUTION_ERRORS as e:
        raise _click.ClickException(str(e)) from e


@cli.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)
@_click.pass_context
def show_cmd(ctx: _click.Context, as_json: bool, use_color: bool | None) -> None:
    """Show every property from the property files, fully resolved.

    Values reflect the precedence and override mode, so with --mode OVERRIDE
    a directory or environment value replaces the file value.
    """
    resolver = _initialized_resolver(ctx)
    try:
        properties = resolver.resolved_properties()
    except RESOLUTION_ERRORS as e:
        raise _click.ClickException(str(e)) from e

    if as_json:
        _click.echo(_json.dumps(properties, indent=2))
        return

    yaml_text = _yaml.safe_dump(properties, default_flow_style=False, sort_keys=False)
    color_enabled, force_color = _should_use_color(use_color)
    _print_yaml(yaml_text, color=color_enabled, force_color=force_color)


@cli.command(name="locations")
@_click.pass_context
def locations_cmd(ctx: _click.Context) -> None:
    """Show configured locations and what they resolve to.

    Does not read the property files, so it also works when a location
    cannot be loaded yet.
    """
    resolver = _build_resolver(ctx)
    try:
        resolved = resolver.resolve_locations()
    except RESOLUTION_ERRORS as e:
        raise _click.ClickException(str(e)) from e

    if not resolved:
        _click.echo("No locations configured.")
        return
    for raw, concrete in zip(resolver.locations, resolved):
        if raw == concrete:
            _click.echo(concrete)
        else:
            _click.echo(f"{raw} -> {concrete}")


def _should_use_color(cli_flag: bool | None) -> tuple[bool, bool]:
    """Determine whether to use color output.

    Priority:
    1. CLI flag (--color / --no-color) if specified
    2. NO_COLOR env var (if set, disable color) - standard convention
    3. Auto-detect: color if stdout is a TTY

    Returns:
        Tuple of (color_enabled, force_color).
        force_color is True when color was explicitly requested.
    """
    if cli_flag is not None:
        return (cli_flag, cli_flag)

    if _os.environ.get("NO_COLOR") is not None:
        return (False, False)

    return (_sys.stdout.isatty(), False)


def _print_yaml(yaml_text: str, *, color: bool = True, force_color: bool = False) -> None:
    """Print YAML text, optionally with syntax highlighting."""
    if not color:
        _click.echo(yaml_text, nl=False)
        return

    console = _rich_console.Console(
        force_terminal=force_color,
        no_color=False if force_color else None,
        color_system="truecolor" if force_color else "auto",
    )
    syntax = _rich_syntax.Syntax(
        yaml_text,
        "yaml",
        theme="monokai",
        background_color="default",
    )
    console.print(syntax)
