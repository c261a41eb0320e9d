# src/hookgraft/cli.py
"""hookgraft Command Line Interface.

Entry point for the hookgraft CLI tool: build-time aggregator generation
and inspection of resource ids and rewrites.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from hookgraft import __version__
from hookgraft.contracts.errors import HookgraftError
from hookgraft.core.config import HookgraftSettings, find_settings, load_settings

__all__ = [
    "app",
]

app = typer.Typer(
    name="hookgraft",
    help="hookgraft: compile-time extension points for Python modules.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"hookgraft version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load HOOKGRAFT_* overrides from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _format_error(title: str, message: str, hint: str | None = None) -> None:
    """Display a formatted error with an optional hint."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")
    if hint:
        content.append("\n\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    console.print(
        Panel(
            content,
            title=f"[red bold]{title}[/]",
            border_style="red",
            padding=(0, 1),
        )
    )


def _resolve_settings(settings: str | None) -> HookgraftSettings:
    """Load settings from an explicit file, or the nearest hookgraft.yaml.

    Raises:
        typer.Exit: If the file is missing or fails validation
    """
    try:
        if settings is None:
            return find_settings(Path.cwd())
        return load_settings(Path(settings).expanduser())
    except FileNotFoundError as e:
        _format_error("Settings Not Found", str(e))
        raise typer.Exit(1) from None
    except ValidationError as e:
        _format_error(
            "Invalid Settings",
            str(e),
            hint="Check hookgraft.yaml and HOOKGRAFT_* environment variables.",
        )
        raise typer.Exit(1) from None


_SETTINGS_OPTION_HELP = "Path to hookgraft.yaml (default: nearest above the working directory)."


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence is checked by _load_dotenv
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """hookgraft: compile-time extension points for Python modules."""
    from hookgraft.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def setup(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=_SETTINGS_OPTION_HELP,
    ),
) -> None:
    """Discover extension modules and write aggregator modules."""
    from hookgraft.extensions.aggregator import write_aggregators
    from hookgraft.extensions.discovery import discover_extensions

    config = _resolve_settings(settings)
    try:
        groups = discover_extensions(config.extension_paths, config.extension_pattern)
        write_aggregators(groups, config.generated_path)
    except (HookgraftError, SyntaxError) as e:
        _format_error("Setup Failed", str(e))
        raise typer.Exit(1) from None

    if not groups:
        typer.echo("No extensions found.")
        return

    for group in groups.values():
        typer.echo(f"{group.resource_id}  ({len(group.extensions)} extension(s)) -> {group.hash}.py")
    typer.echo(f"\nWrote {len(groups)} aggregator(s) to {config.generated_path}")


@app.command()
def clean(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=_SETTINGS_OPTION_HELP,
    ),
) -> None:
    """Remove generated aggregator modules."""
    from hookgraft.extensions.aggregator import clean_aggregators

    config = _resolve_settings(settings)
    removed = clean_aggregators(config.generated_path)
    typer.echo(f"Removed {removed} file(s) from {config.generated_path}")


@app.command("config")
def show_config(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=_SETTINGS_OPTION_HELP,
    ),
) -> None:
    """Show the effective settings as YAML.

    Displays hookgraft.yaml merged with HOOKGRAFT_* environment overrides.
    """
    import yaml

    config = _resolve_settings(settings)
    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False))


@app.command("list")
def list_extensions(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=_SETTINGS_OPTION_HELP,
    ),
) -> None:
    """List discovered resource ids and the extensions targeting them."""
    from hookgraft.extensions.discovery import discover_extensions

    config = _resolve_settings(settings)
    try:
        groups = discover_extensions(config.extension_paths, config.extension_pattern)
    except (HookgraftError, SyntaxError) as e:
        _format_error("Discovery Failed", str(e))
        raise typer.Exit(1) from None

    if not groups:
        typer.echo("No extensions found.")
        return

    for group in groups.values():
        typer.echo(f"\n{group.resource_id}:")
        for found in group.extensions:
            typer.echo(f"  {found.extension_id}")
    typer.echo()


@app.command()
def resolve(
    file: Path = typer.Argument(..., help="Module to resolve."),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Export name (omit for the default export).",
    ),
) -> None:
    """Print the resource id of an export."""
    from hookgraft.core.resolver import resolve_resource_id

    try:
        resource_id = resolve_resource_id(file, name, is_default=name is None)
    except HookgraftError as e:
        _format_error("Cannot Resolve", str(e), hint="Resource ids need a pyproject.toml above the module.")
        raise typer.Exit(1) from None
    typer.echo(resource_id)


@app.command()
def rewrite(
    file: Path = typer.Argument(..., help="Module to rewrite.", exists=True, dir_okay=False),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=_SETTINGS_OPTION_HELP,
    ),
    instrument_all: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Instrument every export, not only those with extensions.",
    ),
) -> None:
    """Print the rewritten source of a module."""
    from hookgraft.extensions.aggregator import load_index
    from hookgraft.rewriter.rewrite import AggregatorSource
    from hookgraft.rewriter.rewrite import rewrite as rewrite_source

    config = _resolve_settings(settings)
    index = load_index(config.generated_path)
    try:
        output = rewrite_source(
            file.read_text(encoding="utf-8"),
            file,
            index.has_extensions,
            aggregator=AggregatorSource(package=config.generated_package, directory=config.generated_path),
            instrument_all=instrument_all or config.instrument_all,
            exclude=config.exclude,
        )
    except HookgraftError as e:
        _format_error("Rewrite Failed", str(e))
        raise typer.Exit(1) from None
    typer.echo(output, nl=False)


if __name__ == "__main__":
    app()
