"""Command-line interface: inspect, check and apply layered configuration."""

import asyncio
import logging
import os
import subprocess
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from dotenv_azure.constants import (
    DEFAULT_ENV_PATH,
    DEFAULT_EXAMPLE_PATH,
    DEFAULT_RATE_LIMIT,
    MASKED_VALUE,
    SOURCE_APP_CONFIG,
    SOURCE_KEY_VAULT,
    SOURCE_LOCAL,
    TABLE_COLUMNS,
)
from dotenv_azure.config import ConfigOptions
from dotenv_azure.domain.merge import merge_variables
from dotenv_azure.environment import read_env_file
from dotenv_azure.errors import DotenvAzureError
from dotenv_azure.loader import DotenvAzure
from dotenv_azure.models import ConfigOutput, RemoteVariables, VariablesObject

app = typer.Typer(
    help="Load .env, Azure App Configuration and Key Vault variables",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Module-level defaults for Typer options
_PATH_HELP = "Path to the local .env file"
_EXAMPLE_HELP = "Path to the example file listing required variables"
_CONNECTION_STRING_HELP = (
    "App Configuration connection string (defaults to AZURE_APP_CONFIG_CONNECTION_STRING)"
)
_RATE_LIMIT_HELP = "Maximum Key Vault requests per second"


def build_loader(connection_string: str | None, rate_limit: float) -> DotenvAzure:
    """Create the loader used by every command."""
    return DotenvAzure(rate_limit=rate_limit, connection_string=connection_string)


def describe_sources(
    local_vars: VariablesObject, remote: RemoteVariables
) -> list[tuple[str, str, str]]:
    """Return (key, source, value) rows for the merged configuration, sorted by key.

    Each key is attributed to the layer whose value wins the merge.
    """
    rows: dict[str, tuple[str, str]] = {}
    for key, value in remote.key_vault.items():
        rows[key] = (SOURCE_KEY_VAULT, value)
    for key, value in remote.app_configuration.items():
        rows[key] = (SOURCE_APP_CONFIG, value)
    for key, value in local_vars.items():
        rows[key] = (SOURCE_LOCAL, value)
    return [(key, source, value) for key, (source, value) in sorted(rows.items())]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(exc: Exception) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}", highlight=False)
    raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    """Load .env, Azure App Configuration and Key Vault variables."""
    _setup_logging(verbose)


@app.command()
def show(
    path: Path = typer.Option(Path(DEFAULT_ENV_PATH), "--path", help=_PATH_HELP),  # noqa: B008
    example: Path = typer.Option(  # noqa: B008
        Path(DEFAULT_EXAMPLE_PATH), "--example", help=_EXAMPLE_HELP
    ),
    safe: bool = typer.Option(
        False, "--safe", help="Fail if a variable of the example file is not set"
    ),
    connection_string: str | None = typer.Option(
        None, "--connection-string", "-c", help=_CONNECTION_STRING_HELP
    ),
    rate_limit: float = typer.Option(DEFAULT_RATE_LIMIT, "--rate-limit", help=_RATE_LIMIT_HELP),
    reveal: bool = typer.Option(False, "--reveal", help="Print Key Vault values unmasked"),
) -> None:
    """Print the merged configuration and where each value comes from.

    The environment is not modified.  With ``--safe`` the merged values,
    overlaid on the current environment, are checked against the example file.
    """
    dotenv_error: Exception | None = None
    try:
        local_vars = read_env_file(path)
    except FileNotFoundError as exc:
        local_vars = {}
        dotenv_error = exc

    async def load() -> RemoteVariables:
        async with build_loader(connection_string, rate_limit) as loader:
            remote = await loader.load_sources(local_vars)
            if safe:
                merged = merge_variables(
                    secrets=remote.key_vault, remote=remote.app_configuration, local=local_vars
                )
                loader.validate_from_env_example(
                    ConfigOptions(path=path, example=example),
                    dotenv_error,
                    env={**os.environ, **merged},
                )
            return remote

    try:
        remote = asyncio.run(load())
    except (DotenvAzureError, FileNotFoundError) as exc:
        _fail(exc)

    table = Table(*TABLE_COLUMNS)
    for index, (key, source, value) in enumerate(describe_sources(local_vars, remote), start=1):
        shown = MASKED_VALUE if source == SOURCE_KEY_VAULT and not reveal else value
        table.add_row(str(index), key, source, shown)
    console.print(table)


@app.command()
def check(
    path: Path = typer.Option(Path(DEFAULT_ENV_PATH), "--path", help=_PATH_HELP),  # noqa: B008
    example: Path = typer.Option(  # noqa: B008
        Path(DEFAULT_EXAMPLE_PATH), "--example", help=_EXAMPLE_HELP
    ),
    allow_empty_values: bool = typer.Option(
        False, "--allow-empty-values", help="Treat empty variables as set"
    ),
    connection_string: str | None = typer.Option(
        None, "--connection-string", "-c", help=_CONNECTION_STRING_HELP
    ),
    rate_limit: float = typer.Option(DEFAULT_RATE_LIMIT, "--rate-limit", help=_RATE_LIMIT_HELP),
) -> None:
    """Fail if a variable listed in the example file is not set."""

    async def load() -> ConfigOutput:
        async with build_loader(connection_string, rate_limit) as loader:
            return await loader.config(
                path=path, example=example, safe=True, allow_empty_values=allow_empty_values
            )

    try:
        result = asyncio.run(load())
    except (DotenvAzureError, FileNotFoundError) as exc:
        _fail(exc)

    typer.echo(f"All variables from {example} are set ({len(result.parsed)} loaded)")


@app.command(context_settings={"allow_interspersed_args": False})
def run(
    command: list[str] = typer.Argument(..., help="Command to run, after --"),  # noqa: B008
    path: Path = typer.Option(Path(DEFAULT_ENV_PATH), "--path", help=_PATH_HELP),  # noqa: B008
    override: bool = typer.Option(
        False, "--override", help="Overwrite variables already set in the environment"
    ),
    connection_string: str | None = typer.Option(
        None, "--connection-string", "-c", help=_CONNECTION_STRING_HELP
    ),
    rate_limit: float = typer.Option(DEFAULT_RATE_LIMIT, "--rate-limit", help=_RATE_LIMIT_HELP),
) -> None:
    """Apply the configuration to the environment and run a command."""

    async def load() -> ConfigOutput:
        async with build_loader(connection_string, rate_limit) as loader:
            return await loader.config(path=path, override=override)

    try:
        asyncio.run(load())
    except DotenvAzureError as exc:
        _fail(exc)

    try:
        completed = subprocess.run(command)
    except OSError as exc:
        typer.echo(f"Error running command: {' '.join(command)}", err=True)
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=127) from exc
    raise typer.Exit(code=completed.returncode)


if __name__ == "__main__":
    app()
