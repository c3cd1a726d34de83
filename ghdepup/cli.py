"""CLI interface for GHDEPUP.

This module provides the Typer-based command-line interface:

    ghdepup update DECLARATION... VERSIONS   resolve and rewrite VERSIONS
    ghdepup show FILE...                     print the merged dependencies
    ghdepup check FILE...                    validate files without fetching
    ghdepup config                           print the effective configuration
"""

import asyncio
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from rich.table import Table

from ghdepup import prf
from ghdepup.config.manager import ConfigManager
from ghdepup.config.settings import MAX_PARALLEL_FETCHES, Settings
from ghdepup.deps.descriptor import DependencyDescriptor, build_descriptors
from ghdepup.deps.pipeline import RunResult, update_versions_file
from ghdepup.integrations.auth import get_token
from ghdepup.integrations.github import GitHubTagSource
from ghdepup.utils.console import (
    console,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
    show_version,
)
from ghdepup.utils.errors import ExitCode, GhdepupError
from ghdepup.utils.logging import log_message, setup_logging

# Create Typer app
app = typer.Typer(
    name="ghdepup",
    help="GHDEPUP - Resolve dependency versions from GitHub tags",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        show_version()
        raise typer.Exit()


class AsyncLoopAlreadyRunningError(GhdepupError):
    """Raised when trying to run async code in an existing event loop."""

    _default_exit_code = ExitCode.GENERAL_ERROR


T = TypeVar("T")


def run_async(coro_factory: Callable[[], Coroutine[None, None, T]]) -> T:
    """Run an async coroutine, refusing to nest inside a running event loop.

    Takes a factory so the running-loop check happens before the coroutine
    is created.

    Args:
        coro_factory: A callable that returns the coroutine to run.
            Example: lambda: my_async_fn(arg1, arg2)

    Returns:
        The result of the coroutine

    Raises:
        AsyncLoopAlreadyRunningError: If an event loop is already running.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        raise AsyncLoopAlreadyRunningError(
            "Cannot run async operation: an event loop is already running. "
            "Run ghdepup from a synchronous environment."
        )

    return asyncio.run(coro_factory())


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """GHDEPUP - Resolve dependency versions from GitHub tags."""
    setup_logging()


def _load_settings() -> tuple[ConfigManager, Settings]:
    config = ConfigManager()
    return config, config.load()


def _status(previous: str | None, version: str | None, resolved: bool) -> str:
    if not resolved:
        return "[warning]unresolved[/warning]"
    if previous is None:
        return "[info]new[/info]"
    if previous != version:
        return "[success]updated[/success]"
    return "[dim]unchanged[/dim]"


def _print_resolutions(result: RunResult) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Dependency", style="cyan")
    table.add_column("Project")
    table.add_column("Previous")
    table.add_column("New")
    table.add_column("Status")
    for name, resolution in result.resolutions.items():
        descriptor = result.descriptors[name]
        table.add_row(
            name,
            descriptor.project,
            resolution.previous or "-",
            resolution.version or "-",
            _status(resolution.previous, resolution.version, resolution.resolved),
        )
    console.print(table)


def _print_report(result: RunResult) -> None:
    print_header("Resolution Report")
    for name, resolution in result.resolutions.items():
        descriptor = result.descriptors[name]
        console.print(f"[bold]{name}[/bold]", highlight=False)
        console.print(f"  project:     {descriptor.project}", highlight=False)
        console.print(f"  tag prefix:  {descriptor.tag_prefix or '-'}", highlight=False)
        console.print(f"  requirement: {descriptor.version_req or '*'}", highlight=False)
        console.print(f"  previous:    {resolution.previous or '-'}", highlight=False)
        console.print(f"  tags seen:   {resolution.tags_seen}", highlight=False)
        console.print(f"  candidates:  {resolution.candidates}", highlight=False)
        console.print(f"  selected:    {resolution.tag or '-'}", highlight=False)


def _print_descriptors(descriptors: dict[str, DependencyDescriptor]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Dependency", style="cyan")
    table.add_column("Project")
    table.add_column("Tag prefix")
    table.add_column("Requirement")
    table.add_column("Version")
    for name, descriptor in descriptors.items():
        table.add_row(
            name,
            descriptor.project,
            descriptor.tag_prefix or "-",
            descriptor.version_req or "*",
            descriptor.current_version or "-",
        )
    console.print(table)


async def _update(
    declarations: list[Path],
    versions: Path,
    token: str,
    config: ConfigManager,
    settings: Settings,
    max_parallel: int,
    dry_run: bool,
) -> RunResult:
    async with GitHubTagSource(
        token,
        performance=config.get_fetch_performance_config(),
        api_url=settings.github_api_url,
        per_page=settings.tags_per_page,
    ) as source:
        return await update_versions_file(
            declarations,
            versions,
            source,
            max_parallel=max_parallel,
            dry_run=dry_run,
        )


@app.command()
def update(
    paths: Annotated[
        list[Path],
        typer.Argument(
            help="Declaration files followed by the versions file (which must exist)",
            show_default=False,
        ),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Resolve and print, but don't write"),
    ] = False,
    report: Annotated[
        bool,
        typer.Option("--report", help="Print tag statistics for every dependency"),
    ] = False,
    max_parallel: Annotated[
        int | None,
        typer.Option(
            "--max-parallel",
            min=1,
            max=MAX_PARALLEL_FETCHES,
            help="Dependencies fetched concurrently (default: from config)",
        ),
    ] = None,
    token_env: Annotated[
        str | None,
        typer.Option(
            "--token-env",
            help="Environment variable holding the GitHub token (default: GITHUB_TOKEN)",
        ),
    ] = None,
) -> None:
    """Resolve every dependency and rewrite the versions file.

    The last path is the versions file: it is read as the previous state
    and replaced with the new versions. On any error it is left untouched.
    """
    if len(paths) < 2:
        raise typer.BadParameter(
            "expected at least one declaration file and the versions file",
            param_hint="PATHS",
        )
    *declarations, versions = paths

    try:
        config, settings = _load_settings()
        token = get_token(token_env or settings.token_env_var)
        parallel = max_parallel or settings.max_parallel_fetches
        log_message(
            f"Updating {versions} from {len(declarations)} file(s), max_parallel={parallel}"
        )
        result = run_async(
            lambda: _update(declarations, versions, token, config, settings, parallel, dry_run)
        )
    except GhdepupError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e
    except KeyboardInterrupt as e:
        print_error("Operation cancelled by user")
        raise typer.Exit(ExitCode.USER_CANCELLED) from e

    _print_resolutions(result)
    if report:
        _print_report(result)

    for resolution in result.unresolved:
        print_warning(f"{resolution.name}: no matching tag, keeping {resolution.version or 'nothing'}")
    if dry_run:
        print_info(f"Dry run: {versions} not written")
    elif result.written:
        print_success(f"Updated {versions}")
    else:
        print_info(f"{versions} is up to date")


@app.command()
def show(
    files: Annotated[
        list[Path],
        typer.Argument(help="Declaration and versions files, in precedence order"),
    ],
    raw: Annotated[
        bool,
        typer.Option("--raw", help="Print merged records instead of a table"),
    ] = False,
) -> None:
    """Print the dependencies declared by FILES after merging them."""
    try:
        descriptors = build_descriptors([prf.read_records(path) for path in files])
    except GhdepupError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e

    if raw:
        records = [r for d in descriptors.values() for r in d.to_records()]
        typer.echo(prf.serialize(records), nl=False)
        return
    _print_descriptors(descriptors)


@app.command()
def check(
    files: Annotated[
        list[Path],
        typer.Argument(help="Files to validate"),
    ],
) -> None:
    """Validate FILES against the record format and the dependency model."""
    try:
        record_sets = [prf.read_records(path) for path in files]
        descriptors = build_descriptors(record_sets)
    except GhdepupError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e

    print_success(f"{len(files)} file(s) valid, {len(descriptors)} dependency(ies) declared")


@app.command("config")
def show_config() -> None:
    """Print the effective configuration and where each value came from."""
    try:
        config, _ = _load_settings()
    except GhdepupError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e
    config.show()


__all__ = ["app", "run_async"]
