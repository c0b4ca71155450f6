"""CLI entry points for procbuilder.

Implements click-based CLI
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from procbuilder.core.command import to_string_lossy
from procbuilder.core.config import load_config
from procbuilder.core.exceptions import (
    NonZeroExitError,
    ProcBuilderException,
    SpawnError,
    format_error_for_user,
)
from procbuilder.core.factory import create_builder, create_logger
from procbuilder.core.process_builder import ProcessBuilder

# Load .env file from current directory or parent directories
load_dotenv()

console = Console(stderr=True)

# Shell convention for "command not found"
SPAWN_FAILURE_EXIT_CODE = 127

COMMAND_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}


@dataclass
class Overrides:
    """Command-line overrides collected from the shared options."""

    cwd: Path | None = None
    env: list[tuple[str, str]] = field(default_factory=list)
    unset: list[str] = field(default_factory=list)


def parse_env_assignment(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[str, str]]:
    """Click callback splitting KEY=VALUE options."""
    pairs = []
    for assignment in values:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {assignment!r}")
        pairs.append((key, value))
    return pairs


def builder_options(func):
    """Options shared by every command that configures a builder."""
    func = click.option(
        "--profile", default="default", show_default=True, help="User profile to load"
    )(func)
    func = click.option(
        "-u", "--unset", multiple=True, metavar="KEY", help="Remove KEY from the child environment"
    )(func)
    func = click.option(
        "-e",
        "--env",
        multiple=True,
        metavar="KEY=VALUE",
        callback=parse_env_assignment,
        help="Set an environment variable for the child",
    )(func)
    func = click.option(
        "--cwd",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Working directory for the child",
    )(func)
    return func


def configure_builder(
    program: str, args: tuple[str, ...], overrides: Overrides, profile: str, with_logger: bool
) -> ProcessBuilder:
    """Create a builder from configuration, then apply command-line overrides."""
    config = load_config(profile)
    logger = create_logger(config) if with_logger else None
    builder = create_builder(program, config=config, logger=logger)
    builder.args(args)

    if overrides.cwd is not None:
        builder.cwd(overrides.cwd)
    for key, value in overrides.env:
        builder.env(key, value)
    for key in overrides.unset:
        builder.env_remove(key)

    return builder


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)


def exit_code_for(error: ProcBuilderException) -> int:
    """Map a failure to the exit code the CLI terminates with."""
    if isinstance(error, NonZeroExitError) and error.exit is not None:
        return error.exit.code if error.exit.code is not None else 1
    if isinstance(error, SpawnError):
        return SPAWN_FAILURE_EXIT_CODE
    return 1


@click.group()
@click.version_option(package_name="procbuilder")
def cli() -> None:
    """Build and run external processes with environment overrides."""


@cli.command(context_settings=COMMAND_SETTINGS)
@builder_options
@click.option("--capture", is_flag=True, help="Capture output and write it after the process exits")
@click.argument("program")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def run(
    program: str,
    args: tuple[str, ...],
    cwd: Path | None,
    env: list[tuple[str, str]],
    unset: tuple[str, ...],
    profile: str,
    capture: bool,
) -> None:
    """Run PROGRAM with ARGS and exit with its status."""
    overrides = Overrides(cwd=cwd, env=env, unset=list(unset))

    try:
        builder = configure_builder(program, args, overrides, profile, with_logger=True)
        if capture:
            output = builder.exec_with_output()
            click.echo(output.stdout, nl=False)
            click.echo(output.stderr, nl=False, err=True)
        else:
            builder.exec()
    except ProcBuilderException as e:
        if isinstance(e, NonZeroExitError) and e.output is not None:
            click.echo(e.output.stdout, nl=False)
            click.echo(e.output.stderr, nl=False, err=True)
            print_error(f"{e.message} ({e.exit})")
        else:
            print_error(format_error_for_user(e))
        sys.exit(exit_code_for(e))


@cli.command(context_settings=COMMAND_SETTINGS)
@builder_options
@click.argument("program")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def show(
    program: str,
    args: tuple[str, ...],
    cwd: Path | None,
    env: list[tuple[str, str]],
    unset: tuple[str, ...],
    profile: str,
) -> None:
    """Print how PROGRAM would be run, without running it."""
    overrides = Overrides(cwd=cwd, env=env, unset=list(unset))

    try:
        builder = configure_builder(program, args, overrides, profile, with_logger=False)
    except ProcBuilderException as e:
        print_error(format_error_for_user(e))
        sys.exit(1)

    out = Console()
    out.print(f"[bold]command:[/bold] {escape(str(builder))}", highlight=False, soft_wrap=True)
    cwd_text = escape(str(builder.get_cwd()))
    out.print(f"[bold]cwd:[/bold] {cwd_text}", highlight=False, soft_wrap=True)

    overrides_map = builder.get_envs()
    if not overrides_map:
        out.print("[bold]env:[/bold] inherited")
        return

    table = Table(title="Environment overrides")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    for key in sorted(overrides_map):
        value = overrides_map[key]
        shown = "[red]<removed>[/red]" if value is None else escape(to_string_lossy(value))
        table.add_row(key, shown)
    out.print(table)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
