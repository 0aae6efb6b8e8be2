"""archguard CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from archguard import __version__
from archguard.errors import ArchGuardError


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    package_logger = logging.getLogger("archguard")
    package_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
        )


def _fail(exc: ArchGuardError) -> None:
    click.echo(f"Error: {exc}", err=True)
    if exc.__cause__ is not None:
        click.echo(f"Caused by: {exc.__cause__!r}", err=True)
    sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="archguard")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """archguard - architecture conformance checks for Python projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


_project_option = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: archguard.yml or pyproject.toml).",
)
_classpath_option = click.option(
    "--classpath",
    "-cp",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Extra location to load rule sources from (repeatable).",
)


@main.command()
@_project_option
@_config_option
@_classpath_option
@click.option("--package", default=None, help="Default package to analyze (overrides config).")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
def check(
    *,
    project: Path | None,
    config_path: Path | None,
    classpath: tuple[Path, ...],
    package: str | None,
    fmt: str | None,
) -> None:
    """Run the configured architecture rules against the project.

    Exit codes: 0 = every check passed, 1 = at least one check failed,
    2 = configuration, loading or rule invocation error.
    """
    from archguard.config import load_settings, with_overrides
    from archguard.engine.report import format_json, format_porcelain, format_rich
    from archguard.engine.runner import run

    project_root = project or Path.cwd()

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        settings = with_overrides(
            load_settings(project_root, config_path), classpath=classpath, package=package
        )
        result = run(settings)
    except ArchGuardError as exc:
        _fail(exc)
        return

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "porcelain": format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if not result.passed:
        if fmt == "porcelain":
            click.echo(result.report, err=True)
        sys.exit(1)


@main.command("checks")
@click.argument("rule")
@_project_option
@_config_option
@_classpath_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def list_checks(
    rule: str,
    *,
    project: Path | None,
    config_path: Path | None,
    classpath: tuple[Path, ...],
    output_json: bool,
) -> None:
    """List the checks a rule source exposes."""
    from archguard.config import find_config, load_settings
    from archguard.engine.discovery import discover
    from archguard.engine.loader import LoadingContext

    project_root = project or Path.cwd()

    try:
        locations: list[Path] = [project_root]
        if config_path is not None or find_config(project_root) is not None:
            locations = list(load_settings(project_root, config_path).locations)
        context = LoadingContext([*locations, *classpath])
        with context.activated():
            discovered = discover(context.load_class(rule))
    except ArchGuardError as exc:
        _fail(exc)
        return

    if output_json:
        click.echo(
            json.dumps(
                {
                    "rule": rule,
                    "producers": list(discovered.producers),
                    "holders": list(discovered.holders),
                },
                indent=2,
            )
        )
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title=rule)
    table.add_column("Check")
    table.add_column("Kind")
    for name in discovered.producers:
        table.add_row(name, "condition")
    for name in discovered.holders:
        table.add_row(name, "rule")
    Console().print(table)
