"""trier -- Trier code-generation CLI.

Runs generator scripts against a JSON-backed project and inspects the
resulting manifests and project items.

Usage:
    trier [--log-level LEVEL] COMMAND [OPTIONS]
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from trier import __version__
from trier.config import TrierConfig, get_config
from trier.engine.generator import Generator
from trier.engine.manifest import ManifestStore
from trier.engine.reporter import CallbackReporter
from trier.errors import ProjectModelError
from trier.lib.project.memory import JsonProject

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# Store the config in Click context
pass_config = click.make_pass_decorator(TrierConfig, ensure=True)


def _open_project(project_file: Path, name: str | None, config: TrierConfig) -> JsonProject:
    try:
        return JsonProject(project_file, name=name, source_extension=config.source_extension)
    except ProjectModelError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option(
    "--log-level",
    default=None,
    envvar="TRIER_LOG_LEVEL",
    help="Logging level (DEBUG, INFO, WARNING, ERROR).",
)
@click.version_option(__version__, prog_name="trier")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """trier -- run generator scripts and keep project items in sync."""
    config = get_config()
    if log_level:
        config.log_level = log_level.upper()
    logging.basicConfig(
        level=config.log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    ctx.obj = config


# ── generate ──────────────────────────────────────────────────────────────


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--project",
    "project_file",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON project file (created if missing).",
)
@click.option("--name", default=None, help="Project name (default: project file stem).")
@pass_config
def generate(config: TrierConfig, source: Path, project_file: Path, name: str | None) -> None:
    """Evaluate SOURCE and reconcile its outputs with the project."""
    project = _open_project(project_file, name, config)

    def echo_diagnostic(severity: str, message: str, line: int, column: int) -> None:
        click.echo(f"{source}({line},{column}): {severity}: {message}", err=True)

    generator = Generator(reporter=CallbackReporter(echo_diagnostic), config=config)
    outcome = generator.run(source, project)

    if not outcome.ok:
        click.echo(f"✕ Generation {outcome.reconcile.state.value}: {source}", err=True)
        raise SystemExit(1)

    result = outcome.reconcile
    count = len(outcome.evaluation.artifacts) if outcome.evaluation else 0
    click.echo(
        f"✓ Generated {count} files "
        f"({len(result.added)} added, {len(result.updated)} updated, "
        f"{len(result.removed)} removed)"
    )


# ── manifest ──────────────────────────────────────────────────────────────


@cli.command()
@click.argument("source", type=click.Path(dir_okay=False, path_type=Path))
@pass_config
def manifest(config: TrierConfig, source: Path) -> None:
    """Show the files recorded by the last successful run of SOURCE."""
    paths = ManifestStore(config.manifest_extension).load(source.absolute())
    if not paths:
        click.echo("No manifest found.")
        return
    for path in paths:
        click.echo(path)


# ── items ─────────────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--project",
    "project_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON project file.",
)
@pass_config
def items(config: TrierConfig, project_file: Path) -> None:
    """List project items and their build actions."""
    project = _open_project(project_file, None, config)
    entries = project.list_items()
    if not entries:
        click.echo("No project items.")
        return
    click.echo(f"{'BUILD ACTION':<18s} PATH")
    for item in entries:
        action = item.build_action.value if item.build_action else "-"
        click.echo(f"{action:<18s} {item.path}")


# ── entry point ───────────────────────────────────────────────────────────


def main() -> None:
    """Entry point for the trier command."""
    cli()


if __name__ == "__main__":
    main()
