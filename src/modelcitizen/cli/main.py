"""CLI entry point for inspecting blueprints and building sample models."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.pretty import Pretty

from modelcitizen import __version__
from modelcitizen.cli.output import blueprint_row, create_blueprint_table
from modelcitizen.config import load_config
from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME
from modelcitizen.exceptions import ModelCitizenError
from modelcitizen.factory import ModelFactory
from modelcitizen.loader import import_string

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="modelcitizen")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default="modelcitizen.yaml",
    envvar="MODELCITIZEN_CONFIG",
    show_default=True,
    help="YAML file listing blueprints and packages to register.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """modelcitizen blueprint diagnostics.

    Registers the blueprints named in the config file, then inspects them
    or builds sample models from them.
    """
    try:
        config = load_config(config_path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    try:
        factory = ModelFactory.from_config(config)
    except ModelCitizenError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["factory"] = factory
    ctx.obj["console"] = console


@cli.command()
@click.pass_context
def blueprints(ctx: click.Context) -> None:
    """List registered blueprints."""
    factory: ModelFactory = ctx.obj["factory"]
    console: Console = ctx.obj["console"]

    if not factory.erectors:
        console.print("[yellow]No blueprints registered.[/yellow]")
        return

    table = create_blueprint_table("Registered Blueprints")
    rows = sorted(blueprint_row(erector) for erector in factory.erectors.values())
    for row in rows:
        table.add_row(*row)
    console.print(table)


@cli.command()
@click.argument("target")
@click.option(
    "--alias", default=DEFAULT_BLUEPRINT_NAME, show_default=True, help="Blueprint alias."
)
@click.option("--no-policies", is_flag=True, help="Build without running policies.")
@click.pass_context
def build(ctx: click.Context, target: str, alias: str, no_policies: bool) -> None:
    """Build one TARGET model and print it.

    TARGET is the qualified name of the model type, e.g. myapp.models:Car.
    """
    factory: ModelFactory = ctx.obj["factory"]
    console: Console = ctx.obj["console"]

    try:
        model_type = import_string(target)
        model = factory.create_model(model_type, alias, with_policies=not no_policies)
    except ModelCitizenError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(Pretty(model))
