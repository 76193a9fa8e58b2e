"""Command-line entry point for freelan.

Every schema option is exposed as ``--<domain>.<option>``. The resolved
configuration is summarized on stdout, then handed to the engine factory
found in the click context object, if any.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from freelan import __version__
from freelan.config.config import ConfigManager
from freelan.config.options import OptionDescriptor, OptionKind, combined_schema
from freelan.core import StartupContext, run_engine
from freelan.models import LogLevel
from freelan.utils.exceptions import FreelanError
from freelan.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

_METAVARS = {
    OptionKind.STRING: "TEXT",
    OptionKind.BOOLEAN: "BOOL",
    OptionKind.UNSIGNED: "INTEGER",
    OptionKind.STRING_LIST: "TEXT",
}


def _raise_cli_error(message: str) -> None:
    """Raise a ClickException with the given message."""
    raise click.ClickException(message) from None


def _parameter_name(option_name: str) -> str:
    return option_name.replace(".", "__")


def _option_name(parameter_name: str) -> str:
    return parameter_name.replace("__", ".")


def _schema_option(descriptor: OptionDescriptor) -> click.Option:
    help_text = descriptor.description
    if descriptor.required:
        help_text = f"{help_text} (required)"
    elif descriptor.default:
        help_text = f"{help_text} [default: {' '.join(descriptor.default_tokens)}]"

    return click.Option(
        [f"--{descriptor.name}", _parameter_name(descriptor.name)],
        multiple=descriptor.multiple,
        default=None,
        metavar=_METAVARS[descriptor.kind],
        help=help_text,
    )


def _summary_table(manager: ConfigManager) -> Table:
    table = Table(title="freelan configuration")
    table.add_column("Option", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source")

    for name, tokens in manager.raw_values.items():
        source = manager.raw_values.source(name)
        table.add_row(
            name,
            escape(" ".join(tokens)),
            source.value if source is not None else "",
        )
    return table


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("--debug", "-d", is_flag=True, help="Enable debug output.")
@click.option(
    "--configuration_file",
    "-c",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="The configuration file to use.",
)
@click.version_option(__version__, "--version", prog_name="freelan")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    configuration_file: Path | None,
    **options: Any,
) -> None:
    """Run a freelan node."""
    setup_logging(LogLevel.DEBUG if debug else LogLevel.INFO)

    obj = ctx.obj or {}
    cli_values = {_option_name(name): value for name, value in options.items()}

    try:
        manager = ConfigManager(
            cli_values,
            configuration_file=configuration_file,
            search_paths=obj.get("search_paths"),
        )
    except FreelanError as e:
        logger.debug("Configuration failed", exc_info=True)
        _raise_cli_error(str(e))

    console = Console()
    if manager.config_file is not None:
        console.print(f"Configuration file: {escape(str(manager.config_file))}")
    console.print(_summary_table(manager))

    engine_factory = obj.get("engine_factory")
    if engine_factory is None:
        logger.debug("No engine factory registered, nothing to run")
        return

    try:
        run_engine(engine_factory, StartupContext(configuration=manager.config))
    except FreelanError as e:
        _raise_cli_error(str(e))


cli.params.extend(_schema_option(descriptor) for descriptor in combined_schema().values())


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
