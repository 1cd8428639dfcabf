"""agentprep CLI."""

from pathlib import Path

import click

from agentprep import __version__
from agentprep.cli.prepare import prepare_group
from agentprep.cli.records import records_command
from agentprep.cli.status import status_command
from agentprep.config.loader import load_config
from agentprep.core.errors import ConfigError
from agentprep.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="agentprep")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (default: ~/.config/agentprep/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """agentprep - attach diagnostic agents to running JVM processes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if config_path is not None:
        config_path = config_path.expanduser().resolve()
    ctx.obj["config_path"] = config_path

    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_config(config_path)
        except ConfigError as e:
            raise click.ClickException(str(e)) from e

    logging_config = ctx.obj["config"].logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)


cli.add_command(prepare_group, name="prepare")
cli.add_command(status_command, name="status")
cli.add_command(records_command, name="records")


if __name__ == "__main__":
    cli()
