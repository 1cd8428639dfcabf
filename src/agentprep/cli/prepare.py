"""agentprep prepare commands - attach an agent to a running target."""

import click
import structlog

from agentprep.cli.context import get_coordinator
from agentprep.config.constants import PORT_MAX, PREPARE_JVM_TYPE
from agentprep.core.errors import AgentPrepError, InternalError
from agentprep.core.logging import clear_correlation_id, get_log_file_path
from agentprep.prepare.models import PrepareRequest, PrepareResponse

logger = structlog.get_logger()


@click.group()
def prepare_group() -> None:
    """Prepare an experiment environment by attaching an agent."""


@prepare_group.command("jvm")
@click.option("-j", "--javaHome", "java_home", default="", help="JAVA_HOME of the target runtime")
@click.option(
    "-p", "--process", "process_name", default="", help="Java process name (cmdline match)"
)
@click.option(
    "-P",
    "--port",
    type=click.IntRange(0, PORT_MAX),
    default=0,
    help="Sandbox port (default: allocate an unused one)",
)
@click.option("--pid", "process_id", default="", help="Java process id")
@click.option(
    "-a",
    "--async",
    "async_mode",
    is_flag=True,
    help="Return the uid now and attach in a detached process",
)
@click.option("-e", "--endpoint", default="", help="URL to POST the final record to")
@click.option("-u", "--uid", default="", hidden=True)
@click.option("-n", "--nohup", is_flag=True, hidden=True)
@click.pass_context
def jvm_command(
    ctx: click.Context,
    java_home: str,
    process_name: str,
    port: int,
    process_id: str,
    async_mode: bool,
    endpoint: str,
    uid: str,
    nohup: bool,
) -> None:
    """Attach the sandbox agent to a Java process.

    Prints one JSON response on stdout; exits 1 when it reports failure.
    """
    request = PrepareRequest(
        process_name=process_name,
        process_id=process_id,
        port=port,
        java_home=java_home,
        async_mode=async_mode,
        uid=uid,
        nohup=nohup,
        endpoint=endpoint,
        program_type=PREPARE_JVM_TYPE,
    )
    try:
        response = get_coordinator(ctx).prepare(request)
    except AgentPrepError as e:
        logger.warning("prepare_failed", **e.to_dict())
        response = PrepareResponse.from_error(e)
    except Exception as e:
        logger.error("prepare_internal_error", error=str(e), error_type=type(e).__name__)
        # Full traceback only reaches outputs at DEBUG
        logger.debug("prepare_internal_error_traceback", exc_info=True)
        response = PrepareResponse.from_error(_unexpected(e))
    finally:
        clear_correlation_id()

    click.echo(response.render())
    if not response.success:
        ctx.exit(1)


def _unexpected(e: Exception) -> InternalError:
    reason = f"{type(e).__name__} - {e}"
    log_file = get_log_file_path()
    if log_file is not None:
        reason += f". See {log_file} for details"
    return InternalError.unexpected(reason, error_type=type(e).__name__)
