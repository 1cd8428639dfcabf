"""structlog setup for agentprep.

Every event logged while a preparation is in flight carries its uid. The
first file output is remembered so failure responses can point at it.
stdout carries the command response, so console output goes to stderr.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from agentprep.config.models import LoggingConfig, LogOutputConfig

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_log_file_path: Path | None = None


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the preparation uid for subsequent events, or generate a short id."""
    cid = correlation_id or uuid4().hex[:12]
    _correlation_id.set(cid)
    return cid


def clear_correlation_id() -> None:
    _correlation_id.set(None)


def get_log_file_path() -> Path | None:
    """First file output of the active logging config, if any."""
    return _log_file_path


def _add_uid(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if uid := get_correlation_id():
        event_dict["uid"] = uid
    return event_dict


def configure_logging(config: LoggingConfig) -> None:
    """Route structlog through stdlib handlers, one per configured output."""
    global _log_file_path

    levels = logging.getLevelNamesMapping()
    root_level = levels[config.level]
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_uid,  # type: ignore[list-item]
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # -v reconfigures after import
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _log_file_path = next(
        (Path(o.destination) for o in config.outputs if o.destination != "stderr"), None
    )
    for output in config.outputs:
        handler = _handler_for(output, shared_processors)
        handler.setLevel(levels[output.level or config.level])
        root.addHandler(handler)


def _handler_for(
    output: LogOutputConfig, shared_processors: list[structlog.types.Processor]
) -> logging.Handler:
    handler: logging.Handler
    if output.destination == "stderr":
        handler = logging.StreamHandler(sys.stderr)
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(), pad_event_to=0, pad_level=False
        )
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a")
        renderer = structlog.dev.ConsoleRenderer(colors=False, pad_event_to=0, pad_level=False)
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=shared_processors
        )
    )
    return handler
