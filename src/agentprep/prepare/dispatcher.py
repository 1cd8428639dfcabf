"""Fire-and-forget completion of a preparation in a detached process.

The child re-runs ``prepare jvm`` with the record's uid and ``--nohup``.
The uid makes the child's record resolution land on the same record; the
marker keeps it from dispatching again.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

import structlog

from agentprep.config.constants import PROGRAM_MODULE
from agentprep.core.errors import ServerError
from agentprep.prepare.models import PrepareRequest
from agentprep.store.models import PreparationRecord

logger = structlog.get_logger()

Launcher = Callable[[list[str], Path], int]


def spawn_detached(args: list[str], log_path: Path) -> int:
    """Start ``python -m agentprep <args>`` in its own session and return its pid."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    kwargs: dict[str, object] = {"close_fds": True}
    if os.name == "nt":
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    log_handle = log_path.open("a")
    try:
        proc = subprocess.Popen(
            [sys.executable, "-m", PROGRAM_MODULE, *args],
            stdin=subprocess.DEVNULL,
            stdout=log_handle,
            stderr=subprocess.STDOUT,
            **kwargs,  # type: ignore[arg-type]
        )
    except OSError as e:
        raise ServerError.spawn_failed(str(e)) from e
    finally:
        log_handle.close()
    return proc.pid


def build_reinvocation_args(
    request: PrepareRequest,
    record: PreparationRecord,
    config_path: Path | None = None,
) -> list[str]:
    args: list[str] = []
    if config_path is not None:
        args += ["--config", str(config_path)]
    args += ["prepare", request.program_type, "--uid", record.uid, "--nohup"]
    args += ["--port", str(record.port)]
    if request.process_name:
        args += ["--process", request.process_name]
    if request.java_home:
        args += ["--javaHome", request.java_home]
    if request.process_id:
        args += ["--pid", request.process_id]
    if request.async_mode:
        args.append("--async")
    if request.endpoint:
        args += ["--endpoint", request.endpoint]
    return args


class AsyncDispatcher:
    def __init__(
        self,
        log_dir: Path,
        launcher: Launcher = spawn_detached,
        config_path: Path | None = None,
    ) -> None:
        self._log_dir = log_dir
        self._launcher = launcher
        self._config_path = config_path

    def log_path(self, uid: str) -> Path:
        return self._log_dir / f"prepare-{uid}.log"

    def dispatch(self, request: PrepareRequest, record: PreparationRecord) -> int:
        """Launch the detached attach; does not wait for it.

        Raises:
            ServerError: The child process could not be started.
        """
        args = build_reinvocation_args(request, record, self._config_path)
        pid = self._launcher(args, self.log_path(record.uid))
        logger.info("async_attach_dispatched", child_pid=pid, log=str(self.log_path(record.uid)))
        return pid
