"""Target process resolution backed by psutil."""

from __future__ import annotations

import os

import psutil
import structlog

from agentprep.core.errors import InvalidInputError, TargetNotFoundError

logger = structlog.get_logger()


def _is_java(name: str, cmdline: list[str]) -> bool:
    if "java" in name.lower():
        return True
    return bool(cmdline) and os.path.basename(cmdline[0]).startswith("java")


class PsutilProcessResolver:
    """Resolve a JVM target by pid or by a substring of its command line."""

    def resolve_process_id(self, process_name: str, process_id: str = "") -> str:
        """Return the pid of the target process.

        A supplied ``process_id`` wins and only has to exist. Otherwise
        exactly one JVM whose command line contains ``process_name`` must
        be running.

        Raises:
            TargetNotFoundError: No such pid, or no matching JVM.
            InvalidInputError: More than one JVM matches the name.
        """
        if process_id:
            if not process_id.isdigit() or not psutil.pid_exists(int(process_id)):
                raise TargetNotFoundError.by_pid(process_id)
            return process_id

        own_pid = os.getpid()
        matches: list[str] = []
        for proc in psutil.process_iter(["pid", "name", "cmdline"]):
            info = proc.info
            if info["pid"] == own_pid:
                continue
            cmdline = info.get("cmdline") or []
            if not _is_java(info.get("name") or "", cmdline):
                continue
            if process_name in " ".join(cmdline):
                matches.append(str(info["pid"]))

        if not matches:
            raise TargetNotFoundError.by_name(process_name)
        if len(matches) > 1:
            raise InvalidInputError.ambiguous_target(process_name, matches)

        logger.debug("process_resolved", process=process_name, pid=matches[0])
        return matches[0]
