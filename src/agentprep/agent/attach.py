"""jvm-sandbox attach handshake.

Attaching is two steps:
1. Run ``sandbox-core.jar`` with the target pid. It loads
   ``sandbox-agent.jar`` into the JVM, whose server binds the requested
   port unless an agent is already loaded there.
2. Activate the fault-injection module over the agent's HTTP API. A
   refused connection here usually means the agent was loaded earlier on a
   different port.
"""

from __future__ import annotations

import getpass
import os
import shutil
import subprocess
from pathlib import Path
from uuid import uuid4

import httpx
import psutil
import structlog

from agentprep.agent.base import AttachResult
from agentprep.config.constants import CONNECTION_REFUSED_MARKER
from agentprep.config.models import AgentConfig

logger = structlog.get_logger()


def _process_owner(process_id: str) -> str:
    try:
        return str(psutil.Process(int(process_id)).username())
    except (psutil.Error, ValueError):
        return ""


def _java_binary(runtime_home: str) -> str | None:
    home = runtime_home or os.environ.get("JAVA_HOME", "")
    if home:
        candidate = Path(home) / "bin" / "java"
        return str(candidate) if candidate.exists() else None
    return shutil.which("java")


class SandboxAttachClient:
    """Default ``AttachClient`` driving the jvm-sandbox launcher."""

    def __init__(self, config: AgentConfig) -> None:
        self._config = config

    @property
    def sandbox_home(self) -> Path:
        return Path(self._config.sandbox_home)

    def build_command(
        self, port: int, runtime_home: str, process_id: str, identity: str, token: str
    ) -> list[str]:
        java = _java_binary(runtime_home)
        if java is None:
            raise FileNotFoundError(f"java not found under '{runtime_home or '$PATH'}'")

        lib = self.sandbox_home / "lib"
        agent_args = ";".join(
            [
                f"home={self.sandbox_home}",
                f"token={token}",
                f"server.ip={self._config.server_ip}",
                f"server.port={port}",
                f"namespace={self._config.namespace}",
            ]
        )
        cmd = [java]
        tools_jar = Path(java).parent.parent / "lib" / "tools.jar"
        if tools_jar.exists():
            cmd.append(f"-Xbootclasspath/a:{tools_jar}")
        cmd += [
            "-jar",
            str(lib / "sandbox-core.jar"),
            process_id,
            str(lib / "sandbox-agent.jar"),
            agent_args,
        ]

        # The attach API requires the JVM's own user
        if identity and identity != getpass.getuser() and os.geteuid() == 0:
            cmd = ["sudo", "-u", identity, *cmd]
        return cmd

    def attach(self, port: int, runtime_home: str, process_id: str) -> AttachResult:
        identity = _process_owner(process_id)
        try:
            cmd = self.build_command(port, runtime_home, process_id, identity, uuid4().hex)
        except FileNotFoundError as e:
            return AttachResult(False, str(e), identity)

        logger.info("attach_start", pid=process_id, port=port)
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._config.attach_timeout_sec,
            )
        except subprocess.TimeoutExpired:
            return AttachResult(
                False, f"attach timed out after {self._config.attach_timeout_sec}s", identity
            )
        except OSError as e:
            return AttachResult(False, f"attach launcher failed: {e}", identity)

        if completed.returncode != 0:
            output = (completed.stderr or completed.stdout).strip()
            return AttachResult(False, f"attach process {process_id} failed: {output}", identity)

        return self._activate(port, identity)

    def _activate(self, port: int, identity: str) -> AttachResult:
        url = (
            f"http://{self._config.server_ip}:{port}/sandbox/{self._config.namespace}"
            "/module/http/sandbox-module-mgr/active"
        )
        try:
            response = httpx.get(
                url,
                params={"ids": self._config.module_id},
                timeout=self._config.activate_timeout_sec,
            )
        except httpx.ConnectError as e:
            return AttachResult(
                False, f"active module failed: {CONNECTION_REFUSED_MARKER} ({e})", identity
            )
        except httpx.HTTPError as e:
            return AttachResult(False, f"active module failed: {e}", identity)

        if response.status_code != 200:
            return AttachResult(
                False,
                f"active module failed: status {response.status_code}, {response.text.strip()}",
                identity,
            )
        logger.info("attach_success", port=port)
        return AttachResult(True, "success", identity)
