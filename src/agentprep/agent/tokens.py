"""Side-channel port recovery from the sandbox token file.

Once the agent server binds, jvm-sandbox appends a line to
``~<user>/.sandbox.token`` of the form ``namespace;token;ip;port``. When an
attach is refused because an agent is already bound elsewhere, that line
tells us where.
"""

from __future__ import annotations

import pwd
from collections.abc import Callable
from pathlib import Path

import structlog

from agentprep.config.constants import PORT_MAX, PORT_MIN, SANDBOX_TOKEN_FILE
from agentprep.core.errors import PortRecoveryError

logger = structlog.get_logger()


def _home_of(identity: str) -> Path:
    try:
        return Path(pwd.getpwnam(identity).pw_dir)
    except KeyError:
        return Path("/root") if identity == "root" else Path("/home") / identity


class SandboxTokenLookup:
    def __init__(
        self,
        namespace: str,
        home_resolver: Callable[[str], Path] = _home_of,
    ) -> None:
        self._namespace = namespace
        self._home_resolver = home_resolver

    def token_path(self, identity: str) -> Path:
        return self._home_resolver(identity) / SANDBOX_TOKEN_FILE

    def lookup_port_by_identity(self, identity: str) -> int:
        """Return the port of the newest token line for our namespace.

        Raises:
            PortRecoveryError: File unreadable, no line for the namespace,
                or the port field is not a valid port.
        """
        path = self.token_path(identity)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise PortRecoveryError.unavailable(identity, f"read {path} failed: {e}") from e

        port_field: str | None = None
        for line in lines:
            fields = [f.strip() for f in line.split(";")]
            if len(fields) >= 4 and fields[0] == self._namespace:
                port_field = fields[3]

        if port_field is None:
            raise PortRecoveryError.unavailable(
                identity, f"no {self._namespace} entry in {path}"
            )
        if not port_field.isdigit() or not (PORT_MIN <= int(port_field) <= PORT_MAX):
            raise PortRecoveryError.unavailable(identity, f"invalid port '{port_field}' in {path}")

        logger.debug("token_port_found", identity=identity, port=port_field)
        return int(port_field)
