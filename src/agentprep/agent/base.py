"""Collaborator interfaces consumed by the preparation flow.

Each has a default implementation in this package; tests substitute stubs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class AttachResult:
    """Outcome of one attach handshake.

    ``identity`` is the OS user owning the target, when it could be
    determined. It keys the side-channel token lookup.
    """

    success: bool
    message: str = ""
    identity: str = ""


class PortAllocator(Protocol):
    def allocate_unused_port(self) -> int: ...


class ProcessResolver(Protocol):
    def resolve_process_id(self, process_name: str, process_id: str = "") -> str: ...


class AttachClient(Protocol):
    def attach(self, port: int, runtime_home: str, process_id: str) -> AttachResult: ...


class PortRecovery(Protocol):
    def lookup_port_by_identity(self, identity: str) -> int: ...
