"""Agent-side collaborators: ports, processes, attach, token recovery."""

from agentprep.agent.attach import SandboxAttachClient
from agentprep.agent.base import (
    AttachClient,
    AttachResult,
    PortAllocator,
    PortRecovery,
    ProcessResolver,
)
from agentprep.agent.ports import SocketPortAllocator
from agentprep.agent.process import PsutilProcessResolver
from agentprep.agent.tokens import SandboxTokenLookup

__all__ = [
    "AttachClient",
    "AttachResult",
    "PortAllocator",
    "PortRecovery",
    "ProcessResolver",
    "PsutilProcessResolver",
    "SandboxAttachClient",
    "SandboxTokenLookup",
    "SocketPortAllocator",
]
