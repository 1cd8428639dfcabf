"""Agent preparation orchestration."""

from agentprep.prepare.coordinator import PreparationCoordinator
from agentprep.prepare.dispatcher import AsyncDispatcher, build_reinvocation_args, spawn_detached
from agentprep.prepare.models import AttachOutcome, PrepareRequest, PrepareResponse
from agentprep.prepare.reporter import ResultReporter
from agentprep.prepare.retry import AttachRetryEngine

__all__ = [
    "AsyncDispatcher",
    "AttachOutcome",
    "AttachRetryEngine",
    "PrepareRequest",
    "PrepareResponse",
    "PreparationCoordinator",
    "ResultReporter",
    "build_reinvocation_args",
    "spawn_detached",
]
