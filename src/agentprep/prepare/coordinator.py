"""Preparation coordinator.

Reconciles three sources of truth for one target: the caller's request,
the stored preparation record, and the live process.

Flow:
1. Validate the target identity and resolve its pid.
2. Resolve the record: by uid for detached re-invocations, otherwise by
   target key. A Running record is reused; anything else gets a fresh
   record on the requested or a newly allocated port.
3. Async requests dispatch a detached re-invocation and return the uid
   after a short grace interval.
4. Sync requests attach (with one bounded retry), record the outcome,
   and report it when an endpoint is configured.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from agentprep.agent.attach import SandboxAttachClient
from agentprep.agent.base import PortAllocator, ProcessResolver
from agentprep.agent.ports import SocketPortAllocator
from agentprep.agent.process import PsutilProcessResolver
from agentprep.agent.tokens import SandboxTokenLookup
from agentprep.config.constants import STATUS_ERROR, STATUS_RUNNING
from agentprep.config.models import AgentPrepConfig
from agentprep.core.errors import (
    AgentPrepError,
    AttachError,
    InvalidInputError,
    PersistenceError,
)
from agentprep.core.logging import set_correlation_id
from agentprep.prepare.dispatcher import AsyncDispatcher
from agentprep.prepare.models import AttachOutcome, PrepareRequest, PrepareResponse
from agentprep.prepare.reporter import ResultReporter
from agentprep.prepare.retry import AttachRetryEngine
from agentprep.store.database import Database
from agentprep.store.models import PreparationRecord
from agentprep.store.records import RecordStore

logger = structlog.get_logger()


@dataclass
class PreparationCoordinator:
    """Owns the collaborators for one CLI invocation."""

    store: RecordStore
    allocator: PortAllocator
    resolver: ProcessResolver
    engine: AttachRetryEngine
    dispatcher: AsyncDispatcher
    reporter: ResultReporter
    grace_sec: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_config(
        cls, config: AgentPrepConfig, config_path: Path | None = None
    ) -> PreparationCoordinator:
        """Wire the default collaborators.

        Raises:
            PersistenceError: The record store cannot be opened.
        """
        db = Database(
            Path(config.database.path).expanduser(),
            max_retries=config.database.max_retries,
            retry_base_delay=config.database.retry_base_delay_sec,
        )
        store = RecordStore.open(db)
        return cls(
            store=store,
            allocator=SocketPortAllocator(),
            resolver=PsutilProcessResolver(),
            engine=AttachRetryEngine(
                client=SandboxAttachClient(config.agent),
                recovery=SandboxTokenLookup(config.agent.namespace),
                store=store,
            ),
            dispatcher=AsyncDispatcher(
                Path(config.dispatch.log_dir).expanduser(), config_path=config_path
            ),
            reporter=ResultReporter(store, config.report.type_tag, config.report.timeout_sec),
            grace_sec=config.dispatch.grace_sec,
        )

    def close(self) -> None:
        self.store.close()

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve_target(self, request: PrepareRequest) -> str:
        """Return the live pid of the target.

        Raises:
            InvalidInputError: Neither name nor pid supplied, or ambiguous name.
            TargetNotFoundError: The target is not running.
        """
        if not request.process_name and not request.process_id:
            raise InvalidInputError.missing_target()
        return self.resolver.resolve_process_id(request.process_name, request.process_id)

    @staticmethod
    def _check_port(request: PrepareRequest, record: PreparationRecord) -> None:
        if request.port and request.port != record.port:
            raise InvalidInputError.conflicting_port(record.uid, record.port, request.port)

    def resolve_record(self, request: PrepareRequest, pid: str) -> PreparationRecord:
        """Find or create the record this request attaches under.

        Raises:
            InvalidInputError: Unknown uid, or a port that conflicts with
                the target's Running record.
            ServerError: No free port could be allocated.
            PersistenceError: The store failed.
        """
        if request.uid:
            record = self.store.find_record_by_uid(request.uid)
            if record is None:
                raise InvalidInputError.unknown_uid(request.uid)
            self._check_port(request, record)
            return record

        record = self.store.find_record(request.program_type, request.process_name, pid)
        if record is not None and record.running:
            self._check_port(request, record)
            logger.debug("reusing_running_record", uid=record.uid)
            return record

        port = request.port or self.allocator.allocate_unused_port()
        record, created = self.store.insert_record(
            request.program_type, request.process_name, port, pid
        )
        if not created:
            # Another invocation reached Running first
            self._check_port(request, record)
        return record

    # =========================================================================
    # Flow
    # =========================================================================

    def prepare(self, request: PrepareRequest) -> PrepareResponse:
        """Run the whole preparation. Never raises ``AgentPrepError``."""
        try:
            pid = self.resolve_target(request)
            record = self.resolve_record(request, pid)
        except AgentPrepError as e:
            logger.warning("prepare_rejected", error=e.error_name, message=e.message)
            return PrepareResponse.from_error(e)

        set_correlation_id(record.uid)

        if request.should_dispatch:
            return self.dispatch(request, record)
        return self.complete(request, record, pid)

    def dispatch(self, request: PrepareRequest, record: PreparationRecord) -> PrepareResponse:
        """Hand the attach to a detached process and acknowledge with the uid."""
        try:
            self.dispatcher.dispatch(request, record)
        except AgentPrepError as e:
            logger.warning("async_dispatch_failed", message=e.message)
            return PrepareResponse.from_error(e, result=record.uid)
        self.sleep(self.grace_sec)
        return PrepareResponse.ok(record.uid)

    def complete(
        self, request: PrepareRequest, record: PreparationRecord, pid: str
    ) -> PrepareResponse:
        """Attach synchronously, persist the outcome and report it."""
        outcome = self.engine.run(record, request.java_home, pid)
        response = self._record_outcome(record.uid, outcome)
        if request.endpoint:
            self.reporter.report(record.uid, request.endpoint)
        return response

    def _record_outcome(self, uid: str, outcome: AttachOutcome) -> PrepareResponse:
        if outcome.success:
            try:
                self.store.update_record_status(uid, STATUS_RUNNING)
            except PersistenceError as e:
                return PrepareResponse.from_error(e, result=uid)
            logger.info("attach_java_agent_success", port=outcome.port)
            return PrepareResponse.ok(uid)

        error = AttachError.failed(outcome.message, uid=uid, port=outcome.port)
        try:
            self.store.update_record_status(uid, STATUS_ERROR, outcome.message)
        except PersistenceError as e:
            logger.warning("update_preparation_status_failed", error=e.message)
        logger.warning("attach_java_agent_failed", message=outcome.message)
        return PrepareResponse.from_error(error, result=uid)
