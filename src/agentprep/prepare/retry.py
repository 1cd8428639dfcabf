"""Attach with one bounded retry on a refused connection.

If the agent is already loaded into the target on another port (an
earlier manual start, or a port taken between allocation and attach), the
module activation is refused. The token file written by the running agent
names the real port, so we retry exactly once against it and store the
corrected port.
"""

from __future__ import annotations

import structlog

from agentprep.agent.base import AttachClient, PortRecovery
from agentprep.config.constants import CONNECTION_REFUSED_MARKER
from agentprep.core.errors import PersistenceError, PortRecoveryError
from agentprep.prepare.models import AttachOutcome
from agentprep.store.models import PreparationRecord
from agentprep.store.records import RecordStore

logger = structlog.get_logger()


class AttachRetryEngine:
    def __init__(
        self,
        client: AttachClient,
        recovery: PortRecovery,
        store: RecordStore,
    ) -> None:
        self._client = client
        self._recovery = recovery
        self._store = store

    def attach(self, uid: str, port: int, runtime_home: str, process_id: str) -> AttachOutcome:
        result = self._client.attach(port, runtime_home, process_id)
        if result.success:
            return AttachOutcome(True, result.message, port)

        if not result.identity or CONNECTION_REFUSED_MARKER not in result.message.lower():
            return AttachOutcome(False, result.message, port)

        try:
            alternate = self._recovery.lookup_port_by_identity(result.identity)
        except PortRecoveryError as e:
            logger.info("port_recovery_unavailable", identity=result.identity, reason=e.message)
            return AttachOutcome(False, result.message, port)

        logger.info("attach_retry", port=alternate, previous_port=port)
        retry = self._client.attach(alternate, runtime_home, process_id)
        if not retry.success:
            return AttachOutcome(False, retry.message, alternate, retried=True)

        try:
            self._store.update_record_port(uid, alternate)
        except PersistenceError as e:
            logger.warning("update_preparation_port_failed", port=alternate, error=e.message)
        return AttachOutcome(True, retry.message, alternate, retried=True)

    def run(self, record: PreparationRecord, runtime_home: str, live_pid: str) -> AttachOutcome:
        """Attach to ``live_pid`` using the record's port, then fix a stale pid.

        The pid correction happens whatever the attach outcome: the record
        must describe the process that exists now.
        """
        outcome = self.attach(record.uid, record.port, runtime_home, live_pid)

        if live_pid and record.pid != live_pid:
            logger.info("preparation_pid_changed", old_pid=record.pid, pid=live_pid)
            try:
                self._store.update_record_pid(record.uid, live_pid)
            except PersistenceError as e:
                logger.warning("update_preparation_pid_failed", pid=live_pid, error=e.message)
        return outcome
