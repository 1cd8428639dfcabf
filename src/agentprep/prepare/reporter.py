"""Best-effort posting of the final record to a caller's endpoint.

Envelope::

    {"data": {<record, camelCase>}, "type": "JAVA_AGENT_PREPARE"}

Nothing here raises: the record itself is the authoritative outcome.
"""

from __future__ import annotations

import json

import httpx
import structlog

from agentprep.core.errors import PersistenceError
from agentprep.store.records import RecordStore

logger = structlog.get_logger()


class ResultReporter:
    def __init__(self, store: RecordStore, type_tag: str, timeout_sec: float = 10.0) -> None:
        self._store = store
        self._type_tag = type_tag
        self._timeout_sec = timeout_sec

    def build_body(self, uid: str) -> bytes | None:
        try:
            record = self._store.find_record_by_uid(uid)
        except PersistenceError as e:
            logger.warning("report_body_failed", error=e.message)
            return None
        if record is None:
            logger.warning("report_body_failed", error="record not found")
            return None

        try:
            body = json.dumps({"data": record.to_report_dict(), "type": self._type_tag})
        except (TypeError, ValueError) as e:
            logger.warning("report_body_failed", error=str(e))
            return None
        logger.debug("report_body", body=body)
        return body.encode()

    def report(self, uid: str, endpoint: str) -> bool:
        """POST the record for ``uid``. Returns True only on HTTP 200."""
        body = self.build_body(uid)
        if body is None:
            return False

        logger.info("report_start", endpoint=endpoint)
        try:
            response = httpx.post(
                endpoint,
                content=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout_sec,
            )
        except httpx.HTTPError as e:
            logger.warning("report_failed", endpoint=endpoint, error=str(e))
            return False

        if response.status_code != 200:
            logger.warning(
                "report_rejected",
                endpoint=endpoint,
                status=response.status_code,
                result=response.text,
            )
            return False

        logger.info("report_success", endpoint=endpoint, result=response.text)
        return True
