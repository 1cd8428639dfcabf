"""Tests for best-effort result reporting."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from agentprep.config.constants import STATUS_RUNNING
from agentprep.core.errors import PersistenceError
from agentprep.prepare.reporter import ResultReporter
from agentprep.store.models import PreparationRecord
from agentprep.store.records import RecordStore

ENDPOINT = "http://collector.local/api/prepare"


@pytest.fixture
def record(store: RecordStore) -> PreparationRecord:
    created, _ = store.insert_record("jvm", "tomcat", 12345, "4321")
    return store.update_record_status(created.uid, STATUS_RUNNING)


@pytest.fixture
def reporter(store: RecordStore) -> ResultReporter:
    return ResultReporter(store, "JAVA_AGENT_PREPARE", timeout_sec=2.0)


class TestBuildBody:
    def test_given_record_when_build_then_envelope(
        self, reporter: ResultReporter, record: PreparationRecord
    ) -> None:
        # When
        body = reporter.build_body(record.uid)

        # Then
        assert body is not None
        payload = json.loads(body)
        assert set(payload) == {"data", "type"}
        assert payload["type"] == "JAVA_AGENT_PREPARE"
        assert payload["data"]["uid"] == record.uid
        assert payload["data"]["running"] is True

    def test_given_unknown_uid_when_build_then_none(self, reporter: ResultReporter) -> None:
        assert reporter.build_body("missing") is None

    def test_given_store_failure_when_build_then_none(
        self, reporter: ResultReporter, store: RecordStore
    ) -> None:
        error = PersistenceError.operation_failed("query preparation by uid", "locked")
        with patch.object(store, "find_record_by_uid", side_effect=error):
            assert reporter.build_body("u1") is None


class TestReport:
    def test_given_200_when_report_then_true(
        self, reporter: ResultReporter, record: PreparationRecord
    ) -> None:
        # When
        with patch("agentprep.prepare.reporter.httpx.post") as mock_post:
            mock_post.return_value = MagicMock(status_code=200, text="ok")
            result = reporter.report(record.uid, ENDPOINT)

        # Then
        assert result is True
        kwargs = mock_post.call_args.kwargs
        assert mock_post.call_args.args[0] == ENDPOINT
        assert kwargs["headers"] == {"Content-Type": "application/json"}
        assert kwargs["timeout"] == 2.0

    @pytest.mark.parametrize("status", [201, 404, 500])
    def test_given_non_200_when_report_then_false_without_retry(
        self, reporter: ResultReporter, record: PreparationRecord, status: int
    ) -> None:
        with patch("agentprep.prepare.reporter.httpx.post") as mock_post:
            mock_post.return_value = MagicMock(status_code=status, text="nope")
            result = reporter.report(record.uid, ENDPOINT)

        assert result is False
        assert mock_post.call_count == 1

    def test_given_transport_error_when_report_then_false(
        self, reporter: ResultReporter, record: PreparationRecord
    ) -> None:
        with patch(
            "agentprep.prepare.reporter.httpx.post",
            side_effect=httpx.ReadTimeout("timed out"),
        ):
            assert reporter.report(record.uid, ENDPOINT) is False

    def test_given_unserialisable_record_when_report_then_nothing_posted(
        self, reporter: ResultReporter, store: RecordStore
    ) -> None:
        bad = MagicMock()
        bad.to_report_dict.return_value = {"x": object()}
        with (
            patch.object(store, "find_record_by_uid", return_value=bad),
            patch("agentprep.prepare.reporter.httpx.post") as mock_post,
        ):
            assert reporter.report("u1", ENDPOINT) is False
        mock_post.assert_not_called()
