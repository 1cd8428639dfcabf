"""Tests for PreparationRecord serialisation."""

from __future__ import annotations

import json

from agentprep.config.constants import STATUS_ERROR, STATUS_RUNNING
from agentprep.store.models import PreparationRecord


def _record(**overrides: object) -> PreparationRecord:
    values: dict[str, object] = {
        "uid": "a" * 32,
        "program_type": "jvm",
        "process": "tomcat",
        "pid": "4321",
        "port": 12345,
        "status": STATUS_RUNNING,
        "create_time": 0.0,
        "update_time": 60.0,
    }
    values.update(overrides)
    return PreparationRecord(**values)  # type: ignore[arg-type]


class TestToReportDict:
    def test_given_running_record_when_serialized_then_camel_case(self) -> None:
        # Given
        record = _record()

        # When
        data = record.to_report_dict()

        # Then
        assert data == {
            "uid": "a" * 32,
            "type": "jvm",
            "process": "tomcat",
            "pid": "4321",
            "port": "12345",
            "status": STATUS_RUNNING,
            "error": "",
            "running": True,
            "createTime": "1970-01-01T00:00:00+00:00",
            "updateTime": "1970-01-01T00:01:00+00:00",
        }

    def test_given_error_record_when_serialized_then_not_running(self) -> None:
        data = _record(status=STATUS_ERROR, error="attach failed").to_report_dict()
        assert data["running"] is False
        assert data["error"] == "attach failed"

    def test_serialized_record_is_json_safe(self) -> None:
        assert json.loads(json.dumps(_record().to_report_dict()))["port"] == "12345"
