"""Tests for detached re-invocation."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from agentprep.core.errors import ErrorCode, ServerError
from agentprep.prepare.dispatcher import AsyncDispatcher, build_reinvocation_args, spawn_detached
from agentprep.prepare.models import PrepareRequest
from agentprep.store.models import PreparationRecord
from tests.fakes import CapturingLauncher


@pytest.fixture
def record() -> PreparationRecord:
    return PreparationRecord(
        uid="b" * 32,
        program_type="jvm",
        process="tomcat",
        pid="4321",
        port=12345,
        create_time=1.0,
        update_time=1.0,
    )


class TestBuildReinvocationArgs:
    def test_given_full_request_when_built_then_all_parameters_carried(
        self, record: PreparationRecord
    ) -> None:
        # Given
        request = PrepareRequest(
            process_name="tomcat",
            process_id="4321",
            java_home="/opt/jdk",
            async_mode=True,
            endpoint="http://collector/report",
        )

        # When
        args = build_reinvocation_args(request, record)

        # Then
        assert args == [
            "prepare",
            "jvm",
            "--uid",
            "b" * 32,
            "--nohup",
            "--port",
            "12345",
            "--process",
            "tomcat",
            "--javaHome",
            "/opt/jdk",
            "--pid",
            "4321",
            "--async",
            "--endpoint",
            "http://collector/report",
        ]

    def test_given_allocated_port_when_built_then_record_port_used(
        self, record: PreparationRecord
    ) -> None:
        """The child must not allocate again; it gets the record's port."""
        args = build_reinvocation_args(PrepareRequest(process_name="tomcat", port=0), record)
        assert args[args.index("--port") + 1] == "12345"
        assert "--javaHome" not in args
        assert "--endpoint" not in args

    def test_given_config_path_when_built_then_global_option_first(
        self, record: PreparationRecord, tmp_path: Path
    ) -> None:
        config_path = tmp_path / "config.yaml"
        args = build_reinvocation_args(PrepareRequest(process_name="tomcat"), record, config_path)
        assert args[:3] == ["--config", str(config_path), "prepare"]


class TestAsyncDispatcher:
    def test_given_record_when_dispatch_then_launched_with_per_uid_log(
        self, record: PreparationRecord, tmp_path: Path
    ) -> None:
        # Given
        launcher = CapturingLauncher()
        dispatcher = AsyncDispatcher(tmp_path / "logs", launcher=launcher)

        # When
        child_pid = dispatcher.dispatch(PrepareRequest(process_name="tomcat"), record)

        # Then
        assert child_pid == 99999
        args, log_path = launcher.calls[0]
        assert "--nohup" in args
        assert log_path == tmp_path / "logs" / f"prepare-{record.uid}.log"

    def test_given_launcher_error_when_dispatch_then_propagates(
        self, record: PreparationRecord, tmp_path: Path
    ) -> None:
        def broken(args: list[str], log_path: Path) -> int:
            raise ServerError.spawn_failed("fork failed")

        dispatcher = AsyncDispatcher(tmp_path / "logs", launcher=broken)

        with pytest.raises(ServerError):
            dispatcher.dispatch(PrepareRequest(process_name="tomcat"), record)


class TestSpawnDetached:
    def test_given_args_when_spawn_then_new_session_and_log_redirect(
        self, tmp_path: Path
    ) -> None:
        # Given
        log_path = tmp_path / "logs" / "prepare-x.log"

        # When
        with patch("agentprep.prepare.dispatcher.subprocess.Popen") as mock_popen:
            mock_popen.return_value = MagicMock(pid=4242)
            pid = spawn_detached(["prepare", "jvm"], log_path)

        # Then
        assert pid == 4242
        assert log_path.exists()
        cmd = mock_popen.call_args.args[0]
        assert cmd == [sys.executable, "-m", "agentprep", "prepare", "jvm"]
        kwargs = mock_popen.call_args.kwargs
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["close_fds"] is True
        if sys.platform != "win32":
            assert kwargs["start_new_session"] is True

    def test_given_popen_fails_when_spawn_then_server_error(self, tmp_path: Path) -> None:
        with (
            patch(
                "agentprep.prepare.dispatcher.subprocess.Popen",
                side_effect=OSError("No such file"),
            ),
            pytest.raises(ServerError) as exc_info,
        ):
            spawn_detached(["prepare", "jvm"], tmp_path / "x.log")

        assert exc_info.value.code == ErrorCode.SERVER_ERROR
