"""Root conftest.py: shared fixtures over a throwaway record store.

Ensures local src/ directory takes priority over any installed packages.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from agentprep.config.models import AgentPrepConfig  # noqa: E402
from agentprep.core.logging import clear_correlation_id  # noqa: E402
from agentprep.prepare.coordinator import PreparationCoordinator  # noqa: E402
from agentprep.prepare.dispatcher import AsyncDispatcher  # noqa: E402
from agentprep.prepare.reporter import ResultReporter  # noqa: E402
from agentprep.prepare.retry import AttachRetryEngine  # noqa: E402
from agentprep.store.database import Database  # noqa: E402
from agentprep.store.records import RecordStore  # noqa: E402
from tests.fakes import (  # noqa: E402
    CapturingLauncher,
    ScriptedAttachClient,
    StepClock,
    StubAllocator,
    StubRecovery,
    StubResolver,
)


@pytest.fixture(autouse=True)
def _reset_correlation_id() -> Generator[None, None, None]:
    yield
    clear_correlation_id()


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Drop handlers bound to streams a CliRunner has closed."""
    yield
    logging.getLogger().handlers.clear()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    database = Database(tmp_path / "agentprep.db")
    yield database
    database.dispose()


@pytest.fixture
def store(db: Database, clock: StepClock) -> RecordStore:
    return RecordStore.open(db, clock=clock)


@pytest.fixture
def config(tmp_path: Path) -> AgentPrepConfig:
    return AgentPrepConfig.model_validate(
        {
            "database": {"path": str(tmp_path / "agentprep.db")},
            "dispatch": {"grace_sec": 0.5, "log_dir": str(tmp_path / "logs")},
        }
    )


@pytest.fixture
def resolver() -> StubResolver:
    return StubResolver()


@pytest.fixture
def allocator() -> StubAllocator:
    return StubAllocator(12345, 23456, 34567)


@pytest.fixture
def attach_client() -> ScriptedAttachClient:
    return ScriptedAttachClient()


@pytest.fixture
def recovery() -> StubRecovery:
    return StubRecovery()


@pytest.fixture
def launcher() -> CapturingLauncher:
    return CapturingLauncher()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def coordinator(
    tmp_path: Path,
    store: RecordStore,
    resolver: StubResolver,
    allocator: StubAllocator,
    attach_client: ScriptedAttachClient,
    recovery: StubRecovery,
    launcher: CapturingLauncher,
    sleeps: list[float],
) -> PreparationCoordinator:
    return PreparationCoordinator(
        store=store,
        allocator=allocator,
        resolver=resolver,
        engine=AttachRetryEngine(attach_client, recovery, store),
        dispatcher=AsyncDispatcher(tmp_path / "logs", launcher=launcher),
        reporter=ResultReporter(store, "JAVA_AGENT_PREPARE"),
        grace_sec=0.5,
        sleep=sleeps.append,
    )
