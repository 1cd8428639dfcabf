"""Shared per-invocation state for CLI commands."""

from pathlib import Path

import click

from agentprep.config.models import AgentPrepConfig
from agentprep.prepare.coordinator import PreparationCoordinator
from agentprep.store.database import Database
from agentprep.store.records import RecordStore


def get_config(ctx: click.Context) -> AgentPrepConfig:
    config: AgentPrepConfig = ctx.obj["config"]
    return config


def get_coordinator(ctx: click.Context) -> PreparationCoordinator:
    """Return the injected coordinator, or wire one from config."""
    coordinator: PreparationCoordinator | None = ctx.obj.get("coordinator")
    if coordinator is None:
        coordinator = PreparationCoordinator.from_config(
            get_config(ctx), ctx.obj.get("config_path")
        )
        ctx.call_on_close(coordinator.close)
    return coordinator


def get_store(ctx: click.Context) -> RecordStore:
    store: RecordStore | None = ctx.obj.get("store")
    if store is None:
        db_config = get_config(ctx).database
        store = RecordStore.open(
            Database(
                Path(db_config.path).expanduser(),
                max_retries=db_config.max_retries,
                retry_base_delay=db_config.retry_base_delay_sec,
            )
        )
        ctx.call_on_close(store.close)
    return store
