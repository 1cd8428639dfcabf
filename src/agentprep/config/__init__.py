"""Config module exports."""

from agentprep.config.loader import load_config
from agentprep.config.models import (
    AgentConfig,
    AgentPrepConfig,
    DatabaseConfig,
    DispatchConfig,
    LoggingConfig,
    LogOutputConfig,
    ReportConfig,
)

__all__ = [
    "load_config",
    "AgentConfig",
    "AgentPrepConfig",
    "DatabaseConfig",
    "DispatchConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ReportConfig",
]
