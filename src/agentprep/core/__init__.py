"""Core module exports."""

from agentprep.core.errors import (
    AgentPrepError,
    AttachError,
    ConfigError,
    ErrorCode,
    InternalError,
    InvalidInputError,
    PersistenceError,
    PortRecoveryError,
    ServerError,
    TargetNotFoundError,
)
from agentprep.core.logging import (
    clear_correlation_id,
    configure_logging,
    get_correlation_id,
    get_log_file_path,
    set_correlation_id,
)

__all__ = [
    # Errors
    "AgentPrepError",
    "AttachError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "InvalidInputError",
    "PersistenceError",
    "PortRecoveryError",
    "ServerError",
    "TargetNotFoundError",
    # Logging
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_log_file_path",
    "set_correlation_id",
]
