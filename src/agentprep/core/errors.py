"""AgentPrep error types with typed error codes.

Error code ranges:
- 1xxx: Input
- 2xxx: Config
- 3xxx: Target
- 5xxx: Persistence
- 6xxx: Attach
- 9xxx: Internal / server
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Input (1xxx)
    ILLEGAL_PARAMETERS = 1001
    CONFLICTING_PARAMETERS = 1002
    AMBIGUOUS_TARGET = 1003
    UNKNOWN_UID = 1004

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Target (3xxx)
    TARGET_NOT_FOUND = 3001

    # Persistence (5xxx)
    DATABASE_ERROR = 5001

    # Attach (6xxx)
    ATTACH_FAILED = 6001
    PORT_RECOVERY_FAILED = 6002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    SERVER_ERROR = 9002


@dataclass(frozen=True, slots=True)
class AgentPrepError(Exception):
    """Base error with structured context for CLI responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TARGET_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class InvalidInputError(AgentPrepError):
    """Request parameters that cannot be acted on."""

    @classmethod
    def missing_target(cls) -> "InvalidInputError":
        return cls(
            code=ErrorCode.ILLEGAL_PARAMETERS,
            message="less --process or --pid flags",
        )

    @classmethod
    def conflicting_port(
        cls, uid: str, stored_port: int, requested_port: int
    ) -> "InvalidInputError":
        return cls(
            code=ErrorCode.CONFLICTING_PARAMETERS,
            message=(
                "the process has been executed prepare command, if you want to re-prepare, "
                f"please append or modify the --port {stored_port} argument in prepare command "
                "for retry"
            ),
            details={"uid": uid, "stored_port": stored_port, "requested_port": requested_port},
        )

    @classmethod
    def ambiguous_target(cls, process_name: str, pids: list[str]) -> "InvalidInputError":
        return cls(
            code=ErrorCode.AMBIGUOUS_TARGET,
            message=f"too many processes match '{process_name}': {', '.join(pids)}, "
            "please use --pid to select one",
            details={"process": process_name, "pids": pids},
        )

    @classmethod
    def unknown_uid(cls, uid: str) -> "InvalidInputError":
        return cls(
            code=ErrorCode.UNKNOWN_UID,
            message=f"no preparation record found for uid {uid}",
            details={"uid": uid},
        )


class TargetNotFoundError(AgentPrepError):
    """Target process could not be resolved."""

    @classmethod
    def by_name(cls, process_name: str) -> "TargetNotFoundError":
        return cls(
            code=ErrorCode.TARGET_NOT_FOUND,
            message=f"cannot find a java process matching '{process_name}'",
            details={"process": process_name},
        )

    @classmethod
    def by_pid(cls, process_id: str) -> "TargetNotFoundError":
        return cls(
            code=ErrorCode.TARGET_NOT_FOUND,
            message=f"process {process_id} does not exist",
            details={"pid": process_id},
        )


class PersistenceError(AgentPrepError):
    """Record store read/write failures."""

    @classmethod
    def operation_failed(cls, operation: str, reason: str) -> "PersistenceError":
        return cls(
            code=ErrorCode.DATABASE_ERROR,
            message=f"{operation} err, {reason}",
            retryable=True,
            details={"operation": operation, "reason": reason},
        )

    @classmethod
    def record_missing(cls, uid: str) -> "PersistenceError":
        return cls(
            code=ErrorCode.DATABASE_ERROR,
            message=f"preparation record {uid} not found",
            details={"uid": uid},
        )


class AttachError(AgentPrepError):
    """Agent attach handshake failed after the bounded retry."""

    @classmethod
    def failed(cls, message: str, **details: Any) -> "AttachError":
        return cls(code=ErrorCode.ATTACH_FAILED, message=message, details=details)


class PortRecoveryError(AgentPrepError):
    """The side-channel token source had no usable port."""

    @classmethod
    def unavailable(cls, identity: str, reason: str) -> "PortRecoveryError":
        return cls(
            code=ErrorCode.PORT_RECOVERY_FAILED,
            message=f"cannot recover sandbox port for {identity}: {reason}",
            details={"identity": identity, "reason": reason},
        )


class ServerError(AgentPrepError):
    """Local resource failures (port allocation, process spawning)."""

    @classmethod
    def port_allocation_failed(cls, reason: str) -> "ServerError":
        return cls(
            code=ErrorCode.SERVER_ERROR,
            message=f"get sandbox port err, {reason}",
            retryable=True,
        )

    @classmethod
    def spawn_failed(cls, reason: str) -> "ServerError":
        return cls(
            code=ErrorCode.SERVER_ERROR,
            message=f"spawn async attach process err, {reason}",
        )


class ConfigError(AgentPrepError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class InternalError(AgentPrepError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
