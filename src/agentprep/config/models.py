"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (AGENTPREP__SECTION__KEY)
3. YAML config (--config path, else ~/.config/agentprep/config.yaml)
4. Built-in defaults (this file)

Examples:
    AGENTPREP__LOGGING__LEVEL=DEBUG
    AGENTPREP__AGENT__SANDBOX_HOME=/opt/chaosblade/lib/sandbox
    AGENTPREP__DISPATCH__GRACE_SEC=2
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_HOME = Path("~/.agentprep").expanduser()


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v == "stderr":
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        AGENTPREP__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(default="INFO", description="Root log level.")
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class AgentConfig(BaseModel):
    """Sandbox agent attach configuration.

    Env vars:
        AGENTPREP__AGENT__SANDBOX_HOME: Directory holding lib/sandbox-core.jar
        AGENTPREP__AGENT__NAMESPACE: Sandbox namespace the agent registers under
        AGENTPREP__AGENT__ATTACH_TIMEOUT_SEC: Attach launcher timeout
    """

    sandbox_home: str = Field(
        default=str(DEFAULT_HOME / "lib" / "sandbox"),
        description="jvm-sandbox home. Must contain lib/sandbox-core.jar and "
        "lib/sandbox-agent.jar.",
    )
    namespace: str = Field(
        default="chaosblade",
        description="Sandbox namespace. Also selects the line read from ~/.sandbox.token.",
    )
    module_id: str = Field(
        default="chaosblade",
        description="Sandbox module activated after attach.",
    )
    server_ip: str = Field(
        default="127.0.0.1",
        description="Address the in-process agent server binds to.",
    )
    attach_timeout_sec: float = Field(
        default=60.0,
        description="Timeout for the attach launcher process. "
        "RISK: large heaps can take tens of seconds to attach.",
    )
    activate_timeout_sec: float = Field(
        default=10.0,
        description="HTTP timeout for module activation after attach.",
    )

    @field_validator("attach_timeout_sec", "activate_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class DatabaseConfig(BaseModel):
    """Record store configuration.

    Env vars:
        AGENTPREP__DATABASE__PATH: SQLite file holding preparation records
        AGENTPREP__DATABASE__MAX_RETRIES: Max retry attempts for locked DB
    """

    path: str = Field(
        default=str(DEFAULT_HOME / "agentprep.db"),
        description="SQLite file for preparation records.",
    )
    max_retries: int = Field(
        default=3,
        description="Max retry attempts for locked database errors.",
    )
    retry_base_delay_sec: float = Field(
        default=0.1,
        description="Base delay between retries (exponential backoff).",
    )


class DispatchConfig(BaseModel):
    """Asynchronous dispatch configuration.

    Env vars:
        AGENTPREP__DISPATCH__GRACE_SEC: How long the caller waits after spawning
        AGENTPREP__DISPATCH__LOG_DIR: Where detached runs write their output
    """

    grace_sec: float = Field(
        default=1.0,
        description="Fixed wait after spawning the detached attach before acknowledging.",
    )
    log_dir: str = Field(
        default=str(DEFAULT_HOME / "logs"),
        description="Directory for detached attach output (one file per uid).",
    )

    @field_validator("grace_sec")
    @classmethod
    def validate_grace(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Grace interval must be >= 0, got {v}")
        return v


class ReportConfig(BaseModel):
    """Result reporting configuration.

    Env vars:
        AGENTPREP__REPORT__TIMEOUT_SEC: HTTP timeout for result posts
    """

    timeout_sec: float = Field(default=10.0, description="HTTP timeout for result posts.")
    type_tag: str = Field(
        default="JAVA_AGENT_PREPARE",
        description="Fixed 'type' value of the report envelope.",
    )


class AgentPrepConfig(BaseModel):
    """Root configuration for AgentPrep."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
