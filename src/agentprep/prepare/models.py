"""Request, outcome and response types for agent preparation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from agentprep.config.constants import PREPARE_JVM_TYPE, SUCCESS_CODE
from agentprep.core.errors import AgentPrepError


@dataclass(slots=True)
class PrepareRequest:
    """One caller request to attach an agent.

    ``uid`` and ``nohup`` are only set by the detached re-invocation.
    """

    process_name: str = ""
    process_id: str = ""
    port: int = 0
    java_home: str = ""
    async_mode: bool = False
    uid: str = ""
    nohup: bool = False
    endpoint: str = ""
    program_type: str = PREPARE_JVM_TYPE

    @property
    def should_dispatch(self) -> bool:
        return self.async_mode and not self.nohup


@dataclass(frozen=True, slots=True)
class AttachOutcome:
    """Final result of the attach retry engine."""

    success: bool
    message: str
    port: int
    retried: bool = False


class PrepareResponse(BaseModel):
    """Single structured response printed for every prepare outcome."""

    code: int = SUCCESS_CODE
    success: bool = True
    result: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, result: Any) -> PrepareResponse:
        return cls(result=result)

    @classmethod
    def from_error(cls, error: AgentPrepError, result: Any = None) -> PrepareResponse:
        return cls(code=error.code.value, success=False, result=result, error=error.message)

    def render(self) -> str:
        return json.dumps(self.model_dump(exclude_none=True))
