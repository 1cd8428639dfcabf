"""SQLModel definition for preparation records."""

from datetime import datetime, timezone
from typing import Any

from sqlmodel import Field, SQLModel

from agentprep.config.constants import STATUS_CREATED, STATUS_RUNNING


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class PreparationRecord(SQLModel, table=True):
    """One agent attachment for one target process.

    ``uid`` is fixed at creation. ``port`` and ``pid`` may be corrected in
    place by the orchestration layer.
    """

    __tablename__ = "preparations"

    uid: str = Field(primary_key=True)
    program_type: str = Field(index=True)
    process: str = Field(default="", index=True)
    pid: str = Field(default="", index=True)
    port: int
    status: str = Field(default=STATUS_CREATED, index=True)
    error: str = ""
    create_time: float
    update_time: float

    @property
    def running(self) -> bool:
        return self.status == STATUS_RUNNING

    def to_report_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys result collectors expect."""
        return {
            "uid": self.uid,
            "type": self.program_type,
            "process": self.process,
            "pid": self.pid,
            "port": str(self.port),
            "status": self.status,
            "error": self.error,
            "running": self.running,
            "createTime": _iso(self.create_time),
            "updateTime": _iso(self.update_time),
        }
