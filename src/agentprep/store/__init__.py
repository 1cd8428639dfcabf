"""Durable storage for preparation records."""

from agentprep.store.database import Database
from agentprep.store.models import PreparationRecord
from agentprep.store.records import RecordStore

__all__ = ["Database", "PreparationRecord", "RecordStore"]
