"""Operation state models."""

from typing import Optional
from pydantic import BaseModel


class RunRecord(BaseModel):
    """A run of an operation and the time window it covered."""
    run_time: int
    start_time: Optional[int] = None
    end_time: Optional[int] = None


class OperationState(BaseModel):
    """State tracked for a (synchronization, operation) pair."""
    sync_id: str
    operation: str
    last_run: Optional[RunRecord] = None
    current_run: Optional[RunRecord] = None
    locked: bool = False
