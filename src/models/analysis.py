"""Analysis service data types (kickoff and status polling contract)."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RunStatus(Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


@dataclass(frozen=True)
class AnalysisJob:
    run_id: str
    execution_id: Optional[str] = None
    runs_remaining: Optional[int] = None  # Daily usage left, when reported


@dataclass(frozen=True)
class AnalysisStatus:
    run_id: str
    status: RunStatus
    payload: dict = field(default_factory=dict)  # Full status response body
    error: Optional[str] = None
    pdf_url: Optional[str] = None
