"""
Pydantic schemas for the persisted import checkpoint
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ingestion.phases import Phase

CHECKPOINT_VERSION = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhaseSummary(BaseModel):
    """Statistics written once when a phase completes"""
    created: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    error_count: int = Field(0, ge=0)
    duration_ms: int = Field(0, ge=0)


class CheckpointState(BaseModel):
    """
    Durable state of one import run.

    ``offset``, ``records_processed``, ``total_expected``, ``congress``,
    ``bill_type`` and ``session`` are local to ``phase`` and are reset
    together when a different phase starts.
    """

    version: int = CHECKPOINT_VERSION
    run_id: str = Field(..., min_length=1)
    phase: Phase
    completed_phases: List[Phase] = Field(default_factory=list)

    offset: int = Field(0, ge=0)
    records_processed: int = Field(0, ge=0)
    total_expected: int = Field(0, ge=0)

    congress: Optional[int] = None
    bill_type: Optional[str] = None
    session: Optional[int] = None

    last_error: Optional[str] = None
    metadata: Dict[Phase, PhaseSummary] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("completed_phases")
    @classmethod
    def no_duplicate_phases(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("completed_phases contains duplicates")
        return v

    @field_validator("version")
    @classmethod
    def supported_version(cls, v):
        if v != CHECKPOINT_VERSION:
            raise ValueError(f"Unsupported checkpoint version {v}")
        return v


class ProgressSummary(BaseModel):
    """Read-only view of a checkpoint for status output"""
    run_id: str
    phase: Phase
    progress: int
    records_processed: int
    total_expected: int
    elapsed: str
    completed_phases: int
    total_phases: int
    completed: List[Phase]
    last_error: Optional[str] = None
