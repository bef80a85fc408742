"""
Pydantic schemas for API response models
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from ingestion.phases import Phase
from schemas.checkpoint import PhaseSummary, ProgressSummary, utcnow

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    request_id: str
    api_latency_ms: int
    data: T

# ============================================================================
# Health Check Schemas
# ============================================================================


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=utcnow)
    database_connected: bool
    checkpoint_readable: bool
    import_running: bool = False
    last_error: Optional[str] = None

# ============================================================================
# Import Status Schemas
# ============================================================================


class PhaseState(BaseModel):
    """Progress marker of one phase in the current run"""
    phase: Phase
    state: str = Field(..., description="complete, in_progress or pending")
    summary: Optional[PhaseSummary] = None


class ImportStatusResponse(BaseModel):
    """Checkpoint progress of the current or last import run"""
    has_checkpoint: bool
    running: bool = False
    progress: Optional[ProgressSummary] = None
    phases: List[PhaseState] = Field(default_factory=list)


class PhaseInfo(BaseModel):
    phase: Phase
    order: int
    depends_on: List[Phase] = Field(default_factory=list)


class PhaseGraphResponse(BaseModel):
    """Declared phases in run order with their dependencies"""
    phases: List[PhaseInfo]
