"""
Pydantic schemas for data validation and serialization.

Schemas:
    records: Domain records produced by the transformers
    checkpoint: Persisted checkpoint document and progress summary
    api: Status API response models

Usage:
    from schemas.records import BillRecord
    from schemas.checkpoint import CheckpointState

Validation:
    Domain records normalize strings and check their deterministic ids;
    the checkpoint schema rejects documents of another version, negative
    counters and duplicate completed phases, so a damaged file is
    detected on load instead of corrupting a run.
"""

__all__ = [
    "LegislatorRecord",
    "CommitteeRecord",
    "BillRecord",
    "RollCallRecord",
    "VotePositionRecord",
    "CheckpointState",
    "PhaseSummary",
    "ProgressSummary",
    "HealthCheckResponse",
    "ImportStatusResponse",
    "PhaseGraphResponse",
]
