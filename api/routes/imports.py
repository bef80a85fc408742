"""
Read-only import progress endpoints
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_checkpoint_store, get_run_lock
from ingestion.checkpoint import CheckpointStore
from ingestion.phases import PHASE_DEPENDENCIES, PHASE_ORDER
from ingestion.run_lock import RunLock
from schemas.api import ImportStatusResponse, PhaseGraphResponse, PhaseInfo, PhaseState

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/import", tags=["Import"])


@router.get("/status", response_model=ImportStatusResponse)
async def import_status(
    store: CheckpointStore = Depends(get_checkpoint_store),
    lock: RunLock = Depends(get_run_lock),
):
    """Progress summary plus the state of every phase"""
    state = store.state
    if state is None:
        return ImportStatusResponse(has_checkpoint=False, running=lock.is_locked())

    phases = []
    for phase in PHASE_ORDER:
        if store.is_phase_completed(phase):
            marker = "complete"
        elif state.phase == phase:
            marker = "in_progress"
        else:
            marker = "pending"
        phases.append(PhaseState(phase=phase, state=marker, summary=state.metadata.get(phase)))

    return ImportStatusResponse(
        has_checkpoint=True,
        running=lock.is_locked(),
        progress=store.get_progress_summary(),
        phases=phases,
    )


@router.get("/phases", response_model=PhaseGraphResponse)
async def import_phases():
    """Declared phases in run order with their dependencies"""
    return PhaseGraphResponse(phases=[
        PhaseInfo(
            phase=phase,
            order=index,
            depends_on=[dep for dep in PHASE_ORDER if dep in PHASE_DEPENDENCIES[phase]],
        )
        for index, phase in enumerate(PHASE_ORDER)
    ])
