"""
Health check endpoint with database and checkpoint status
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_checkpoint_store, get_db, get_run_lock
from ingestion.checkpoint import CheckpointStore
from ingestion.run_lock import RunLock
from schemas.api import HealthCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


def checkpoint_readable(store: CheckpointStore) -> bool:
    """No checkpoint yet counts as readable; an existing unusable one does not"""
    if store.state is not None:
        return True
    if store.path.exists() or store.backup_path.exists():
        logger.error("Checkpoint files exist but none could be loaded")
        return False
    return True


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    store: CheckpointStore = Depends(get_checkpoint_store),
    lock: RunLock = Depends(get_run_lock),
):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Whether the import checkpoint can be read
    - Whether an import run is active
    """
    db_connected = False
    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")

    readable = checkpoint_readable(store)

    if not db_connected:
        status = "unhealthy"
    elif not readable:
        status = "degraded"
    else:
        status = "healthy"

    return HealthCheckResponse(
        status=status,
        database_connected=db_connected,
        checkpoint_readable=readable,
        import_running=lock.is_locked(),
        last_error=store.state.last_error if store.state else None,
    )
