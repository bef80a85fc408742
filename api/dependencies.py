"""
FastAPI dependencies
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_session
from ingestion.checkpoint import CheckpointStore
from ingestion.run_lock import RunLock


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_checkpoint_store() -> CheckpointStore:
    """Read-only view of the checkpoint; the API never mutates it"""
    store = CheckpointStore(settings.CHECKPOINT_DIR, read_only=True)
    store.load()
    return store


def get_run_lock() -> RunLock:
    return RunLock(settings.CHECKPOINT_DIR)
