import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from ingestion.checkpoint import CheckpointStore
from ingestion.congress_client import CongressAPIClient
from ingestion.importers.registry import build_importers
from ingestion.orchestrator import PhaseOrchestrator
from ingestion.phases import ImportOptions
from ingestion.run_lock import RunLock
from ingestion.runner import EXIT_FAILURE, RunContext, run

logger = logging.getLogger(__name__)


class ImportScheduler:
    """Runs the full import on an interval; a finished run is followed by a fresh one"""

    def __init__(
        self,
        interval_hours: Optional[int] = None,
        checkpoint_dir: Optional[str] = None,
        client_factory: Callable[[], CongressAPIClient] = CongressAPIClient,
    ):
        self.scheduler = AsyncIOScheduler()
        self.interval_hours = interval_hours or settings.IMPORT_SCHEDULE_HOURS
        self.checkpoint_dir = checkpoint_dir or settings.CHECKPOINT_DIR
        self.client_factory = client_factory

    async def run_import_job(self) -> int:
        """Job to run the import pipeline"""
        lock = RunLock(self.checkpoint_dir)
        if lock.is_locked():
            logger.info(f"Scheduler: import run in progress (pid {lock.owner()}), skipping tick")
            return EXIT_FAILURE

        logger.info("Scheduler: Starting import job")
        store = CheckpointStore(self.checkpoint_dir)
        if store.load() is None or store.is_complete():
            store.reset()
            store.create()

        async with self.client_factory() as client:
            context = RunContext(
                store=store,
                orchestrator=PhaseOrchestrator(store, build_importers(client, store)),
                options=ImportOptions(),
                lock=lock,
                install_signal_handlers=False,
            )
            code = await run(context)

        if code != 0:
            logger.error("Scheduler: import job failed, next tick resumes from the checkpoint")
        return code

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_import_job,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id="import_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Import scheduler started (every {self.interval_hours}h)")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Import scheduler stopped")
