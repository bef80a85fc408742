"""
Abstract base class for phase importers
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, AsyncIterator, Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db_session
from ingestion.batch import BatchUpsertEngine, PhaseStats, check_minimum, should_skip
from ingestion.checkpoint import CheckpointStore, format_duration
from ingestion.congress_client import CongressAPIClient
from ingestion.import_config import BATCH_SIZES, TARGET_CONGRESSES
from ingestion.loaders.record_loader import RecordLoader
from ingestion.phases import ImportOptions, Phase

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class PhaseImporter(ABC):
    """
    One importer per phase tag.

    Responsibilities:
    - Fetch the phase's records through the shared API client
    - Drive them through the batch engine with checkpointed progress
    - Fail the phase when the final count is below its minimum
    - Record the phase summary in the checkpoint metadata
    """

    phase: Phase
    minimum: float = 0

    def __init__(
        self,
        client: Optional[CongressAPIClient],
        store: CheckpointStore,
        session_factory: SessionFactory = get_db_session,
        dry_run_max_records: Optional[int] = None,
    ):
        self.client = client
        self.store = store
        self.session_factory = session_factory
        self.dry_run_max_records = (
            settings.DRY_RUN_MAX_RECORDS if dry_run_max_records is None else dry_run_max_records
        )

    @property
    def label(self) -> str:
        return self.phase.value

    def engine(self, options: ImportOptions) -> BatchUpsertEngine:
        return BatchUpsertEngine(
            store=self.store,
            label=self.label,
            batch_size=BATCH_SIZES[self.label],
            dry_run=options.dry_run,
            max_records=self.dry_run_max_records,
            verbose=options.verbose,
        )

    @abstractmethod
    async def import_records(
        self,
        loader: RecordLoader,
        options: ImportOptions,
        stats: PhaseStats,
    ) -> None:
        """Fetch, transform and upsert every record of the phase"""
        pass

    def expected_total(self) -> int:
        return 0

    async def execute(self, options: ImportOptions) -> PhaseStats:
        """
        Run the phase to completion.

        Raises:
            FetchError: If a page fetch fails after retries
            ValidationError: If the processed count is below the minimum
            CheckpointPersistError: If progress cannot be persisted
        """
        mode = " (dry run)" if options.dry_run else ""
        logger.info(f"Starting phase '{self.label}'{mode}")

        stats = PhaseStats.resumed_from(self.store.state, self.phase)
        total = self.expected_total()
        if total and self.store.state.total_expected != total:
            self.store.update(total_expected=total)

        async with self.session_factory() as session:
            await self.import_records(RecordLoader(session), options, stats)

        check_minimum(self.label, stats.processed, self.minimum, options.dry_run)
        self.store.set_phase_summary(self.phase, stats.summary())
        self.log_summary(stats)
        return stats

    def log_summary(self, stats: PhaseStats) -> None:
        logger.info(
            f"Phase '{self.label}' finished: processed={stats.processed} "
            f"created={stats.created} updated={stats.updated} skipped={stats.skipped} "
            f"errors={stats.error_count} duration={format_duration(stats.duration_ms / 1000)}"
        )
        for message in stats.errors[:10]:
            logger.debug(f"  {message}")

    @staticmethod
    def key_of(*fields: str) -> Callable[[Any], str]:
        """Record-key function reading the first present field of a raw item"""
        def key(raw: Any) -> str:
            for name in fields:
                if isinstance(raw, dict) and raw.get(name):
                    return str(raw[name])
            return "?"
        return key


class GridImporter(PhaseImporter):
    """
    Importer over a two-dimensional space of cells, congress x subtype.

    The checkpoint holds the cell being imported (``congress`` plus
    ``inner_field``) and the offset inside it. On resume every cell
    before the stored one is skipped, the stored cell resumes at its
    offset and every later cell starts at zero.
    """

    inner_field: str

    @property
    def outer_order(self) -> List[int]:
        return TARGET_CONGRESSES

    @property
    @abstractmethod
    def inner_order(self) -> List[Any]:
        pass

    @abstractmethod
    def fetch(self, congress: int, inner: Any) -> AsyncIterator[Any]:
        pass

    @abstractmethod
    def transform(self, raw: Any) -> Any:
        pass

    @abstractmethod
    def upsert(self, loader: RecordLoader) -> Callable[[Any], Any]:
        pass

    @abstractmethod
    def record_key(self, raw: Any) -> str:
        pass

    async def import_records(
        self,
        loader: RecordLoader,
        options: ImportOptions,
        stats: PhaseStats,
    ) -> None:
        state = self.store.state
        resume_congress = state.congress
        resume_inner = getattr(state, self.inner_field)
        resume_offset = state.offset
        engine = self.engine(options)

        for congress in self.outer_order:
            for inner in self.inner_order:
                if should_skip(congress, inner, resume_congress, resume_inner,
                               self.outer_order, self.inner_order):
                    continue

                if (congress, inner) == (resume_congress, resume_inner):
                    offset = resume_offset
                else:
                    offset = 0
                    self.store.update(congress=congress, offset=0, **{self.inner_field: inner})

                logger.info(f"[{self.label}] Importing congress {congress} {self.inner_field} {inner}")
                await engine.run(
                    self.fetch(congress, inner),
                    transform=self.transform,
                    upsert=self.upsert(loader),
                    stats=stats,
                    resume_offset=offset,
                    record_key=self.record_key,
                    total_expected=self.expected_total(),
                )
                if engine.limit_reached(stats):
                    return
