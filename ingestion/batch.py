"""
Batch upsert engine shared by the record-importing phases.

Consumes a lazy record stream in fixed-size batches, skips batches that
a previous run already committed, isolates per-record failures and
persists the checkpoint after every batch. A crash between two
checkpoint writes redoes at most one batch, which the idempotent
upserts make safe.
"""

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import (
    Any, AsyncIterable, AsyncIterator, Awaitable, Callable, List, Optional,
    Sequence, TypeVar, Union
)

from core.exceptions import ValidationError
from ingestion.checkpoint import CheckpointStore
from ingestion.import_config import PROGRESS_LOG_INTERVAL
from ingestion.loaders.record_loader import UpsertResult
from ingestion.phases import Phase
from schemas.checkpoint import CheckpointState, PhaseSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")

Transform = Callable[[Any], Union[Any, Awaitable[Any]]]
Upsert = Callable[[Any], Awaitable[UpsertResult]]
RecordKey = Callable[[Any], str]

MAX_KEPT_ERRORS = 100


@dataclass
class PhaseStats:
    """Counters for one phase run; ``processed`` spans every cell of the phase"""
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def resumed_from(cls, state: Optional[CheckpointState], phase: Phase) -> "PhaseStats":
        """
        Start counters at the records committed in earlier cells of an
        interrupted run of ``phase``. Records of the resume cell are
        counted again as its batches are skipped.
        """
        stats = cls()
        if state is not None and state.phase == phase:
            stats.processed = max(0, state.records_processed - state.offset)
        return stats

    def record_error(self, message: str) -> None:
        self.error_count += 1
        if len(self.errors) < MAX_KEPT_ERRORS:
            self.errors.append(message)

    @property
    def duration_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def summary(self) -> PhaseSummary:
        return PhaseSummary(
            created=self.created,
            updated=self.updated,
            skipped=self.skipped,
            error_count=self.error_count,
            duration_ms=self.duration_ms,
        )


async def batch_items(source: AsyncIterable[T], size: int) -> AsyncIterator[List[T]]:
    """Group an async stream into lists of ``size`` (the last may be shorter)"""
    if size <= 0:
        raise ValueError("Batch size must be positive")
    batch: List[T] = []
    async for item in source:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


async def iterate(items: Sequence[T]) -> AsyncIterator[T]:
    """Async stream over an in-memory sequence"""
    for item in items:
        yield item


def should_skip(
    outer: Any,
    inner: Any,
    resume_outer: Any,
    resume_inner: Any,
    outer_order: Sequence[Any],
    inner_order: Sequence[Any],
) -> bool:
    """
    True when cell (outer, inner) lies strictly before the resume cell in
    the declared order of both dimensions. No resume cell means nothing
    is skipped, as does a resume cell outside the declared order.
    """
    if resume_outer is None or resume_inner is None:
        return False
    if resume_outer not in outer_order or resume_inner not in inner_order:
        return False
    outer_index = outer_order.index(outer)
    resume_outer_index = outer_order.index(resume_outer)
    if outer_index != resume_outer_index:
        return outer_index < resume_outer_index
    return inner_order.index(inner) < inner_order.index(resume_inner)


def check_minimum(label: str, processed: int, minimum: float, dry_run: bool) -> None:
    """
    Fail a phase that finished with fewer records than ``minimum``.

    Raises:
        ValidationError: If not a dry run and ``processed < minimum``
    """
    if dry_run or processed >= minimum:
        return
    raise ValidationError(
        f"{label} count {processed} is below the minimum of {int(minimum)}",
        context={"phase": label, "processed": processed, "minimum": int(minimum)}
    )


class BatchUpsertEngine:
    """
    Drive transform + upsert over a record stream with checkpointing.

    Attributes:
        batch_size: Records per checkpointed batch
        dry_run: Transform only; never upsert
        max_records: Dry-run cap on ``stats.processed``
    """

    def __init__(
        self,
        store: CheckpointStore,
        label: str,
        batch_size: int,
        dry_run: bool = False,
        max_records: Optional[int] = None,
        verbose: bool = False,
        progress_interval: int = PROGRESS_LOG_INTERVAL,
    ):
        self.store = store
        self.label = label
        self.batch_size = batch_size
        self.dry_run = dry_run
        self.max_records = max_records
        self.verbose = verbose
        self.progress_interval = progress_interval

    def limit_reached(self, stats: PhaseStats) -> bool:
        return bool(self.dry_run and self.max_records and stats.processed >= self.max_records)

    async def run(
        self,
        records: AsyncIterable[Any],
        transform: Transform,
        upsert: Upsert,
        stats: PhaseStats,
        resume_offset: int = 0,
        record_key: Optional[RecordKey] = None,
        total_expected: int = 0,
    ) -> int:
        """
        Consume ``records`` and return how many were seen in this context.

        Batches that end at or before ``resume_offset`` are counted and
        skipped without transform or upsert. After every processed batch
        the checkpoint offset (local to this context) and the phase-wide
        ``records_processed`` are persisted.
        """
        record_key = record_key or (lambda raw: "?")
        seen = 0
        batch_number = 0
        next_log = (stats.processed // self.progress_interval + 1) * self.progress_interval

        if resume_offset > 0:
            logger.info(f"[{self.label}] Resuming from offset {resume_offset}")

        async for batch in batch_items(records, self.batch_size):
            batch_number += 1

            if seen + len(batch) <= resume_offset:
                seen += len(batch)
                stats.processed += len(batch)
                stats.skipped += len(batch)
                continue

            for raw in batch:
                key = record_key(raw)
                try:
                    record = transform(raw)
                    if inspect.isawaitable(record):
                        record = await record
                except Exception as e:
                    message = f"Failed to transform {self.label} {key}: {e}"
                    logger.warning(message)
                    stats.record_error(message)
                    continue

                if record is None:
                    stats.skipped += 1
                    continue

                if self.dry_run:
                    logger.debug(f"[DRY RUN] Would upsert {self.label} {key}")
                    continue

                try:
                    result = await upsert(record)
                except Exception as e:
                    message = f"Failed to upsert {self.label} {key}: {e}"
                    logger.warning(message)
                    stats.record_error(message)
                    continue

                if result.created:
                    stats.created += 1
                else:
                    stats.updated += 1

            seen += len(batch)
            stats.processed += len(batch)
            self.store.update(offset=seen, records_processed=stats.processed)

            if self.verbose:
                logger.debug(
                    f"[{self.label}] Batch {batch_number}: {len(batch)} records, "
                    f"{stats.created} created, {stats.updated} updated so far"
                )
            if stats.processed >= next_log:
                self._log_progress(stats.processed, total_expected)
                next_log = (stats.processed // self.progress_interval + 1) * self.progress_interval

            if self.limit_reached(stats):
                logger.info(f"[{self.label}] Dry run limit reached ({self.max_records} records)")
                break

        return seen

    def _log_progress(self, processed: int, total: int) -> None:
        percent = round(processed / total * 100) if total > 0 else 0
        filled = min(20, percent // 5)
        bar = "#" * filled + "-" * (20 - filled)
        logger.info(f"[{self.label}] [{bar}] {percent}% ({processed}/{total or '?'})")
