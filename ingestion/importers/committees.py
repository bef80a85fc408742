"""
Committees phase: parents before subcommittees, then a linking pass
for parent references that could not be set on first upsert
"""

import logging

from ingestion.batch import PhaseStats, iterate
from ingestion.import_config import ESTIMATED_COUNTS, MIN_COMMITTEES
from ingestion.importers.base import PhaseImporter
from ingestion.loaders.record_loader import RecordLoader
from ingestion.phases import ImportOptions, Phase
from ingestion.transformers.committees import parents_first, transform_committee

logger = logging.getLogger(__name__)


class CommitteeImporter(PhaseImporter):
    phase = Phase.COMMITTEES
    minimum = MIN_COMMITTEES

    def expected_total(self) -> int:
        return ESTIMATED_COUNTS["committees"]

    async def import_records(
        self,
        loader: RecordLoader,
        options: ImportOptions,
        stats: PhaseStats,
    ) -> None:
        # Fetched fully so the parents-first order is stable across runs
        items = parents_first([item async for item in self.client.list_committees()])
        logger.info(f"Fetched {len(items)} committees")

        await self.engine(options).run(
            iterate(items),
            transform=transform_committee,
            upsert=loader.upsert_committee,
            stats=stats,
            resume_offset=self.store.state.offset,
            record_key=self.key_of("systemCode"),
            total_expected=self.expected_total(),
        )

        if options.dry_run:
            return
        await self.link_parents(loader, items, stats)

    async def link_parents(self, loader: RecordLoader, items: list, stats: PhaseStats) -> int:
        """Link every subcommittee whose parent is stored but not yet referenced"""
        linked = 0
        for item in items:
            parent_code = (item.get("parent") or {}).get("systemCode")
            if not parent_code or not item.get("systemCode"):
                continue
            try:
                if await loader.link_parent(item["systemCode"], parent_code):
                    linked += 1
            except Exception as e:
                message = f"Failed to link committee {item['systemCode']} to {parent_code}: {e}"
                logger.warning(message)
                stats.record_error(message)
        if linked:
            logger.info(f"Linked {linked} deferred subcommittee parents")
        return linked
