"""
Legislators phase: current members followed by historical members
"""

import logging
from typing import Any, AsyncIterator, Dict, Tuple

from ingestion.batch import PhaseStats
from ingestion.import_config import ESTIMATED_COUNTS, MIN_LEGISLATORS
from ingestion.importers.base import PhaseImporter
from ingestion.loaders.record_loader import RecordLoader
from ingestion.phases import ImportOptions, Phase
from ingestion.transformers.legislators import transform_member

logger = logging.getLogger(__name__)

MemberItem = Tuple[Dict[str, Any], bool]


class LegislatorImporter(PhaseImporter):
    phase = Phase.LEGISLATORS
    minimum = MIN_LEGISLATORS

    def expected_total(self) -> int:
        return ESTIMATED_COUNTS["legislators"]

    async def members(self) -> AsyncIterator[MemberItem]:
        """One stable stream: the current list, then the historical list"""
        async for item in self.client.list_members(current_member=True):
            yield item, True
        async for item in self.client.list_members(current_member=False):
            yield item, False

    async def import_records(
        self,
        loader: RecordLoader,
        options: ImportOptions,
        stats: PhaseStats,
    ) -> None:
        await self.engine(options).run(
            self.members(),
            transform=lambda pair: transform_member(pair[0], in_office=pair[1]),
            upsert=loader.upsert_legislator,
            stats=stats,
            resume_offset=self.store.state.offset,
            record_key=lambda pair: str(pair[0].get("bioguideId") or "?"),
            total_expected=self.expected_total(),
        )
