"""
Votes phase: House roll calls of every session of every target congress.

List items only identify a roll call; the detail and the member
positions are fetched as part of transforming each item, so a failed
fetch costs that roll call only.
"""

from typing import Any, AsyncIterator, Callable, Dict, List

from core.exceptions import TransformationError
from ingestion.import_config import HOUSE_VOTE_SESSIONS, MIN_VOTES_RATIO, estimated_votes
from ingestion.importers.base import GridImporter
from ingestion.loaders.record_loader import RecordLoader
from ingestion.phases import Phase
from ingestion.transformers.common import parse_int
from ingestion.transformers.votes import transform_roll_call
from schemas.records import RollCallRecord


class VoteImporter(GridImporter):
    phase = Phase.VOTES
    inner_field = "session"

    @property
    def minimum(self) -> float:
        return estimated_votes(self.outer_order) * MIN_VOTES_RATIO

    @property
    def inner_order(self) -> List[int]:
        return HOUSE_VOTE_SESSIONS

    def expected_total(self) -> int:
        return estimated_votes(self.outer_order)

    def fetch(self, congress: int, session: int) -> AsyncIterator[Dict[str, Any]]:
        return self.client.list_house_votes(congress, session)

    async def transform(self, raw: Dict[str, Any]) -> RollCallRecord:
        congress = parse_int(raw.get("congress"))
        session = parse_int(raw.get("sessionNumber"))
        roll = parse_int(raw.get("rollCallNumber"))
        if congress is None or session is None or roll is None:
            raise TransformationError(
                "Roll call list item is missing congress, session or roll number",
                context={"entity": "roll_call", "record_key": self.record_key(raw)}
            )

        detail = await self.client.get_house_vote(congress, session, roll)
        members = await self.client.get_house_vote_members(congress, session, roll)
        return transform_roll_call({**raw, **detail}, members)

    def upsert(self, loader: RecordLoader) -> Callable:
        return loader.upsert_roll_call

    def record_key(self, raw: Dict[str, Any]) -> str:
        return f"{raw.get('congress')}-{raw.get('sessionNumber')}-{raw.get('rollCallNumber')}"
