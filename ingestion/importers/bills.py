"""
Bills phase: every bill type of every target congress
"""

from typing import Any, AsyncIterator, Callable, Dict, List

from ingestion.import_config import BILL_TYPES, MIN_BILLS_RATIO, estimated_bills
from ingestion.importers.base import GridImporter
from ingestion.loaders.record_loader import RecordLoader
from ingestion.phases import Phase
from ingestion.transformers.bills import transform_bill


class BillImporter(GridImporter):
    phase = Phase.BILLS
    inner_field = "bill_type"

    @property
    def minimum(self) -> float:
        return estimated_bills(self.outer_order) * MIN_BILLS_RATIO

    @property
    def inner_order(self) -> List[str]:
        return BILL_TYPES

    def expected_total(self) -> int:
        return estimated_bills(self.outer_order)

    def fetch(self, congress: int, bill_type: str) -> AsyncIterator[Dict[str, Any]]:
        return self.client.list_bills(congress, bill_type)

    def transform(self, raw: Dict[str, Any]):
        return transform_bill(raw)

    def upsert(self, loader: RecordLoader) -> Callable:
        return loader.upsert_bill

    def record_key(self, raw: Dict[str, Any]) -> str:
        return f"{raw.get('type')}-{raw.get('number')}-{raw.get('congress')}"
