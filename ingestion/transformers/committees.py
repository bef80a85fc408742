"""
Transform Congress.gov committee list items into committee records
"""

from typing import Any, Dict, Iterable, List

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import TransformationError
from models.base import Chamber
from ingestion.transformers.common import map_chamber, map_committee_type
from schemas.records import CommitteeRecord


def transform_committee(item: Dict[str, Any]) -> CommitteeRecord:
    system_code = item.get("systemCode")
    if not system_code or not item.get("name"):
        raise TransformationError(
            "Committee is missing systemCode or name",
            context={"entity": "committee", "record_key": system_code}
        )
    parent = item.get("parent") or {}
    try:
        return CommitteeRecord(
            id=system_code,
            name=item["name"].strip(),
            chamber=map_chamber(item.get("chamber")) or Chamber.HOUSE,
            type=map_committee_type(item.get("committeeTypeCode")),
            parent_id=parent.get("systemCode"),
        )
    except PydanticValidationError as e:
        raise TransformationError(
            "Committee failed validation",
            context={"entity": "committee", "record_key": system_code},
            original_exception=e
        )


def parents_first(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stable sort putting top-level committees ahead of subcommittees"""
    return sorted(items, key=lambda item: 1 if item.get("parent") else 0)
