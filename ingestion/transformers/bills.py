"""
Transform Congress.gov bill list items into bill records
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import TransformationError
from models.base import BillStatus, BillType
from ingestion.transformers.common import parse_datetime, parse_int
from schemas.records import BillRecord

# First match wins; more specific phrases come before the general ones
STATUS_RULES = [
    (("became public law", "became law"), BillStatus.ENACTED),
    (("signed by president", "signed by the president"), BillStatus.SIGNED_INTO_LAW),
    (("pocket vetoed", "pocket veto"), BillStatus.POCKET_VETOED),
    (("vetoed by president", "vetoed by the president"), BillStatus.VETOED),
    (("veto overridden",), BillStatus.VETO_OVERRIDDEN),
    (("failed", "rejected"), BillStatus.FAILED),
    (("withdrawn", "withdrew"), BillStatus.WITHDRAWN),
    (("presented to president", "sent to president"), BillStatus.TO_PRESIDENT),
    (("resolving differences", "conference"), BillStatus.RESOLVING_DIFFERENCES),
    (("passed senate", "agreed to in senate"), BillStatus.PASSED_SENATE),
    (("passed house", "agreed to in house"), BillStatus.PASSED_HOUSE),
    (("reported by", "ordered to be reported"), BillStatus.REPORTED_BY_COMMITTEE),
    (("referred to", "committee"), BillStatus.IN_COMMITTEE),
]


def bill_id(bill_type: str, number: Any, congress: Any) -> str:
    return f"{str(bill_type).lower()}-{number}-{congress}"


def infer_bill_status(action_text: Optional[str]) -> BillStatus:
    if not action_text:
        return BillStatus.INTRODUCED
    text = action_text.lower()
    for phrases, status in STATUS_RULES:
        if any(phrase in text for phrase in phrases):
            return status
    return BillStatus.INTRODUCED


def transform_bill(item: Dict[str, Any]) -> BillRecord:
    """
    Map one /bill list item.

    Raises:
        TransformationError: On a missing type/number/congress or an empty title
    """
    raw_type = (item.get("type") or "").lower()
    number = parse_int(item.get("number"))
    congress = parse_int(item.get("congress"))
    key = f"{raw_type}-{item.get('number')}-{item.get('congress')}"

    try:
        bill_type = BillType(raw_type)
    except ValueError as e:
        raise TransformationError(
            f"Unknown bill type {raw_type!r}",
            context={"entity": "bill", "record_key": key, "field_name": "type"},
            original_exception=e
        )
    if number is None or congress is None:
        raise TransformationError(
            "Bill is missing number or congress",
            context={"entity": "bill", "record_key": key}
        )

    latest_action = item.get("latestAction") or {}
    try:
        return BillRecord(
            id=bill_id(bill_type.value, number, congress),
            congress_number=congress,
            bill_type=bill_type,
            bill_number=number,
            title=item.get("title") or "",
            status=infer_bill_status(latest_action.get("text")),
            introduced_date=parse_datetime(item.get("introducedDate") or item.get("updateDate")),
            last_action_date=parse_datetime(latest_action.get("actionDate")),
            latest_action_text=latest_action.get("text"),
        )
    except PydanticValidationError as e:
        raise TransformationError(
            "Bill failed validation",
            context={"entity": "bill", "record_key": key},
            original_exception=e
        )
