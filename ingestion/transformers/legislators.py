"""
Transform Congress.gov member list items into legislator records
"""

from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import TransformationError
from models.base import Chamber
from ingestion.transformers.common import (
    map_chamber, map_party, map_state_to_code, parse_int
)
from schemas.records import LegislatorRecord


def parse_full_name(full_name: str) -> Tuple[str, str, Optional[str]]:
    """
    Split a display name into (first, last, middle).

    Handles "Last, First Middle" and "First Middle Last".
    """
    full_name = (full_name or "").strip()
    if "," in full_name:
        last, rest = full_name.split(",", 1)
        rest_parts = rest.split()
        first = rest_parts[0] if rest_parts else ""
        middle = " ".join(rest_parts[1:]) or None
        return first, last.strip(), middle

    parts = full_name.split()
    if not parts:
        return "", "", None
    if len(parts) == 1:
        return "", parts[0], None
    middle = " ".join(parts[1:-1]) or None
    return parts[0], parts[-1], middle


def latest_term(item: Dict[str, Any]) -> Dict[str, Any]:
    terms = item.get("terms") or {}
    if isinstance(terms, dict):
        terms = terms.get("item") or []
    if not terms:
        return {}
    return max(terms, key=lambda t: parse_int(t.get("startYear")) or 0)


def transform_member(item: Dict[str, Any], in_office: bool = True) -> LegislatorRecord:
    """
    Map one /member list item.

    Raises:
        TransformationError: If the item has no bioguide id or name
    """
    bioguide_id = item.get("bioguideId")
    name = item.get("name") or item.get("directOrderName")
    if not bioguide_id or not name:
        raise TransformationError(
            "Member is missing bioguideId or name",
            context={"entity": "member", "record_key": bioguide_id}
        )

    term = latest_term(item)
    first, last, middle = parse_full_name(name)
    state = term.get("stateCode") or map_state_to_code(item.get("state") or term.get("stateName"))

    try:
        return LegislatorRecord(
            id=bioguide_id,
            first_name=first,
            last_name=last,
            middle_name=middle,
            full_name=name,
            party=map_party(item.get("partyName")),
            chamber=map_chamber(term.get("chamber")) or Chamber.HOUSE,
            state=map_state_to_code(state),
            district=parse_int(item.get("district", term.get("district"))),
            in_office=in_office,
        )
    except PydanticValidationError as e:
        raise TransformationError(
            "Member failed validation",
            context={"entity": "member", "record_key": bioguide_id},
            original_exception=e
        )
