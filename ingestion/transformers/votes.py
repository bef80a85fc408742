"""
Transform House roll-call details and member votes into roll-call records
"""

from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import TransformationError
from models.base import Chamber, VoteCategory, VotePosition, VoteResult, VoteType
from ingestion.transformers.bills import bill_id
from ingestion.transformers.common import parse_datetime, parse_int
from schemas.records import RollCallRecord, VotePositionRecord

CATEGORY_RULES = [
    ("amendment", VoteCategory.AMENDMENT),
    ("passage", VoteCategory.PASSAGE),
    ("final", VoteCategory.PASSAGE),
    ("cloture", VoteCategory.CLOTURE),
    ("recommit", VoteCategory.MOTION_TO_RECOMMIT),
    ("table", VoteCategory.MOTION_TO_TABLE),
    ("motion", VoteCategory.PROCEDURAL),
    ("procedural", VoteCategory.PROCEDURAL),
    ("nomination", VoteCategory.NOMINATION),
    ("treaty", VoteCategory.TREATY),
    ("veto", VoteCategory.VETO_OVERRIDE),
    ("impeachment", VoteCategory.IMPEACHMENT),
]


def roll_call_id(congress: int, session: int, roll: int, chamber: Chamber = Chamber.HOUSE) -> str:
    prefix = "h" if chamber == Chamber.HOUSE else "s"
    return f"{prefix}{congress}-{session}-{roll}"


def map_vote_result(value: Optional[str]) -> VoteResult:
    text = (value or "").lower()
    if "passed" in text or "agreed" in text:
        return VoteResult.PASSED
    if "failed" in text or "rejected" in text or "defeated" in text:
        return VoteResult.FAILED
    return VoteResult.PASSED


def map_vote_type(value: Optional[str]) -> VoteType:
    text = (value or "").lower()
    if "voice" in text:
        return VoteType.VOICE
    if "unanimous" in text:
        return VoteType.UNANIMOUS_CONSENT
    if "division" in text:
        return VoteType.DIVISION
    return VoteType.ROLL_CALL


def map_vote_category(value: Optional[str]) -> VoteCategory:
    text = (value or "").lower()
    for needle, category in CATEGORY_RULES:
        if needle in text:
            return category
    return VoteCategory.PASSAGE


def map_vote_position(value: Optional[str]) -> VotePosition:
    text = (value or "").strip().lower()
    if text in ("yea", "aye", "yes"):
        return VotePosition.YEA
    if text in ("nay", "no"):
        return VotePosition.NAY
    if text == "present":
        return VotePosition.PRESENT
    return VotePosition.NOT_VOTING


def _bill_reference(detail: Dict[str, Any], congress: int) -> Optional[str]:
    bill = detail.get("bill")
    if isinstance(bill, dict) and bill.get("type") and bill.get("number"):
        return bill_id(bill["type"], bill["number"], bill.get("congress", congress))
    if detail.get("legislationType") and detail.get("legislationNumber"):
        raw_type = str(detail["legislationType"]).lower().replace(".", "").replace(" ", "")
        return bill_id(raw_type, detail["legislationNumber"], congress)
    return None


def transform_roll_call(
    detail: Dict[str, Any],
    members: Iterable[Dict[str, Any]] = (),
) -> RollCallRecord:
    """
    Map a roll-call detail plus its member votes.

    Raises:
        TransformationError: If congress, session or roll number is missing
    """
    congress = parse_int(detail.get("congress"))
    session = parse_int(detail.get("sessionNumber"))
    roll = parse_int(detail.get("rollCallNumber"))
    if congress is None or session is None or roll is None:
        raise TransformationError(
            "Roll call is missing congress, session or roll number",
            context={
                "entity": "roll_call",
                "record_key": f"{detail.get('congress')}-{detail.get('sessionNumber')}-"
                              f"{detail.get('rollCallNumber')}",
            }
        )

    record_id = roll_call_id(congress, session, roll)
    positions = []
    for member in members:
        legislator_id = member.get("bioguideID") or member.get("bioguideId")
        if not legislator_id:
            continue
        positions.append(VotePositionRecord(
            roll_call_id=record_id,
            legislator_id=legislator_id,
            position=map_vote_position(member.get("voteCast") or member.get("votePosition")),
            is_proxy=bool(member.get("isProxy", False)),
            paired_with_id=member.get("pairedWith"),
        ))

    try:
        return RollCallRecord(
            id=record_id,
            bill_id=_bill_reference(detail, congress),
            chamber=Chamber.HOUSE,
            congress_number=congress,
            session=session,
            roll_number=roll,
            vote_type=map_vote_type(detail.get("voteType")),
            vote_category=map_vote_category(detail.get("category") or detail.get("voteQuestion")),
            question=detail.get("voteQuestion") or detail.get("question")
            or detail.get("description") or "Unknown",
            result=map_vote_result(detail.get("result")),
            yeas=parse_int(detail.get("totalYea")) or 0,
            nays=parse_int(detail.get("totalNay")) or 0,
            present=parse_int(detail.get("totalPresent")) or 0,
            not_voting=parse_int(detail.get("totalNotVoting")) or 0,
            tie_breaker_vp=detail.get("tieBreakerVp"),
            vote_date=parse_datetime(detail.get("startDate") or detail.get("date")),
            positions=positions,
        )
    except PydanticValidationError as e:
        raise TransformationError(
            "Roll call failed validation",
            context={"entity": "roll_call", "record_key": record_id},
            original_exception=e
        )
