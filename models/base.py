from datetime import datetime, timezone
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# ENUMS
# ============================================================================

class Chamber(str, enum.Enum):
    """Legislative chamber"""
    HOUSE = "HOUSE"
    SENATE = "SENATE"
    JOINT = "JOINT"


class Party(str, enum.Enum):
    """Party affiliation, O for anything unmapped"""
    D = "D"
    R = "R"
    I = "I"  # noqa: E741
    L = "L"
    G = "G"
    O = "O"  # noqa: E741


class CommitteeType(str, enum.Enum):
    STANDING = "STANDING"
    SELECT = "SELECT"
    JOINT = "JOINT"
    SUBCOMMITTEE = "SUBCOMMITTEE"
    SPECIAL = "SPECIAL"


class BillType(str, enum.Enum):
    """Bill and resolution types as used in bill ids (lowercase upstream codes)"""
    HR = "hr"
    S = "s"
    HJRES = "hjres"
    SJRES = "sjres"
    HCONRES = "hconres"
    SCONRES = "sconres"
    HRES = "hres"
    SRES = "sres"


class BillStatus(str, enum.Enum):
    """Bill status inferred from the latest action"""
    INTRODUCED = "INTRODUCED"
    IN_COMMITTEE = "IN_COMMITTEE"
    REPORTED_BY_COMMITTEE = "REPORTED_BY_COMMITTEE"
    PASSED_HOUSE = "PASSED_HOUSE"
    PASSED_SENATE = "PASSED_SENATE"
    RESOLVING_DIFFERENCES = "RESOLVING_DIFFERENCES"
    TO_PRESIDENT = "TO_PRESIDENT"
    SIGNED_INTO_LAW = "SIGNED_INTO_LAW"
    ENACTED = "ENACTED"
    VETOED = "VETOED"
    POCKET_VETOED = "POCKET_VETOED"
    VETO_OVERRIDDEN = "VETO_OVERRIDDEN"
    FAILED = "FAILED"
    WITHDRAWN = "WITHDRAWN"


class VotePosition(str, enum.Enum):
    YEA = "YEA"
    NAY = "NAY"
    PRESENT = "PRESENT"
    NOT_VOTING = "NOT_VOTING"


class VoteResult(str, enum.Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    AGREED_TO = "AGREED_TO"
    REJECTED = "REJECTED"


class VoteType(str, enum.Enum):
    ROLL_CALL = "ROLL_CALL"
    VOICE = "VOICE"
    UNANIMOUS_CONSENT = "UNANIMOUS_CONSENT"
    DIVISION = "DIVISION"


class VoteCategory(str, enum.Enum):
    PASSAGE = "PASSAGE"
    AMENDMENT = "AMENDMENT"
    PROCEDURAL = "PROCEDURAL"
    CLOTURE = "CLOTURE"
    NOMINATION = "NOMINATION"
    TREATY = "TREATY"
    VETO_OVERRIDE = "VETO_OVERRIDE"
    MOTION_TO_RECOMMIT = "MOTION_TO_RECOMMIT"
    MOTION_TO_TABLE = "MOTION_TO_TABLE"
    IMPEACHMENT = "IMPEACHMENT"
