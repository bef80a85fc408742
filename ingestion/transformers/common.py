"""
Shared mappings and lenient parsers used by the record transformers
"""

from datetime import datetime, timezone
from typing import Any, Optional

from models.base import Chamber, CommitteeType, Party

CHAMBER_MAP = {
    "house": Chamber.HOUSE,
    "h": Chamber.HOUSE,
    "house of representatives": Chamber.HOUSE,
    "senate": Chamber.SENATE,
    "s": Chamber.SENATE,
    "joint": Chamber.JOINT,
}

PARTY_MAP = {
    "democratic": Party.D,
    "democrat": Party.D,
    "d": Party.D,
    "republican": Party.R,
    "r": Party.R,
    "independent": Party.I,
    "i": Party.I,
    "libertarian": Party.L,
    "l": Party.L,
    "green": Party.G,
    "g": Party.G,
}

COMMITTEE_TYPE_MAP = {
    "standing": CommitteeType.STANDING,
    "select": CommitteeType.SELECT,
    "joint": CommitteeType.JOINT,
    "subcommittee": CommitteeType.SUBCOMMITTEE,
    "special": CommitteeType.SPECIAL,
}

US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
    "PR": "Puerto Rico", "VI": "Virgin Islands", "GU": "Guam",
    "AS": "American Samoa", "MP": "Northern Mariana Islands",
}

STATE_NAME_TO_CODE = {name.lower(): code for code, name in US_STATES.items()}


def map_chamber(value: Optional[str]) -> Optional[Chamber]:
    if not value:
        return None
    return CHAMBER_MAP.get(str(value).strip().lower())


def map_party(value: Optional[str]) -> Party:
    if not value:
        return Party.O
    return PARTY_MAP.get(str(value).strip().lower(), Party.O)


def map_committee_type(value: Optional[str]) -> CommitteeType:
    if not value:
        return CommitteeType.STANDING
    return COMMITTEE_TYPE_MAP.get(str(value).strip().lower(), CommitteeType.STANDING)


def map_state_to_code(value: Optional[str]) -> str:
    """Two-letter state code, "XX" when unknown"""
    if not value:
        return "XX"
    value = str(value).strip()
    if len(value) == 2 and value.isalpha():
        return value.upper()
    return STATE_NAME_TO_CODE.get(value.lower(), "XX")


def parse_int(value: Any) -> Optional[int]:
    """Safely parse int value"""
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Lenient ISO date/datetime parsing; naive values are taken as UTC"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
