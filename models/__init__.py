"""
SQLAlchemy ORM models for the destination store.

Models:
    base: Base declarative class and shared enums (Chamber, Party, BillStatus, ...)
    legislator: Members of Congress keyed by bioguide id
    committee: Committees and subcommittees (self-referencing parent)
    bill: Bills and resolutions keyed by "{type}-{number}-{congress}"
    vote: Roll-call votes and individual vote positions

Every table uses a natural or deterministic primary key so that the
import pipeline can upsert by primary key and re-run any batch safely.

Usage:
    from models import Legislator, Bill, RollCallVote
    from models.base import Chamber, Party
"""

from models.base import Base
from models.legislator import Legislator
from models.committee import Committee
from models.bill import Bill
from models.vote import RollCallVote, VoteCast

__all__ = [
    "Base",
    "Legislator",
    "Committee",
    "Bill",
    "RollCallVote",
    "VoteCast",
]
