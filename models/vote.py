from sqlalchemy import Column, String, Integer, DateTime, Text, Boolean, Enum, ForeignKey, Index
from models.base import (
    Base, Chamber, VotePosition, VoteResult, VoteType, VoteCategory, utcnow
)


class RollCallVote(Base):
    """
    A recorded roll-call vote.

    Id format: "{chamber prefix}{congress}-{session}-{roll number}",
    e.g. "h118-1-123".
    """
    __tablename__ = "roll_call_votes"

    id = Column(String(30), primary_key=True)
    bill_id = Column(String(40), ForeignKey("bills.id"), nullable=True, index=True)

    chamber = Column(Enum(Chamber), nullable=False, default=Chamber.HOUSE)
    congress_number = Column(Integer, nullable=False)
    session = Column(Integer, nullable=False)
    roll_number = Column(Integer, nullable=False)

    vote_type = Column(Enum(VoteType), nullable=False, default=VoteType.ROLL_CALL)
    vote_category = Column(Enum(VoteCategory), nullable=False, default=VoteCategory.PASSAGE)
    question = Column(Text, nullable=False)
    result = Column(Enum(VoteResult), nullable=False)

    yeas = Column(Integer, nullable=False, default=0)
    nays = Column(Integer, nullable=False, default=0)
    present = Column(Integer, nullable=False, default=0)
    not_voting = Column(Integer, nullable=False, default=0)
    tie_breaker_vp = Column(String(20), nullable=True)

    vote_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_roll_call_congress_session", "congress_number", "session"),
    )


class VoteCast(Base):
    """One legislator's position on one roll call"""
    __tablename__ = "votes"

    roll_call_id = Column(String(30), ForeignKey("roll_call_votes.id"), primary_key=True)
    legislator_id = Column(String(20), ForeignKey("legislators.id"), primary_key=True)

    position = Column(Enum(VotePosition), nullable=False)
    is_proxy = Column(Boolean, nullable=False, default=False)
    paired_with_id = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
