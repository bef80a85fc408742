from sqlalchemy import Column, String, Integer, DateTime, Boolean, Enum, Index
from models.base import Base, Chamber, Party, utcnow


class Legislator(Base):
    """
    Member of Congress, current or historical.

    Keyed by the bioguide id so that re-importing a member from either the
    current or the historical member list lands on the same row.
    """
    __tablename__ = "legislators"

    id = Column(String(20), primary_key=True)  # bioguide id

    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    middle_name = Column(String(100), nullable=True)
    full_name = Column(String(255), nullable=False)

    party = Column(Enum(Party), nullable=False, default=Party.O)
    chamber = Column(Enum(Chamber), nullable=False, default=Chamber.HOUSE)
    state = Column(String(2), nullable=False, default="XX")
    district = Column(Integer, nullable=True)
    in_office = Column(Boolean, nullable=False, default=False)

    data_source = Column(String(50), nullable=False, default="CONGRESS_GOV")
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_legislator_chamber_state", "chamber", "state"),
        Index("idx_legislator_in_office", "in_office"),
    )
