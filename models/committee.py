from sqlalchemy import Column, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, Chamber, CommitteeType, utcnow


class Committee(Base):
    """Committee or subcommittee; subcommittees point at their parent via parent_id"""
    __tablename__ = "committees"

    id = Column(String(20), primary_key=True)  # upstream system code
    name = Column(String(500), nullable=False)
    chamber = Column(Enum(Chamber), nullable=False, default=Chamber.HOUSE)
    type = Column(Enum(CommitteeType), nullable=False, default=CommitteeType.STANDING)
    parent_id = Column(String(20), ForeignKey("committees.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    parent = relationship("Committee", remote_side=[id], lazy="noload")
