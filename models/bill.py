from sqlalchemy import Column, String, Integer, DateTime, Text, Enum, Index
from models.base import Base, BillType, BillStatus, utcnow


class Bill(Base):
    """
    A bill or resolution.

    The id is deterministic, "{type}-{number}-{congress}" (e.g. "hr-1234-118"),
    which makes bill upserts idempotent across runs and lets roll-call votes
    reference bills without a lookup.
    """
    __tablename__ = "bills"

    id = Column(String(40), primary_key=True)
    congress_number = Column(Integer, nullable=False)
    bill_type = Column(Enum(BillType), nullable=False)
    bill_number = Column(Integer, nullable=False)

    title = Column(Text, nullable=False)
    status = Column(Enum(BillStatus), nullable=False, default=BillStatus.INTRODUCED)
    introduced_date = Column(DateTime(timezone=True), nullable=True)
    last_action_date = Column(DateTime(timezone=True), nullable=True)
    latest_action_text = Column(Text, nullable=True)

    data_source = Column(String(50), nullable=False, default="CONGRESS_GOV")
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_bill_congress_type", "congress_number", "bill_type"),
        Index("idx_bill_status", "status"),
    )
