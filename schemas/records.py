"""
Pydantic schemas for domain records produced by the transformers.

Each record maps one-to-one onto a destination table; the loaders
upsert them by primary key.
"""

from pydantic import BaseModel, Field, validator, model_validator
from typing import Optional, List
from datetime import datetime
from models.base import (
    Chamber, Party, CommitteeType, BillType, BillStatus,
    VotePosition, VoteResult, VoteType, VoteCategory
)


class LegislatorRecord(BaseModel):
    id: str = Field(..., min_length=1, max_length=20)
    first_name: str = ""
    last_name: str = ""
    middle_name: Optional[str] = None
    full_name: str = Field(..., min_length=1)
    party: Party = Party.O
    chamber: Chamber = Chamber.HOUSE
    state: str = Field("XX", min_length=2, max_length=2)
    district: Optional[int] = None
    in_office: bool = True

    @validator("full_name")
    def clean_full_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty after stripping")
        return v


class CommitteeRecord(BaseModel):
    id: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=500)
    chamber: Chamber = Chamber.HOUSE
    type: CommitteeType = CommitteeType.STANDING
    parent_id: Optional[str] = None


class BillRecord(BaseModel):
    """
    Schema for bills.

    Ensures:
    - id matches the congress, type and number it was built from
    - title is non-empty after stripping
    """

    id: str
    congress_number: int = Field(..., gt=0)
    bill_type: BillType
    bill_number: int = Field(..., gt=0)
    title: str = Field(..., min_length=1)
    status: BillStatus = BillStatus.INTRODUCED
    introduced_date: Optional[datetime] = None
    last_action_date: Optional[datetime] = None
    latest_action_text: Optional[str] = None

    @validator("title")
    def clean_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty after stripping")
        return v

    @model_validator(mode="after")
    def check_id(self):
        expected = f"{self.bill_type.value}-{self.bill_number}-{self.congress_number}"
        if self.id != expected:
            raise ValueError(f"Bill id {self.id!r} does not match {expected!r}")
        return self


class VotePositionRecord(BaseModel):
    roll_call_id: str
    legislator_id: str = Field(..., min_length=1)
    position: VotePosition
    is_proxy: bool = False
    paired_with_id: Optional[str] = None


class RollCallRecord(BaseModel):
    """A roll call together with the member positions fetched for it"""

    id: str
    bill_id: Optional[str] = None
    chamber: Chamber = Chamber.HOUSE
    congress_number: int
    session: int
    roll_number: int
    vote_type: VoteType = VoteType.ROLL_CALL
    vote_category: VoteCategory = VoteCategory.PASSAGE
    question: str = "Unknown"
    result: VoteResult = VoteResult.PASSED
    yeas: int = Field(0, ge=0)
    nays: int = Field(0, ge=0)
    present: int = Field(0, ge=0)
    not_voting: int = Field(0, ge=0)
    tie_breaker_vp: Optional[str] = None
    vote_date: Optional[datetime] = None

    positions: List[VotePositionRecord] = Field(default_factory=list)

    def row(self) -> dict:
        """Column values for the roll_call_votes table"""
        return self.model_dump(exclude={"positions"})
