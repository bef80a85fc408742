"""
Pytest configuration and fixtures
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from core.exceptions import ResourceNotFoundError
from ingestion.checkpoint import CheckpointStore
from models.base import Base

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine shared by every session of one test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(session_maker):
    """Stand-in for core.database.get_db_session bound to the test engine"""

    @asynccontextmanager
    async def factory():
        async with session_maker() as session:
            yield session

    return factory


@pytest.fixture
def checkpoint_dir(tmp_path):
    return tmp_path / "checkpoints"


@pytest.fixture
def store(checkpoint_dir):
    store = CheckpointStore(checkpoint_dir)
    store.create()
    return store


# ----------------------------------------------------------------------
# Upstream payloads
# ----------------------------------------------------------------------

def member_item(bioguide_id: str, name: str = "Smith, John A.", state: str = "California",
                party: str = "Democratic", chamber: str = "House of Representatives",
                district: int = 12) -> Dict[str, Any]:
    return {
        "bioguideId": bioguide_id,
        "name": name,
        "partyName": party,
        "state": state,
        "district": district,
        "terms": {"item": [
            {"chamber": "House of Representatives", "startYear": 2015},
            {"chamber": chamber, "startYear": 2021},
        ]},
    }


def committee_item(system_code: str, name: str = "Committee on Agriculture",
                   chamber: str = "House", parent: str = None,
                   type_code: str = "Standing") -> Dict[str, Any]:
    item = {
        "systemCode": system_code,
        "name": name,
        "chamber": chamber,
        "committeeTypeCode": "Subcommittee" if parent else type_code,
    }
    if parent:
        item["parent"] = {"systemCode": parent}
    return item


def bill_item(bill_type: str, number: int, congress: int, title: str = "A bill",
              action: str = "Referred to the Committee on Agriculture.") -> Dict[str, Any]:
    return {
        "type": bill_type.upper(),
        "number": str(number),
        "congress": congress,
        "title": title,
        "introducedDate": "2023-01-15",
        "latestAction": {"text": action, "actionDate": "2023-02-01"},
    }


def vote_item(congress: int, session: int, roll: int) -> Dict[str, Any]:
    return {"congress": congress, "sessionNumber": session, "rollCallNumber": roll}


def vote_detail(congress: int, session: int, roll: int, **extra) -> Dict[str, Any]:
    detail = {
        "congress": congress,
        "sessionNumber": session,
        "rollCallNumber": roll,
        "voteQuestion": "On Passage",
        "result": "Passed",
        "voteType": "Yea-and-Nay",
        "totalYea": 2,
        "totalNay": 1,
        "startDate": "2023-03-01T12:00:00-05:00",
    }
    detail.update(extra)
    return detail


class FakeCongressClient:
    """
    In-memory stand-in for CongressAPIClient.

    ``bills`` and ``votes`` are keyed by (congress, bill_type) and
    (congress, session); every list call is recorded in ``calls``.
    """

    def __init__(self, members=(), former=(), committees=(), bills=None, votes=None,
                 details=None, member_votes=None, failing_rolls=()):
        self.members = list(members)
        self.former = list(former)
        self.committees = list(committees)
        self.bills: Dict[Tuple[int, str], List[dict]] = bills or {}
        self.votes: Dict[Tuple[int, int], List[dict]] = votes or {}
        self.details: Dict[Tuple[int, int, int], dict] = details or {}
        self.member_votes: Dict[Tuple[int, int, int], List[dict]] = member_votes or {}
        self.failing_rolls = set(failing_rolls)
        self.calls: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def list_members(self, current_member=True):
        self.calls.append(("members", current_member))
        for item in (self.members if current_member else self.former):
            yield item

    async def list_committees(self):
        self.calls.append(("committees",))
        for item in self.committees:
            yield item

    async def list_bills(self, congress, bill_type):
        self.calls.append(("bills", congress, bill_type))
        for item in self.bills.get((congress, bill_type), []):
            yield item

    async def list_house_votes(self, congress, session):
        self.calls.append(("votes", congress, session))
        for item in self.votes.get((congress, session), []):
            yield item

    async def get_house_vote(self, congress, session, roll):
        if (congress, session, roll) in self.failing_rolls:
            raise ResourceNotFoundError(
                f"Resource not found: /house-vote/{congress}/{session}/{roll}"
            )
        return self.details.get((congress, session, roll), vote_detail(congress, session, roll))

    async def get_house_vote_members(self, congress, session, roll):
        return self.member_votes.get((congress, session, roll), [])
