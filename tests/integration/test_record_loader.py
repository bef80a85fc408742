"""
Record loader tests against in-memory SQLite
"""

import pytest
from sqlalchemy import func, select

from conftest import bill_item, committee_item, member_item, vote_detail
from ingestion.loaders.record_loader import RecordLoader
from ingestion.transformers.bills import transform_bill
from ingestion.transformers.committees import transform_committee
from ingestion.transformers.legislators import transform_member
from ingestion.transformers.votes import transform_roll_call
from models import Bill, Committee, Legislator, RollCallVote, VoteCast
from models.base import BillStatus


@pytest.fixture
def loader(db_session):
    return RecordLoader(db_session)


async def count(db_session, model):
    return (await db_session.execute(select(func.count()).select_from(model))).scalar()


@pytest.mark.asyncio
async def test_repeated_upsert_is_a_no_op(loader, db_session):
    record = transform_bill(bill_item("hr", 1, 118))

    first = await loader.upsert_bill(record)
    second = await loader.upsert_bill(record)

    assert (first.created, first.changed) == (True, True)
    assert (second.created, second.changed) == (False, False)
    assert await count(db_session, Bill) == 1


@pytest.mark.asyncio
async def test_upsert_updates_changed_fields(loader, db_session):
    await loader.upsert_bill(transform_bill(bill_item("s", 5, 119)))
    result = await loader.upsert_bill(transform_bill(
        bill_item("s", 5, 119, title="Renamed", action="Became Public Law No: 119-1.")
    ))

    assert not result.created and result.changed
    bill = await db_session.get(Bill, "s-5-119")
    await db_session.refresh(bill)
    assert bill.title == "Renamed"
    assert bill.status == BillStatus.ENACTED
    assert bill.last_synced_at is not None


@pytest.mark.asyncio
async def test_legislator_moves_out_of_office(loader, db_session):
    await loader.upsert_legislator(transform_member(member_item("A000001")))
    result = await loader.upsert_legislator(transform_member(member_item("A000001"), in_office=False))

    assert result.changed
    legislator = await db_session.get(Legislator, "A000001")
    assert legislator.in_office is False


@pytest.mark.asyncio
async def test_committee_parent_is_deferred_then_linked(loader, db_session):
    sub = await loader.upsert_committee(transform_committee(committee_item("hsag15", parent="hsag00")))
    assert sub.created
    assert sub.deferred_parent == "hsag00"
    assert (await db_session.get(Committee, "hsag15")).parent_id is None

    # Parent missing: nothing to link yet
    assert await loader.link_parent("hsag15", "hsag00") is False

    await loader.upsert_committee(transform_committee(committee_item("hsag00")))
    assert await loader.link_parent("hsag15", "hsag00") is True
    assert (await db_session.get(Committee, "hsag15")).parent_id == "hsag00"

    # Already linked
    assert await loader.link_parent("hsag15", "hsag00") is False


@pytest.mark.asyncio
async def test_committee_with_stored_parent_links_immediately(loader, db_session):
    await loader.upsert_committee(transform_committee(committee_item("ssfi00", chamber="Senate")))
    result = await loader.upsert_committee(
        transform_committee(committee_item("ssfi02", chamber="Senate", parent="ssfi00"))
    )

    assert result.deferred_parent is None
    assert (await db_session.get(Committee, "ssfi02")).parent_id == "ssfi00"


@pytest.mark.asyncio
async def test_roll_call_drops_unknown_bill_and_legislators(loader, db_session):
    await loader.upsert_legislator(transform_member(member_item("A000001")))
    record = transform_roll_call(
        vote_detail(118, 1, 7, legislationType="HR", legislationNumber="999"),
        [
            {"bioguideID": "A000001", "voteCast": "Yea"},
            {"bioguideID": "A000001", "voteCast": "Yea"},
            {"bioguideID": "Z999999", "voteCast": "Nay"},
        ],
    )

    result = await loader.upsert_roll_call(record)

    assert result.created
    assert result.positions_created == 1
    assert result.positions_skipped == 2
    roll_call = await db_session.get(RollCallVote, "h118-1-7")
    assert roll_call.bill_id is None
    assert await count(db_session, VoteCast) == 1


@pytest.mark.asyncio
async def test_roll_call_keeps_stored_bill_and_is_idempotent(loader, db_session):
    await loader.upsert_bill(transform_bill(bill_item("hr", 1234, 118)))
    await loader.upsert_legislator(transform_member(member_item("A000001")))
    await loader.upsert_legislator(transform_member(member_item("B000002")))
    record = transform_roll_call(
        vote_detail(118, 1, 42, legislationType="HR", legislationNumber="1234"),
        [{"bioguideID": "A000001", "voteCast": "Yea"}, {"bioguideID": "B000002", "voteCast": "Nay"}],
    )

    first = await loader.upsert_roll_call(record)
    second = await loader.upsert_roll_call(record)

    assert first.positions_created == 2
    assert not second.created
    assert second.positions_created == 0
    assert (await db_session.get(RollCallVote, "h118-1-42")).bill_id == "hr-1234-118"
    assert await count(db_session, VoteCast) == 2
