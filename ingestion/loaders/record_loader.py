"""
Idempotent create-or-update of domain records by primary key
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Type, Union

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import UpsertError
from models import Bill, Committee, Legislator, RollCallVote, VoteCast
from schemas.records import BillRecord, CommitteeRecord, LegislatorRecord, RollCallRecord

logger = logging.getLogger(__name__)

PrimaryKey = Union[str, Tuple[str, ...]]


@dataclass
class UpsertResult:
    created: bool
    changed: bool = False
    deferred_parent: Optional[str] = None
    positions_created: int = 0
    positions_skipped: int = 0


def _normalize(value: Any) -> Any:
    # SQLite hands back naive datetimes for timezone-aware columns
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _same(current: Any, new: Any) -> bool:
    return _normalize(current) == _normalize(new)


class RecordLoader:
    """
    Upsert records one at a time into the destination store.

    Ensures:
    - Existence check by primary key, then create or update
    - Identical values are left untouched, so a repeated upsert is a no-op
    - One commit per record; a failure rolls back only that record
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def exists(self, model: Type, pk: PrimaryKey) -> bool:
        return await self.db.get(model, pk) is not None

    async def _merge(self, model: Type, pk: PrimaryKey, values: Dict[str, Any]) -> Tuple[bool, bool]:
        """Stage a create or update; returns (created, changed)"""
        instance = await self.db.get(model, pk)
        now = datetime.now(timezone.utc)

        if instance is None:
            if hasattr(model, "last_synced_at"):
                values = {**values, "last_synced_at": now}
            self.db.add(model(**values))
            return True, True

        changed = False
        for field, value in values.items():
            if not _same(getattr(instance, field), value):
                setattr(instance, field, value)
                changed = True
        if changed and hasattr(model, "last_synced_at"):
            instance.last_synced_at = now
        return False, changed

    async def _commit(self, table_name: str, record_id: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            raise UpsertError(
                f"Failed to commit {table_name} record",
                context={"table_name": table_name, "record_id": record_id},
                original_exception=e
            )

    async def _upsert(self, model: Type, record_id: str, values: Dict[str, Any]) -> UpsertResult:
        table_name = model.__tablename__
        try:
            created, changed = await self._merge(model, record_id, values)
        except Exception as e:
            await self.db.rollback()
            raise UpsertError(
                f"Failed to upsert {table_name} record",
                context={"table_name": table_name, "record_id": record_id},
                original_exception=e
            )
        await self._commit(table_name, record_id)
        return UpsertResult(created=created, changed=changed)

    # ------------------------------------------------------------------
    # Per-entity upserts
    # ------------------------------------------------------------------

    async def upsert_legislator(self, record: LegislatorRecord) -> UpsertResult:
        return await self._upsert(Legislator, record.id, record.model_dump())

    async def upsert_bill(self, record: BillRecord) -> UpsertResult:
        return await self._upsert(Bill, record.id, record.model_dump())

    async def upsert_committee(self, record: CommitteeRecord) -> UpsertResult:
        """
        Upsert a committee; a parent that is not stored yet is left
        unlinked and reported in ``deferred_parent``.
        """
        values = record.model_dump()
        deferred = None
        parent_id = values.get("parent_id")
        if parent_id and parent_id != record.id and not await self.exists(Committee, parent_id):
            values.pop("parent_id")
            deferred = parent_id
            logger.debug(f"Parent {parent_id} not stored yet for committee {record.id}, deferring link")
        result = await self._upsert(Committee, record.id, values)
        result.deferred_parent = deferred
        return result

    async def link_parent(self, committee_id: str, parent_id: str) -> bool:
        """Set a deferred parent link once both committees exist"""
        committee = await self.db.get(Committee, committee_id)
        if committee is None or committee.parent_id is not None:
            return False
        if not await self.exists(Committee, parent_id):
            return False
        committee.parent_id = parent_id
        await self._commit(Committee.__tablename__, committee_id)
        return True

    async def upsert_roll_call(self, record: RollCallRecord) -> UpsertResult:
        """
        Upsert a roll call and its member positions in one transaction.

        A bill reference that is not stored is dropped; positions of
        legislators that are not stored are skipped.
        """
        table_name = RollCallVote.__tablename__
        values = record.row()
        result = UpsertResult(created=False)

        try:
            if values.get("bill_id") and not await self.exists(Bill, values["bill_id"]):
                logger.debug(f"Bill {values['bill_id']} not stored, unlinking roll call {record.id}")
                values["bill_id"] = None

            result.created, result.changed = await self._merge(RollCallVote, record.id, values)
            if result.created:
                # Positions below reference the new roll call row
                await self.db.flush()

            seen = set()
            for position in record.positions:
                if position.legislator_id in seen:
                    result.positions_skipped += 1
                    continue
                seen.add(position.legislator_id)
                if not await self.exists(Legislator, position.legislator_id):
                    result.positions_skipped += 1
                    continue
                created, _ = await self._merge(
                    VoteCast,
                    (position.roll_call_id, position.legislator_id),
                    position.model_dump(),
                )
                result.positions_created += int(created)
        except Exception as e:
            await self.db.rollback()
            raise UpsertError(
                f"Failed to upsert {table_name} record",
                context={"table_name": table_name, "record_id": record.id},
                original_exception=e
            )

        await self._commit(table_name, record.id)
        return result
