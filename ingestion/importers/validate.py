"""
Validate phase: consistency checks over the imported data
"""

import enum
import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from core.exceptions import ValidationError
from ingestion.batch import PhaseStats
from ingestion.import_config import (
    MIN_BILLS_RATIO, MIN_COMMITTEES, MIN_LEGISLATORS, MIN_VOTES_RATIO,
    estimated_bills, estimated_votes
)
from ingestion.importers.base import PhaseImporter
from ingestion.loaders.record_loader import RecordLoader
from ingestion.phases import ImportOptions, Phase
from models import Bill, Committee, Legislator, RollCallVote, VoteCast
from models.base import CommitteeType

logger = logging.getLogger(__name__)


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class CheckResult:
    name: str
    severity: Severity
    passed: bool
    message: str
    value: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "severity": self.severity.value,
            "passed": self.passed,
            "message": self.message,
            "value": self.value,
        }


async def _count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return int(result.scalar_one() or 0)


def _minimum_check(name: str, count: int, minimum: float) -> CheckResult:
    passed = count >= minimum
    return CheckResult(
        name=name,
        severity=Severity.ERROR,
        passed=passed,
        message=f"{count} stored, minimum {int(minimum)}",
        value=count,
    )


def _absence_check(name: str, count: int, severity: Severity, what: str) -> CheckResult:
    return CheckResult(
        name=name,
        severity=severity,
        passed=count == 0,
        message=f"{count} {what}" if count else f"no {what}",
        value=count,
    )


async def run_checks(db: AsyncSession) -> List[CheckResult]:
    """Every check, in a fixed order"""
    results = [
        _minimum_check(
            "legislator_count",
            await _count(db, select(func.count()).select_from(Legislator)),
            MIN_LEGISLATORS,
        ),
        _minimum_check(
            "committee_count",
            await _count(db, select(func.count()).select_from(Committee)),
            MIN_COMMITTEES,
        ),
        _minimum_check(
            "bill_count",
            await _count(db, select(func.count()).select_from(Bill)),
            estimated_bills() * MIN_BILLS_RATIO,
        ),
        _minimum_check(
            "roll_call_count",
            await _count(db, select(func.count()).select_from(RollCallVote)),
            estimated_votes() * MIN_VOTES_RATIO,
        ),
    ]

    parent = aliased(Committee)
    orphaned = await _count(
        db,
        select(func.count()).select_from(Committee)
        .outerjoin(parent, Committee.parent_id == parent.id)
        .where(Committee.type == CommitteeType.SUBCOMMITTEE)
        .where(parent.id.is_(None))
    )
    results.append(_absence_check(
        "orphaned_subcommittees", orphaned, Severity.WARNING, "subcommittees without a stored parent"
    ))

    dangling = await _count(
        db,
        select(func.count()).select_from(VoteCast)
        .outerjoin(RollCallVote, VoteCast.roll_call_id == RollCallVote.id)
        .where(RollCallVote.id.is_(None))
    )
    results.append(_absence_check(
        "positions_without_roll_call", dangling, Severity.WARNING, "vote positions without a roll call"
    ))

    untitled = await _count(
        db, select(func.count()).select_from(Bill).where(func.trim(Bill.title) == "")
    )
    results.append(_absence_check(
        "bills_without_title", untitled, Severity.WARNING, "bills without a title"
    ))

    stateless = await _count(
        db, select(func.count()).select_from(Legislator).where(Legislator.state == "XX")
    )
    results.append(_absence_check(
        "legislators_without_state", stateless, Severity.INFO, "legislators without a state"
    ))
    return results


class ValidateImporter(PhaseImporter):
    """Fails the phase on any failed error-severity check unless dry run"""

    phase = Phase.VALIDATE

    async def import_records(
        self,
        loader: RecordLoader,
        options: ImportOptions,
        stats: PhaseStats,
    ) -> None:
        results = await run_checks(loader.db)
        stats.processed = len(results)

        for result in results:
            status = "PASS" if result.passed else result.severity.value.upper()
            log = logger.info if result.passed or result.severity == Severity.INFO else logger.warning
            log(f"[validate] {status:<7} {result.name}: {result.message}")

        failures = [r for r in results if not r.passed and r.severity == Severity.ERROR]
        for result in failures:
            stats.record_error(f"{result.name}: {result.message}")

        if failures and not options.dry_run:
            raise ValidationError(
                f"{len(failures)} validation check(s) failed",
                context={"checks": [r.name for r in failures]},
                results=[r.to_dict() for r in failures]
            )
