"""
Phase tag to importer registry
"""

from typing import Dict, Optional

from core.database import get_db_session
from ingestion.checkpoint import CheckpointStore
from ingestion.congress_client import CongressAPIClient
from ingestion.importers.base import PhaseImporter, SessionFactory
from ingestion.importers.bills import BillImporter
from ingestion.importers.committees import CommitteeImporter
from ingestion.importers.legislators import LegislatorImporter
from ingestion.importers.validate import ValidateImporter
from ingestion.importers.votes import VoteImporter
from ingestion.phases import PHASE_ORDER, Phase

IMPORTER_CLASSES = {
    Phase.LEGISLATORS: LegislatorImporter,
    Phase.COMMITTEES: CommitteeImporter,
    Phase.BILLS: BillImporter,
    Phase.VOTES: VoteImporter,
    Phase.VALIDATE: ValidateImporter,
}


def build_importers(
    client: Optional[CongressAPIClient],
    store: CheckpointStore,
    session_factory: SessionFactory = get_db_session,
    dry_run_max_records: Optional[int] = None,
) -> Dict[Phase, PhaseImporter]:
    """One importer per declared phase, sharing the client and the store"""
    return {
        phase: IMPORTER_CLASSES[phase](
            client, store,
            session_factory=session_factory,
            dry_run_max_records=dry_run_max_records,
        )
        for phase in PHASE_ORDER
    }
