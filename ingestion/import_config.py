"""
Static constants for the bulk import.

Runtime knobs (timeouts, retry counts, rate limit budget, checkpoint
directory) live in ``core.config.settings``; everything here is fixed
by the shape of the upstream data.
"""

from typing import Dict, List

from models.base import BillType

TARGET_CONGRESSES: List[int] = [118, 119]

# Declared order is the resume order of the bills phase
BILL_TYPES: List[str] = [t.value for t in BillType]

HOUSE_VOTE_SESSIONS: List[int] = [1, 2]

# Records requested per upstream page
PAGE_SIZES: Dict[str, int] = {
    "legislators": 100,
    "committees": 50,
    "bills": 100,
    "votes": 50,
}

# Records per checkpointed batch
BATCH_SIZES: Dict[str, int] = {
    "legislators": 50,
    "committees": 25,
    "bills": 50,
    "votes": 25,
}

ESTIMATED_COUNTS = {
    "legislators": 550,
    "committees": 280,
    "bills": {118: 15000, 119: 5000},
    "votes": {118: 1500, 119: 300},
}

MIN_LEGISLATORS = 535
MIN_COMMITTEES = 200
MIN_BILLS_RATIO = 0.8
MIN_VOTES_RATIO = 0.5

PROGRESS_LOG_INTERVAL = 100


def estimated_bills(congresses: List[int] = None) -> int:
    congresses = congresses or TARGET_CONGRESSES
    return sum(ESTIMATED_COUNTS["bills"].get(c, 0) for c in congresses)


def estimated_votes(congresses: List[int] = None) -> int:
    congresses = congresses or TARGET_CONGRESSES
    return sum(ESTIMATED_COUNTS["votes"].get(c, 0) for c in congresses)
