"""
Import phases and their dependency graph.

The declared order of ``Phase`` is the tie-break order used when more
than one phase is eligible to run.
"""

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional


class Phase(str, enum.Enum):
    LEGISLATORS = "legislators"
    COMMITTEES = "committees"
    BILLS = "bills"
    VOTES = "votes"
    VALIDATE = "validate"


PHASE_ORDER: List[Phase] = list(Phase)

PHASE_DEPENDENCIES: Dict[Phase, FrozenSet[Phase]] = {
    Phase.LEGISLATORS: frozenset(),
    Phase.COMMITTEES: frozenset({Phase.LEGISLATORS}),
    Phase.BILLS: frozenset({Phase.LEGISLATORS, Phase.COMMITTEES}),
    Phase.VOTES: frozenset({Phase.LEGISLATORS, Phase.BILLS}),
    Phase.VALIDATE: frozenset({
        Phase.LEGISLATORS, Phase.COMMITTEES, Phase.BILLS, Phase.VOTES
    }),
}


@dataclass(frozen=True)
class ImportOptions:
    """Options handed to every phase importer"""
    dry_run: bool = False
    verbose: bool = False
    force: bool = False
    resume: bool = True


def parse_phase(value: str) -> Phase:
    """Phase for a CLI/API tag; raises ValueError for unknown tags"""
    return Phase(value.strip().lower())


def missing_dependencies(
    phase: Phase,
    completed: Iterable[Phase],
    dependencies: Dict[Phase, FrozenSet[Phase]] = PHASE_DEPENDENCIES,
) -> List[Phase]:
    """Dependencies of ``phase`` not yet in ``completed``, in declared order"""
    done = set(completed)
    order = list(dependencies)
    return [dep for dep in order if dep in dependencies[phase] and dep not in done]


def next_phase(
    completed: Iterable[Phase],
    dependencies: Dict[Phase, FrozenSet[Phase]] = PHASE_DEPENDENCIES,
) -> Optional[Phase]:
    """
    First phase, in declared order, that is not completed and whose
    dependencies are all completed. None when nothing is eligible.
    """
    done = set(completed)
    for phase in dependencies:
        if phase in done:
            continue
        if dependencies[phase] <= done:
            return phase
    return None
