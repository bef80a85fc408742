"""
Phase orchestration over the checkpoint store.

Decides, per phase, whether a run resumes an interrupted import or
enters the phase fresh, and records completion or failure in the
checkpoint. Retrying a failed phase is left to the next run.
"""

import logging
from typing import Dict, FrozenSet, List, Mapping

from core.exceptions import CheckpointPersistError, ConfigurationError, DependencyError
from ingestion.checkpoint import CheckpointStore
from ingestion.importers.base import PhaseImporter
from ingestion.phases import PHASE_DEPENDENCIES, ImportOptions, Phase, missing_dependencies

logger = logging.getLogger(__name__)


class PhaseOrchestrator:
    """
    Runs phase importers in dependency order.

    Ensures:
    - A phase with unmet dependencies fails without touching the checkpoint
    - Phase-local progress never leaks from one phase into the next
    - A failed phase leaves its error in the checkpoint and propagates
    """

    def __init__(
        self,
        store: CheckpointStore,
        importers: Mapping[Phase, PhaseImporter],
        dependencies: Dict[Phase, FrozenSet[Phase]] = PHASE_DEPENDENCIES,
    ):
        self.store = store
        self.importers = importers
        self.dependencies = dependencies

    def check_dependencies(self, phase: Phase) -> None:
        """
        Raise DependencyError unless every dependency of ``phase`` has
        completed. Loads an existing checkpoint but never creates one.
        """
        state = self.store.state or self.store.load()
        completed = state.completed_phases if state is not None else []
        missing = missing_dependencies(phase, completed, self.dependencies)
        if missing:
            raise DependencyError(phase.value, [dep.value for dep in missing])

    async def execute_phase(self, phase: Phase, options: ImportOptions) -> None:
        """
        Run one phase.

        Raises:
            DependencyError: If a dependency has not completed; the
                checkpoint is left untouched
            ConfigurationError: If no importer is registered for the phase
            Exception: Whatever the importer raised, after it has been
                recorded as the checkpoint's last error
        """
        self.check_dependencies(phase)
        state = self.store.state or self.store.create()

        importer = self.importers.get(phase)
        if importer is None:
            raise ConfigurationError(
                f"No importer registered for phase '{phase.value}'",
                context={"phase": phase.value}
            )

        if options.resume and state.phase == phase and state.records_processed > 0:
            logger.info(
                f"Resuming phase '{phase.value}' at offset {state.offset} "
                f"({state.records_processed} records processed)"
            )
            self.store.update(last_error=None)
        else:
            self.store.reset_phase(phase)

        try:
            await importer.execute(options)
        except CheckpointPersistError:
            raise
        except Exception as e:
            logger.error(f"Phase '{phase.value}' failed: {e}")
            try:
                self.store.record_error(e)
            except CheckpointPersistError as persist_error:
                logger.error(f"Could not record phase failure: {persist_error}")
            raise

        self.store.complete_current_phase()
        logger.info(f"Phase '{phase.value}' complete")

    async def execute_all(self, options: ImportOptions) -> List[Phase]:
        """Run every eligible phase until the resolver has none left"""
        executed = []
        while True:
            phase = self.store.get_next_phase()
            if phase is None:
                break
            await self.execute_phase(phase, options)
            executed.append(phase)

        if self.store.is_complete():
            logger.info("All phases complete")
        return executed
