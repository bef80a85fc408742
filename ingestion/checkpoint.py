"""
File-backed checkpoint store for the bulk import.

One JSON document per checkpoint directory describes the active run.
Every mutation is written through immediately with an atomic
temp-file + rename, and the previous document is kept as a backup
that ``load()`` falls back to when the main file is unreadable.
"""

import json
import logging
import os
import random
import shutil
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import CheckpointCorruptError, CheckpointPersistError
from ingestion.phases import PHASE_DEPENDENCIES, PHASE_ORDER, Phase, next_phase
from schemas.checkpoint import CheckpointState, PhaseSummary, ProgressSummary

logger = logging.getLogger(__name__)

MAIN_FILE = "import-checkpoint.json"
BACKUP_FILE = "import-checkpoint.backup.json"
TEMP_FILE = "import-checkpoint.json.tmp"

# Fields cleared together when a phase is entered fresh
PHASE_LOCAL_DEFAULTS = {
    "offset": 0,
    "records_processed": 0,
    "total_expected": 0,
    "congress": None,
    "bill_type": None,
    "session": None,
}

_UPDATABLE_FIELDS = frozenset(PHASE_LOCAL_DEFAULTS) | {"phase", "last_error"}

_BASE36 = string.digits + string.ascii_lowercase


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_run_id() -> str:
    """Run id of the form ``import-{base36 epoch ms}-{6 random chars}``"""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"import-{_base36(millis)}-{suffix}"


def format_duration(seconds: float) -> str:
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class CheckpointStore:
    """
    Durable single-run import state.

    A read-only store loads existing state and mutates it in memory only;
    dry runs use it so they never advance or complete phases on disk.
    """

    def __init__(self, directory: Union[str, Path], read_only: bool = False):
        self.directory = Path(directory)
        self.read_only = read_only
        self.path = self.directory / MAIN_FILE
        self.backup_path = self.directory / BACKUP_FILE
        self.temp_path = self.directory / TEMP_FILE
        self._state: Optional[CheckpointState] = None
        self._dirty = False

    @property
    def state(self) -> Optional[CheckpointState]:
        return self._state

    def _require_state(self) -> CheckpointState:
        if self._state is None:
            raise RuntimeError("No checkpoint loaded. Call create() or load() first.")
        return self._state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> CheckpointState:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CheckpointCorruptError(
                "Checkpoint file is unreadable",
                context={"path": str(path), "operation": "read"},
                original_exception=e
            )
        try:
            return CheckpointState.model_validate(data)
        except PydanticValidationError as e:
            raise CheckpointCorruptError(
                "Checkpoint file does not match the checkpoint schema",
                context={"path": str(path), "operation": "read"},
                original_exception=e
            )

    def load(self) -> Optional[CheckpointState]:
        """Existing state from the main file, else the backup, else None"""
        for path in (self.path, self.backup_path):
            if not path.exists():
                continue
            try:
                self._state = self._read(path)
            except CheckpointCorruptError as e:
                logger.warning(f"Ignoring checkpoint {path.name}: {e}")
                continue
            if path == self.backup_path:
                logger.info("Loaded checkpoint from backup")
            self._dirty = False
            return self._state
        return None

    def create(self, run_id: Optional[str] = None) -> CheckpointState:
        """Start a new run at the first declared phase, overwriting any state"""
        now = datetime.now(timezone.utc)
        self._state = CheckpointState(
            run_id=run_id or generate_run_id(),
            phase=PHASE_ORDER[0],
            created_at=now,
            updated_at=now,
        )
        self._save()
        logger.info(f"Created checkpoint for run {self._state.run_id}")
        return self._state

    def load_or_create(self) -> CheckpointState:
        return self.load() or self.create()

    def reset(self) -> None:
        """Delete every persisted checkpoint file"""
        self._state = None
        self._dirty = False
        if self.read_only:
            return
        for path in (self.path, self.backup_path, self.temp_path):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise CheckpointPersistError(
                    "Failed to delete checkpoint file",
                    context={"path": str(path), "operation": "delete"},
                    original_exception=e
                )
        logger.info("Checkpoint reset")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update(self, **fields: Any) -> CheckpointState:
        """
        Merge ``fields`` into the state and persist.

        A field passed as None is cleared; a field not passed is left
        unchanged.
        """
        state = self._require_state()
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown checkpoint fields: {', '.join(sorted(unknown))}")

        for name in ("offset", "records_processed", "total_expected"):
            if name in fields and (fields[name] is None or fields[name] < 0):
                raise ValueError(f"{name} must be a non-negative integer")
        if "phase" in fields:
            fields["phase"] = Phase(fields["phase"])

        self._state = state.model_copy(update=fields)
        self._touch()
        self._save()
        return self._state

    def reset_phase(self, phase: Phase) -> CheckpointState:
        """Enter ``phase`` fresh: clear every phase-local field and the last error"""
        return self.update(phase=phase, last_error=None, **PHASE_LOCAL_DEFAULTS)

    def complete_current_phase(self) -> CheckpointState:
        state = self._require_state()
        if state.phase not in state.completed_phases:
            state.completed_phases.append(state.phase)
            self._touch()
            self._save()
        return state

    def record_error(self, error: Union[BaseException, str]) -> None:
        """Persist ``error`` as the last terminal failure"""
        if self._state is None:
            return
        message = error if isinstance(error, str) else (str(error) or type(error).__name__)
        self._state.last_error = message
        self._touch()
        self._save()

    def set_phase_summary(self, phase: Phase, summary: PhaseSummary) -> None:
        """Write the completion statistics of ``phase``; existing summaries are kept"""
        state = self._require_state()
        if phase in state.metadata:
            logger.warning(f"Summary for phase '{phase.value}' already recorded, keeping it")
            return
        state.metadata[phase] = summary
        self._touch()
        self._save()

    def _touch(self) -> None:
        self._state.updated_at = datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save(self) -> None:
        self._dirty = True
        if self.read_only or self._state is None:
            return

        payload = self._state.model_dump_json(indent=2)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(self.temp_path, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            if self.path.exists():
                shutil.copyfile(self.path, self.backup_path)
            os.replace(self.temp_path, self.path)
        except OSError as e:
            try:
                self.temp_path.unlink()
            except OSError:
                pass
            raise CheckpointPersistError(
                "Failed to write checkpoint",
                context={"path": str(self.path), "operation": "write"},
                original_exception=e
            )
        self._dirty = False

    def flush(self) -> None:
        """Write whatever is in memory now; no-op when nothing is pending"""
        if self._dirty:
            self._save()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_phase_completed(self, phase: Phase) -> bool:
        return self._state is not None and phase in self._state.completed_phases

    def is_complete(self) -> bool:
        return self._state is not None and all(
            p in self._state.completed_phases for p in PHASE_ORDER
        )

    def get_next_phase(self) -> Optional[Phase]:
        completed: List[Phase] = self._state.completed_phases if self._state else []
        return next_phase(completed, PHASE_DEPENDENCIES)

    def get_progress_summary(self) -> Optional[ProgressSummary]:
        state = self._state
        if state is None:
            return None
        progress = (
            round(state.records_processed / state.total_expected * 100)
            if state.total_expected > 0 else 0
        )
        elapsed = (datetime.now(timezone.utc) - state.created_at).total_seconds()
        return ProgressSummary(
            run_id=state.run_id,
            phase=state.phase,
            progress=progress,
            records_processed=state.records_processed,
            total_expected=state.total_expected,
            elapsed=format_duration(elapsed),
            completed_phases=len(state.completed_phases),
            total_phases=len(PHASE_ORDER),
            completed=list(state.completed_phases),
            last_error=state.last_error,
        )
