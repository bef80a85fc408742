"""
Checkpoint store tests: lifecycle, merge semantics, persistence and fallback
"""

import json
import re
from unittest.mock import patch

import pytest

from core.exceptions import CheckpointPersistError
from ingestion.checkpoint import (
    BACKUP_FILE, MAIN_FILE, CheckpointStore, format_duration, generate_run_id
)
from ingestion.phases import PHASE_ORDER, Phase
from schemas.checkpoint import PhaseSummary


def test_create_starts_at_first_phase(checkpoint_dir):
    store = CheckpointStore(checkpoint_dir)
    state = store.create()

    assert state.phase == PHASE_ORDER[0]
    assert state.completed_phases == []
    assert state.offset == 0
    assert state.records_processed == 0
    assert (checkpoint_dir / MAIN_FILE).exists()


def test_fresh_start_after_reset(store, checkpoint_dir):
    store.update(phase=Phase.BILLS, offset=500, records_processed=500)
    store.complete_current_phase()

    store.reset()
    assert not (checkpoint_dir / MAIN_FILE).exists()
    assert not (checkpoint_dir / BACKUP_FILE).exists()

    state = CheckpointStore(checkpoint_dir).load_or_create()
    assert state.phase == Phase.LEGISLATORS
    assert state.completed_phases == []
    assert state.offset == 0


def test_load_returns_none_without_files(checkpoint_dir):
    assert CheckpointStore(checkpoint_dir).load() is None


def test_update_none_clears_and_omitted_keeps(store):
    store.update(congress=118, bill_type="hr", offset=50)
    store.update(congress=None)

    assert store.state.congress is None
    assert store.state.bill_type == "hr"
    assert store.state.offset == 50


def test_update_persists_immediately(store, checkpoint_dir):
    store.update(phase=Phase.COMMITTEES, offset=25, records_processed=25)

    reloaded = CheckpointStore(checkpoint_dir).load()
    assert reloaded.phase == Phase.COMMITTEES
    assert reloaded.offset == 25


def test_update_rejects_unknown_and_negative_fields(store):
    with pytest.raises(ValueError):
        store.update(cursor=10)
    with pytest.raises(ValueError):
        store.update(offset=-1)


def test_update_refreshes_updated_at(store):
    before = store.state.updated_at
    store.update(offset=1)
    assert store.state.updated_at >= before


def test_reset_phase_clears_phase_local_fields(store):
    store.update(offset=10, records_processed=10, total_expected=100,
                 congress=119, bill_type="s", session=2, last_error="boom")

    state = store.reset_phase(Phase.VOTES)

    assert state.phase == Phase.VOTES
    assert (state.offset, state.records_processed, state.total_expected) == (0, 0, 0)
    assert state.congress is None
    assert state.bill_type is None
    assert state.session is None
    assert state.last_error is None


def test_complete_current_phase_is_idempotent(store):
    store.complete_current_phase()
    store.complete_current_phase()
    assert store.state.completed_phases == [Phase.LEGISLATORS]


def test_get_next_phase_follows_dependencies(store):
    assert store.get_next_phase() == Phase.LEGISLATORS
    for phase in PHASE_ORDER:
        store.update(phase=phase)
        store.complete_current_phase()
    assert store.get_next_phase() is None
    assert store.is_complete()


def test_record_error_survives_reload(store, checkpoint_dir):
    store.record_error(RuntimeError("upstream exploded"))

    reloaded = CheckpointStore(checkpoint_dir).load()
    assert reloaded.last_error == "upstream exploded"


def test_load_falls_back_to_backup(store, checkpoint_dir):
    store.update(offset=10)  # previous document (offset 0) becomes the backup
    (checkpoint_dir / MAIN_FILE).write_text("{not json", encoding="utf-8")

    reloaded = CheckpointStore(checkpoint_dir).load()
    assert reloaded is not None
    assert reloaded.run_id == store.state.run_id
    assert reloaded.offset == 0


def test_load_rejects_schema_invalid_main(store, checkpoint_dir):
    store.update(offset=10)
    data = json.loads((checkpoint_dir / MAIN_FILE).read_text(encoding="utf-8"))
    data["version"] = 99
    (checkpoint_dir / MAIN_FILE).write_text(json.dumps(data), encoding="utf-8")

    reloaded = CheckpointStore(checkpoint_dir).load()
    assert reloaded.version == 1
    assert reloaded.offset == 0


def test_load_returns_none_when_everything_is_corrupt(store, checkpoint_dir):
    store.update(offset=10)
    (checkpoint_dir / MAIN_FILE).write_text("garbage", encoding="utf-8")
    (checkpoint_dir / BACKUP_FILE).write_text("garbage", encoding="utf-8")

    assert CheckpointStore(checkpoint_dir).load() is None


def test_read_only_store_never_writes(checkpoint_dir):
    store = CheckpointStore(checkpoint_dir, read_only=True)
    store.create()
    store.update(offset=100)
    store.complete_current_phase()

    assert store.state.offset == 100
    assert not (checkpoint_dir / MAIN_FILE).exists()


def test_read_only_store_keeps_disk_state(store, checkpoint_dir):
    dry = CheckpointStore(checkpoint_dir, read_only=True)
    dry.load()
    dry.update(offset=999)
    dry.complete_current_phase()

    on_disk = CheckpointStore(checkpoint_dir).load()
    assert on_disk.offset == 0
    assert on_disk.completed_phases == []


def test_persist_failure_raises(store):
    with patch("ingestion.checkpoint.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(CheckpointPersistError):
            store.update(offset=5)


def test_flush_writes_pending_state(store, checkpoint_dir):
    with patch("ingestion.checkpoint.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(CheckpointPersistError):
            store.update(offset=5)

    store.flush()
    assert CheckpointStore(checkpoint_dir).load().offset == 5


def test_phase_summary_is_written_once(store, checkpoint_dir):
    store.set_phase_summary(Phase.LEGISLATORS, PhaseSummary(created=10, updated=2))
    store.set_phase_summary(Phase.LEGISLATORS, PhaseSummary(created=99))

    reloaded = CheckpointStore(checkpoint_dir).load()
    assert reloaded.metadata[Phase.LEGISLATORS].created == 10
    assert reloaded.metadata[Phase.LEGISLATORS].updated == 2


def test_progress_summary(store):
    store.update(records_processed=50, total_expected=200)
    store.complete_current_phase()

    summary = store.get_progress_summary()
    assert summary.progress == 25
    assert summary.completed_phases == 1
    assert summary.total_phases == len(PHASE_ORDER)
    assert summary.elapsed.endswith("s")


def test_progress_summary_without_expected_total(store):
    store.update(records_processed=50)
    assert store.get_progress_summary().progress == 0


def test_progress_summary_without_state(checkpoint_dir):
    assert CheckpointStore(checkpoint_dir).get_progress_summary() is None


@pytest.mark.parametrize("seconds, expected", [
    (3, "3s"),
    (123, "2m 3s"),
    (3723, "1h 2m 3s"),
    (-5, "0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_generate_run_id_format():
    run_id = generate_run_id()
    assert re.fullmatch(r"import-[0-9a-z]+-[0-9a-z]{6}", run_id)
    assert generate_run_id() != run_id
