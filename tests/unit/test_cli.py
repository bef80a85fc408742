"""
CLI tests; the import itself is replaced by a mock of run_import
"""

from unittest.mock import AsyncMock, patch

import pytest

from core.config import settings
from ingestion.checkpoint import MAIN_FILE, CheckpointStore
from ingestion.cli import build_parser, main, print_status
from ingestion.phases import Phase
from ingestion.run_lock import RunLock
from ingestion.runner import EXIT_FAILURE, EXIT_SUCCESS


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "CHECKPOINT_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "CONGRESS_API_KEY", "test-key")
    return tmp_path


def test_parser_flags():
    args = build_parser().parse_args(["-d", "-v", "--phase", "bills"])
    assert args.dry_run and args.verbose
    assert args.phase == "bills"
    assert not args.force


def test_help_exits_cleanly(env):
    assert main(["--help"]) == EXIT_SUCCESS


def test_unknown_flag_fails(env):
    assert main(["--bogus"]) == EXIT_FAILURE


def test_unknown_phase_fails(env, capsys):
    assert main(["--phase", "amendments"]) == EXIT_FAILURE
    assert "Unknown phase 'amendments'" in capsys.readouterr().out


def test_status_without_checkpoint(env, capsys):
    assert main(["--status"]) == EXIT_SUCCESS
    assert "No import checkpoint found." in capsys.readouterr().out


def test_status_markers(env, capsys):
    store = CheckpointStore(env)
    store.create()
    store.complete_current_phase()
    store.reset_phase(Phase.COMMITTEES)

    assert main(["--status"]) == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "legislators  ✓ COMPLETE" in out
    assert "committees   → IN PROGRESS" in out
    assert "bills        PENDING" in out


def test_print_status_reports_last_error(store):
    store.record_error("FetchError: upstream unavailable")
    lines = []
    print_status(store, out=lines.append)
    assert "Last error: FetchError: upstream unavailable" in lines


def test_reset_deletes_checkpoint(env, capsys):
    CheckpointStore(env).create()

    assert main(["--reset"]) == EXIT_SUCCESS
    assert not (env / MAIN_FILE).exists()
    assert "Checkpoint reset." in capsys.readouterr().out


def test_reset_refuses_while_a_run_is_active(env):
    CheckpointStore(env).create()
    lock = RunLock(env)
    lock.acquire()

    assert main(["--reset"]) == EXIT_FAILURE
    assert (env / MAIN_FILE).exists()

    assert main(["--reset", "--force"]) == EXIT_SUCCESS
    assert not (env / MAIN_FILE).exists()


def test_missing_api_key_fails(env, monkeypatch, capsys):
    monkeypatch.setattr(settings, "CONGRESS_API_KEY", None)
    with patch("ingestion.cli.run_import", new=AsyncMock()) as run_import:
        assert main([]) == EXIT_FAILURE

    run_import.assert_not_awaited()
    assert "CONGRESS_API_KEY" in capsys.readouterr().out


def test_successful_run(env):
    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_SUCCESS)) as run_import:
        assert main(["--phase", "legislators"]) == EXIT_SUCCESS

    store, options, phase = run_import.await_args.args
    assert phase == Phase.LEGISLATORS
    assert options.resume and not options.dry_run
    assert not store.read_only
    assert not (env / MAIN_FILE).exists()


def test_full_run_creates_checkpoint_up_front(env):
    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_SUCCESS)):
        assert main([]) == EXIT_SUCCESS

    assert (env / MAIN_FILE).exists()


def test_failed_run_prints_status(env, capsys):
    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_FAILURE)):
        assert main([]) == EXIT_FAILURE

    out = capsys.readouterr().out
    assert "Import failed. Current status:" in out
    assert "legislators" in out
    assert "Rerun the same command" in out


def test_failed_run_behind_a_held_lock_does_not_suggest_resume(env, capsys):
    RunLock(env).acquire()
    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_FAILURE)):
        assert main([]) == EXIT_FAILURE

    out = capsys.readouterr().out
    assert "Another import run holds the lock" in out
    assert "Rerun the same command" not in out


def test_dry_run_uses_read_only_store(env):
    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_SUCCESS)) as run_import:
        assert main(["--dry-run"]) == EXIT_SUCCESS

    store, options, _ = run_import.await_args.args
    assert options.dry_run
    assert store.read_only
    assert store.state is not None
    assert not (env / MAIN_FILE).exists()


def test_force_starts_a_fresh_run(env):
    old = CheckpointStore(env)
    old.create()
    old.complete_current_phase()

    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_SUCCESS)) as run_import:
        assert main(["--force"]) == EXIT_SUCCESS

    store = run_import.await_args.args[0]
    assert store.state.run_id != old.state.run_id
    assert store.state.completed_phases == []


def test_force_refuses_while_a_run_is_active(env):
    RunLock(env).acquire()
    with patch("ingestion.cli.run_import", new=AsyncMock()) as run_import:
        assert main(["--force"]) == EXIT_FAILURE
    run_import.assert_not_awaited()


def test_existing_checkpoint_is_resumed(env):
    old = CheckpointStore(env)
    old.create()
    old.complete_current_phase()

    with patch("ingestion.cli.run_import", new=AsyncMock(return_value=EXIT_SUCCESS)) as run_import:
        main([])

    store = run_import.await_args.args[0]
    assert store.state.run_id == old.state.run_id
    assert store.state.completed_phases == [Phase.LEGISLATORS]
