import json
import os

import pytest

from core.exceptions import RunLockError
from ingestion.run_lock import LOCK_FILE, RunLock


def test_acquire_writes_owner_pid(tmp_path):
    lock = RunLock(tmp_path)
    lock.acquire()

    assert lock.held
    assert json.loads((tmp_path / LOCK_FILE).read_text())["pid"] == os.getpid()
    assert lock.owner() == os.getpid()
    assert lock.is_locked()


def test_second_acquire_is_refused(tmp_path):
    first = RunLock(tmp_path)
    first.acquire()

    second = RunLock(tmp_path)
    with pytest.raises(RunLockError) as exc_info:
        second.acquire()
    assert exc_info.value.context["owner_pid"] == os.getpid()
    assert not second.held


def test_stale_lock_is_replaced(tmp_path, monkeypatch):
    (tmp_path / LOCK_FILE).write_text(json.dumps({"pid": 999999}))
    monkeypatch.setattr("ingestion.run_lock.pid_alive", lambda pid: False)

    lock = RunLock(tmp_path)
    assert not lock.is_locked()
    lock.acquire()

    assert lock.owner() == os.getpid()


def test_unreadable_lock_file_is_not_live(tmp_path):
    (tmp_path / LOCK_FILE).write_text("garbage")
    lock = RunLock(tmp_path)

    assert lock.owner() is None
    assert not lock.is_locked()
    lock.acquire()
    assert lock.held


def test_release_removes_file_only_when_held(tmp_path):
    holder = RunLock(tmp_path)
    holder.acquire()

    RunLock(tmp_path).release()
    assert (tmp_path / LOCK_FILE).exists()

    holder.release()
    assert not (tmp_path / LOCK_FILE).exists()
    assert not holder.held


def test_context_manager(tmp_path):
    with RunLock(tmp_path) as lock:
        assert lock.is_locked()
    assert not (tmp_path / LOCK_FILE).exists()


def test_acquire_creates_directory(tmp_path):
    lock = RunLock(tmp_path / "nested" / "checkpoints")
    lock.acquire()
    assert lock.path.exists()
    lock.release()
