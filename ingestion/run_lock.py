"""
Advisory lock that keeps two import runs off the same checkpoint
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from core.exceptions import RunLockError

logger = logging.getLogger(__name__)

LOCK_FILE = "import.lock"


def pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    return True


class RunLock:
    """
    Lock file created with O_CREAT | O_EXCL holding the owner pid.

    A lock whose pid is no longer alive is stale and gets replaced.
    Usable as a context manager.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.path = self.directory / LOCK_FILE
        self.held = False

    def owner(self) -> Optional[int]:
        """PID recorded in the lock file, None when there is no readable lock"""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return int(data["pid"])
        except (OSError, ValueError, KeyError, TypeError):
            return None

    def is_locked(self) -> bool:
        """True when a live process other than a stale owner holds the lock"""
        if not self.path.exists():
            return False
        pid = self.owner()
        return pid is not None and pid_alive(pid)

    def acquire(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({
            "pid": os.getpid(),
            "started_at": datetime.now(timezone.utc).isoformat(),
        })

        for _ in range(2):
            try:
                fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                pid = self.owner()
                if pid is not None and pid_alive(pid):
                    raise RunLockError(
                        "Another import run holds the lock",
                        context={"lock_path": str(self.path), "owner_pid": pid}
                    )
                logger.warning(f"Removing stale import lock (pid {pid})")
                try:
                    self.path.unlink()
                except FileNotFoundError:
                    pass
                continue

            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            self.held = True
            logger.debug(f"Acquired import lock {self.path}")
            return

        raise RunLockError(
            "Could not acquire import lock",
            context={"lock_path": str(self.path), "owner_pid": self.owner()}
        )

    def release(self) -> None:
        if not self.held:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        self.held = False
        logger.debug(f"Released import lock {self.path}")

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
