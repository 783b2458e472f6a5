"""
File-backed storage for the session record.

One record per install lives at <state dir>/session-state.toon and is
overwritten as a whole on every save. Saves go through a temp file in the
same directory and os.replace, so readers never see a torn file.

Concurrent hook processes share only this file. SessionStore.lock() gives a
short advisory lock around a read-modify-write; when it cannot be taken in
time the caller proceeds unlocked and a concurrent update may be lost.
"""

import os
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

from filelock import FileLock, Timeout
from loguru import logger

from tollgate.errors import StorageLockError, StorageReadError, StorageWriteError
from tollgate.session.record import SessionRecord

STATE_FILE = "session-state.toon"
LOCK_TIMEOUT_SECONDS = 2.0


def default_state_dir() -> Path:
    """State directory (TOLLGATE_STATE_DIR overrides)."""
    override = os.environ.get("TOLLGATE_STATE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".local" / "shared" / "shared-ai" / "stm"


class SessionStore:
    """
    Load, save and lock the session record.

    Usage:
        store = SessionStore()
        with store.lock():
            record = store.load_or_create()
            record.increment_turn()
            store.save(record)

    Attributes:
        state_dir: Directory holding the state file
        clock: Returns the current local date (injectable for tests)
        cwd: Returns the working directory new records are bound to
    """

    def __init__(
        self,
        state_dir: Path | str | None = None,
        clock: Callable[[], date] | None = None,
        cwd: Callable[[], Path] | None = None,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self.state_dir = Path(state_dir) if state_dir else default_state_dir()
        self.clock = clock or date.today
        self.cwd = cwd or Path.cwd
        self.lock_timeout = lock_timeout

    @property
    def path(self) -> Path:
        return self.state_dir / STATE_FILE

    @property
    def lock_path(self) -> Path:
        return self.state_dir / (STATE_FILE + ".lock")

    def today(self) -> str:
        """Current date as YYYY-MM-DD."""
        return self.clock().isoformat()

    def new_record(self) -> SessionRecord:
        return SessionRecord.create(self.clock(), self.cwd())

    def read(self) -> SessionRecord | None:
        """
        Read the stored record regardless of its date.

        Returns:
            The record, or None if no state file exists

        Raises:
            StorageReadError: If the file exists but cannot be read
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(path=str(self.path), underlying_error=str(e)) from e
        return SessionRecord.from_text(text, self.new_record())

    def load(self) -> SessionRecord | None:
        """
        Load today's record.

        Returns None when there is no record, when it belongs to another day,
        or when it cannot be read (logged).
        """
        try:
            record = self.read()
        except StorageReadError as e:
            logger.warning(e.message)
            return None
        if record is None or record.today != self.today():
            return None
        return record

    def load_or_create(self) -> SessionRecord:
        """Today's record, or a fresh one."""
        return self.load() or self.new_record()

    def save(self, record: SessionRecord) -> None:
        """
        Persist the whole record atomically.

        Raises:
            StorageWriteError: If the directory or file cannot be written
        """
        tmp_name = None
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=STATE_FILE + ".", suffix=".tmp", dir=self.state_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.to_text())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageWriteError(path=str(self.path), underlying_error=str(e)) from e

    def commit(self, record: SessionRecord) -> bool:
        """
        Save, logging instead of raising.

        Used by gates: a failed save never changes a verdict.

        Returns:
            True if the record was written
        """
        try:
            self.save(record)
        except StorageWriteError as e:
            logger.warning(e.message)
            return False
        return True

    @contextmanager
    def lock(self) -> Iterator[bool]:
        """
        Hold the advisory session lock.

        Yields:
            True when the lock is held, False when proceeding unlocked
        """
        file_lock = FileLock(str(self.lock_path), timeout=self.lock_timeout)
        held = False
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            file_lock.acquire()
            held = True
        except Timeout:
            error = StorageLockError(path=str(self.lock_path), timeout_seconds=self.lock_timeout)
            logger.warning(f"{error.message}; continuing unlocked")
        except OSError as e:
            logger.warning(f"Session lock unavailable ({e}); continuing unlocked")
        try:
            yield held
        finally:
            if held:
                file_lock.release()
