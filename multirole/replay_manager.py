"""Service that hands out replay ids and stores replay files."""

from __future__ import annotations

import os
import struct
import threading
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock

from .logformat import Level, ServiceType
from .loghandler import LogHandler

# The last id file holds one little-endian unsigned 64-bit integer.
_ID = struct.Struct("<Q")
_MASK64 = (1 << 64) - 1


def _ensure_directory(path: Path, create_error: str, not_dir_error: str) -> None:
    if not path.exists():
        try:
            path.mkdir()
        except OSError as e:
            raise RuntimeError(create_error) from e
    if not path.is_dir():
        raise RuntimeError(not_dir_error)


class ReplayManager:
    """Stores replays in a directory and keeps a process-safe id counter.

    When saving is off, nothing is written and every id is 0.
    """

    def __init__(self, log_handler: LogHandler, save: bool, directory: Union[str, os.PathLike]) -> None:
        self._lh = log_handler
        self._save = bool(save)
        self._dir = Path(directory)
        self._last_id = self._dir / "lastId"
        self._lock_path = self._dir / "lastId.lock"
        self._thread_lock = threading.Lock()
        self._file_lock: Optional[FileLock] = None
        if not self._save:
            self._log(Level.INFO, "Not saving replays.")
            return
        _ensure_directory(
            self._dir,
            "could not create replay directory",
            "replay path is a file, not a directory",
        )
        if not self._last_id.exists():
            try:
                self._last_id.write_bytes(_ID.pack(1))
            except OSError as e:
                raise RuntimeError("error writing initial replay id") from e
        if not self._lock_path.exists():
            try:
                self._lock_path.touch()
            except OSError as e:
                raise RuntimeError("error creating replay id lock file") from e
        self._file_lock = FileLock(str(self._lock_path))
        with self._file_lock:
            try:
                data = self._last_id.read_bytes()
            except OSError:
                return
            if len(data) == _ID.size:
                self._log(Level.INFO, "Current replay id is {}.", _ID.unpack(data)[0])
                return
            self._log(
                Level.WARN,
                "lastId file has size {}, expected {}; it may be corrupted.",
                len(data),
                _ID.size,
            )

    def _log(self, level: Level, text: str, *args: object) -> None:
        self._lh.log(ServiceType.REPLAY_MANAGER, level, text, *args)

    def save(self, replay_id: int, data: bytes) -> None:
        """Write a replay as `<id>.yrpX`; failures are logged."""
        if not self._save:
            return
        path = self._dir / f"{replay_id}.yrpX"
        try:
            path.write_bytes(bytes(data))
        except OSError:
            self._log(Level.ERROR, 'Unable to save replay "{}"', path)

    def new_id(self) -> int:
        """Take the next replay id; 0 when saving is off or the counter fails."""
        if not self._save or self._file_lock is None:
            return 0
        with self._thread_lock, self._file_lock:
            try:
                data = self._last_id.read_bytes()
            except OSError:
                self._log(Level.ERROR, "lastId cannot be opened for reading.")
                return 0
            if len(data) != _ID.size:
                self._log(
                    Level.ERROR,
                    "lastId file has size {}, expected {}; it may be corrupted.",
                    len(data),
                    _ID.size,
                )
                return 0
            current = _ID.unpack(data)[0]
            try:
                self._last_id.write_bytes(_ID.pack((current + 1) & _MASK64))
            except OSError:
                self._log(Level.ERROR, "Cannot write new replay id.")
                return 0
            return current