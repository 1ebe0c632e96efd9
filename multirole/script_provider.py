"""Service that keeps the card scripts found in repositories in memory."""

from __future__ import annotations

import os
import re
import threading
from pathlib import Path, PurePath
from typing import Optional, Sequence

from .logformat import Level, ServiceType
from .loghandler import LogHandler
from .observer import GitDiff, GitRepoObserver, PathLike


class ScriptProvider(GitRepoObserver):
    """Loads script files whose names match a pattern, keyed by file name."""

    def __init__(self, log_handler: LogHandler, pattern: str) -> None:
        self._lh = log_handler
        self._pattern = re.compile(pattern)
        self._scripts: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def on_add(self, path: PathLike, file_list: Sequence[PathLike]) -> None:
        self._load_scripts(path, file_list)

    def on_diff(self, path: PathLike, diff: GitDiff) -> None:
        self._load_scripts(path, diff.added)

    def script_from_file_path(self, name: str) -> Optional[bytes]:
        """The contents of the script with this file name, or None."""
        with self._lock:
            return self._scripts.get(name)

    def _log(self, level: Level, text: str, *args: object) -> None:
        self._lh.log(ServiceType.SCRIPT_PROVIDER, level, text, *args)

    def _load_scripts(self, path: PathLike, file_list: Sequence[PathLike]) -> None:
        total = 0
        self._log(Level.INFO, "Loading {} script files...", len(file_list))
        with self._lock:
            for fn in file_list:
                if not self._pattern.fullmatch(os.fspath(fn)):
                    continue
                full_path = Path(os.path.normpath(Path(path) / fn))
                try:
                    contents = full_path.read_bytes()
                except OSError:
                    self._log(Level.ERROR, 'Could not open file "{}"', full_path)
                    continue
                self._scripts[PurePath(fn).name] = contents
                total += 1
        self._log(Level.INFO, "Loaded {} script files.", total)