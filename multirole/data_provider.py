"""Service that amalgamates the card databases found in repositories."""

from __future__ import annotations

import os
import re
import threading
from pathlib import Path
from typing import Sequence

from .carddb import CardDatabase
from .logformat import Level, ServiceType
from .loghandler import LogHandler
from .observer import GitDiff, GitRepoObserver, PathLike


class DataProvider(GitRepoObserver):
    """Keeps a card database merged from every matching file.

    Each change builds a fresh database; one handed out earlier stays usable.
    """

    def __init__(self, log_handler: LogHandler, pattern: str) -> None:
        self._lh = log_handler
        self._pattern = re.compile(pattern)
        self._paths: set[Path] = set()
        self._db = CardDatabase()
        self._lock = threading.Lock()

    def get_database(self) -> CardDatabase:
        """The current card database."""
        with self._lock:
            return self._db

    def _full_paths(self, path: PathLike, names: Sequence[PathLike]) -> list[Path]:
        return [
            Path(os.path.normpath(Path(path) / fn))
            for fn in names
            if self._pattern.fullmatch(os.fspath(fn))
        ]

    def on_add(self, path: PathLike, file_list: Sequence[PathLike]) -> None:
        self._paths.update(self._full_paths(path, file_list))
        self._reload_databases()

    def on_diff(self, path: PathLike, diff: GitDiff) -> None:
        self._paths.difference_update(self._full_paths(path, diff.removed))
        self._paths.update(self._full_paths(path, diff.added))
        self._reload_databases()

    def _reload_databases(self) -> None:
        new_db = CardDatabase()
        for db_path in sorted(self._paths):
            self._lh.log(ServiceType.DATA_PROVIDER, Level.INFO, 'Loading card database "{}"', db_path)
            if not new_db.merge(db_path):
                self._lh.log(ServiceType.DATA_PROVIDER, Level.ERROR, "Could not merge database")
        with self._lock:
            self._db = new_db