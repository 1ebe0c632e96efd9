"""Service that keeps the banlists found in repositories, by hash."""

from __future__ import annotations

import os
import re
import threading
from pathlib import Path
from typing import Optional, Sequence

from .banlist import Banlist, BanlistParseError, parse_banlists
from .logformat import Level, ServiceType
from .loghandler import LogHandler
from .observer import GitDiff, GitRepoObserver, PathLike


class BanlistProvider(GitRepoObserver):
    """Loads banlist files whose names match a pattern."""

    def __init__(self, log_handler: LogHandler, pattern: str) -> None:
        self._lh = log_handler
        self._pattern = re.compile(pattern)
        self._banlists: dict[int, Banlist] = {}
        self._lock = threading.Lock()

    def get_banlist_by_hash(self, banlist_hash: int) -> Optional[Banlist]:
        """The banlist with this hash, or None."""
        with self._lock:
            return self._banlists.get(banlist_hash)

    def on_add(self, path: PathLike, file_list: Sequence[PathLike]) -> None:
        self._load_banlists(path, file_list)

    def on_diff(self, path: PathLike, diff: GitDiff) -> None:
        self._load_banlists(path, diff.added)

    def _log(self, level: Level, text: str, *args: object) -> None:
        self._lh.log(ServiceType.BANLIST_PROVIDER, level, text, *args)

    def _load_banlists(self, path: PathLike, file_list: Sequence[PathLike]) -> None:
        loaded: dict[int, Banlist] = {}
        for fn in file_list:
            if not self._pattern.fullmatch(os.fspath(fn)):
                continue
            full_path = Path(os.path.normpath(Path(path) / fn))
            self._log(Level.INFO, 'Loading banlist file "{}"', full_path)
            try:
                lines = full_path.read_text(encoding="utf-8").splitlines()
                for banlist_hash, banlist in parse_banlists(lines).items():
                    loaded.setdefault(banlist_hash, banlist)
            except (OSError, UnicodeDecodeError, BanlistParseError, ValueError) as e:
                self._log(Level.ERROR, "Could not load banlist file: {}", e)
        with self._lock:
            self._banlists.update(loaded)