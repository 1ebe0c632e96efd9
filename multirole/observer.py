"""Interface for services notified about a repository's files."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence, Union

PathLike = Union[str, os.PathLike]


@dataclass
class GitDiff:
    """Files removed from and added to a repository by an update.

    A file that was only modified appears in both lists.
    """

    removed: list[PathLike] = field(default_factory=list)
    added: list[PathLike] = field(default_factory=list)


class GitRepoObserver(ABC):
    """Receives the file list of a repository and later its changes."""

    @abstractmethod
    def on_add(self, path: PathLike, file_list: Sequence[PathLike]) -> None:
        """Called once with every file of the repository at `path`."""

    @abstractmethod
    def on_diff(self, path: PathLike, diff: GitDiff) -> None:
        """Called with the files changed by an update of the repository."""