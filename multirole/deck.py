"""A player's deck: main, extra and side card codes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Deck:
    """Card codes of each deck section and the validation error, if any."""

    main: tuple[int, ...] = field(default_factory=tuple)
    extra: tuple[int, ...] = field(default_factory=tuple)
    side: tuple[int, ...] = field(default_factory=tuple)
    error: int = 0

    def __post_init__(self) -> None:
        for name in ("main", "extra", "side"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def code_map(self) -> dict[int, int]:
        """Count every card code across all sections, ordered by code."""
        counts = Counter(self.main)
        counts.update(self.extra)
        counts.update(self.side)
        return dict(sorted(counts.items()))