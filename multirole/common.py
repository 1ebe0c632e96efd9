"""Structures shared by client and server messages, with their wire layout."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import ClassVar


class AllowedCards(IntEnum):
    """Which card pools a room accepts."""

    OCG_ONLY = 0
    TCG_ONLY = 1
    OCG_TCG = 2
    WITH_PRERELEASE = 3
    ANY = 4


class ExtraRule(IntFlag):
    """Optional rules a room may enable."""

    SEALED_DUEL = 0x1
    BOOSTER_DUEL = 0x2
    DESTINY_DRAW = 0x4
    CONCENTRATION_DUEL = 0x8
    BOSS_DUEL = 0x10
    BATTLE_CITY = 0x20
    DUELIST_KINGDOM = 0x40
    DIMENSION_DUEL = 0x80
    TURBO_DUEL = 0x100
    RULE_OF_THE_DAY = 0x200
    COMMAND_DUEL = 0x400
    DECK_MASTER = 0x800
    ACTION_DUEL = 0x1000


def or_duel_flags(high: int, low: int) -> int:
    """Combine the high and low 32-bit halves of the duel flags."""
    return (low & 0xFFFFFFFF) | ((high & 0xFFFFFFFF) << 32)


def _check_size(name: str, data: bytes, size: int) -> None:
    if len(data) != size:
        raise ValueError(f"{name} needs {size} bytes, got {len(data)}")


@dataclass(frozen=True)
class ClientVersion:
    """Client and core version pair."""

    client_major: int = 0
    client_minor: int = 0
    core_major: int = 0
    core_minor: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<4B")
    SIZE: ClassVar[int] = 4

    def pack(self) -> bytes:
        return self._STRUCT.pack(
            self.client_major, self.client_minor, self.core_major, self.core_minor
        )

    @classmethod
    def unpack(cls, data: bytes) -> ClientVersion:
        _check_size("ClientVersion", data, cls.SIZE)
        return cls(*cls._STRUCT.unpack(data))


@dataclass(frozen=True)
class Boundary:
    """Inclusive card count limits for one deck section."""

    minimum: int = 0
    maximum: int = 0


@dataclass(frozen=True)
class DeckLimits:
    """Card count limits for main, extra and side deck."""

    main: Boundary = field(default_factory=Boundary)
    extra: Boundary = field(default_factory=Boundary)
    side: Boundary = field(default_factory=Boundary)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<6H")
    SIZE: ClassVar[int] = 12

    def pack(self) -> bytes:
        return self._STRUCT.pack(
            self.main.minimum, self.main.maximum,
            self.extra.minimum, self.extra.maximum,
            self.side.minimum, self.side.maximum,
        )

    @classmethod
    def unpack(cls, data: bytes) -> DeckLimits:
        _check_size("DeckLimits", data, cls.SIZE)
        v = cls._STRUCT.unpack(data)
        return cls(Boundary(v[0], v[1]), Boundary(v[2], v[3]), Boundary(v[4], v[5]))


@dataclass
class HostInfo:
    """Room options chosen by the host."""

    banlist_hash: int = 0
    allowed: int = 0
    mode: int = 0
    duel_rule: int = 0
    dont_check_deck_content: int = 0
    dont_shuffle_deck: int = 0
    starting_lp: int = 0
    starting_draw_count: int = 0
    draw_count_per_turn: int = 0
    time_limit_in_seconds: int = 0
    duel_flags_high: int = 0
    handshake: int = 0
    version: ClientVersion = field(default_factory=ClientVersion)
    t0_count: int = 0
    t1_count: int = 0
    best_of: int = 0
    duel_flags_low: int = 0
    forb: int = 0
    extra_rules: int = 0
    limits: DeckLimits = field(default_factory=DeckLimits)

    # Laid out with the padding of the naturally aligned wire structure.
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<I5B3xIBBHII4siiiIiH12s2x")
    SIZE: ClassVar[int] = _STRUCT.size

    def duel_flags(self) -> int:
        """The full 64-bit duel flags."""
        return or_duel_flags(self.duel_flags_high, self.duel_flags_low)

    def pack(self) -> bytes:
        return self._STRUCT.pack(
            self.banlist_hash,
            self.allowed,
            self.mode,
            self.duel_rule,
            self.dont_check_deck_content,
            self.dont_shuffle_deck,
            self.starting_lp,
            self.starting_draw_count,
            self.draw_count_per_turn,
            self.time_limit_in_seconds,
            self.duel_flags_high,
            self.handshake,
            self.version.pack(),
            self.t0_count,
            self.t1_count,
            self.best_of,
            self.duel_flags_low,
            self.forb,
            self.extra_rules,
            self.limits.pack(),
        )

    @classmethod
    def unpack(cls, data: bytes) -> HostInfo:
        _check_size("HostInfo", data, cls.SIZE)
        (
            banlist_hash, allowed, mode, duel_rule, dont_check, dont_shuffle,
            starting_lp, starting_draw, draw_per_turn, time_limit,
            flags_high, handshake, version, t0, t1, best_of, flags_low,
            forb, extra_rules, limits,
        ) = cls._STRUCT.unpack(data)
        return cls(
            banlist_hash=banlist_hash,
            allowed=allowed,
            mode=mode,
            duel_rule=duel_rule,
            dont_check_deck_content=dont_check,
            dont_shuffle_deck=dont_shuffle,
            starting_lp=starting_lp,
            starting_draw_count=starting_draw,
            draw_count_per_turn=draw_per_turn,
            time_limit_in_seconds=time_limit,
            duel_flags_high=flags_high,
            handshake=handshake,
            version=ClientVersion.unpack(version),
            t0_count=t0,
            t1_count=t1,
            best_of=best_of,
            duel_flags_low=flags_low,
            forb=forb,
            extra_rules=extra_rules,
            limits=DeckLimits.unpack(limits),
        )


# Version checked against connecting clients and written to replays.
SERVER_VERSION = ClientVersion(41, 0, 11, 0)

# Magic value the client must send when hosting.
SERVER_HANDSHAKE = 4043399681