"""Inspection, splitting and stripping of core duel messages."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from .constants import Location, MsgType, Position

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_ZERO_CODE = bytes(4)

# Query flag sets the server uses when refreshing whole piles or single cards.
_DECK_FLAGS = 0x1181FFF
_HAND_FLAGS = 0x3781FFF
_MZONE_FLAGS = 0x3881FFF
_SZONE_FLAGS = 0x3E81FFF
_EXTRA_FLAGS = 0x381FFF
_SINGLE_FLAGS = 0x3F81FFF


@dataclass(frozen=True)
class LocInfo:
    """Controller, location, sequence and position of a card."""

    con: int = 0
    loc: int = 0
    seq: int = 0
    pos: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<BBII")
    SIZE: ClassVar[int] = 10

    def pack(self) -> bytes:
        return self._STRUCT.pack(
            self.con & 0xFF, self.loc & 0xFF, self.seq & 0xFFFFFFFF, self.pos & 0xFFFFFFFF
        )

    @classmethod
    def unpack_from(cls, data: bytes, offset: int = 0) -> LocInfo:
        try:
            return cls(*cls._STRUCT.unpack_from(data, offset))
        except struct.error as e:
            raise ValueError(f"location info truncated at offset {offset}") from e


class MsgDistType(Enum):
    """How a message is distributed and whether it is stripped first."""

    SPECIFIC_TEAM_DUELIST_STRIPPED = 0
    SPECIFIC_TEAM_DUELIST = 1
    SPECIFIC_TEAM = 2
    EVERYONE_EXCEPT_TEAM_DUELIST = 3
    EVERYONE_STRIPPED = 4
    EVERYONE = 5


@dataclass(frozen=True)
class MsgStartCreateInfo:
    """Values needed to build the duel start message."""

    lp: int
    t0_deck_size: int
    t0_extra_size: int
    t1_deck_size: int
    t1_extra_size: int


@dataclass(frozen=True)
class QuerySingleRequest:
    """A query for one card at a given place."""

    con: int
    loc: int
    seq: int
    flags: int


@dataclass(frozen=True)
class QueryLocationRequest:
    """A query for every card in one location of one player."""

    con: int
    loc: int
    flags: int


QueryRequest = Union[QuerySingleRequest, QueryLocationRequest]

_ANSWER_REQUIRED = frozenset({
    MsgType.SELECT_CARD,
    MsgType.SELECT_TRIBUTE,
    MsgType.SELECT_UNSELECT_CARD,
    MsgType.SELECT_BATTLECMD,
    MsgType.SELECT_IDLECMD,
    MsgType.SELECT_EFFECTYN,
    MsgType.SELECT_YESNO,
    MsgType.SELECT_OPTION,
    MsgType.SELECT_CHAIN,
    MsgType.SELECT_PLACE,
    MsgType.SELECT_DISFIELD,
    MsgType.SELECT_POSITION,
    MsgType.SORT_CARD,
    MsgType.SORT_CHAIN,
    MsgType.SELECT_COUNTER,
    MsgType.SELECT_SUM,
    MsgType.ROCK_PAPER_SCISSORS,
    MsgType.ANNOUNCE_RACE,
    MsgType.ANNOUNCE_ATTRIB,
    MsgType.ANNOUNCE_CARD,
    MsgType.ANNOUNCE_NUMBER,
    MsgType.ANNOUNCE_CARD_FILTER,
})

_STRIPPED_FOR_DUELIST = frozenset({
    MsgType.SELECT_CARD,
    MsgType.SELECT_TRIBUTE,
    MsgType.SELECT_UNSELECT_CARD,
})

_STRIPPED_FOR_EVERYONE = frozenset({
    MsgType.SHUFFLE_HAND,
    MsgType.SHUFFLE_EXTRA,
    MsgType.SET,
    MsgType.MOVE,
    MsgType.SPSUMMONING,
    MsgType.DRAW,
    MsgType.TAG_SWAP,
})


def _u8(data: bytes, offset: int) -> int:
    try:
        return _U8.unpack_from(data, offset)[0]
    except struct.error as e:
        raise ValueError(f"message truncated at offset {offset}") from e


def _u32(data: bytes, offset: int) -> int:
    try:
        return _U32.unpack_from(data, offset)[0]
    except struct.error as e:
        raise ValueError(f"message truncated at offset {offset}") from e


def _zero_code(buf: bytearray, offset: int) -> None:
    if offset + 4 > len(buf):
        raise ValueError(f"message truncated at offset {offset}")
    buf[offset:offset + 4] = _ZERO_CODE


def split_to_msgs(buffer: bytes) -> list[bytes]:
    """Split a core output buffer into messages, dropping the length prefixes."""
    msgs: list[bytes] = []
    pos = 0
    size = len(buffer)
    while pos != size:
        length = _u32(buffer, pos)
        pos += _U32.size
        if pos + length > size:
            raise ValueError(f"message at offset {pos} overruns the buffer")
        msgs.append(bytes(buffer[pos:pos + length]))
        pos += length
    return msgs


def get_message_type(msg: bytes) -> int:
    """The type of a core message (its first byte)."""
    if not msg:
        raise ValueError("empty message")
    return msg[0]


def does_message_require_answer(msg_type: int) -> bool:
    """Whether a duelist must answer this message before the duel continues."""
    return msg_type in _ANSWER_REQUIRED


def _hint_distribution(hint_type: int) -> MsgDistType:
    if hint_type in (1, 2, 3, 5):
        return MsgDistType.SPECIFIC_TEAM_DUELIST
    if hint_type == 200:
        return MsgDistType.SPECIFIC_TEAM
    if hint_type in (4, 6, 7, 8, 9, 11):
        return MsgDistType.EVERYONE_EXCEPT_TEAM_DUELIST
    return MsgDistType.EVERYONE


def get_message_distribution_type(msg: bytes) -> MsgDistType:
    """How a message should be distributed to clients."""
    msg_type = get_message_type(msg)
    if msg_type in _STRIPPED_FOR_DUELIST:
        return MsgDistType.SPECIFIC_TEAM_DUELIST_STRIPPED
    if msg_type in _ANSWER_REQUIRED or msg_type == MsgType.MISSED_EFFECT:
        return MsgDistType.SPECIFIC_TEAM_DUELIST
    if msg_type == MsgType.HINT:
        return _hint_distribution(_u8(msg, 1))
    if msg_type == MsgType.CONFIRM_CARDS:
        # A non-empty confirmation of deck cards is only for its owner.
        if _u32(msg, 2) != 0 and _u8(msg, 2 + 4 + 4 + 1) == Location.DECK:
            return MsgDistType.SPECIFIC_TEAM_DUELIST
        return MsgDistType.EVERYONE
    if msg_type in _STRIPPED_FOR_EVERYONE:
        return MsgDistType.EVERYONE_STRIPPED
    return MsgDistType.EVERYONE


def get_message_receiving_team(msg: bytes) -> int:
    """The team a team-specific message is meant for."""
    if get_message_type(msg) == MsgType.HINT:
        return _u8(msg, 2)
    return _u8(msg, 1)


def _is_loc_info_public(info: LocInfo) -> bool:
    if info.loc & (Location.GRAVE | Location.OVERLAY) and not info.loc & (
        Location.DECK | Location.HAND
    ):
        return True
    return not info.pos & Position.FACEDOWN


def _clear_position_array(buf: bytearray, count: int, offset: int) -> int:
    for _ in range(count):
        if not _u32(buf, offset + 4) & Position.FACEUP:
            _zero_code(buf, offset)
        offset += 8
    return offset


def _clear_loc_info_array(buf: bytearray, count: int, team: int, offset: int) -> int:
    for _ in range(count):
        info = LocInfo.unpack_from(buf, offset + 4)
        if info.con != team:
            _zero_code(buf, offset)
        offset += 4 + LocInfo.SIZE
    return offset


def strip_message_for_team(team: int, msg: bytes) -> bytes:
    """Return a copy of the message with what `team` must not know hidden."""
    buf = bytearray(msg)
    msg_type = get_message_type(buf)
    ptr = 1
    if msg_type == MsgType.SET:
        _zero_code(buf, ptr)
    elif msg_type in (MsgType.SHUFFLE_HAND, MsgType.SHUFFLE_EXTRA):
        if _u8(buf, ptr) != team:
            count = _u32(buf, ptr + 1)
            ptr += 5
            for _ in range(count):
                _zero_code(buf, ptr)
                ptr += 4
    elif msg_type == MsgType.MOVE:
        current = LocInfo.unpack_from(buf, ptr + 4 + LocInfo.SIZE)
        if current.con != team and not _is_loc_info_public(current):
            _zero_code(buf, ptr)
    elif msg_type == MsgType.SPSUMMONING:
        current = LocInfo.unpack_from(buf, ptr + 4)
        if current.con != team and current.pos & Position.FACEDOWN:
            _zero_code(buf, ptr)
    elif msg_type == MsgType.DRAW:
        if _u8(buf, ptr) != team:
            _clear_position_array(buf, _u32(buf, ptr + 1), ptr + 5)
    elif msg_type == MsgType.TAG_SWAP:
        if _u8(buf, ptr) != team:
            ptr += 1 + 4  # player, main deck count
            count = _u32(buf, ptr)  # extra deck count
            ptr += 4 + 4  # face-up pendulum count
            count += _u32(buf, ptr)  # hand count
            ptr += 4 + 4  # top-deck card code
            _clear_position_array(buf, count, ptr)
    elif msg_type == MsgType.SELECT_CARD:
        ptr += 1 + 1 + 4 + 4
        _clear_loc_info_array(buf, _u32(buf, ptr), team, ptr + 4)
    elif msg_type == MsgType.SELECT_TRIBUTE:
        ptr += 1 + 1 + 4 + 4
        count = _u32(buf, ptr)
        ptr += 4
        for _ in range(count):
            if _u8(buf, ptr + 4) != team:
                _zero_code(buf, ptr)
            ptr += 4 + 1 + 1 + 4 + 1  # code, con, loc, seq, release param
    elif msg_type == MsgType.SELECT_UNSELECT_CARD:
        ptr += 1 + 1 + 1 + 4 + 4
        count1 = _u32(buf, ptr)
        ptr = _clear_loc_info_array(buf, count1, team, ptr + 4)
        count2 = _u32(buf, ptr)
        _clear_loc_info_array(buf, count2, team, ptr + 4)
    return bytes(buf)


def make_start_msg(info: MsgStartCreateInfo) -> bytes:
    """Build the start message that sets up piles and life points."""
    return struct.pack(
        "<BBII4H",
        MsgType.START,
        0,
        info.lp & 0xFFFFFFFF,
        info.lp & 0xFFFFFFFF,
        info.t0_deck_size & 0xFFFF,
        info.t0_extra_size & 0xFFFF,
        info.t1_deck_size & 0xFFFF,
        info.t1_extra_size & 0xFFFF,
    )


def _both(loc: int, flags: int) -> list[QueryRequest]:
    return [QueryLocationRequest(0, loc, flags), QueryLocationRequest(1, loc, flags)]


def _refresh(*piles: str) -> list[QueryRequest]:
    table = {
        "decks": (Location.DECK, _DECK_FLAGS),
        "hands": (Location.HAND, _HAND_FLAGS),
        "mzones": (Location.MZONE, _MZONE_FLAGS),
        "szones": (Location.SZONE, _SZONE_FLAGS),
    }
    requests: list[QueryRequest] = []
    for pile in piles:
        loc, flags = table[pile]
        requests.extend(_both(int(loc), flags))
    return requests


def get_pre_dist_query_requests(msg: bytes) -> list[QueryRequest]:
    """Queries to run before the message is distributed."""
    msg_type = get_message_type(msg)
    if msg_type in (MsgType.SELECT_BATTLECMD, MsgType.SELECT_IDLECMD):
        return _refresh("hands", "mzones", "szones")
    if msg_type in (MsgType.SELECT_CHAIN, MsgType.NEW_TURN):
        return _refresh("mzones", "szones")
    if msg_type == MsgType.FLIPSUMMONING:
        i = LocInfo.unpack_from(msg, 1 + 4)
        return [QuerySingleRequest(i.con, i.loc, i.seq, _SINGLE_FLAGS)]
    return []


def get_post_dist_query_requests(msg: bytes) -> list[QueryRequest]:
    """Queries to run after the message is distributed."""
    msg_type = get_message_type(msg)
    ptr = 1
    if msg_type in (MsgType.SHUFFLE_HAND, MsgType.DRAW):
        return [QueryLocationRequest(_u8(msg, ptr), int(Location.HAND), _HAND_FLAGS)]
    if msg_type == MsgType.SHUFFLE_EXTRA:
        return [QueryLocationRequest(_u8(msg, ptr), int(Location.EXTRA), _EXTRA_FLAGS)]
    if msg_type == MsgType.SWAP_GRAVE_DECK:
        return [QueryLocationRequest(_u8(msg, ptr), int(Location.GRAVE), _EXTRA_FLAGS)]
    if msg_type == MsgType.REVERSE_DECK:
        return _refresh("decks")
    if msg_type == MsgType.SHUFFLE_SET_CARD:
        return _both(_u8(msg, ptr), 0x3181FFF)
    if msg_type in (MsgType.DAMAGE_STEP_START, MsgType.DAMAGE_STEP_END):
        return _refresh("mzones")
    if msg_type in (MsgType.SUMMONED, MsgType.SPSUMMONED, MsgType.FLIPSUMMONED):
        return _refresh("mzones", "szones")
    if msg_type in (MsgType.NEW_PHASE, MsgType.CHAINED):
        return _refresh("mzones", "szones", "hands")
    if msg_type == MsgType.CHAIN_END:
        return _refresh("decks", "mzones", "szones", "hands")
    if msg_type == MsgType.MOVE:
        previous = LocInfo.unpack_from(msg, ptr + 4)
        current = LocInfo.unpack_from(msg, ptr + 4 + LocInfo.SIZE)
        if (
            (previous.con != current.con or previous.loc != current.loc)
            and current.loc != 0
            and not current.loc & Location.OVERLAY
        ):
            return [QuerySingleRequest(current.con, current.loc, current.seq, _SINGLE_FLAGS)]
        return []
    if msg_type == MsgType.POS_CHANGE:
        ptr += 4
        cc, cl, cs, pp, cp = (_u8(msg, ptr + i) for i in range(5))
        if pp & Position.FACEDOWN and cp & Position.FACEUP:
            return [QuerySingleRequest(cc, cl, cs, _SINGLE_FLAGS)]
        return []
    if msg_type == MsgType.SWAP:
        p = LocInfo.unpack_from(msg, ptr + 4)
        c = LocInfo.unpack_from(msg, ptr + 4 + LocInfo.SIZE + 4)
        return [
            QuerySingleRequest(p.con, p.loc, p.seq, _SINGLE_FLAGS),
            QuerySingleRequest(c.con, c.loc, c.seq, _SINGLE_FLAGS),
        ]
    if msg_type == MsgType.TAG_SWAP:
        player = _u8(msg, ptr)
        return [
            QueryLocationRequest(player, int(Location.DECK), _DECK_FLAGS),
            QueryLocationRequest(player, int(Location.EXTRA), _EXTRA_FLAGS),
            QueryLocationRequest(player, int(Location.HAND), _HAND_FLAGS),
            *_both(int(Location.MZONE), 0x3081FFF),
            *_both(int(Location.SZONE), 0x30681FFF),
        ]
    if msg_type == MsgType.RELOAD_FIELD:
        return _both(int(Location.EXTRA), _EXTRA_FLAGS)
    return []


def make_update_card_msg(con: int, loc: int, seq: int, query_buffer: Iterable[int]) -> bytes:
    """Wrap a single card query in an update-card message."""
    header = bytes((MsgType.UPDATE_CARD, con & 0xFF, loc & 0xFF, seq & 0xFF))
    return header + bytes(query_buffer)


def make_update_data_msg(con: int, loc: int, query_buffer: Iterable[int]) -> bytes:
    """Wrap a location query in an update-data message."""
    header = bytes((MsgType.UPDATE_DATA, con & 0xFF, loc & 0xFF))
    return header + bytes(query_buffer)