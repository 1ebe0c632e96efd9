"""Card query records and their wire encoding."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from .constants import Position, QueryFlag
from .messages import LocInfo

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_HEADER = struct.Struct("<HI")


@dataclass
class Query:
    """The fields of one card query; `flags` tells which ones are present."""

    flags: int = 0
    code: int = 0
    pos: int = 0
    alias: int = 0
    type: int = 0
    level: int = 0
    rank: int = 0
    link: int = 0
    attribute: int = 0
    race: int = 0
    attack: int = 0
    defense: int = 0
    base_attack: int = 0
    base_defense: int = 0
    reason: int = 0
    owner: int = 0
    status: int = 0
    is_public: int = 0
    lscale: int = 0
    rscale: int = 0
    link_marker: int = 0
    reason_card: LocInfo = field(default_factory=LocInfo)
    equip_card: LocInfo = field(default_factory=LocInfo)
    is_hidden: int = 0
    cover: int = 0
    targets: list[LocInfo] = field(default_factory=list)
    overlays: list[int] = field(default_factory=list)
    counters: list[int] = field(default_factory=list)


_SCALARS: dict[int, tuple[str, struct.Struct]] = {
    int(QueryFlag.CODE): ("code", _U32),
    int(QueryFlag.POSITION): ("pos", _U32),
    int(QueryFlag.ALIAS): ("alias", _U32),
    int(QueryFlag.TYPE): ("type", _U32),
    int(QueryFlag.LEVEL): ("level", _U32),
    int(QueryFlag.RANK): ("rank", _U32),
    int(QueryFlag.ATTRIBUTE): ("attribute", _U32),
    int(QueryFlag.RACE): ("race", _U64),
    int(QueryFlag.ATTACK): ("attack", _I32),
    int(QueryFlag.DEFENSE): ("defense", _I32),
    int(QueryFlag.BASE_ATTACK): ("base_attack", _I32),
    int(QueryFlag.BASE_DEFENSE): ("base_defense", _I32),
    int(QueryFlag.REASON): ("reason", _U32),
    int(QueryFlag.OWNER): ("owner", _U8),
    int(QueryFlag.STATUS): ("status", _U32),
    int(QueryFlag.IS_PUBLIC): ("is_public", _U8),
    int(QueryFlag.LSCALE): ("lscale", _U32),
    int(QueryFlag.RSCALE): ("rscale", _U32),
    int(QueryFlag.IS_HIDDEN): ("is_hidden", _U8),
    int(QueryFlag.COVER): ("cover", _U32),
}

_LOC_FIELDS = {
    int(QueryFlag.REASON_CARD): "reason_card",
    int(QueryFlag.EQUIP_CARD): "equip_card",
}

_U32_LISTS = {
    int(QueryFlag.OVERLAY_CARD): "overlays",
    int(QueryFlag.COUNTERS): "counters",
}

# Fields hidden from whoever may not see the card's face.
_PRIVATE_FLAGS = frozenset(int(f) for f in (
    QueryFlag.CODE,
    QueryFlag.ALIAS,
    QueryFlag.TYPE,
    QueryFlag.LEVEL,
    QueryFlag.RANK,
    QueryFlag.ATTRIBUTE,
    QueryFlag.RACE,
    QueryFlag.ATTACK,
    QueryFlag.DEFENSE,
    QueryFlag.BASE_ATTACK,
    QueryFlag.BASE_DEFENSE,
    QueryFlag.STATUS,
    QueryFlag.LSCALE,
    QueryFlag.RSCALE,
    QueryFlag.LINK,
))


def _read(st: struct.Struct, data: bytes, offset: int) -> int:
    try:
        return st.unpack_from(data, offset)[0]
    except struct.error as e:
        raise ValueError(f"query buffer truncated at offset {offset}") from e


def _read_loc(data: bytes, offset: int) -> LocInfo:
    return LocInfo.unpack_from(data, offset)


def _pack(st: struct.Struct, value: int) -> bytes:
    bits = st.size * 8
    value &= (1 << bits) - 1
    if st.format.endswith("i") and value >= 1 << (bits - 1):
        value -= 1 << bits
    return st.pack(value)


def _deserialize_one(data: bytes, offset: int) -> tuple[Optional[Query], int]:
    if _read(_U16, data, offset) == 0:
        return None, offset + _U16.size
    q = Query()
    while True:
        size = _read(_U16, data, offset)
        flag = _read(_U32, data, offset + _U16.size)
        offset += _HEADER.size
        q.flags |= flag
        if flag in _SCALARS:
            attr, st = _SCALARS[flag]
            setattr(q, attr, _read(st, data, offset))
            offset += st.size
        elif flag in _LOC_FIELDS:
            setattr(q, _LOC_FIELDS[flag], _read_loc(data, offset))
            offset += LocInfo.SIZE
        elif flag == QueryFlag.TARGET_CARD:
            count = _read(_U32, data, offset)
            offset += _U32.size
            for _ in range(count):
                q.targets.append(_read_loc(data, offset))
                offset += LocInfo.SIZE
        elif flag in _U32_LISTS:
            values = getattr(q, _U32_LISTS[flag])
            count = _read(_U32, data, offset)
            offset += _U32.size
            for _ in range(count):
                values.append(_read(_U32, data, offset))
                offset += _U32.size
        elif flag == QueryFlag.LINK:
            q.link = _read(_U32, data, offset)
            q.link_marker = _read(_U32, data, offset + _U32.size)
            offset += 2 * _U32.size
        elif flag == QueryFlag.END:
            return q, offset
        else:
            if size < _U32.size:
                raise ValueError(f"invalid query field size {size} at offset {offset}")
            offset += size - _U32.size


def deserialize_single_query_buffer(buffer: bytes) -> Optional[Query]:
    """Decode one card query; None when the buffer holds no card."""
    query, _ = _deserialize_one(bytes(buffer), 0)
    return query


def deserialize_location_query_buffer(buffer: bytes) -> list[Optional[Query]]:
    """Decode every card query of a location query buffer."""
    data = bytes(buffer)
    end = _U32.size + _read(_U32, data, 0)
    offset = _U32.size
    queries: list[Optional[Query]] = []
    while offset < end:
        query, offset = _deserialize_one(data, offset)
        queries.append(query)
    return queries


def _is_flag_public(q: Query, flag: int) -> bool:
    if q.flags & QueryFlag.IS_PUBLIC and q.is_public:
        return True
    if q.flags & QueryFlag.POSITION and q.pos & Position.FACEUP:
        return True
    return flag not in _PRIVATE_FLAGS


def _is_included(q: Query, flag: int, is_public: bool) -> bool:
    if q.flags & flag != flag:
        return False
    if flag == QueryFlag.REASON_CARD and q.reason_card.loc == 0:
        return False
    if flag == QueryFlag.EQUIP_CARD and q.equip_card.loc == 0:
        return False
    public = _is_flag_public(q, flag)
    if q.flags & QueryFlag.IS_HIDDEN and q.is_hidden and not public:
        return False
    return not (is_public and not public)


def _encode_field(q: Query, flag: int) -> bytes:
    if flag in _SCALARS:
        attr, st = _SCALARS[flag]
        return _pack(st, getattr(q, attr))
    if flag in _LOC_FIELDS:
        return getattr(q, _LOC_FIELDS[flag]).pack()
    if flag == QueryFlag.TARGET_CARD:
        return _pack(_U32, len(q.targets)) + b"".join(t.pack() for t in q.targets)
    if flag in _U32_LISTS:
        values = getattr(q, _U32_LISTS[flag])
        return _pack(_U32, len(values)) + b"".join(_pack(_U32, v) for v in values)
    if flag == QueryFlag.LINK:
        return _pack(_U32, q.link) + _pack(_U32, q.link_marker)
    return b""


def serialize_single_query(query: Optional[Query], is_public: bool) -> bytes:
    """Encode one card query, leaving out what the viewer may not see.

    Hidden fields are dropped when the card is flagged hidden, and also
    whenever `is_public` asks for the public view.
    """
    if query is None:
        return bytes(_U16.size)
    parts: list[bytes] = []
    for bit in range(32):
        flag = 1 << bit
        if not _is_included(query, flag, is_public):
            continue
        payload = _encode_field(query, flag)
        parts.append(_HEADER.pack((len(payload) + _U32.size) & 0xFFFF, flag))
        parts.append(payload)
    return b"".join(parts)


def serialize_location_query(queries: Iterable[Optional[Query]], is_public: bool) -> bytes:
    """Encode several card queries behind their total byte length."""
    body = b"".join(serialize_single_query(q, is_public) for q in queries)
    return _pack(_U32, len(body)) + body