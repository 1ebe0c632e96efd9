"""Client-to-server messages and decoding of their bodies."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Optional, Union

from .common import ClientVersion, HostInfo

HEADER_LENGTH = 3
MSG_MAX_LENGTH = 1021

_LENGTH = struct.Struct("<h")
_NAME_BYTES = 40
_NOTES_BYTES = 200
_JOIN = struct.Struct("<H2xI40s4s")


class CtosType(IntEnum):
    """Types of messages sent from a client to the server."""

    RESPONSE = 0x01
    UPDATE_DECK = 0x02
    RPS_CHOICE = 0x03
    TURN_CHOICE = 0x04
    PLAYER_INFO = 0x10
    CREATE_GAME = 0x11
    JOIN_GAME = 0x12
    LEAVE_GAME = 0x13
    SURRENDER = 0x14
    TIME_CONFIRM = 0x15
    CHAT = 0x16
    TO_DUELIST = 0x20
    TO_OBSERVER = 0x21
    READY = 0x22
    NOT_READY = 0x23
    TRY_KICK = 0x24
    TRY_START = 0x25
    REMATCH = 0xF0


_KNOWN_TYPES = frozenset(int(t) for t in CtosType)


def _decode_utf16(raw: bytes) -> str:
    raw = raw[: len(raw) & ~1]
    for i in range(0, len(raw), 2):
        if raw[i] == 0 and raw[i + 1] == 0:
            raw = raw[:i]
            break
    return raw.decode("utf-16-le", errors="replace")


def _decode_c_string(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class CreateGame:
    """A request to host a new room."""

    host_info: HostInfo
    name: str
    password: str
    notes: str

    SIZE: ClassVar[int] = HostInfo.SIZE + _NAME_BYTES * 2 + _NOTES_BYTES


@dataclass(frozen=True)
class JoinGame:
    """A request to join an existing room."""

    version2: int
    room_id: int
    password: str
    version: ClientVersion

    SIZE: ClassVar[int] = _JOIN.size


class CTOSMsg:
    """A received client-to-server message: 16-bit length, type byte, body."""

    def __init__(self, data: bytes) -> None:
        data = bytes(data)
        if len(data) > HEADER_LENGTH + MSG_MAX_LENGTH:
            raise ValueError(
                f"message of {len(data)} bytes exceeds {HEADER_LENGTH + MSG_MAX_LENGTH}"
            )
        self._data = data.ljust(HEADER_LENGTH, b"\0")

    def length(self) -> int:
        """Body length declared by the header (the type byte not counted)."""
        value = _LENGTH.unpack_from(self._data, 0)[0]
        return ((value - 1 + 0x8000) & 0xFFFF) - 0x8000

    def msg_type(self) -> Union[CtosType, int]:
        """The message type, as a CtosType when it is a known one."""
        value = self._data[2]
        try:
            return CtosType(value)
        except ValueError:
            return value

    def is_header_valid(self) -> bool:
        """Whether the declared length fits and the type is known."""
        if self.length() > MSG_MAX_LENGTH:
            return False
        return self._data[2] in _KNOWN_TYPES

    def body(self) -> bytes:
        """The body bytes, as many as the header declares."""
        size = min(max(self.length(), 0), MSG_MAX_LENGTH)
        return self._data[HEADER_LENGTH:HEADER_LENGTH + size].ljust(size, b"\0")

    def read(self, fmt: str, offset: int) -> tuple[Any, int]:
        """Read a struct-formatted value from the body at `offset`.

        Returns the value (a tuple when the format has several fields) and
        the offset just past it. Raises IndexError when it would read past
        the declared body.
        """
        if fmt[:1] not in ("<", ">", "!", "=", "@"):
            fmt = "<" + fmt
        st = struct.Struct(fmt)
        end = offset + st.size
        if offset < 0 or end > self.length():
            raise IndexError("buffer too small")
        raw = self._data[HEADER_LENGTH:].ljust(end, b"\0")
        values = st.unpack_from(raw, offset)
        return (values[0] if len(values) == 1 else values), end

    def _fixed_body(self, size: int) -> Optional[bytes]:
        if self.length() != size:
            return None
        return self.body()

    def _single_byte(self) -> Optional[int]:
        raw = self._fixed_body(1)
        return None if raw is None else raw[0]

    def rps_choice(self) -> Optional[int]:
        """The rock-paper-scissors choice, or None if the body has the wrong size."""
        return self._single_byte()

    def turn_choice(self) -> Optional[int]:
        """Whether the player goes first, or None if the body has the wrong size."""
        return self._single_byte()

    def player_info(self) -> Optional[str]:
        """The player name, or None if the body has the wrong size."""
        raw = self._fixed_body(_NAME_BYTES)
        return None if raw is None else _decode_utf16(raw)

    def create_game(self) -> Optional[CreateGame]:
        """The room hosting request, or None if the body has the wrong size."""
        raw = self._fixed_body(CreateGame.SIZE)
        if raw is None:
            return None
        pos = HostInfo.SIZE
        host_info = HostInfo.unpack(raw[:pos])
        name = _decode_utf16(raw[pos:pos + _NAME_BYTES])
        pos += _NAME_BYTES
        room_pass = _decode_utf16(raw[pos:pos + _NAME_BYTES])
        pos += _NAME_BYTES
        notes = _decode_c_string(raw[pos:pos + _NOTES_BYTES])
        return CreateGame(host_info, name, room_pass, notes)

    def join_game(self) -> Optional[JoinGame]:
        """The room joining request, or None if the body has the wrong size."""
        raw = self._fixed_body(JoinGame.SIZE)
        if raw is None:
            return None
        version2, room_id, room_pass, version = _JOIN.unpack(raw)
        return JoinGame(version2, room_id, _decode_utf16(room_pass), ClientVersion.unpack(version))

    def try_kick(self) -> Optional[int]:
        """The position to kick, or None if the body has the wrong size."""
        return self._single_byte()

    def rematch(self) -> Optional[int]:
        """The rematch answer, or None if the body has the wrong size."""
        return self._single_byte()