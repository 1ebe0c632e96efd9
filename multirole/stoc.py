"""Server-to-client messages: a length prefix, a type byte and a payload."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Union

_HEADER = struct.Struct("<HB")

HEADER_LENGTH = _HEADER.size

# The length prefix counts the type byte and the payload and is 16 bits wide.
MAX_PAYLOAD_SIZE = 0xFFFF - HEADER_LENGTH


class StocType(IntEnum):
    """Types of messages sent from the server to a client."""

    GAME_MSG = 0x1
    ERROR_MSG = 0x2
    CHOOSE_RPS = 0x3
    CHOOSE_ORDER = 0x4
    RPS_RESULT = 0x5
    ORDER_RESULT = 0x6
    CHANGE_SIDE = 0x7
    WAITING_SIDE = 0x8
    CREATE_GAME = 0x11
    JOIN_GAME = 0x12
    TYPE_CHANGE = 0x13
    LEAVE_GAME = 0x14
    DUEL_START = 0x15
    DUEL_END = 0x16
    REPLAY = 0x17
    TIME_LIMIT = 0x18
    PLAYER_ENTER = 0x20
    PLAYER_CHANGE = 0x21
    WATCH_CHANGE = 0x22
    NEW_REPLAY = 0x30
    CATCHUP = 0xF0
    REMATCH = 0xF1
    REMATCH_WAIT = 0xF2
    CHAT_2 = 0xF3


class ChatPlayerType(IntEnum):
    """Who a chat message is shown as coming from."""

    DUELIST = 0
    OBS = 1
    SYSTEM = 2
    SYSTEM_ERROR = 3
    SYSTEM_SHOUT = 4


class STOCMsg:
    """An immutable, fully encoded server-to-client message."""

    __slots__ = ("_data",)

    def __init__(self, msg_type: int, payload: bytes = b"") -> None:
        payload = bytes(payload)
        if len(payload) > MAX_PAYLOAD_SIZE:
            raise ValueError(
                f"payload of {len(payload)} bytes exceeds {MAX_PAYLOAD_SIZE}"
            )
        type_byte = int(msg_type)
        if not 0 <= type_byte <= 0xFF:
            raise ValueError(f"message type {type_byte} does not fit in a byte")
        self._data = _HEADER.pack(1 + len(payload), type_byte) + payload

    @classmethod
    def from_type(cls, msg_type: int) -> STOCMsg:
        """A message that carries only its type."""
        return cls(msg_type)

    @classmethod
    def with_payload(cls, msg_type: int, payload: bytes) -> STOCMsg:
        """A message carrying the given raw payload."""
        return cls(msg_type, payload)

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    @property
    def msg_type(self) -> Union[StocType, int]:
        """The message type, as a StocType when it is a known one."""
        value = self._data[LENGTH_OFFSET_TYPE]
        try:
            return StocType(value)
        except ValueError:
            return value

    @property
    def payload(self) -> bytes:
        """The bytes following the type byte."""
        return self._data[HEADER_LENGTH:]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, STOCMsg):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"STOCMsg({self.msg_type!r}, {self.payload!r})"


LENGTH_OFFSET_TYPE = 2