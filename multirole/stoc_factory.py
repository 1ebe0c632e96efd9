"""Builders for every server-to-client message the room sends."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Optional, Tuple

from .common import ClientVersion
from .stoc import ChatPlayerType, STOCMsg, StocType

# A duelist position is (team, slot within team); None stands for a spectator.
PositionType = Optional[Tuple[int, int]]

_SPECTATOR_CODE = 7  # sum of both teams' maximum players, plus one

_NAME_BYTES = 40
_CHAT_BYTES = 512

_ERROR = struct.Struct("<B3xI")
_DECK_ERROR = struct.Struct("<B3xIIIII")
_VER_ERROR = struct.Struct("<B3x4s")
_RPS_RESULT = struct.Struct("<BB")
_BYTE = struct.Struct("<B")
_TIME_LIMIT = struct.Struct("<BxH")
_PLAYER_ENTER = struct.Struct("<40sBx")
_WATCH_CHANGE = struct.Struct("<H")
_CHAT = struct.Struct("<BB40s512s")

_MASK32 = 0xFFFFFFFF


class JoinError(IntEnum):
    """Reasons a client could not join a room."""

    WRONG_PASS = 0x1
    NOT_FOUND = 0x9


class DeckOrCardError(IntEnum):
    """Reasons a deck was refused."""

    CARD_BANLISTED = 0x1
    CARD_OCG_ONLY = 0x2
    CARD_TCG_ONLY = 0x3
    CARD_UNKNOWN = 0x4
    CARD_MORE_THAN_3 = 0x5
    DECK_BAD_MAIN_COUNT = 0x6
    DECK_BAD_EXTRA_COUNT = 0x7
    DECK_BAD_SIDE_COUNT = 0x8
    CARD_FORBIDDEN_TYPE = 0x9
    CARD_UNOFFICIAL = 0xA
    DECK_INVALID_SIZE = 0xB
    DECK_TOO_MANY_LEGENDS = 0xC
    DECK_TOO_MANY_SKILLS = 0xD


class ChatMsgType(IntEnum):
    """Kinds of system chat messages."""

    INFO = 0
    ERROR = 1
    SHOUT = 2


class PChangeType(IntEnum):
    """Status changes of a player in the room."""

    SPECTATE = 0x8
    READY = 0x9
    NOT_READY = 0xA
    LEAVE = 0xB


def _utf16_field(text: str, size: int) -> bytes:
    return text.encode("utf-16-le")[:size].ljust(size, b"\0")


_SYSTEM_CHAT_TYPES = {
    ChatMsgType.INFO: ChatPlayerType.SYSTEM,
    ChatMsgType.ERROR: ChatPlayerType.SYSTEM_ERROR,
}


class STOCMsgFactory:
    """Builds messages; positions are encoded for a given team size."""

    def __init__(self, t1max: int) -> None:
        self.t1max = t1max

    def encode_position(self, position: PositionType) -> int:
        """The one-byte code the client uses for a duelist position."""
        if position is None:
            raise ValueError("spectators have no duelist position")
        team, slot = position
        return (team * self.t1max + slot) & 0xFF

    def make_type_change(self, position: PositionType, is_host: bool) -> STOCMsg:
        """Tell a client its own position and whether it hosts the room."""
        pos = _SPECTATOR_CODE if position is None else self.encode_position(position)
        value = ((int(bool(is_host)) << 4) | pos) & 0xFF
        return STOCMsg.with_payload(StocType.TYPE_CHANGE, _BYTE.pack(value))

    @staticmethod
    def make_chat(name: str, position: PositionType, is_team: bool, text: str) -> STOCMsg:
        """A chat line sent by a client."""
        ptype = ChatPlayerType.OBS if position is None else ChatPlayerType.DUELIST
        payload = _CHAT.pack(
            ptype,
            int(bool(is_team)),
            _utf16_field(name, _NAME_BYTES),
            _utf16_field(text, _CHAT_BYTES),
        )
        return STOCMsg.with_payload(StocType.CHAT_2, payload)

    @staticmethod
    def make_system_chat(chat_type: ChatMsgType, text: str) -> STOCMsg:
        """A chat line sent by the server itself."""
        ptype = _SYSTEM_CHAT_TYPES.get(chat_type, ChatPlayerType.SYSTEM_SHOUT)
        payload = _CHAT.pack(ptype, 0, bytes(_NAME_BYTES), _utf16_field(text, _CHAT_BYTES))
        return STOCMsg.with_payload(StocType.CHAT_2, payload)

    def make_player_enter(self, name: str, position: PositionType) -> STOCMsg:
        """Announce a player entering the room."""
        payload = _PLAYER_ENTER.pack(
            _utf16_field(name, _NAME_BYTES), self.encode_position(position)
        )
        return STOCMsg.with_payload(StocType.PLAYER_ENTER, payload)

    def make_player_ready(self, position: PositionType, ready: bool) -> STOCMsg:
        """Announce a player's ready status."""
        change = PChangeType.READY if ready else PChangeType.NOT_READY
        return self.make_player_change(position, change)

    def make_player_change(self, position: PositionType, change_type: PChangeType) -> STOCMsg:
        """Announce a status change of a player."""
        status = ((self.encode_position(position) << 4) | int(change_type)) & 0xFF
        return STOCMsg.with_payload(StocType.PLAYER_CHANGE, _BYTE.pack(status))

    def make_player_move(self, old_position: PositionType, new_position: PositionType) -> STOCMsg:
        """Announce a player moving from one position to another."""
        status = (
            (self.encode_position(old_position) << 4) | self.encode_position(new_position)
        ) & 0xFF
        return STOCMsg.with_payload(StocType.PLAYER_CHANGE, _BYTE.pack(status))

    @staticmethod
    def make_watch_change(count: int) -> STOCMsg:
        """Update the spectator count shown to clients."""
        return STOCMsg.with_payload(StocType.WATCH_CHANGE, _WATCH_CHANGE.pack(count & 0xFFFF))

    @staticmethod
    def make_duel_start() -> STOCMsg:
        return STOCMsg.from_type(StocType.DUEL_START)

    @staticmethod
    def make_duel_end() -> STOCMsg:
        return STOCMsg.from_type(StocType.DUEL_END)

    @staticmethod
    def make_ask_rps() -> STOCMsg:
        return STOCMsg.from_type(StocType.CHOOSE_RPS)

    @staticmethod
    def make_ask_if_going_first() -> STOCMsg:
        return STOCMsg.from_type(StocType.CHOOSE_ORDER)

    @staticmethod
    def make_rps_result(t0: int, t1: int) -> STOCMsg:
        """Both teams' rock-paper-scissors choices."""
        return STOCMsg.with_payload(StocType.RPS_RESULT, _RPS_RESULT.pack(t0 & 0xFF, t1 & 0xFF))

    @staticmethod
    def make_game_msg(msg: bytes) -> STOCMsg:
        """Wrap a core message."""
        return STOCMsg.with_payload(StocType.GAME_MSG, msg)

    @staticmethod
    def make_ask_if_rematch() -> STOCMsg:
        return STOCMsg.from_type(StocType.REMATCH)

    @staticmethod
    def make_rematch_wait() -> STOCMsg:
        return STOCMsg.from_type(StocType.REMATCH_WAIT)

    @staticmethod
    def make_ask_sidedeck() -> STOCMsg:
        return STOCMsg.from_type(StocType.CHANGE_SIDE)

    @staticmethod
    def make_sidedeck_wait() -> STOCMsg:
        return STOCMsg.from_type(StocType.WAITING_SIDE)

    @staticmethod
    def make_catch_up(catching_up: bool) -> STOCMsg:
        """Mark the start or end of messages a client is catching up on."""
        return STOCMsg.with_payload(StocType.CATCHUP, _BYTE.pack(int(bool(catching_up))))

    @staticmethod
    def make_time_limit(team: int, time_left: int) -> STOCMsg:
        """How much time a team has left."""
        payload = _TIME_LIMIT.pack(team & 0xFF, time_left & 0xFFFF)
        return STOCMsg.with_payload(StocType.TIME_LIMIT, payload)

    @staticmethod
    def make_send_replay(data: bytes) -> STOCMsg:
        """Wrap a replay file."""
        return STOCMsg.with_payload(StocType.NEW_REPLAY, data)

    @staticmethod
    def make_open_replay_prompt() -> STOCMsg:
        return STOCMsg.from_type(StocType.REPLAY)

    @staticmethod
    def make_join_error(error: JoinError) -> STOCMsg:
        return STOCMsg.with_payload(StocType.ERROR_MSG, _ERROR.pack(1, int(error) & _MASK32))

    @staticmethod
    def make_card_error(error: DeckOrCardError, code: int) -> STOCMsg:
        """A deck error about one particular card."""
        payload = _DECK_ERROR.pack(2, int(error) & _MASK32, 0, 0, 0, code & _MASK32)
        return STOCMsg.with_payload(StocType.ERROR_MSG, payload)

    @staticmethod
    def make_deck_count_error(
        error: DeckOrCardError, got: int, minimum: int, maximum: int
    ) -> STOCMsg:
        """A deck error about the number of cards in a section."""
        payload = _DECK_ERROR.pack(
            2,
            int(error) & _MASK32,
            got & _MASK32,
            minimum & _MASK32,
            maximum & _MASK32,
            0,
        )
        return STOCMsg.with_payload(StocType.ERROR_MSG, payload)

    @staticmethod
    def make_version_error(version: ClientVersion) -> STOCMsg:
        """Tell a client which version the server expects."""
        return STOCMsg.with_payload(StocType.ERROR_MSG, _VER_ERROR.pack(5, version.pack()))

    @staticmethod
    def make_side_error() -> STOCMsg:
        return STOCMsg.with_payload(StocType.ERROR_MSG, _ERROR.pack(3, 0))