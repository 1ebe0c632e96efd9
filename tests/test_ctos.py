import struct

import pytest

from multirole.common import ClientVersion, HostInfo
from multirole.ctos import CTOSMsg, CreateGame, CtosType, JoinGame, MSG_MAX_LENGTH


def make(msg_type, body=b""):
    return CTOSMsg(struct.pack("<hB", len(body) + 1, int(msg_type)) + body)


def utf16_field(text, size=40):
    return text.encode("utf-16-le").ljust(size, b"\0")


def test_length_and_type():
    msg = make(CtosType.CHAT, b"hello")
    assert msg.length() == 5
    assert msg.msg_type() is CtosType.CHAT
    assert msg.body() == b"hello"


def test_rps_choice_read():
    msg = make(CtosType.RPS_CHOICE, b"\x02")
    assert msg.rps_choice() == 2
    assert msg.turn_choice() == 2


def test_single_byte_getters_reject_wrong_length():
    msg = make(CtosType.TRY_KICK, b"\x01\x02")
    assert msg.try_kick() is None
    assert msg.rematch() is None


def test_header_valid_for_known_type():
    assert make(CtosType.SURRENDER).is_header_valid() is True


def test_header_invalid_for_unknown_type():
    msg = make(0x99)
    assert msg.is_header_valid() is False
    assert msg.msg_type() == 0x99


def test_header_invalid_when_too_long():
    msg = CTOSMsg(struct.pack("<hB", MSG_MAX_LENGTH + 2, CtosType.CHAT))
    assert msg.length() == MSG_MAX_LENGTH + 1
    assert msg.is_header_valid() is False


def test_zero_length_field_wraps_to_negative():
    msg = CTOSMsg(b"\x00\x00\x01")
    assert msg.length() == -1
    assert msg.body() == b""


def test_read_advances_offset():
    msg = make(CtosType.RESPONSE, struct.pack("<IH", 123456, 77))
    value, offset = msg.read("I", 0)
    assert value == 123456
    second, end = msg.read("<H", offset)
    assert second == 77
    assert end == msg.length()


def test_read_past_body_raises():
    msg = make(CtosType.RESPONSE, b"\x01\x02")
    with pytest.raises(IndexError):
        msg.read("I", 0)


def test_read_negative_offset_raises():
    msg = make(CtosType.RESPONSE, b"\x01\x02\x03\x04")
    with pytest.raises(IndexError):
        msg.read("B", -1)


def test_player_info_decodes_name():
    msg = make(CtosType.PLAYER_INFO, utf16_field("Alice"))
    assert msg.player_info() == "Alice"


def test_player_info_wrong_size_is_none():
    msg = make(CtosType.PLAYER_INFO, b"A\x00")
    assert msg.player_info() is None


def test_create_game_round_trip():
    host = HostInfo(
        banlist_hash=0xDEADBEEF,
        starting_lp=8000,
        starting_draw_count=5,
        draw_count_per_turn=1,
        version=ClientVersion(41, 0, 11, 0),
        t0_count=1,
        t1_count=1,
        best_of=3,
    )
    room_pass = "password"
    body = (
        host.pack()
        + utf16_field("Room")
        + utf16_field(room_pass)
        + b"some notes".ljust(200, b"\0")
    )
    game = make(CtosType.CREATE_GAME, body).create_game()
    assert game == CreateGame(host, "Room", room_pass, "some notes")


def test_create_game_wrong_size_is_none():
    assert make(CtosType.CREATE_GAME, b"\x00" * 10).create_game() is None


def test_join_game_round_trip():
    room_pass = "password"
    version = ClientVersion(41, 0, 11, 0)
    body = struct.pack("<H2xI40s4s", 3, 4242, utf16_field(room_pass), version.pack())
    joined = make(CtosType.JOIN_GAME, body).join_game()
    assert joined == JoinGame(3, 4242, room_pass, version)


def test_too_long_data_rejected():
    with pytest.raises(ValueError):
        CTOSMsg(bytes(3 + MSG_MAX_LENGTH + 1))