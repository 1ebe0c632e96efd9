import struct

import pytest

from multirole.stoc import MAX_PAYLOAD_SIZE, STOCMsg, StocType


def test_type_only_message_wire_bytes():
    msg = STOCMsg.from_type(StocType.DUEL_START)
    assert bytes(msg) == b"\x01\x00\x15"


def test_length_prefix_counts_type_and_payload():
    payload = b"abcdef"
    msg = STOCMsg.with_payload(StocType.GAME_MSG, payload)
    raw = bytes(msg)
    assert struct.unpack_from("<H", raw)[0] == len(payload) + 1
    assert len(msg) == len(payload) + 3
    assert len(raw) == len(msg)


def test_payload_and_type_round_trip():
    payload = bytes(range(40))
    msg = STOCMsg.with_payload(StocType.NEW_REPLAY, payload)
    assert msg.payload == payload
    assert msg.msg_type is StocType.NEW_REPLAY


def test_type_only_message_has_empty_payload():
    msg = STOCMsg.from_type(StocType.REMATCH)
    assert msg.payload == b""
    assert msg.msg_type == StocType.REMATCH


def test_maximum_payload_accepted():
    msg = STOCMsg.with_payload(StocType.GAME_MSG, bytes(MAX_PAYLOAD_SIZE))
    assert len(msg) == MAX_PAYLOAD_SIZE + 3


def test_oversized_payload_rejected():
    with pytest.raises(ValueError):
        STOCMsg.with_payload(StocType.GAME_MSG, bytes(MAX_PAYLOAD_SIZE + 1))


def test_type_must_fit_in_a_byte():
    with pytest.raises(ValueError):
        STOCMsg.from_type(0x100)


def test_unknown_type_is_returned_as_int():
    msg = STOCMsg.from_type(0x99)
    assert msg.msg_type == 0x99
    assert not isinstance(msg.msg_type, StocType)


def test_equality_follows_content():
    a = STOCMsg.with_payload(StocType.CHAT_2, b"xy")
    b = STOCMsg.with_payload(StocType.CHAT_2, b"xy")
    c = STOCMsg.with_payload(StocType.CHAT_2, b"xz")
    assert a == b
    assert hash(a) == hash(b)
    assert (a == c) is False