import pytest

from multirole.common import (
    SERVER_HANDSHAKE,
    SERVER_VERSION,
    Boundary,
    ClientVersion,
    DeckLimits,
    ExtraRule,
    HostInfo,
    or_duel_flags,
)


def _sample_host_info():
    return HostInfo(
        banlist_hash=0x01020304,
        allowed=2,
        mode=1,
        duel_rule=5,
        dont_check_deck_content=1,
        dont_shuffle_deck=0,
        starting_lp=8000,
        starting_draw_count=5,
        draw_count_per_turn=1,
        time_limit_in_seconds=180,
        duel_flags_high=0x12,
        handshake=SERVER_HANDSHAKE,
        version=SERVER_VERSION,
        t0_count=1,
        t1_count=1,
        best_of=3,
        duel_flags_low=0x34,
        forb=-1,
        extra_rules=int(ExtraRule.SEALED_DUEL | ExtraRule.DECK_MASTER),
        limits=DeckLimits(Boundary(40, 60), Boundary(0, 15), Boundary(0, 15)),
    )


def test_server_version_wire_bytes():
    assert SERVER_VERSION.pack() == bytes([41, 0, 11, 0])


def test_client_version_round_trip():
    version = ClientVersion(1, 2, 3, 4)
    assert ClientVersion.unpack(version.pack()) == version


def test_client_version_wrong_size():
    with pytest.raises(ValueError):
        ClientVersion.unpack(b"\x01\x02\x03")


def test_deck_limits_round_trip():
    limits = DeckLimits(Boundary(40, 60), Boundary(0, 15), Boundary(0, 15))
    packed = limits.pack()
    assert len(packed) == DeckLimits.SIZE
    assert DeckLimits.unpack(packed) == limits


def test_deck_limits_wrong_size():
    with pytest.raises(ValueError):
        DeckLimits.unpack(bytes(5))


def test_host_info_round_trip():
    info = _sample_host_info()
    packed = info.pack()
    assert len(packed) == HostInfo.SIZE
    assert HostInfo.unpack(packed) == info


def test_host_info_wire_size():
    assert len(HostInfo.unpack(bytes(68)).pack()) == 68


def test_host_info_begins_with_banlist_hash():
    packed = _sample_host_info().pack()
    assert packed[:4] == (0x01020304).to_bytes(4, "little")


def test_host_info_wrong_size():
    with pytest.raises(ValueError):
        HostInfo.unpack(bytes(HostInfo.SIZE - 1))


def test_or_duel_flags_places_high_half():
    assert or_duel_flags(1, 0) == 0x100000000
    assert or_duel_flags(0, 7) == 7


def test_host_info_duel_flags_combines_halves():
    info = _sample_host_info()
    assert info.duel_flags() == or_duel_flags(info.duel_flags_high, info.duel_flags_low)
    assert info.duel_flags() >> 32 == info.duel_flags_high
    assert info.duel_flags() & 0xFFFFFFFF == info.duel_flags_low