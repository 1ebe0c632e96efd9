import io

import pytest

from multirole.banlist import (
    BANLIST_HASH_MAGIC,
    Banlist,
    BanlistParseError,
    parse_banlists,
    salt,
)


def test_salt_single_entry():
    assert salt(0, 1, 0) == 0x08040000


@pytest.mark.parametrize("count", [-1, 0, 1, 2, 3, 40])
def test_salt_stays_32_bit(count):
    value = salt(BANLIST_HASH_MAGIC, 0xFFFFFFFF, count)
    assert 0 <= value <= 0xFFFFFFFF


def test_parse_single_banlist():
    text = "!2024.01 TCG\n#forbidden\n12345 0 --Some card\n67890 2\n"
    result = parse_banlists(text)
    expected_hash = salt(salt(BANLIST_HASH_MAGIC, 12345, 0), 67890, 2)
    assert list(result) == [expected_hash]
    assert result[expected_hash] == Banlist(False, {12345: 0, 67890: 2})


def test_parse_whitelist_flag():
    result = parse_banlists(["!Custom", "$whitelist", "111 3"])
    (banlist,) = result.values()
    assert banlist.whitelist is True
    assert banlist.entries == {111: 3}


def test_parse_from_file_like():
    stream = io.StringIO("!A\n100 1\n!B\n200 2\n")
    result = parse_banlists(stream)
    assert sorted(b.entries[next(iter(b.entries))] for b in result.values()) == [1, 2]
    assert len(result) == 2


def test_empty_banlist_is_skipped():
    assert parse_banlists("!Empty\n!AlsoEmpty\n") == {}


def test_first_banlist_wins_on_equal_hash():
    text = "!First\n$whitelist\n500 1\n!Second\n500 1\n"
    result = parse_banlists(text)
    assert len(result) == 1
    (banlist,) = result.values()
    assert banlist.whitelist is True


def test_entries_before_header_are_collected():
    result = parse_banlists("42 1\n")
    assert result == {salt(BANLIST_HASH_MAGIC, 42, 1): Banlist(False, {42: 1})}


@pytest.mark.parametrize(
    ("text", "reason"),
    [
        ("12345", "Card code separator not found"),
        ("0 3", "Card code cannot be 0"),
        ("12345 abc", "Could not find count begin"),
        ("99999999999 1", "Could not parse code"),
        ("12345 --", "Could not parse count"),
    ],
)
def test_parse_errors(text, reason):
    with pytest.raises(BanlistParseError) as info:
        parse_banlists(text)
    assert info.value.reason == reason
    assert info.value.line == 1


def test_parse_error_reports_line_number():
    with pytest.raises(BanlistParseError) as info:
        parse_banlists("!List\n100 1\n200\n")
    assert info.value.line == 3
    assert str(info.value).startswith("line 3: ")