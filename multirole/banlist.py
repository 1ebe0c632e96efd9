"""Banlists and the parser for banlist configuration text."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

BANLIST_HASH_MAGIC = 0x7DFCEE6A

_MASK32 = 0xFFFFFFFF
_UINT32_MAX = _MASK32
_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1
_INT_CHARS = "-0123456789"
_LEADING_UINT = re.compile(r"\d+")
_LEADING_INT = re.compile(r"-?\d+")


@dataclass(frozen=True)
class Banlist:
    """A named card restriction list: card code to allowed copies."""

    whitelist: bool
    entries: Mapping[int, int] = field(default_factory=dict)


class BanlistParseError(ValueError):
    """Raised when a banlist line cannot be parsed."""

    def __init__(self, line: int, reason: str) -> None:
        super().__init__(f"line {line}: {reason}")
        self.line = line
        self.reason = reason


def salt(banlist_hash: int, code: int, count: int) -> int:
    """Mix one card entry into a banlist hash (32-bit)."""
    code &= _MASK32
    shift_left = (27 + count) & 31
    shift_right = (5 - count) & 31
    mixed = ((code << 18) | (code >> 14)) ^ ((code << shift_left) | (code >> shift_right))
    return (banlist_hash ^ mixed) & _MASK32


def _parse_entry(line: str, line_no: int) -> tuple[int, int]:
    separator = line.find(" ")
    if separator == -1:
        raise BanlistParseError(line_no, "Card code separator not found")
    code_match = _LEADING_UINT.match(line, 0, separator)
    if code_match is None or int(code_match.group()) > _UINT32_MAX:
        raise BanlistParseError(line_no, "Could not parse code")
    code = int(code_match.group())
    if code == 0:
        raise BanlistParseError(line_no, "Card code cannot be 0")
    begin = next((i for i in range(separator, len(line)) if line[i] in _INT_CHARS), -1)
    if begin == -1:
        raise BanlistParseError(line_no, "Could not find count begin")
    end = next((i for i in range(begin, len(line)) if line[i] not in _INT_CHARS), len(line))
    count_match = _LEADING_INT.match(line, begin, end)
    if count_match is None:
        raise BanlistParseError(line_no, "Could not parse count")
    count = int(count_match.group())
    if not _INT32_MIN <= count <= _INT32_MAX:
        raise BanlistParseError(line_no, "Could not parse count")
    return code, count


def parse_banlists(lines: Iterable[str] | str) -> dict[int, Banlist]:
    """Parse banlist text and return the banlists found, keyed by hash.

    When two banlists hash the same, the first one is kept.
    """
    if isinstance(lines, str):
        lines = lines.split("\n")
    banlists: dict[int, Banlist] = {}
    banlist_hash = BANLIST_HASH_MAGIC
    whitelist = False
    entries: dict[int, int] = {}

    def add_current() -> None:
        if banlist_hash != BANLIST_HASH_MAGIC:
            banlists.setdefault(banlist_hash, Banlist(whitelist, dict(entries)))

    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\n")
        if not line:
            continue
        if "$whitelist" in line:
            whitelist = True
            continue
        first = line[0]
        if first == "!":
            add_current()
            banlist_hash = BANLIST_HASH_MAGIC
            whitelist = False
            entries = {}
        elif first.isdigit() and first.isascii():
            code, count = _parse_entry(line, line_no)
            banlist_hash = salt(banlist_hash, code, count)
            entries[code] = count
    add_current()
    return banlists