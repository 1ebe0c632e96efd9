"""Card database backed by SQLite, merged from several card files."""

from __future__ import annotations

import os
import sqlite3
import threading
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, Union

from .constants import CardType

_MASK32 = 0xFFFFFFFF
_MASK64 = (1 << 64) - 1
_SETCODES = 4

_SCHEMA = """
CREATE TABLE "datas" (
	"id"        INTEGER,
	"ot"        INTEGER,
	"alias"     INTEGER,
	"setcode"   INTEGER,
	"type"      INTEGER,
	"atk"       INTEGER,
	"def"       INTEGER,
	"level"     INTEGER,
	"race"      INTEGER,
	"attribute" INTEGER,
	"category"  INTEGER,
	PRIMARY KEY("id")
);
CREATE TABLE "texts" (
	"id"    INTEGER,
	"name"  TEXT,
	"desc"  TEXT,
	"str1"  TEXT,
	"str2"  TEXT,
	"str3"  TEXT,
	"str4"  TEXT,
	"str5"  TEXT,
	"str6"  TEXT,
	"str7"  TEXT,
	"str8"  TEXT,
	"str9"  TEXT,
	"str10" TEXT,
	"str11" TEXT,
	"str12" TEXT,
	"str13" TEXT,
	"str14" TEXT,
	"str15" TEXT,
	"str16" TEXT,
	PRIMARY KEY("id")
);
"""

_ATTACH = "ATTACH ? AS toMerge"
_MERGE_STATEMENTS = (
    "INSERT OR REPLACE INTO datas SELECT * FROM toMerge.datas",
    "INSERT OR REPLACE INTO texts SELECT * FROM toMerge.texts",
    "DETACH toMerge",
)
_SEARCH = (
    "SELECT id,alias,setcode,type,atk,def,level,race,attribute "
    "FROM datas WHERE datas.id = ?"
)
_SEARCH_EXTRA = "SELECT ot,category FROM datas WHERE datas.id = ?"


@dataclass(frozen=True)
class CardData:
    """Card properties handed to the duel core."""

    code: int = 0
    alias: int = 0
    setcodes: tuple[int, ...] = ()
    type: int = 0
    level: int = 0
    attribute: int = 0
    race: int = 0
    attack: int = 0
    defense: int = 0
    lscale: int = 0
    rscale: int = 0
    link_marker: int = 0


@dataclass(frozen=True)
class CardExtraData:
    """Card properties only the server needs: scope and category."""

    scope: int = 0
    category: int = 0


def _int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _u32(value: Any) -> int:
    return _int(value) & _MASK32


def _i32(value: Any) -> int:
    v = _u32(value)
    return v - (1 << 32) if v & 0x80000000 else v


def _split_setcodes(value: Any) -> tuple[int, ...]:
    v = _int(value) & _MASK64
    return tuple((v >> (i * 16)) & 0xFFFF for i in range(_SETCODES))


class CardDatabase:
    """Card data amalgamated from any number of card database files.

    Lookups are cached; a code not found is cached as empty data.
    """

    def __init__(self, path: Union[str, os.PathLike] = ":memory:") -> None:
        self._conn = sqlite3.connect(
            os.fspath(path), isolation_level=None, check_same_thread=False
        )
        try:
            with suppress(sqlite3.OperationalError):  # tables already present
                self._conn.executescript(_SCHEMA)
            self._conn.execute(_SEARCH.replace("= ?", "= 0") + " LIMIT 0").fetchall()
            self._conn.execute(_SEARCH_EXTRA.replace("= ?", "= 0") + " LIMIT 0").fetchall()
        except sqlite3.Error:
            self._conn.close()
            raise
        self._db_lock = threading.Lock()
        self._data_lock = threading.Lock()
        self._extra_lock = threading.Lock()
        self._data_cache: dict[int, CardData] = {}
        self._extra_cache: dict[int, CardExtraData] = {}

    def merge(self, path: Union[str, os.PathLike]) -> bool:
        """Copy the cards of another database file in; False if it cannot be attached."""
        with self._db_lock:
            try:
                self._conn.execute(_ATTACH, (os.fspath(path),))
            except sqlite3.Error:
                return False
            for statement in _MERGE_STATEMENTS:
                with suppress(sqlite3.Error):
                    self._conn.execute(statement)
        return True

    def data_from_code(self, code: int) -> CardData:
        """Card data for `code`, empty data when the card is unknown."""
        with self._data_lock:
            cached = self._data_cache.get(code)
            if cached is not None:
                return cached
            with self._db_lock:
                row = self._conn.execute(_SEARCH, (_i32(code),)).fetchone()
            data = CardData() if row is None else self._card_data_from_row(row)
            self._data_cache[code] = data
            return data

    @staticmethod
    def _card_data_from_row(row: tuple) -> CardData:
        card_id, alias, setcode, card_type, atk, dfn, db_level, race, attribute = row
        card_type = _u32(card_type)
        defense = _i32(dfn)
        is_link = bool(card_type & CardType.LINK)
        level = _i32(db_level)
        return CardData(
            code=_u32(card_id),
            alias=_u32(alias),
            setcodes=_split_setcodes(setcode),
            type=card_type,
            level=level & 0x800000FF,
            attribute=_u32(attribute),
            race=_int(race) & _MASK64,
            attack=_i32(atk),
            defense=0 if is_link else defense,
            lscale=(level >> 24) & 0xFF,
            rscale=(level >> 16) & 0xFF,
            link_marker=defense & _MASK32 if is_link else 0,
        )

    def data_usage_done(self, data: CardData) -> None:
        """Called when the core is done with card data; entries stay cached."""

    def extra_from_code(self, code: int) -> CardExtraData:
        """Scope and category for `code`, zeros when the card is unknown."""
        with self._extra_lock:
            cached = self._extra_cache.get(code)
            if cached is not None:
                return cached
            with self._db_lock:
                row = self._conn.execute(_SEARCH_EXTRA, (_i32(code),)).fetchone()
            extra = CardExtraData() if row is None else CardExtraData(_u32(row[0]), _u32(row[1]))
            self._extra_cache[code] = extra
            return extra

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    def __enter__(self) -> CardDatabase:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()