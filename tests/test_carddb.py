import sqlite3
from contextlib import closing

import pytest

from multirole.carddb import CardData, CardDatabase, CardExtraData
from multirole.constants import CardType


def _make_source(path, rows):
    CardDatabase(path).close()
    with closing(sqlite3.connect(path)) as conn:
        conn.executemany(
            "INSERT INTO datas VALUES (?,?,?,?,?,?,?,?,?,?,?)", rows
        )
        conn.commit()
    return path


def _row(card_id, ot=1, alias=0, setcode=0, card_type=0x21, atk=1000,
         dfn=800, level=4, race=1, attribute=2, category=0):
    return (card_id, ot, alias, setcode, card_type, atk, dfn, level, race,
            attribute, category)


@pytest.fixture
def db():
    with CardDatabase() as database:
        yield database


def test_merge_and_read_plain_monster(tmp_path, db):
    src = _make_source(tmp_path / "a.cdb", [_row(100, alias=7, atk=1800, dfn=1200, race=1 << 33)])
    assert db.merge(src) is True
    data = db.data_from_code(100)
    assert data.code == 100
    assert data.alias == 7
    assert data.attack == 1800
    assert data.defense == 1200
    assert data.link_marker == 0
    assert data.level == 4
    assert data.race == 1 << 33


def test_link_monster_defense_becomes_link_marker(tmp_path, db):
    link_type = int(CardType.MONSTER | CardType.LINK)
    src = _make_source(tmp_path / "a.cdb", [_row(200, card_type=link_type, dfn=0x28)])
    db.merge(src)
    data = db.data_from_code(200)
    assert data.link_marker == 0x28
    assert data.defense == 0
    assert data.type == link_type


def test_level_field_holds_scales(tmp_path, db):
    packed = (2 << 24) | (9 << 16) | 7
    src = _make_source(tmp_path / "a.cdb", [_row(300, level=packed)])
    db.merge(src)
    data = db.data_from_code(300)
    assert (data.level, data.lscale, data.rscale) == (7, 2, 9)


def test_setcodes_split_into_four_words(tmp_path, db):
    src = _make_source(tmp_path / "a.cdb", [_row(400, setcode=(4 << 48) | (3 << 32) | (2 << 16) | 1)])
    db.merge(src)
    assert db.data_from_code(400).setcodes == (1, 2, 3, 4)


def test_unknown_code_gives_empty_data(db):
    assert db.data_from_code(999) == CardData()
    assert db.extra_from_code(999) == CardExtraData()


def test_lookups_are_cached(tmp_path, db):
    src = _make_source(tmp_path / "a.cdb", [_row(100)])
    db.merge(src)
    first = db.data_from_code(100)
    db.data_usage_done(first)
    assert db.data_from_code(100) is first


def test_extra_data(tmp_path, db):
    src = _make_source(tmp_path / "a.cdb", [_row(500, ot=3, category=5)])
    db.merge(src)
    assert db.extra_from_code(500) == CardExtraData(scope=3, category=5)


def test_later_merge_replaces_same_card(tmp_path, db):
    a = _make_source(tmp_path / "a.cdb", [_row(100, atk=1000), _row(101)])
    b = _make_source(tmp_path / "b.cdb", [_row(100, atk=2000)])
    assert db.merge(a)
    assert db.merge(b)
    assert db.data_from_code(100).attack == 2000
    assert db.data_from_code(101).code == 101


def test_merge_of_unopenable_path_fails(tmp_path, db):
    assert db.merge(tmp_path / "missing" / "x.cdb") is False


def test_reopen_existing_file_keeps_rows(tmp_path):
    src = _make_source(tmp_path / "a.cdb", [_row(100, atk=1500)])
    with CardDatabase(src) as database:
        assert database.data_from_code(100).attack == 1500


def test_closed_database_rejects_queries():
    database = CardDatabase()
    with database:
        pass
    with pytest.raises(sqlite3.ProgrammingError):
        database.data_from_code(1)