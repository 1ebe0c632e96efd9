import sqlite3

import pytest

from multirole.carddb import CardData, CardDatabase
from multirole.data_provider import DataProvider
from multirole.loghandler import EC_SINK_KEYS, SERVICE_SINK_KEYS, LogHandler
from multirole.observer import GitDiff

PATTERN = r".*\.cdb"


def make_handler(tmp_path, log_file):
    sink = {"type": "file", "properties": {"path": str(log_file)}}
    return LogHandler({
        "roomLogging": {"enabled": False, "path": str(tmp_path / "rooms")},
        "serviceSinks": {k: sink for k in SERVICE_SINK_KEYS.values()},
        "ecSinks": {k: sink for k in EC_SINK_KEYS.values()},
    })


def make_db(path, card_id, atk, ot):
    with CardDatabase(path):
        pass
    conn = sqlite3.connect(path)
    conn.execute(
        "INSERT INTO datas VALUES (?,?,?,?,?,?,?,?,?,?,?)",
        (card_id, ot, 0, 0, 0x21, atk, 2000, 7, 1, 16, 0),
    )
    conn.commit()
    conn.close()


@pytest.fixture
def setup(tmp_path):
    log_file = tmp_path / "log.txt"
    handler = make_handler(tmp_path, log_file)
    repo = tmp_path / "repo"
    repo.mkdir()
    yield DataProvider(handler, PATTERN), repo, log_file
    handler.close()


def test_initial_database_is_empty(setup):
    provider, _, _ = setup
    assert provider.get_database().data_from_code(100) == CardData()


def test_add_filters_and_merges(setup):
    provider, repo, _ = setup
    make_db(repo / "cards.cdb", 100, 2500, 3)
    provider.on_add(repo, ["cards.cdb", "other.txt"])
    db = provider.get_database()
    assert db.data_from_code(100).code == 100
    assert db.data_from_code(100).attack == 2500
    assert db.extra_from_code(100).scope == 3
    assert not (repo / "other.txt").exists()


def test_later_path_overrides(setup):
    provider, repo, _ = setup
    make_db(repo / "a.cdb", 100, 1000, 1)
    make_db(repo / "b.cdb", 100, 3000, 2)
    provider.on_add(repo, ["b.cdb", "a.cdb"])
    assert provider.get_database().data_from_code(100).attack == 3000


def test_diff_removes(setup):
    provider, repo, _ = setup
    make_db(repo / "cards.cdb", 100, 2500, 3)
    provider.on_add(repo, ["cards.cdb"])
    old = provider.get_database()
    provider.on_diff(repo, GitDiff(removed=["cards.cdb"]))
    assert provider.get_database().data_from_code(100) == CardData()
    assert old.data_from_code(100).attack == 2500


def test_merge_failure_is_logged(setup):
    provider, repo, log_file = setup
    (repo / "bad.cdb").mkdir()
    provider.on_add(repo, ["bad.cdb"])
    assert "[Service:DataProvider] [Level:Error]" in log_file.read_text(encoding="utf-8")