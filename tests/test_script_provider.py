import pytest

from multirole.loghandler import EC_SINK_KEYS, SERVICE_SINK_KEYS, LogHandler
from multirole.observer import GitDiff
from multirole.script_provider import ScriptProvider

PATTERN = r".*\.lua"


def make_handler(tmp_path, log_file):
    sink = {"type": "file", "properties": {"path": str(log_file)}}
    return LogHandler({
        "roomLogging": {"enabled": False, "path": str(tmp_path / "rooms")},
        "serviceSinks": {k: sink for k in SERVICE_SINK_KEYS.values()},
        "ecSinks": {k: sink for k in EC_SINK_KEYS.values()},
    })


@pytest.fixture
def setup(tmp_path):
    log_file = tmp_path / "log.txt"
    handler = make_handler(tmp_path, log_file)
    repo = tmp_path / "repo"
    (repo / "official").mkdir(parents=True)
    yield ScriptProvider(handler, PATTERN), repo, log_file
    handler.close()


def test_loads_by_file_name(setup):
    provider, repo, _ = setup
    (repo / "official" / "c1.lua").write_bytes(b"-- one\n")
    (repo / "readme.txt").write_bytes(b"text")
    provider.on_add(repo, ["official/c1.lua", "readme.txt"])
    assert provider.script_from_file_path("c1.lua") == b"-- one\n"
    assert provider.script_from_file_path("official/c1.lua") is None
    assert provider.script_from_file_path("readme.txt") is None


def test_diff_replaces_and_keeps_removed(setup):
    provider, repo, _ = setup
    (repo / "c1.lua").write_bytes(b"old")
    (repo / "c2.lua").write_bytes(b"two")
    provider.on_add(repo, ["c1.lua", "c2.lua"])
    (repo / "c1.lua").write_bytes(b"new")
    provider.on_diff(repo, GitDiff(removed=["c1.lua", "c2.lua"], added=["c1.lua"]))
    assert provider.script_from_file_path("c1.lua") == b"new"
    assert provider.script_from_file_path("c2.lua") == b"two"


def test_missing_file_is_logged(setup):
    provider, repo, log_file = setup
    provider.on_add(repo, ["c9.lua"])
    assert provider.script_from_file_path("c9.lua") is None
    text = log_file.read_text(encoding="utf-8")
    assert "[Service:ScriptProvider] [Level:Error]" in text