import pytest

from multirole.logformat import ErrorCategory, Level, ServiceType
from multirole.loghandler import EC_SINK_KEYS, SERVICE_SINK_KEYS, LogHandler, RoomLogger


def make_config(tmp_path, log_file=None, rooms=False, sink_type=None):
    if sink_type is not None:
        sink = {"type": sink_type, "properties": {}}
    elif log_file is not None:
        sink = {"type": "file", "properties": {"path": str(log_file)}}
    else:
        sink = {"type": "null", "properties": {}}
    return {
        "roomLogging": {"enabled": rooms, "path": str(tmp_path / "rooms")},
        "serviceSinks": {k: sink for k in SERVICE_SINK_KEYS.values()},
        "ecSinks": {k: sink for k in EC_SINK_KEYS.values()},
    }


def test_service_log_goes_to_file(tmp_path):
    log_file = tmp_path / "log.txt"
    handler = LogHandler(make_config(tmp_path, log_file))
    handler.log(ServiceType.MULTIROLE, Level.INFO, "hello {}", 5)
    handler.close()
    text = log_file.read_text(encoding="utf-8")
    assert "[Service:Multirole] [Level:Info] hello 5\n" in text


def test_error_log_goes_to_file(tmp_path):
    log_file = tmp_path / "log.txt"
    handler = LogHandler(make_config(tmp_path, log_file))
    handler.log_error(ErrorCategory.CORE, 42, 3, "boom")
    handler.log_error(ErrorCategory.UNOFFICIAL, 7, 1, "bad {}", "script")
    handler.close()
    text = log_file.read_text(encoding="utf-8")
    assert "[EC:Core] [ReplayID:42] [Turn:3] boom\n" in text
    assert "[EC:Unofficial] [ReplayID:7] [Turn:1] bad script\n" in text


def test_wrong_sink_type(tmp_path):
    with pytest.raises(ValueError):
        LogHandler(make_config(tmp_path, sink_type="carrier-pigeon"))


def test_missing_sink_entry(tmp_path):
    config = make_config(tmp_path)
    del config["ecSinks"]["rush"]
    with pytest.raises(KeyError):
        LogHandler(config)


def test_room_logger_disabled(tmp_path):
    handler = LogHandler(make_config(tmp_path))
    assert handler.make_room_logger(1) is None
    assert not (tmp_path / "rooms").exists()


def test_room_logger_writes(tmp_path):
    handler = LogHandler(make_config(tmp_path, rooms=True))
    logger = handler.make_room_logger(7)
    with logger as rl:
        rl.log("joined {}", "alice")
    files = list((tmp_path / "rooms").iterdir())
    assert len(files) == 1
    assert files[0].name.endswith("-7.log")
    content = files[0].read_text(encoding="utf-8")
    assert content.startswith("[")
    assert content.endswith(" joined alice\n")


def test_room_logs_path_is_file(tmp_path):
    (tmp_path / "rooms").write_text("x")
    with pytest.raises(RuntimeError):
        LogHandler(make_config(tmp_path, rooms=True))


def test_room_logger_failure_is_logged(tmp_path):
    log_file = tmp_path / "log.txt"
    handler = LogHandler(make_config(tmp_path, log_file, rooms=True))
    (tmp_path / "rooms").rmdir()
    assert handler.make_room_logger(3) is None
    handler.close()
    assert "[Service:LogHandler] [Level:Error]" in log_file.read_text(encoding="utf-8")


def test_room_logger_bad_path(tmp_path):
    with pytest.raises(RuntimeError):
        RoomLogger(tmp_path / "missing" / "room.log")