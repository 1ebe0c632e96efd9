"""Routing of service and duel-error log records to configured sinks."""

from __future__ import annotations

import os
import threading
import time
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO, Union

from .logformat import (
    ECLogProps,
    ErrorCategory,
    Level,
    ServiceType,
    SvcLogProps,
    format_timestamp,
    timestamp_now,
)
from .sinks import (
    DEFAULT_RID_FORMAT,
    DiscordWebhookSink,
    FileSink,
    Sink,
    StderrSink,
    StdoutSink,
)

SERVICE_SINK_KEYS: dict[ServiceType, str] = {
    ServiceType.GIT_REPO: "gitRepo",
    ServiceType.MULTIROLE: "multirole",
    ServiceType.BANLIST_PROVIDER: "banlistProvider",
    ServiceType.CORE_PROVIDER: "coreProvider",
    ServiceType.DATA_PROVIDER: "dataProvider",
    ServiceType.LOG_HANDLER: "logHandler",
    ServiceType.REPLAY_MANAGER: "replayManager",
    ServiceType.SCRIPT_PROVIDER: "scriptProvider",
}

EC_SINK_KEYS: dict[ErrorCategory, str] = {
    ErrorCategory.CORE: "core",
    ErrorCategory.OFFICIAL: "official",
    ErrorCategory.SPEED: "speed",
    ErrorCategory.RUSH: "rush",
    ErrorCategory.UNOFFICIAL: "other",
}


def _format(text: str, args: tuple) -> str:
    return text.format(*args) if args else text


def _ensure_directory(path: Path, create_error: str, not_dir_error: str) -> None:
    if not path.exists():
        try:
            path.mkdir()
        except OSError as e:
            raise RuntimeError(create_error) from e
    if not path.is_dir():
        raise RuntimeError(not_dir_error)


class RoomLogger:
    """Writes timestamped lines about one room to its own file."""

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        try:
            self._file: TextIO = open(path, "w", encoding="utf-8")
        except OSError as e:
            raise RuntimeError(f"room log file {os.fspath(path)!r} is not open") from e

    def log(self, text: str, *args: Any) -> None:
        """Append one line; `args` fill the `{}` fields of `text`."""
        line = _format(text, args)
        self._file.write(f"{format_timestamp(timestamp_now())} {line}\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> RoomLogger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class LogHandler:
    """Sends each record to the sink configured for its service or category."""

    def __init__(self, config: Mapping[str, Any]) -> None:
        room_cfg = config["roomLogging"]
        self._log_rooms = bool(room_cfg["enabled"])
        self._room_logs_dir = Path(room_cfg["path"])
        self._stderr_lock = threading.Lock()
        self._stdout_lock = threading.Lock()
        self._service_sinks: dict[ServiceType, Sink] = {}
        self._ec_sinks: dict[ErrorCategory, Sink] = {}
        try:
            for svc, key in SERVICE_SINK_KEYS.items():
                self._service_sinks[svc] = self._make_sink(config, "serviceSinks", key)
            for cat, key in EC_SINK_KEYS.items():
                self._ec_sinks[cat] = self._make_sink(config, "ecSinks", key)
            if self._log_rooms:
                _ensure_directory(
                    self._room_logs_dir,
                    "could not create room logs directory",
                    "room logs path is a file, not a directory",
                )
        except Exception:
            self.close()
            raise

    def _make_sink(self, config: Mapping[str, Any], category: str, name: str) -> Sink:
        entry = config[category][name]
        sink_type = entry["type"]
        props = entry["properties"]
        if sink_type == "discordWebhook":
            return DiscordWebhookSink(props["uri"], props.get("ridFormat", DEFAULT_RID_FORMAT))
        if sink_type == "file":
            return FileSink(props["path"])
        if sink_type == "stderr":
            return StderrSink(self._stderr_lock)
        if sink_type == "stdout":
            return StdoutSink(self._stdout_lock)
        if sink_type == "null":
            return Sink()
        raise ValueError(f"wrong type of sink: {sink_type!r}")

    def log(self, service: ServiceType, level: Level, text: str, *args: Any) -> None:
        """Log a record on behalf of a service."""
        sink = self._service_sinks[ServiceType(service)]
        sink.log(timestamp_now(), SvcLogProps(ServiceType(service), Level(level)), _format(text, args))

    def log_error(
        self,
        category: ErrorCategory,
        replay_id: int,
        turn_counter: int,
        text: str,
        *args: Any,
    ) -> None:
        """Log an error that happened during a duel."""
        cat = ErrorCategory(category)
        props = ECLogProps(cat, replay_id, turn_counter)
        self._ec_sinks[cat].log(timestamp_now(), props, _format(text, args))

    def make_room_logger(self, room_id: int) -> Optional[RoomLogger]:
        """A logger for one room, or None if room logging is off or fails."""
        if not self._log_rooms:
            return None
        try:
            name = f"{time.time_ns()}-{room_id}.log"
            return RoomLogger(self._room_logs_dir / name)
        except (RuntimeError, OSError) as e:
            self.log(ServiceType.LOG_HANDLER, Level.ERROR, "Cannot create room logger: {}", e)
            return None

    def close(self) -> None:
        """Close every sink."""
        for sink in (*self._service_sinks.values(), *self._ec_sinks.values()):
            sink.close()