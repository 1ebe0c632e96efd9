"""Log record properties, timestamps and the plain-text log line format.

Line format::

    [time] [Service:name] [Level:lvl] text
    [time] [EC:cat] [ReplayID:id] [Turn:n] text
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import TextIO, Union


class ServiceType(IntEnum):
    """The service a log record comes from."""

    GIT_REPO = 0
    MULTIROLE = 1
    BANLIST_PROVIDER = 2
    CORE_PROVIDER = 3
    DATA_PROVIDER = 4
    LOG_HANDLER = 5
    REPLAY_MANAGER = 6
    SCRIPT_PROVIDER = 7


class Level(IntEnum):
    """Severity of a service log record."""

    INFO = 0
    WARN = 1
    ERROR = 2


class ErrorCategory(IntEnum):
    """Category of a duel error record."""

    CORE = 0
    OFFICIAL = 1
    SPEED = 2
    RUSH = 3
    UNOFFICIAL = 4


SVC_NAMES: dict[ServiceType, str] = {
    ServiceType.GIT_REPO: "GitRepository",
    ServiceType.MULTIROLE: "Multirole",
    ServiceType.BANLIST_PROVIDER: "BanlistProvider",
    ServiceType.CORE_PROVIDER: "CoreProvider",
    ServiceType.DATA_PROVIDER: "DataProvider",
    ServiceType.LOG_HANDLER: "LogHandler",
    ServiceType.REPLAY_MANAGER: "ReplayManager",
    ServiceType.SCRIPT_PROVIDER: "ScriptProvider",
}

LEVEL_NAMES: dict[Level, str] = {
    Level.INFO: "Info",
    Level.WARN: "Warning",
    Level.ERROR: "Error",
}

EC_NAMES: dict[ErrorCategory, str] = {
    ErrorCategory.CORE: "Core",
    ErrorCategory.OFFICIAL: "Official",
    ErrorCategory.SPEED: "Speed",
    ErrorCategory.RUSH: "Rush",
    ErrorCategory.UNOFFICIAL: "Unofficial",
}


@dataclass(frozen=True)
class SvcLogProps:
    """Properties of a record logged by a service."""

    service: ServiceType
    level: Level


@dataclass(frozen=True)
class ECLogProps:
    """Properties of a record about an error raised during a duel."""

    category: ErrorCategory
    replay_id: int
    turn_counter: int


SinkLogProps = Union[SvcLogProps, ECLogProps]


def timestamp_now() -> datetime:
    """The current time, timezone-aware."""
    return datetime.now(timezone.utc)


def format_timestamp(timestamp: datetime) -> str:
    """Render a timestamp in local time as ``[YYYY-MM-DD HH:MM:SS.mmm]``."""
    local = timestamp.astimezone()
    return f"[{local:%Y-%m-%d %H:%M:%S}.{local.microsecond // 1000:03d}]"


def format_record(timestamp: datetime, props: SinkLogProps, text: str) -> str:
    """One complete log line, newline included."""
    if isinstance(props, SvcLogProps):
        tags = (
            f" [Service:{SVC_NAMES[ServiceType(props.service)]}]"
            f" [Level:{LEVEL_NAMES[Level(props.level)]}]"
        )
    elif isinstance(props, ECLogProps):
        tags = (
            f" [EC:{EC_NAMES[ErrorCategory(props.category)]}]"
            f" [ReplayID:{props.replay_id}]"
            f" [Turn:{props.turn_counter}]"
        )
    else:
        raise TypeError(f"unsupported log properties: {props!r}")
    return f"{format_timestamp(timestamp)}{tags} {text}\n"


def stream_format(stream: TextIO, timestamp: datetime, props: SinkLogProps, text: str) -> None:
    """Write one log line to a text stream."""
    stream.write(format_record(timestamp, props, text))