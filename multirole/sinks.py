"""Destinations for log records: files, standard streams and a webhook."""

from __future__ import annotations

import json
import os
import socket
import ssl
import sys
import threading
from datetime import datetime
from typing import Any, TextIO, Union

from .logformat import (
    EC_NAMES,
    SVC_NAMES,
    ECLogProps,
    ErrorCategory,
    Level,
    ServiceType,
    SinkLogProps,
    SvcLogProps,
    stream_format,
)

DEFAULT_RID_FORMAT = "\nReplay ID: {0}"

_SERVICE_MESSAGE_TITLE = "Service Message"
_RID_FORMAT_ERROR = "\nCould not format replay ID."

_LEVEL_COLORS = {
    Level.INFO: 0x00FF00,
    Level.WARN: 0xFFFF00,
    Level.ERROR: 0xFF0000,
}

_EC_TITLES = {
    ErrorCategory.CORE: "Core Error",
    ErrorCategory.OFFICIAL: "Official Script Error",
    ErrorCategory.SPEED: "Speed Script Error",
    ErrorCategory.RUSH: "Rush Script Error",
    ErrorCategory.UNOFFICIAL: "Unofficial Script Error",
}

_HTTP_HEADER = (
    "POST {path} HTTP/1.1\r\n"
    "Host: {host}\r\n"
    "User-Agent: Multirole/1.0\r\n"
    "Content-Length: {length}\r\n"
    "Content-Type: application/json\r\n\r\n"
)

_TIMEOUT = 10.0


class Sink:
    """A sink that discards every record."""

    def log(self, timestamp: datetime, props: SinkLogProps, text: str) -> None:
        """Record one log entry."""

    def close(self) -> None:
        """Release whatever the sink holds."""


class FileSink(Sink):
    """Appends log lines to a file."""

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        self._file = open(path, "a", encoding="utf-8")
        self._lock = threading.Lock()

    def log(self, timestamp: datetime, props: SinkLogProps, text: str) -> None:
        with self._lock:
            stream_format(self._file, timestamp, props, text)
            self._file.flush()

    def close(self) -> None:
        self._file.close()


class _StreamSink(Sink):
    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock

    def _stream(self) -> TextIO:
        raise NotImplementedError

    def log(self, timestamp: datetime, props: SinkLogProps, text: str) -> None:
        with self._lock:
            stream = self._stream()
            stream_format(stream, timestamp, props, text)
            stream.flush()


class StderrSink(_StreamSink):
    """Writes log lines to standard error, serialised by a shared lock."""

    def __init__(self, lock: threading.Lock) -> None:
        super().__init__(lock)

    def _stream(self) -> TextIO:
        return sys.stderr

    def log(self, timestamp: datetime, props: SinkLogProps, text: str) -> None:
        super().log(timestamp, props, text)


class StdoutSink(_StreamSink):
    """Writes log lines to standard output, serialised by a shared lock."""

    def __init__(self, lock: threading.Lock) -> None:
        super().__init__(lock)

    def _stream(self) -> TextIO:
        return sys.stdout

    def log(self, timestamp: datetime, props: SinkLogProps, text: str) -> None:
        super().log(timestamp, props, text)


class DiscordWebhookSink(Sink):
    """Posts each record as an embed to a Discord webhook over HTTPS."""

    def __init__(self, uri: str, rid_format: str = DEFAULT_RID_FORMAT) -> None:
        self.rid_format = rid_format
        scheme_end = uri.find(":")
        if scheme_end < 0:
            raise ValueError("webhook URI has no scheme colon")
        host_start = scheme_end + 1 + len("//")
        if host_start > len(uri):
            raise ValueError("webhook URI is too short")
        path_start = uri.find("/", host_start)
        if path_start < 0:
            raise ValueError("webhook URI has no path")
        self.scheme = uri[:scheme_end]
        self.host = uri[host_start:path_start]
        self.path = uri[path_start:]
        try:
            self._endpoints = socket.getaddrinfo(
                self.host, self.scheme, type=socket.SOCK_STREAM
            )
        except (OSError, UnicodeError) as e:
            raise RuntimeError(f"could not resolve webhook host {self.host!r}") from e
        if not self._endpoints:
            raise RuntimeError(f"could not resolve webhook host {self.host!r}")
        self._ssl_context = ssl.create_default_context()

    def build_payload(self, props: SinkLogProps, text: str) -> dict[str, Any]:
        """The JSON document describing one record."""
        if isinstance(props, SvcLogProps):
            embed: dict[str, Any] = {
                "title": _SERVICE_MESSAGE_TITLE,
                "description": text,
                "color": _LEVEL_COLORS[Level(props.level)],
                "footer": {"text": SVC_NAMES[ServiceType(props.service)]},
            }
        elif isinstance(props, ECLogProps):
            description = f"```\n{text}\n```Turn: {props.turn_counter} | "
            try:
                description += self.rid_format.format(props.replay_id)
            except (ValueError, IndexError, KeyError, AttributeError):
                description += _RID_FORMAT_ERROR
            embed = {
                "title": _EC_TITLES[ErrorCategory(props.category)],
                "color": 0xFF0000,
                "description": description,
            }
        else:
            raise TypeError(f"unsupported log properties: {props!r}")
        return {"embeds": [embed]}

    def build_request(self, props: SinkLogProps, text: str) -> bytes:
        """The full HTTP request that posts one record."""
        body = json.dumps(
            self.build_payload(props, text), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")
        header = _HTTP_HEADER.format(path=self.path, host=self.host, length=len(body))
        return header.encode("utf-8") + body

    def log(self, timestamp: datetime, props: SinkLogProps, text: str) -> None:
        request = self.build_request(props, text)
        threading.Thread(target=self._send, args=(request,), daemon=True).start()

    def _send(self, request: bytes) -> None:
        for family, socktype, proto, _, address in self._endpoints:
            try:
                raw = socket.socket(family, socktype, proto)
            except OSError:
                continue
            try:
                raw.settimeout(_TIMEOUT)
                raw.connect(address)
            except OSError:
                raw.close()
                continue
            try:
                with self._ssl_context.wrap_socket(raw, server_hostname=self.host) as conn:
                    conn.sendall(request)
                    received = b""
                    while b"\r\n\r\n" not in received:
                        chunk = conn.recv(4096)
                        if not chunk:
                            break
                        received += chunk
            except OSError:
                pass
            finally:
                raw.close()
            return