"""Unix domain socket publishing player status and accepting command lines."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import socket
import threading
from enum import Enum
from pathlib import Path
from typing import Any

from termspot.events import Event, EventKind, EventManager

log = logging.getLogger(__name__)


def is_open_socket(path: str | os.PathLike[str]) -> bool:
    """Return True if something accepts connections on the socket at path."""
    client = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        client.connect(os.fspath(path))
    except OSError:
        return False
    finally:
        client.close()
    return True


def _to_json(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"cannot encode {type(value).__name__} as JSON")


def _encode_status(mode: Any, playable: Any) -> bytes:
    document = {"mode": mode, "playable": playable}
    return json.dumps(document, separators=(",", ":"), default=_to_json).encode()


class IpcSocket:
    """Listens on a socket; each client gets status lines and may send commands."""

    def __init__(self, path: str | os.PathLike[str], events: EventManager) -> None:
        path = Path(path)
        if path.exists():
            if is_open_socket(path):
                path = path.with_name(f"termspot.{os.getpid()}.sock")
            else:
                path.unlink()
        self.path = path
        self._events = events
        self._cond = threading.Condition()
        self._status = _encode_status("Stopped", None)
        self._version = 0
        self._closed = False
        self._clients: set[socket.socket] = set()

        log.info("Creating IPC domain socket at %s", path)
        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            self._server.bind(str(path))
            self._server.listen()
        except OSError:
            self._server.close()
            raise
        self._server.settimeout(0.1)
        self._accept_thread = threading.Thread(target=self._serve, daemon=True)
        self._accept_thread.start()

    def publish(self, mode: Any, playable: Any = None) -> None:
        """Send a new status to every connected client."""
        encoded = _encode_status(mode, playable)
        with self._cond:
            self._status = encoded
            self._version += 1
            self._cond.notify_all()

    def _serve(self) -> None:
        while not self._closed:
            try:
                conn, _ = self._server.accept()
            except TimeoutError:
                continue
            except OSError as exc:
                if self._closed:
                    return
                log.error("Error accepting connection: %s", exc)
                continue
            conn.settimeout(None)
            log.debug("Connection on %s", self.path)
            with self._cond:
                self._clients.add(conn)
            threading.Thread(target=self._handle_client, args=(conn,), daemon=True).start()

    def _handle_client(self, conn: socket.socket) -> None:
        done = threading.Event()
        writer = threading.Thread(target=self._write_status, args=(conn, done), daemon=True)
        writer.start()
        try:
            with conn.makefile("rb") as reader:
                for raw in reader:
                    try:
                        line = raw.decode("utf-8")
                    except UnicodeDecodeError as exc:
                        log.error("Error reading line: %s", exc)
                        continue
                    line = line.removesuffix("\n").removesuffix("\r")
                    log.debug('Received line: "%s"', line)
                    self._events.send(Event(EventKind.IPC_INPUT, line))
        except OSError as exc:
            log.debug("IPC connection failed: %s", exc)
        finally:
            log.debug("Closing IPC connection")
            done.set()
            with self._cond:
                self._clients.discard(conn)
                self._cond.notify_all()
            conn.close()

    def _write_status(self, conn: socket.socket, done: threading.Event) -> None:
        seen = -1
        while True:
            with self._cond:
                self._cond.wait_for(
                    lambda: self._closed or done.is_set() or self._version != seen
                )
                if self._closed or done.is_set():
                    return
                seen, status = self._version, self._status
            try:
                conn.sendall(status + b"\n")
            except OSError:
                return

    def close(self) -> None:
        """Stop serving and remove the socket file."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            clients = list(self._clients)
            self._cond.notify_all()
        self._server.close()
        for client in clients:
            try:
                client.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        self._accept_thread.join(timeout=1)
        try:
            self.path.unlink()
            log.info("removed socket at %s", self.path)
        except FileNotFoundError:
            log.info("socket already removed")

    def __enter__(self) -> IpcSocket:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()