import json
import os
import shutil
import socket
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

import pytest

from termspot.events import EventKind, EventManager
from termspot.ipc import IpcSocket, is_open_socket


@pytest.fixture
def sock_path():
    directory = tempfile.mkdtemp(prefix="ts", dir="/tmp")
    yield Path(directory) / "player.sock"
    shutil.rmtree(directory, ignore_errors=True)


def _connect(path):
    client = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    client.settimeout(5)
    client.connect(str(path))
    return client


def _read_until(reader, predicate, limit=20):
    for _ in range(limit):
        document = json.loads(reader.readline())
        if predicate(document):
            return document
    raise AssertionError("expected status not received")


def test_client_receives_initial_status(sock_path):
    with IpcSocket(sock_path, EventManager()):
        client = _connect(sock_path)
        with client, client.makefile("rb") as reader:
            assert json.loads(reader.readline()) == {"mode": "Stopped", "playable": None}


def test_publish_reaches_client(sock_path):
    with IpcSocket(sock_path, EventManager()) as ipc:
        client = _connect(sock_path)
        with client, client.makefile("rb") as reader:
            reader.readline()
            ipc.publish("Playing", {"title": "Song"})
            status = _read_until(reader, lambda d: d["mode"] == "Playing")
            assert status["playable"] == {"title": "Song"}


@dataclass
class _Track:
    title: str
    duration: int


def test_dataclass_playable_is_encoded(sock_path):
    with IpcSocket(sock_path, EventManager()) as ipc:
        client = _connect(sock_path)
        with client, client.makefile("rb") as reader:
            reader.readline()
            ipc.publish("Resumed", _Track("Song", 1000))
            status = _read_until(reader, lambda d: d["mode"] == "Resumed")
            assert status["playable"] == {"title": "Song", "duration": 1000}


def test_unencodable_status_raises(sock_path):
    with IpcSocket(sock_path, EventManager()) as ipc:
        with pytest.raises(TypeError):
            ipc.publish(object())


def test_client_lines_become_events(sock_path):
    triggers = []
    manager = EventManager(lambda: triggers.append(True))
    with IpcSocket(sock_path, manager):
        with _connect(sock_path) as client:
            client.sendall(b"next\nplaypause\r\n")
            received = []
            deadline = time.monotonic() + 5
            while len(received) < 2 and time.monotonic() < deadline:
                received.extend(manager.msg_iter())
                time.sleep(0.01)
    assert [event.payload for event in received] == ["next", "playpause"]
    assert all(event.kind is EventKind.IPC_INPUT for event in received)
    assert len(triggers) == 2


def test_close_removes_socket(sock_path):
    ipc = IpcSocket(sock_path, EventManager())
    assert sock_path.exists()
    assert is_open_socket(sock_path)
    ipc.close()
    assert not sock_path.exists()
    assert not is_open_socket(sock_path)


def test_stale_file_is_replaced(sock_path):
    sock_path.write_text("stale")
    with IpcSocket(sock_path, EventManager()) as ipc:
        assert ipc.path == sock_path
        assert is_open_socket(sock_path)


def test_occupied_path_uses_process_specific_name(sock_path):
    with IpcSocket(sock_path, EventManager()) as first:
        with IpcSocket(sock_path, EventManager()) as second:
            assert first.path == sock_path
            assert second.path.parent == sock_path.parent
            assert second.path.name == f"termspot.{os.getpid()}.sock"
            assert is_open_socket(second.path)


def test_is_open_socket_missing_path(sock_path):
    assert is_open_socket(sock_path) is False