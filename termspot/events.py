"""Events passed from worker threads to the main loop."""

from __future__ import annotations

import queue
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class EventKind(Enum):
    PLAYER = auto()
    QUEUE = auto()
    SESSION_DIED = auto()
    IPC_INPUT = auto()


@dataclass(frozen=True)
class Event:
    """An event for the main loop, with a payload depending on its kind."""

    kind: EventKind
    payload: Any = None


class EventManager:
    """Thread-safe channel of events, waking the main loop on every send."""

    def __init__(self, on_trigger: Callable[[], None] | None = None) -> None:
        self._queue: queue.SimpleQueue[Event] = queue.SimpleQueue()
        self._on_trigger = on_trigger

    def msg_iter(self) -> Iterator[Event]:
        """Yield pending events without ever blocking."""
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return
            yield event

    def send(self, event: Event) -> None:
        self._queue.put(event)
        self.trigger()

    def trigger(self) -> None:
        """Wake the main loop so pending events are handled promptly."""
        if self._on_trigger is not None:
            self._on_trigger()