"""Commands understood by the player and their canonical textual form."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, StrEnum
from typing import Any, ClassVar


class RepeatSetting(StrEnum):
    """How playback continues at the end of a track or of the queue."""

    NONE = "off"
    REPEAT_PLAYLIST = "playlist"
    REPEAT_TRACK = "track"


class TargetMode(StrEnum):
    CURRENT = "current"
    SELECTED = "selected"


class MoveMode(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PLAYING = "playing"


class SortKey(StrEnum):
    """Keys that songs can be sorted on."""

    TITLE = "title"
    DURATION = "duration"
    ARTIST = "artist"
    ALBUM = "album"
    ADDED = "added"


class SortDirection(StrEnum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class ShiftMode(StrEnum):
    UP = "up"
    DOWN = "down"


class GotoMode(StrEnum):
    ALBUM = "album"
    ARTIST = "artist"


def _format_number(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)


@dataclass(frozen=True)
class MoveAmount:
    """A step count (int), a fraction of a page (float), or the extreme (None)."""

    value: int | float | None = 1

    EXTREME: ClassVar[MoveAmount]

    @property
    def is_extreme(self) -> bool:
        return self.value is None

    def __str__(self) -> str:
        if self.value is None:
            return "extreme"
        if isinstance(self.value, float):
            return "float"
        return "integer"


MoveAmount.EXTREME = MoveAmount(None)


@dataclass(frozen=True)
class JumpMode:
    """Jump to the previous or next match, or start a new query."""

    kind: str
    query: str = ""

    PREVIOUS: ClassVar[JumpMode]
    NEXT: ClassVar[JumpMode]

    def __post_init__(self) -> None:
        if self.kind not in ("previous", "next", "query"):
            raise ValueError(f"invalid jump mode: {self.kind!r}")

    @classmethod
    def for_query(cls, query: str) -> JumpMode:
        return cls("query", query)


JumpMode.PREVIOUS = JumpMode("previous")
JumpMode.NEXT = JumpMode("next")


@dataclass(frozen=True)
class SeekDirection:
    """A seek target in milliseconds, either absolute or relative to the position."""

    millis: int
    relative: bool = False

    def __str__(self) -> str:
        if self.relative and self.millis > 0:
            return f"+{self.millis}"
        return str(self.millis)


@dataclass(frozen=True)
class InsertSource:
    """Where inserted items come from: a URL, or the clipboard when url is None."""

    url: str | None = None

    CLIPBOARD: ClassVar[InsertSource]

    def __str__(self) -> str:
        return "" if self.url is None else self.url


InsertSource.CLIPBOARD = InsertSource(None)


class CommandKind(Enum):
    """Every command, valued by its base name."""

    QUIT = "quit"
    TOGGLE_PLAY = "playpause"
    STOP = "stop"
    PREVIOUS = "previous"
    NEXT = "next"
    CLEAR = "clear"
    QUEUE = "queue"
    PLAY_NEXT = "playnext"
    PLAY = "play"
    UPDATE_LIBRARY = "update"
    SAVE = "save"
    SAVE_CURRENT = "save current"
    SAVE_QUEUE = "save queue"
    ADD = "add"
    ADD_CURRENT = "add current"
    DELETE = "delete"
    FOCUS = "focus"
    SEEK = "seek"
    VOLUME_UP = "volup"
    VOLUME_DOWN = "voldown"
    REPEAT = "repeat"
    SHUFFLE = "shuffle"
    SHARE = "share"
    BACK = "back"
    OPEN = "open"
    GOTO = "goto"
    MOVE = "move"
    SHIFT = "shift"
    SEARCH = "search"
    JUMP = "jump"
    HELP = "help"
    RELOAD_CONFIG = "reload"
    NOOP = "noop"
    INSERT = "insert"
    NEW_PLAYLIST = "newplaylist"
    SORT = "sort"
    LOGOUT = "logout"
    SHOW_RECOMMENDATIONS = "similar"
    REDRAW = "redraw"
    EXECUTE = "exec"
    RECONNECT = "reconnect"


_EXTREME_MOVES = {
    MoveMode.UP: "top",
    MoveMode.DOWN: "bottom",
    MoveMode.LEFT: "leftmost",
    MoveMode.RIGHT: "rightmost",
}


def _move_tokens(mode: MoveMode, amount: MoveAmount) -> list[str]:
    if mode is MoveMode.PLAYING:
        return ["playing"]
    if amount.value is None:
        return [_EXTREME_MOVES[mode]]
    return [str(mode), _format_number(amount.value)]


@dataclass(frozen=True)
class Command:
    """A command with its arguments; str() gives text that parses back to it."""

    kind: CommandKind
    args: tuple[Any, ...] = ()

    def _arg(self, index: int = 0, default: Any = None) -> Any:
        return self.args[index] if len(self.args) > index else default

    def basename(self) -> str:
        if self.kind is CommandKind.JUMP:
            mode = self._arg()
            if mode is not None and mode.kind != "query":
                return f"jump{mode.kind}"
        return self.kind.value

    def _extra_tokens(self) -> list[str]:
        k = CommandKind
        first = self._arg()
        match self.kind:
            case k.FOCUS | k.SEARCH | k.NEW_PLAYLIST | k.EXECUTE:
                return [str(first)]
            case (
                k.SEEK
                | k.VOLUME_UP
                | k.VOLUME_DOWN
                | k.SHARE
                | k.OPEN
                | k.GOTO
                | k.SHOW_RECOMMENDATIONS
                | k.INSERT
            ):
                return [str(first)]
            case k.REPEAT:
                return [] if first is None else [str(first)]
            case k.SHUFFLE:
                return [] if first is None else ["on" if first else "off"]
            case k.MOVE:
                return _move_tokens(first, self._arg(1, MoveAmount()))
            case k.SHIFT:
                amount = self._arg(1)
                return [str(first), str(1 if amount is None else amount)]
            case k.JUMP:
                if first is not None and first.kind == "query":
                    return [first.query]
                return []
            case k.SORT:
                return [str(first), str(self._arg(1, SortDirection.ASCENDING))]
            case _:
                return []

    def __str__(self) -> str:
        return " ".join([self.basename(), *self._extra_tokens()])


class CommandParseError(ValueError):
    """Raised when command text cannot be turned into commands."""


class NoSuchCommand(CommandParseError):
    def __init__(self, cmd: str) -> None:
        self.cmd = cmd
        super().__init__(f'No such command "{cmd}"')


class InsufficientArgs(CommandParseError):
    def __init__(self, cmd: str, hint: str | None = None) -> None:
        self.cmd = cmd
        self.hint = hint
        if hint is not None:
            message = f'"{cmd}" requires additional arguments: {hint}'
        else:
            message = f'"{cmd}" requires additional arguments'
        super().__init__(message)


class BadEnumArg(CommandParseError):
    def __init__(self, arg: str, accept: list[str], optional: bool) -> None:
        self.arg = arg
        self.accept = list(accept)
        self.optional = optional
        choices = "|".join(self.accept)
        if optional:
            message = f'Argument "{arg}" should be one of {choices} or be omitted'
        else:
            message = f'Argument "{arg}" should be one of {choices}'
        super().__init__(message)


class ArgParseError(CommandParseError):
    def __init__(self, arg: str, err: str) -> None:
        self.arg = arg
        self.err = err
        super().__init__(f'Error with argument "{arg}": {err}')