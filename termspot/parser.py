"""Turning command text into commands."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from fractions import Fraction
from urllib.parse import urlsplit

from termspot.command import (
    ArgParseError,
    BadEnumArg,
    Command,
    CommandKind,
    GotoMode,
    InsertSource,
    InsufficientArgs,
    JumpMode,
    MoveAmount,
    MoveMode,
    NoSuchCommand,
    RepeatSetting,
    SeekDirection,
    ShiftMode,
    SortDirection,
    SortKey,
    TargetMode,
)

__all__ = ["handle_aliases", "split_commands", "parse"]

_ALIASES = {
    "q": "quit",
    "x": "quit",
    "pause": "playpause",
    "toggleplay": "playpause",
    "toggleplayback": "playpause",
    "loop": "repeat",
}

_U16_MAX = 2**16 - 1
_U32_MAX = 2**32 - 1
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1

_INT_RE = re.compile(r"([+-]?)([0-9]+)")
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)
_TOO_LARGE = "Duration value too large"


def handle_aliases(name: str) -> str:
    """Resolve a command alias to the name it stands for."""
    while name in _ALIASES:
        name = _ALIASES[name]
    return name


def split_commands(text: str) -> list[str]:
    """Split text on ';' into command strings; ';;' stands for a literal ';'."""
    parts = [""]
    pending_separator = False
    for char in text:
        if char == ";":
            if pending_separator:
                parts[-1] += ";"
                pending_separator = False
            else:
                pending_separator = True
        elif pending_separator:
            parts.append(char)
            pending_separator = False
        else:
            parts[-1] += char
    return parts


def _parse_int(raw: str, low: int, high: int) -> int:
    match = _INT_RE.fullmatch(raw)
    if match is None or (match.group(1) == "-" and low >= 0):
        raise ArgParseError(raw, "invalid digit found in string")
    value = int(raw)
    if value > high:
        raise ArgParseError(raw, "number too large to fit in target type")
    if value < low:
        raise ArgParseError(raw, "number too small to fit in target type")
    return value


def _parse_float(raw: str) -> float:
    if _FLOAT_RE.fullmatch(raw) is None:
        raise ArgParseError(raw, "invalid float literal")
    return float(raw)


_NS = 1
_US = 1_000
_MS = 1_000_000
_SEC = 1_000_000_000
_UNITS = {
    **dict.fromkeys(("nanoseconds", "nanosecond", "nsecs", "nsec", "ns"), _NS),
    **dict.fromkeys(("microseconds", "microsecond", "usecs", "usec", "us"), _US),
    **dict.fromkeys(("milliseconds", "millisecond", "msecs", "msec", "ms"), _MS),
    **dict.fromkeys(("seconds", "second", "secs", "sec", "s", ""), _SEC),
    **dict.fromkeys(("minutes", "minute", "mins", "min", "m"), 60 * _SEC),
    **dict.fromkeys(("hours", "hour", "hrs", "hr", "h"), 3600 * _SEC),
    **dict.fromkeys(("days", "day", "d"), 86400 * _SEC),
    **dict.fromkeys(("weeks", "week", "wks", "wk", "w"), 604800 * _SEC),
    **dict.fromkeys(("months", "month", "mon"), 2629746 * _SEC),
    **dict.fromkeys(("years", "year", "yrs", "yr", "y"), 31556952 * _SEC),
}
_DURATION_TERM = re.compile(
    r"\s*((?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)\s*([a-zA-Z]*)\s*,?"
)


def _parse_duration_millis(text: str) -> int:
    """Parse a human duration such as '1m 30s' or '1.5' (seconds) to milliseconds."""
    if not text.strip():
        raise ValueError("no duration given")
    position = 0
    total_ns = Fraction(0)
    while position < len(text):
        match = _DURATION_TERM.match(text, position)
        if match is None or match.end() == position:
            raise ValueError(f"cannot parse duration at {text[position:]!r}")
        number, unit = match.groups()
        scale = _UNITS.get(unit.lower())
        if scale is None:
            raise ValueError(f"unknown time unit {unit!r}")
        total_ns += Fraction(number) * scale
        position = match.end()
    return int(total_ns / _MS)


def _parse_seek(cmd: str, args: Sequence[str]) -> Command:
    if not args:
        raise InsufficientArgs(cmd, "a duration")
    arg = " ".join(args)
    sign = arg[0] if arg[0] in "+-" else None
    duration_raw = arg[1:].strip() if sign else arg
    match = _INT_RE.fullmatch(duration_raw)
    if match is not None and match.group(1) != "-" and int(duration_raw) <= _U32_MAX:
        millis = int(duration_raw)
    else:
        try:
            millis = _parse_duration_millis(duration_raw)
        except ValueError as exc:
            raise ArgParseError(duration_raw, str(exc)) from None
        if millis > _U32_MAX:
            raise ArgParseError(duration_raw, _TOO_LARGE)
    if sign is None:
        return Command(CommandKind.SEEK, (SeekDirection(millis),))
    if millis > _I32_MAX:
        raise ArgParseError(duration_raw, _TOO_LARGE)
    delta = millis if sign == "+" else -millis
    return Command(CommandKind.SEEK, (SeekDirection(delta, relative=True),))


def _optional_choice(args: Sequence[str], choices: dict, accept: list[str], default):
    if not args:
        return default
    try:
        return choices[args[0]]
    except KeyError:
        raise BadEnumArg(args[0], accept, optional=True) from None


def _required_choice(cmd: str, args: Sequence[str], hint: str, choices: dict, accept: list[str]):
    if not args:
        raise InsufficientArgs(cmd, hint)
    try:
        return choices[args[0]]
    except KeyError:
        raise BadEnumArg(args[0], accept, optional=False) from None


def _parse_add(cmd: str, args: Sequence[str]) -> Command:
    kind = _optional_choice(
        args, {"current": CommandKind.ADD_CURRENT}, ["current"], CommandKind.ADD
    )
    return Command(kind)


def _parse_save(cmd: str, args: Sequence[str]) -> Command:
    kind = _optional_choice(
        args,
        {"queue": CommandKind.SAVE_QUEUE, "current": CommandKind.SAVE_CURRENT},
        ["queue", "current"],
        CommandKind.SAVE,
    )
    return Command(kind)


def _parse_focus(cmd: str, args: Sequence[str]) -> Command:
    if not args:
        raise InsufficientArgs(cmd, "queue|search|library")
    return Command(CommandKind.FOCUS, (args[0],))


def _volume(kind: CommandKind) -> Callable[[str, Sequence[str]], Command]:
    def handler(cmd: str, args: Sequence[str]) -> Command:
        amount = _parse_int(args[0], 0, _U16_MAX) if args else 1
        return Command(kind, (amount,))

    return handler


_REPEAT_CHOICES = {
    "list": RepeatSetting.REPEAT_PLAYLIST,
    "playlist": RepeatSetting.REPEAT_PLAYLIST,
    "queue": RepeatSetting.REPEAT_PLAYLIST,
    "track": RepeatSetting.REPEAT_TRACK,
    "once": RepeatSetting.REPEAT_TRACK,
    "single": RepeatSetting.REPEAT_TRACK,
    "none": RepeatSetting.NONE,
    "off": RepeatSetting.NONE,
}


def _parse_repeat(cmd: str, args: Sequence[str]) -> Command:
    mode = _optional_choice(args, _REPEAT_CHOICES, list(_REPEAT_CHOICES), None)
    return Command(CommandKind.REPEAT, (mode,))


def _parse_shuffle(cmd: str, args: Sequence[str]) -> Command:
    switch = _optional_choice(args, {"on": True, "off": False}, ["on", "off"], None)
    return Command(CommandKind.SHUFFLE, (switch,))


_TARGET_CHOICES = {"selected": TargetMode.SELECTED, "current": TargetMode.CURRENT}


def _targeted(kind: CommandKind) -> Callable[[str, Sequence[str]], Command]:
    def handler(cmd: str, args: Sequence[str]) -> Command:
        mode = _required_choice(
            cmd, args, "selected|current", _TARGET_CHOICES, list(_TARGET_CHOICES)
        )
        return Command(kind, (mode,))

    return handler


def _parse_goto(cmd: str, args: Sequence[str]) -> Command:
    choices = {"album": GotoMode.ALBUM, "artist": GotoMode.ARTIST}
    mode = _required_choice(cmd, args, "album|artist", choices, list(choices))
    return Command(CommandKind.GOTO, (mode,))


_MOVE_MODES = {
    "playing": MoveMode.PLAYING,
    "top": MoveMode.UP,
    "bottom": MoveMode.DOWN,
    "leftmost": MoveMode.LEFT,
    "rightmost": MoveMode.RIGHT,
    "pageup": MoveMode.UP,
    "pagedown": MoveMode.DOWN,
    "pageleft": MoveMode.LEFT,
    "pageright": MoveMode.RIGHT,
    "up": MoveMode.UP,
    "down": MoveMode.DOWN,
    "left": MoveMode.LEFT,
    "right": MoveMode.RIGHT,
}
_EXTREMES = {"top", "bottom", "leftmost", "rightmost"}
_PAGES = {"pageup", "pagedown", "pageleft", "pageright"}


def _parse_move(cmd: str, args: Sequence[str]) -> Command:
    mode = _required_choice(cmd, args, "a direction", _MOVE_MODES, list(_MOVE_MODES))
    raw = args[0]
    amount_raw = args[1] if len(args) > 1 else None
    if raw in _EXTREMES:
        amount = MoveAmount.EXTREME
    elif raw in _PAGES and amount_raw is not None:
        amount = MoveAmount(_parse_float(amount_raw))
    elif raw in _PAGES or raw == "playing" or amount_raw is None:
        amount = MoveAmount()
    else:
        amount = MoveAmount(_parse_int(amount_raw, _I32_MIN, _I32_MAX))
    return Command(CommandKind.MOVE, (mode, amount))


def _parse_shift(cmd: str, args: Sequence[str]) -> Command:
    choices = {"up": ShiftMode.UP, "down": ShiftMode.DOWN}
    mode = _required_choice(cmd, args, "up|down", choices, list(choices))
    amount = _parse_int(args[1], _I32_MIN, _I32_MAX) if len(args) > 1 else None
    return Command(CommandKind.SHIFT, (mode, amount))


def _joined(kind: CommandKind) -> Callable[[str, Sequence[str]], Command]:
    def handler(cmd: str, args: Sequence[str]) -> Command:
        return Command(kind, (" ".join(args),))

    return handler


def _fixed_jump(mode: JumpMode) -> Callable[[str, Sequence[str]], Command]:
    def handler(cmd: str, args: Sequence[str]) -> Command:
        return Command(CommandKind.JUMP, (mode,))

    return handler


def _parse_jump(cmd: str, args: Sequence[str]) -> Command:
    return Command(CommandKind.JUMP, (JumpMode.for_query(" ".join(args)),))


_URL_KINDS = {"track", "album", "artist", "playlist", "show", "episode", "user"}
_ID_RE = re.compile(r"[A-Za-z0-9]+")


def _is_spotify_url(text: str) -> bool:
    if text.startswith("spotify:"):
        parts = text.split(":")[1:]
    else:
        split = urlsplit(text)
        if split.scheme not in ("http", "https") or split.hostname != "open.spotify.com":
            return False
        parts = [part for part in split.path.split("/") if part]
        if parts and parts[0].startswith("intl-"):
            parts = parts[1:]
    if len(parts) < 2 or parts[0] not in _URL_KINDS:
        return False
    if parts[0] == "user" and len(parts) >= 4 and parts[2] == "playlist":
        return _ID_RE.fullmatch(parts[3]) is not None
    return _ID_RE.fullmatch(parts[1]) is not None


def _parse_insert(cmd: str, args: Sequence[str]) -> Command:
    if not args or args[0] == "":
        return Command(CommandKind.INSERT, (InsertSource.CLIPBOARD,))
    url = args[0]
    if not _is_spotify_url(url):
        raise ArgParseError(url, "Invalid Spotify URL")
    return Command(CommandKind.INSERT, (InsertSource(url),))


def _parse_newplaylist(cmd: str, args: Sequence[str]) -> Command:
    if not args:
        raise InsufficientArgs(cmd, "a name")
    return Command(CommandKind.NEW_PLAYLIST, (" ".join(args),))


_SORT_KEYS = {
    "title": SortKey.TITLE,
    "duration": SortKey.DURATION,
    "album": SortKey.ALBUM,
    "added": SortKey.ADDED,
    "artist": SortKey.ARTIST,
}
_SORT_DIRECTIONS = {
    "a": SortDirection.ASCENDING,
    "asc": SortDirection.ASCENDING,
    "ascending": SortDirection.ASCENDING,
    "d": SortDirection.DESCENDING,
    "desc": SortDirection.DESCENDING,
    "descending": SortDirection.DESCENDING,
}


def _parse_sort(cmd: str, args: Sequence[str]) -> Command:
    key = _required_choice(cmd, args, "a sort key", _SORT_KEYS, list(_SORT_KEYS))
    direction = _optional_choice(
        args[1:], _SORT_DIRECTIONS, list(_SORT_DIRECTIONS), SortDirection.ASCENDING
    )
    return Command(CommandKind.SORT, (key, direction))


def _simple(kind: CommandKind) -> Callable[[str, Sequence[str]], Command]:
    def handler(cmd: str, args: Sequence[str]) -> Command:
        return Command(kind)

    return handler


_HANDLERS: dict[str, Callable[[str, Sequence[str]], Command]] = {
    "quit": _simple(CommandKind.QUIT),
    "playpause": _simple(CommandKind.TOGGLE_PLAY),
    "stop": _simple(CommandKind.STOP),
    "previous": _simple(CommandKind.PREVIOUS),
    "next": _simple(CommandKind.NEXT),
    "clear": _simple(CommandKind.CLEAR),
    "queue": _simple(CommandKind.QUEUE),
    "playnext": _simple(CommandKind.PLAY_NEXT),
    "play": _simple(CommandKind.PLAY),
    "update": _simple(CommandKind.UPDATE_LIBRARY),
    "add": _parse_add,
    "save": _parse_save,
    "delete": _simple(CommandKind.DELETE),
    "focus": _parse_focus,
    "seek": _parse_seek,
    "volup": _volume(CommandKind.VOLUME_UP),
    "voldown": _volume(CommandKind.VOLUME_DOWN),
    "repeat": _parse_repeat,
    "shuffle": _parse_shuffle,
    "share": _targeted(CommandKind.SHARE),
    "back": _simple(CommandKind.BACK),
    "open": _targeted(CommandKind.OPEN),
    "goto": _parse_goto,
    "move": _parse_move,
    "shift": _parse_shift,
    "search": _joined(CommandKind.SEARCH),
    "jump": _parse_jump,
    "jumpnext": _fixed_jump(JumpMode.NEXT),
    "jumpprevious": _fixed_jump(JumpMode.PREVIOUS),
    "help": _simple(CommandKind.HELP),
    "reload": _simple(CommandKind.RELOAD_CONFIG),
    "noop": _simple(CommandKind.NOOP),
    "insert": _parse_insert,
    "newplaylist": _parse_newplaylist,
    "sort": _parse_sort,
    "logout": _simple(CommandKind.LOGOUT),
    "similar": _targeted(CommandKind.SHOW_RECOMMENDATIONS),
    "redraw": _simple(CommandKind.REDRAW),
    "exec": _joined(CommandKind.EXECUTE),
    "reconnect": _simple(CommandKind.RECONNECT),
}


def parse(text: str) -> list[Command]:
    """Parse ';'-separated command text; raise CommandParseError on bad input."""
    commands = []
    for part in split_commands(text):
        words = part.split()
        if not words:
            continue
        name = handle_aliases(words[0])
        handler = _HANDLERS.get(name)
        if handler is None:
            raise NoSuchCommand(name)
        commands.append(handler(name, words[1:]))
    return commands