"""Key bindings: the built-in defaults, key-name parsing and user overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from termspot.command import (
    Command,
    CommandKind,
    CommandParseError,
    GotoMode,
    InsertSource,
    JumpMode,
    MoveAmount,
    MoveMode,
    SeekDirection,
    ShiftMode,
    TargetMode,
)
from termspot.parser import parse

__all__ = [
    "KeyEvent",
    "default_keybindings",
    "parse_key",
    "parse_keybinding",
    "get_bindings",
]

log = logging.getLogger(__name__)

_NAMED_KEYS = frozenset(
    {
        "Enter",
        "Tab",
        "Backspace",
        "Esc",
        "Left",
        "Right",
        "Up",
        "Down",
        "Ins",
        "Del",
        "Home",
        "End",
        "PageUp",
        "PageDown",
        "PauseBreak",
        "NumpadCenter",
        *(f"F{n}" for n in range(13)),
    }
)

_MODIFIERS = ("Shift", "Alt", "Ctrl")


@dataclass(frozen=True)
class KeyEvent:
    """A key press: a named key or a character, optionally with a modifier.

    Shift combined with a character is expressed as the upper-case character
    with no modifier, so ``modifier`` on a character is only ever Alt or Ctrl.
    """

    value: str
    is_char: bool = False
    modifier: str | None = None

    @classmethod
    def key(cls, name: str, modifier: str | None = None) -> KeyEvent:
        return cls(name, False, modifier)

    @classmethod
    def char(cls, char: str, modifier: str | None = None) -> KeyEvent:
        return cls(char, True, modifier)


def _move(mode: MoveMode, amount: MoveAmount | None = None) -> Command:
    return Command(CommandKind.MOVE, (mode, MoveAmount() if amount is None else amount))


def _seek(delta: int) -> Command:
    return Command(CommandKind.SEEK, (SeekDirection(delta, relative=True),))


def default_keybindings() -> dict[str, list[Command]]:
    """Return the built-in mapping from key names to the commands they run."""
    k = CommandKind
    return {
        "q": [Command(k.QUIT)],
        "Ctrl+l": [Command(k.REDRAW)],
        "Shift+p": [Command(k.TOGGLE_PLAY)],
        "Shift+u": [Command(k.UPDATE_LIBRARY)],
        "Shift+s": [Command(k.STOP)],
        "<": [Command(k.PREVIOUS)],
        ">": [Command(k.NEXT)],
        "c": [Command(k.CLEAR)],
        "Space": [Command(k.QUEUE), _move(MoveMode.DOWN)],
        ".": [Command(k.PLAY_NEXT), _move(MoveMode.DOWN)],
        "Enter": [Command(k.PLAY)],
        "n": [Command(k.JUMP, (JumpMode.NEXT,))],
        "Shift+n": [Command(k.JUMP, (JumpMode.PREVIOUS,))],
        "s": [Command(k.SAVE)],
        "Ctrl+s": [Command(k.SAVE_QUEUE)],
        "d": [Command(k.DELETE)],
        "f": [_seek(1000)],
        "b": [_seek(-1000)],
        "Shift+f": [_seek(10000)],
        "Shift+b": [_seek(-10000)],
        "+": [Command(k.VOLUME_UP, (1,))],
        "]": [Command(k.VOLUME_UP, (5,))],
        "-": [Command(k.VOLUME_DOWN, (1,))],
        "[": [Command(k.VOLUME_DOWN, (5,))],
        "r": [Command(k.REPEAT, (None,))],
        "z": [Command(k.SHUFFLE, (None,))],
        "x": [Command(k.SHARE, (TargetMode.SELECTED,))],
        "Shift+x": [Command(k.SHARE, (TargetMode.CURRENT,))],
        "F1": [Command(k.FOCUS, ("queue",))],
        "F2": [Command(k.FOCUS, ("search",))],
        "F3": [Command(k.FOCUS, ("library",))],
        "?": [Command(k.HELP)],
        "Backspace": [Command(k.BACK)],
        "o": [Command(k.OPEN, (TargetMode.SELECTED,))],
        "Shift+o": [Command(k.OPEN, (TargetMode.CURRENT,))],
        "a": [Command(k.GOTO, (GotoMode.ALBUM,))],
        "Shift+a": [Command(k.GOTO, (GotoMode.ARTIST,))],
        "m": [Command(k.SHOW_RECOMMENDATIONS, (TargetMode.SELECTED,))],
        "Shift+m": [Command(k.SHOW_RECOMMENDATIONS, (TargetMode.CURRENT,))],
        "Up": [_move(MoveMode.UP)],
        "p": [_move(MoveMode.PLAYING)],
        "Down": [_move(MoveMode.DOWN)],
        "Left": [_move(MoveMode.LEFT)],
        "Right": [_move(MoveMode.RIGHT)],
        "PageUp": [_move(MoveMode.UP, MoveAmount(5))],
        "PageDown": [_move(MoveMode.DOWN, MoveAmount(5))],
        "Home": [_move(MoveMode.UP, MoveAmount.EXTREME)],
        "End": [_move(MoveMode.DOWN, MoveAmount.EXTREME)],
        "k": [_move(MoveMode.UP)],
        "j": [_move(MoveMode.DOWN)],
        "h": [_move(MoveMode.LEFT)],
        "l": [_move(MoveMode.RIGHT)],
        "Ctrl+p": [_move(MoveMode.UP)],
        "Ctrl+n": [_move(MoveMode.DOWN)],
        "Ctrl+a": [_move(MoveMode.LEFT)],
        "Ctrl+e": [_move(MoveMode.RIGHT)],
        "Shift+Up": [Command(k.SHIFT, (ShiftMode.UP, None))],
        "Shift+Down": [Command(k.SHIFT, (ShiftMode.DOWN, None))],
        "Ctrl+v": [Command(k.INSERT, (InsertSource.CLIPBOARD,))],
    }


def parse_key(key: str) -> KeyEvent:
    """Turn a key name into an event; anything unnamed means its first character."""
    if key in _NAMED_KEYS:
        return KeyEvent.key(key)
    if key == "Space":
        return KeyEvent.char(" ")
    if not key:
        raise ValueError("empty key name")
    return KeyEvent.char(key[0])


def parse_keybinding(binding: str) -> KeyEvent | None:
    """Parse a binding such as 'Ctrl+l' or 'Enter'; None for an unknown modifier."""
    parts = binding.split("+")
    if binding == "+" or len(parts) != 2:
        return parse_key(binding)
    modifier, key = parts
    parsed = parse_key(key)
    if modifier not in _MODIFIERS:
        return None
    if parsed.is_char and modifier == "Shift":
        return KeyEvent.char(parsed.value.upper()[0])
    return KeyEvent(parsed.value, parsed.is_char, modifier)


def get_bindings(values: Any) -> dict[str, list[Command]]:
    """Combine the defaults (unless disabled) with the user's own bindings.

    ``values`` carries ``default_keybindings`` (bool or None) and
    ``keybindings`` (a mapping of key names to command text, or None).
    User bindings whose command text does not parse are logged and skipped.
    """
    use_defaults = getattr(values, "default_keybindings", None)
    bindings = default_keybindings() if use_defaults in (None, True) else {}
    custom = getattr(values, "keybindings", None) or {}
    for key, text in custom.items():
        try:
            commands = parse(text)
        except CommandParseError as exc:
            log.error('Invalid command(s) for key %s-"%s": %s', key, text, exc)
            continue
        log.info("Custom keybinding: %s -> %s", key, commands)
        bindings[key] = commands
    return bindings