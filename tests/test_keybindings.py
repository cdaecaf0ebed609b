from types import SimpleNamespace

import pytest

from termspot.command import Command, CommandKind, MoveAmount, MoveMode
from termspot.keybindings import (
    KeyEvent,
    default_keybindings,
    get_bindings,
    parse_key,
    parse_keybinding,
)
from termspot.parser import parse


def test_parse_named_key():
    assert parse_key("Enter") == KeyEvent("Enter", is_char=False)
    assert parse_key("F12") == KeyEvent("F12", is_char=False)


def test_parse_space_is_char():
    assert parse_key("Space") == KeyEvent(" ", is_char=True)


def test_parse_unnamed_key_takes_first_char():
    assert parse_key("xyz") == KeyEvent("x", is_char=True)


def test_parse_empty_key_raises():
    with pytest.raises(ValueError):
        parse_key("")


def test_shift_char_becomes_upper():
    assert parse_keybinding("Shift+p") == KeyEvent("P", is_char=True)


def test_ctrl_char():
    assert parse_keybinding("Ctrl+l") == KeyEvent("l", is_char=True, modifier="Ctrl")


def test_alt_key():
    assert parse_keybinding("Alt+Up") == KeyEvent("Up", is_char=False, modifier="Alt")


def test_shift_named_key_keeps_modifier():
    assert parse_keybinding("Shift+Down") == KeyEvent("Down", modifier="Shift")


def test_unknown_modifier_is_none():
    assert parse_keybinding("Super+a") is None


def test_plus_alone_is_char():
    assert parse_keybinding("+") == KeyEvent("+", is_char=True)


def test_plain_binding_matches_parse_key():
    for name in ("Enter", "q", "Space", "PageDown"):
        assert parse_keybinding(name) == parse_key(name)


def test_all_defaults_parse():
    parsed = {key: parse_keybinding(key) for key in default_keybindings()}
    unparsed = [key for key, event in parsed.items() if event is None]
    assert unparsed == []
    assert parsed["Ctrl+l"] == KeyEvent("l", is_char=True, modifier="Ctrl")
    assert parsed["Shift+Up"] == KeyEvent("Up", modifier="Shift")
    assert parsed["Shift+n"] == KeyEvent("N", is_char=True)
    assert parsed["Space"] == KeyEvent(" ", is_char=True)
    assert parsed["Home"] == KeyEvent("Home", is_char=False)


def test_default_quit_binding():
    assert default_keybindings()["q"] == [Command(CommandKind.QUIT)]


def test_default_space_queues_and_moves_down():
    assert default_keybindings()["Space"] == [
        Command(CommandKind.QUEUE),
        Command(CommandKind.MOVE, (MoveMode.DOWN, MoveAmount())),
    ]


def test_defaults_round_trip_through_text():
    for key, commands in default_keybindings().items():
        for command in commands:
            if command.kind is CommandKind.SHIFT:
                continue
            assert parse(str(command)) == [command], key


def test_get_bindings_defaults_when_unset():
    values = SimpleNamespace(default_keybindings=None, keybindings=None)
    assert get_bindings(values) == default_keybindings()


def test_get_bindings_without_defaults():
    values = SimpleNamespace(default_keybindings=False, keybindings={"a": "quit"})
    assert get_bindings(values) == {"a": [Command(CommandKind.QUIT)]}


def test_get_bindings_custom_overrides_default():
    values = SimpleNamespace(default_keybindings=True, keybindings={"q": "stop; next"})
    bindings = get_bindings(values)
    assert bindings["q"] == [Command(CommandKind.STOP), Command(CommandKind.NEXT)]
    assert bindings["Enter"] == default_keybindings()["Enter"]


def test_get_bindings_skips_invalid():
    values = SimpleNamespace(
        default_keybindings=False,
        keybindings={"a": "nosuchcommand", "b": "help"},
    )
    assert get_bindings(values) == {"b": [Command(CommandKind.HELP)]}