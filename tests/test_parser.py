import pytest

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
from termspot.parser import handle_aliases, parse, split_commands


def test_split_commands_on_separator():
    assert split_commands("play;next") == ["play", "next"]


def test_split_commands_escaped_separator():
    assert split_commands("exec echo a;;b") == ["exec echo a;b"]


def test_split_commands_trailing_separator():
    assert split_commands("play;") == ["play"]


@pytest.mark.parametrize(
    "alias,target",
    [
        ("q", "quit"),
        ("x", "quit"),
        ("pause", "playpause"),
        ("toggleplay", "playpause"),
        ("toggleplayback", "playpause"),
        ("loop", "repeat"),
    ],
)
def test_handle_aliases(alias, target):
    assert handle_aliases(alias) == target


def test_handle_aliases_unknown_passthrough():
    assert handle_aliases("seek") == "seek"


def test_empty_input_yields_nothing():
    assert parse("") == []
    assert parse("   ;  ") == []


def test_simple_commands():
    assert parse("q") == [Command(CommandKind.QUIT)]
    assert parse("play; next") == [Command(CommandKind.PLAY), Command(CommandKind.NEXT)]


def test_add_and_save_variants():
    assert parse("add") == [Command(CommandKind.ADD)]
    assert parse("add current") == [Command(CommandKind.ADD_CURRENT)]
    assert parse("save queue") == [Command(CommandKind.SAVE_QUEUE)]
    assert parse("save current") == [Command(CommandKind.SAVE_CURRENT)]


def test_add_bad_argument():
    with pytest.raises(BadEnumArg) as info:
        parse("add foo")
    assert info.value.arg == "foo"
    assert info.value.accept == ["current"]
    assert info.value.optional is True


def test_focus_requires_argument():
    with pytest.raises(InsufficientArgs) as info:
        parse("focus")
    assert str(info.value) == '"focus" requires additional arguments: queue|search|library'


def test_focus_target():
    assert parse("focus queue") == [Command(CommandKind.FOCUS, ("queue",))]


def test_seek_relative_and_absolute():
    assert parse("seek +1000") == [
        Command(CommandKind.SEEK, (SeekDirection(1000, relative=True),))
    ]
    assert parse("seek -1000") == [
        Command(CommandKind.SEEK, (SeekDirection(-1000, relative=True),))
    ]
    assert parse("seek 5000") == [Command(CommandKind.SEEK, (SeekDirection(5000),))]


def test_seek_sign_spacing_is_trimmed():
    assert parse("seek + 1000") == parse("seek +1000")


def test_seek_fancy_duration():
    assert parse("seek 1s") == parse("seek 1000")
    assert parse("seek 1m") == parse("seek 60s")
    assert parse("seek 1.5") == [Command(CommandKind.SEEK, (SeekDirection(1500),))]


def test_seek_errors():
    with pytest.raises(InsufficientArgs):
        parse("seek")
    with pytest.raises(ArgParseError):
        parse("seek bogus")
    with pytest.raises(ArgParseError) as info:
        parse("seek +4294967295")
    assert info.value.err == "Duration value too large"


def test_seek_u32_limit_absolute():
    assert parse("seek 4294967295") == [
        Command(CommandKind.SEEK, (SeekDirection(4294967295),))
    ]


def test_volume():
    assert parse("volup") == [Command(CommandKind.VOLUME_UP, (1,))]
    assert parse("voldown 5") == [Command(CommandKind.VOLUME_DOWN, (5,))]
    with pytest.raises(ArgParseError):
        parse("volup 70000")
    with pytest.raises(ArgParseError):
        parse("voldown -1")


@pytest.mark.parametrize(
    "word,setting",
    [
        ("list", RepeatSetting.REPEAT_PLAYLIST),
        ("queue", RepeatSetting.REPEAT_PLAYLIST),
        ("once", RepeatSetting.REPEAT_TRACK),
        ("single", RepeatSetting.REPEAT_TRACK),
        ("none", RepeatSetting.NONE),
        ("off", RepeatSetting.NONE),
    ],
)
def test_repeat(word, setting):
    assert parse(f"loop {word}") == [Command(CommandKind.REPEAT, (setting,))]


def test_repeat_and_shuffle_toggle():
    assert parse("repeat") == [Command(CommandKind.REPEAT, (None,))]
    assert parse("shuffle") == [Command(CommandKind.SHUFFLE, (None,))]
    assert parse("shuffle on") == [Command(CommandKind.SHUFFLE, (True,))]
    with pytest.raises(BadEnumArg):
        parse("shuffle maybe")


def test_targeted_commands():
    assert parse("open selected") == [Command(CommandKind.OPEN, (TargetMode.SELECTED,))]
    assert parse("similar current") == [
        Command(CommandKind.SHOW_RECOMMENDATIONS, (TargetMode.CURRENT,))
    ]
    with pytest.raises(BadEnumArg) as info:
        parse("share everything")
    assert info.value.optional is False


def test_goto():
    assert parse("goto artist") == [Command(CommandKind.GOTO, (GotoMode.ARTIST,))]
    with pytest.raises(InsufficientArgs):
        parse("goto")


def test_move():
    assert parse("move top") == [
        Command(CommandKind.MOVE, (MoveMode.UP, MoveAmount.EXTREME))
    ]
    assert parse("move pageup 0.5") == [
        Command(CommandKind.MOVE, (MoveMode.UP, MoveAmount(0.5)))
    ]
    assert parse("move down 3") == [Command(CommandKind.MOVE, (MoveMode.DOWN, MoveAmount(3)))]
    assert parse("move playing") == [
        Command(CommandKind.MOVE, (MoveMode.PLAYING, MoveAmount()))
    ]
    assert parse("move pageleft") == [
        Command(CommandKind.MOVE, (MoveMode.LEFT, MoveAmount()))
    ]


def test_move_errors():
    with pytest.raises(ArgParseError):
        parse("move up x")
    with pytest.raises(ArgParseError):
        parse("move pagedown abc")
    with pytest.raises(BadEnumArg):
        parse("move sideways")


def test_shift():
    assert parse("shift up") == [Command(CommandKind.SHIFT, (ShiftMode.UP, None))]
    assert parse("shift down 2") == [Command(CommandKind.SHIFT, (ShiftMode.DOWN, 2))]
    with pytest.raises(BadEnumArg):
        parse("shift left")


def test_search_jump_exec_join_arguments():
    assert parse("search a b") == [Command(CommandKind.SEARCH, ("a b",))]
    assert parse("jump a b") == [Command(CommandKind.JUMP, (JumpMode.for_query("a b"),))]
    assert parse("jumpnext") == [Command(CommandKind.JUMP, (JumpMode.NEXT,))]
    assert parse("exec ls -l") == [Command(CommandKind.EXECUTE, ("ls -l",))]


def test_sort():
    assert parse("sort title") == [
        Command(CommandKind.SORT, (SortKey.TITLE, SortDirection.ASCENDING))
    ]
    assert parse("sort artist d") == [
        Command(CommandKind.SORT, (SortKey.ARTIST, SortDirection.DESCENDING))
    ]
    with pytest.raises(BadEnumArg):
        parse("sort foo")
    with pytest.raises(BadEnumArg):
        parse("sort title sideways")


def test_insert():
    assert parse("insert") == [Command(CommandKind.INSERT, (InsertSource.CLIPBOARD,))]
    url = "spotify:track:0000000000000000000000"
    assert parse(f"insert {url}") == [Command(CommandKind.INSERT, (InsertSource(url),))]
    with pytest.raises(ArgParseError) as info:
        parse("insert nonsense")
    assert info.value.err == "Invalid Spotify URL"


def test_newplaylist():
    assert parse("newplaylist my list") == [Command(CommandKind.NEW_PLAYLIST, ("my list",))]
    with pytest.raises(InsufficientArgs):
        parse("newplaylist")


def test_unknown_command():
    with pytest.raises(NoSuchCommand) as info:
        parse("frobnicate")
    assert info.value.cmd == "frobnicate"


def test_error_in_later_command_fails_everything():
    with pytest.raises(NoSuchCommand):
        parse("play; frobnicate")


@pytest.mark.parametrize(
    "text",
    [
        "seek +1000",
        "seek -500",
        "seek 2000",
        "move top",
        "move down 3",
        "sort title ascending",
        "repeat track",
        "shuffle off",
        "save current",
        "jumpprevious",
        "jump foo bar",
        "volup 5",
        "open selected",
        "goto album",
        "focus queue",
        "newplaylist my list",
        "insert",
    ],
)
def test_round_trip(text):
    commands = parse(text)
    assert parse(str(commands[0])) == commands