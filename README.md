# termspot

The core pieces of a terminal music client:

- a small command language (`playpause`, `seek +10s`, `move pagedown 0.5`,
  `sort title desc`, ...). One line can hold several commands separated by `;`;
  write `;;` for a literal semicolon;
- key bindings: the built-in defaults, plus any you define in your configuration file;
- the configuration file (`config.toml`) and the saved session state (`userstate.cbor`);
- an event channel that passes events from worker threads to a main loop;
- a local Unix domain socket. Other programs can send commands through it and
  read playback status from it as JSON lines.

## What it does not do

termspot does not play audio. It does not log in to a streaming service and it
has no terminal user interface. It parses commands and key bindings, reads and
writes configuration and state, and carries IPC traffic. Nothing here runs the
resulting commands against a player.

## Installation

```
pip install .
```

To install with the test dependency as well:

```
pip install ".[test]"
```

## Command line

```
termspot --help
termspot --version
termspot info
termspot --basepath /tmp/termspot info
```

- `termspot info` prints `USER_CONFIGURATION_PATH` and `USER_CACHE_PATH`. On
  POSIX systems it also prints `USER_RUNTIME_PATH`. A directory that cannot be
  determined is shown as `not found`.
- `--basepath PATH` places every configuration and cache file under `PATH`, in
  `.config` and `.cache`. The directory is created if it does not exist.
- `--config FILE` chooses another configuration file name inside the
  configuration directory. The default is `config.toml`.
- `--debug FILE` appends a debug log to `FILE`.

Run without a subcommand, `termspot` loads the configuration and the saved
state. If the configuration file is invalid, it prints the error and exits with
status 1. Otherwise it exits with status 0.

## The command language

```python
from termspot.parser import parse

commands = parse("seek +1m; volup 5; repeat track")
print([str(c) for c in commands])
# ['seek +60000', 'volup 5', 'repeat track']
```

`parse` returns a list of `termspot.command.Command` objects. Each one holds a
`CommandKind` and its arguments. `str()` of a command gives text that parses
back to the same command. The parser also resolves aliases:

- `q` and `x` for `quit`;
- `pause`, `toggleplay` and `toggleplayback` for `playpause`;
- `loop` for `repeat`.

`termspot.parser.split_commands` splits a line on `;`, and
`termspot.parser.handle_aliases` resolves a single name.

If the input is invalid, `parse` raises a subclass of `CommandParseError`, which
is itself a `ValueError`: `NoSuchCommand`, `InsufficientArgs`, `BadEnumArg` or
`ArgParseError`. The message says what is wrong.

Seek positions are in milliseconds. A position can also be given as a duration
such as `1m 30s` or `1.5` (seconds). A leading `+` or `-` makes the seek
relative.

## Key bindings

In `config.toml`, bind keys to command strings:

```toml
default_keybindings = true

[keybindings]
"Ctrl+k" = "move up 5"
"Shift+Enter" = "playnext; move down"
```

- `termspot.keybindings.get_bindings(values)` combines these with the defaults
  from `default_keybindings()`. It leaves out the defaults when
  `default_keybindings = false`. Entries whose command text does not parse are
  logged and skipped.
- `parse_keybinding` turns a name such as `Ctrl+k` into a `KeyEvent`. It
  returns `None` for an unknown modifier. `Shift` with a character becomes the
  upper-case character.

## Configuration and state

`termspot.config.Config(filename=None)` reads the TOML configuration into a
`ConfigValues` object, available through `values()`. It raises `ConfigError`
when a value is malformed. It also loads the saved `UserState` from
`userstate.cbor`, available through `state()`. If that file is missing or
unreadable, the default state is used.

The configuration options `shuffle`, `repeat` and `playback_state` override the
saved state. `with_state_mut(cb)` changes the state under a lock.
`save_state()` writes the state back. `reload()` re-reads the configuration
file.

Directories come from `platformdirs`; on macOS the XDG-style `~/.config` and
`~/.cache` are used instead. `set_configuration_base_path` replaces all of
them with directories under one base path.

## Events and IPC

`termspot.events.EventManager` is a thread-safe queue of `Event` objects:

- `send(event)` queues an event and calls the optional `on_trigger` callback;
- `msg_iter()` yields the pending events without blocking.

`termspot.ipc.IpcSocket(path, events)` listens on a Unix domain socket:

- Every line a client sends becomes an `Event(EventKind.IPC_INPUT, line)`.
- Every client receives the current status as a JSON line
  `{"mode":...,"playable":...}`, starting with `"Stopped"`. It receives a new
  line whenever `publish(mode, playable)` is called.
- If another instance is already serving at `path`, the socket is created as
  `termspot.<pid>.sock` next to it. A stale socket file is removed first.
- `close()`, or leaving a `with` block, stops the server and removes the socket
  file.