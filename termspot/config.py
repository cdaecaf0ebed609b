"""User configuration, persisted runtime state and the directories they live in."""

from __future__ import annotations

import logging
import os
import sys
import threading
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any

import cbor2
import platformdirs

from termspot.command import RepeatSetting, SortDirection, SortKey

log = logging.getLogger(__name__)

APP_NAME = "termspot"
CONFIGURATION_FILE_NAME = "config.toml"
USER_STATE_FILE_NAME = "userstate.cbor"
CACHE_VERSION = 1
DEFAULT_COMMAND_KEY = ":"


class ConfigError(Exception):
    """Raised when the configuration cannot be read or has invalid values."""


class PlaybackState(Enum):
    """The playback state when the player is started."""

    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"
    DEFAULT = "Default"


class LibraryTab(Enum):
    """The library tabs that can be shown."""

    TRACKS = "tracks"
    ALBUMS = "albums"
    ARTISTS = "artists"
    PLAYLISTS = "playlists"
    PODCASTS = "podcasts"
    BROWSE = "browse"


@dataclass
class TrackFormat:
    """The format used to represent tracks in a list."""

    left: str | None = None
    center: str | None = None
    right: str | None = None

    @classmethod
    def default(cls) -> TrackFormat:
        return cls("%artists - %title", "%album", "%saved %duration")


@dataclass
class NotificationFormat:
    """The format of desktop notifications about playback."""

    title: str | None = None
    body: str | None = None

    @classmethod
    def default(cls) -> NotificationFormat:
        return cls("%title", "%artists")


@dataclass
class Credentials:
    """Commands used to obtain user credentials automatically."""

    username_cmd: str | None = None
    password_cmd: str | None = None


@dataclass
class ConfigTheme:
    """Colours of the user interface."""

    background: str | None = None
    primary: str | None = None
    secondary: str | None = None
    title: str | None = None
    playing: str | None = None
    playing_selected: str | None = None
    playing_bg: str | None = None
    highlight: str | None = None
    highlight_bg: str | None = None
    highlight_inactive_bg: str | None = None
    error: str | None = None
    error_bg: str | None = None
    statusbar_progress: str | None = None
    statusbar_progress_bg: str | None = None
    statusbar: str | None = None
    statusbar_bg: str | None = None
    cmdline: str | None = None
    cmdline_bg: str | None = None
    search_match: str | None = None


@dataclass
class ConfigValues:
    """The values set by the user in the configuration file."""

    command_key: str | None = None
    initial_screen: str | None = None
    default_keybindings: bool | None = None
    keybindings: dict[str, str] | None = None
    theme: ConfigTheme | None = None
    use_nerdfont: bool | None = None
    flip_status_indicators: bool | None = None
    audio_cache: bool | None = None
    audio_cache_size: int | None = None
    backend: str | None = None
    backend_device: str | None = None
    volnorm: bool | None = None
    volnorm_pregain: float | None = None
    notify: bool | None = None
    bitrate: int | None = None
    gapless: bool | None = None
    shuffle: bool | None = None
    repeat: RepeatSetting | None = None
    cover_max_scale: float | None = None
    playback_state: PlaybackState | None = None
    track_format: TrackFormat | None = None
    notification_format: NotificationFormat | None = None
    statusbar_format: str | None = None
    library_tabs: list[LibraryTab] | None = None
    hide_display_names: bool | None = None
    credentials: Credentials | None = None
    ap_port: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigValues:
        """Build values from parsed TOML; unknown keys are ignored."""
        return _build(cls, data, "")


Converter = Callable[[str, Any], Any]


def _fail(name: str, expected: str, value: Any) -> None:
    raise ConfigError(f"invalid value for `{name}`: expected {expected}, found {value!r}")


def _string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        _fail(name, "a string", value)
    return value


def _boolean(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        _fail(name, "a boolean", value)
    return value


def _char(name: str, value: Any) -> str:
    if not isinstance(value, str) or len(value) != 1:
        _fail(name, "a single character", value)
    return value


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(name, "a number", value)
    return float(value)


def _unsigned(bits: int) -> Converter:
    def convert(name: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**bits:
            _fail(name, f"an unsigned {bits}-bit integer", value)
        return value

    return convert


def _enum(cls: type[Enum]) -> Converter:
    def convert(name: str, value: Any) -> Enum:
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(str(member.value) for member in cls)
            _fail(name, f"one of {choices}", value)
            raise

    return convert


def _list(item: Converter) -> Converter:
    def convert(name: str, value: Any) -> list:
        if not isinstance(value, list):
            _fail(name, "a list", value)
        return [item(f"{name}[{position}]", entry) for position, entry in enumerate(value)]

    return convert


def _table(item: Converter) -> Converter:
    def convert(name: str, value: Any) -> dict:
        if not isinstance(value, Mapping):
            _fail(name, "a table", value)
        return {str(key): item(f"{name}.{key}", entry) for key, entry in value.items()}

    return convert


def _struct(cls: type) -> Converter:
    def convert(name: str, value: Any) -> Any:
        if not isinstance(value, Mapping):
            _fail(name, "a table", value)
        return _build(cls, value, name)

    return convert


def _all_strings(cls: type) -> dict[str, Converter]:
    return {f.name: _string for f in fields(cls)}


_SPECS: dict[type, dict[str, Converter]] = {
    TrackFormat: _all_strings(TrackFormat),
    NotificationFormat: _all_strings(NotificationFormat),
    Credentials: _all_strings(Credentials),
    ConfigTheme: _all_strings(ConfigTheme),
    ConfigValues: {
        "command_key": _char,
        "initial_screen": _string,
        "default_keybindings": _boolean,
        "keybindings": _table(_string),
        "theme": _struct(ConfigTheme),
        "use_nerdfont": _boolean,
        "flip_status_indicators": _boolean,
        "audio_cache": _boolean,
        "audio_cache_size": _unsigned(32),
        "backend": _string,
        "backend_device": _string,
        "volnorm": _boolean,
        "volnorm_pregain": _number,
        "notify": _boolean,
        "bitrate": _unsigned(32),
        "gapless": _boolean,
        "shuffle": _boolean,
        "repeat": _enum(RepeatSetting),
        "cover_max_scale": _number,
        "playback_state": _enum(PlaybackState),
        "track_format": _struct(TrackFormat),
        "notification_format": _struct(NotificationFormat),
        "statusbar_format": _string,
        "library_tabs": _list(_enum(LibraryTab)),
        "hide_display_names": _boolean,
        "credentials": _struct(Credentials),
        "ap_port": _unsigned(16),
    },
}


def _build(cls: type, data: Mapping[str, Any], prefix: str) -> Any:
    spec = _SPECS[cls]
    kwargs = {
        key: spec[key](f"{prefix}.{key}" if prefix else key, value)
        for key, value in data.items()
        if key in spec
    }
    return cls(**kwargs)


@dataclass
class SortingOrder:
    """The ordering used when showing a playlist."""

    key: SortKey
    direction: SortDirection


def _duration_to_wire(value: timedelta) -> dict[str, int]:
    micros = value // timedelta(microseconds=1)
    secs, rest = divmod(micros, 1_000_000)
    return {"secs": secs, "nanos": rest * 1000}


def _duration_from_wire(value: Any) -> timedelta:
    if not isinstance(value, Mapping):
        _fail("track_progress", "a duration", value)
    secs = _unsigned(64)("track_progress.secs", value["secs"])
    nanos = _unsigned(32)("track_progress.nanos", value["nanos"])
    return timedelta(seconds=secs, microseconds=nanos // 1000)


def _optional(convert: Converter) -> Converter:
    def wrapper(name: str, value: Any) -> Any:
        return None if value is None else convert(name, value)

    return wrapper


@dataclass
class QueueState:
    """The runtime state of the play queue."""

    current_track: int | None = None
    random_order: list[int] | None = None
    track_progress: timedelta = field(default_factory=timedelta)
    queue: list[Any] = field(default_factory=list)


@dataclass
class UserState:
    """Runtime state persisted across sessions."""

    volume: int = 2**16 - 1
    shuffle: bool = False
    repeat: RepeatSetting = RepeatSetting.NONE
    queuestate: QueueState = field(default_factory=QueueState)
    playlist_orders: dict[str, SortingOrder] = field(default_factory=dict)
    cache_version: int = 0
    playback_state: PlaybackState = PlaybackState.DEFAULT

    def to_dict(self) -> dict[str, Any]:
        queuestate = self.queuestate
        return {
            "volume": self.volume,
            "shuffle": self.shuffle,
            "repeat": self.repeat.value,
            "queuestate": {
                "current_track": queuestate.current_track,
                "random_order": queuestate.random_order,
                "track_progress": _duration_to_wire(queuestate.track_progress),
                "queue": list(queuestate.queue),
            },
            "playlist_orders": {
                playlist: {
                    "key": order.key.name.title(),
                    "direction": order.direction.name.title(),
                }
                for playlist, order in self.playlist_orders.items()
            },
            "cache_version": self.cache_version,
            "playback_state": self.playback_state.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserState:
        """Rebuild the state; raises ConfigError, KeyError or TypeError on bad data."""
        raw_queue = data["queuestate"]
        queue = raw_queue["queue"]
        if not isinstance(queue, list):
            _fail("queuestate.queue", "a list", queue)
        queuestate = QueueState(
            current_track=_optional(_unsigned(64))("current_track", raw_queue["current_track"]),
            random_order=_optional(_list(_unsigned(64)))(
                "random_order", raw_queue["random_order"]
            ),
            track_progress=_duration_from_wire(raw_queue["track_progress"]),
            queue=queue,
        )
        orders = {
            str(playlist): SortingOrder(
                key=SortKey[order["key"].upper()],
                direction=SortDirection[order["direction"].upper()],
            )
            for playlist, order in data["playlist_orders"].items()
        }
        return cls(
            volume=_unsigned(16)("volume", data["volume"]),
            shuffle=_boolean("shuffle", data["shuffle"]),
            repeat=_enum(RepeatSetting)("repeat", data["repeat"]),
            queuestate=queuestate,
            playlist_orders=orders,
            cache_version=_unsigned(16)("cache_version", data["cache_version"]),
            playback_state=_enum(PlaybackState)("playback_state", data["playback_state"]),
        )


@dataclass(frozen=True)
class AppDirs:
    """The directories the application reads and writes its files in."""

    cache_dir: Path
    config_dir: Path
    data_dir: Path
    state_dir: Path


_base_path: Path | None = None
_base_lock = threading.Lock()


def _xdg(variable: str, fallback: str) -> Path:
    value = os.environ.get(variable)
    root = Path(value) if value else Path.home() / fallback
    return root / APP_NAME


def try_proj_dirs() -> AppDirs:
    """Return the application directories; raise ConfigError if none can be found."""
    with _base_lock:
        base = _base_path
    if base is not None:
        return AppDirs(
            cache_dir=base / ".cache",
            config_dir=base / ".config",
            data_dir=base / ".local" / "share",
            state_dir=base / ".local" / "state",
        )
    try:
        if sys.platform == "darwin":
            return AppDirs(
                cache_dir=_xdg("XDG_CACHE_HOME", ".cache"),
                config_dir=_xdg("XDG_CONFIG_HOME", ".config"),
                data_dir=_xdg("XDG_DATA_HOME", ".local/share"),
                state_dir=_xdg("XDG_STATE_HOME", ".local/state"),
            )
        dirs = platformdirs.PlatformDirs(APP_NAME, appauthor=False)
        return AppDirs(
            cache_dir=Path(dirs.user_cache_dir),
            config_dir=Path(dirs.user_config_dir),
            data_dir=Path(dirs.user_data_dir),
            state_dir=Path(dirs.user_state_dir),
        )
    except (RuntimeError, KeyError, OSError) as exc:
        raise ConfigError("Couldn't determine platform standard directories") from exc


def user_configuration_directory() -> Path | None:
    """The user's configuration directory, or None if it cannot be determined."""
    try:
        return try_proj_dirs().config_dir
    except ConfigError:
        return None


def user_cache_directory() -> Path | None:
    """The user's cache directory, or None if it cannot be determined."""
    try:
        return try_proj_dirs().cache_dir
    except ConfigError:
        return None


def config_path(file: str) -> Path:
    """Ensure the configuration directory exists and return the path of file in it.

    Anything that is not a directory but has the directory's name is removed.
    """
    cfg_dir = user_configuration_directory()
    if cfg_dir is None:
        raise ConfigError("configuration directory could not be determined")
    if cfg_dir.exists() and not cfg_dir.is_dir():
        cfg_dir.unlink()
    cfg_dir.mkdir(parents=True, exist_ok=True)
    return cfg_dir / file


def cache_path(file: str) -> Path:
    """Ensure the cache directory exists and return the path of file in it."""
    cache_dir = user_cache_directory()
    if cache_dir is None:
        raise ConfigError("cache directory could not be determined")
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir / file


def set_configuration_base_path(base_path: str | os.PathLike[str] | None) -> None:
    """Make all configuration and cache files relative to base_path, if given."""
    global _base_path
    if base_path is None:
        return
    path = Path(base_path)
    path.mkdir(parents=True, exist_ok=True)
    with _base_lock:
        _base_path = path


def _load(filename: str) -> ConfigValues:
    path = config_path(filename)
    if not path.exists():
        return ConfigValues()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(exc)) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"could not read {path}: {exc}") from exc
    return ConfigValues.from_mapping(data)


def _load_state() -> UserState:
    path = config_path(USER_STATE_FILE_NAME)
    if not path.exists():
        return UserState()
    try:
        data = cbor2.loads(path.read_bytes())
        if not isinstance(data, Mapping):
            raise ConfigError("user state is not a map")
        return UserState.from_dict(data)
    except (cbor2.CBORDecodeError, OSError, ConfigError, KeyError, TypeError,
            ValueError, AttributeError) as exc:
        log.warning("could not load user state, using defaults: %s", exc)
        return UserState()


class Config:
    """The user configuration together with the persisted runtime state."""

    def __init__(self, filename: str | None = None) -> None:
        self.filename = filename or CONFIGURATION_FILE_NAME
        try:
            values = _load(self.filename)
        except ConfigError as exc:
            cfg_dir = user_configuration_directory()
            location = cfg_dir / CONFIGURATION_FILE_NAME if cfg_dir else CONFIGURATION_FILE_NAME
            raise ConfigError(
                f"There is an error in your configuration file at {location}:\n\n{exc}"
            ) from exc

        state = _load_state()
        if values.shuffle is not None:
            state.shuffle = values.shuffle
        if values.repeat is not None:
            state.repeat = values.repeat
        if values.playback_state is not None:
            state.playback_state = values.playback_state

        self._lock = threading.RLock()
        self._values = values
        self._state = state

    def values(self) -> ConfigValues:
        """The values set by the user."""
        with self._lock:
            return self._values

    def state(self) -> UserState:
        """The runtime state."""
        with self._lock:
            return self._state

    def with_state_mut(self, cb: Callable[[UserState], Any]) -> None:
        """Run cb on the runtime state while holding the lock."""
        with self._lock:
            cb(self._state)

    def save_state(self) -> None:
        """Write the runtime state to the configuration directory."""
        self.with_state_mut(lambda state: setattr(state, "cache_version", CACHE_VERSION))
        path = config_path(USER_STATE_FILE_NAME)
        log.debug("saving user state to %s", path)
        with self._lock:
            encoded = cbor2.dumps(self._state.to_dict())
        try:
            path.write_bytes(encoded)
        except OSError as exc:
            log.error("Could not save user state: %s", exc)

    def reload(self) -> None:
        """Read the configuration file again; raise ConfigError if it is invalid."""
        values = _load(self.filename)
        with self._lock:
            self._values = values