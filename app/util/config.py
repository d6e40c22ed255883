from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, TypedDict, Union

import tomllib
from logger import log as _log
from resources import config_file

HEX_KEYS = tuple(f"{i:X}" for i in range(16))


class GeneralConfig(TypedDict):
    scale: int
    cpu_hz: int
    timer_hz: int


class AudioConfig(TypedDict):
    enable: bool
    frequency: int
    amplitude: int


# Keys "0".."F" -> pygame key names
KeyboardConfig = dict[str, str]


class Config(TypedDict):
    general: GeneralConfig
    audio: AudioConfig
    keyboard: KeyboardConfig


DEFAULT_CONFIG: Config = {
    "general": {"scale": 20, "cpu_hz": 500, "timer_hz": 60},
    "audio": {"enable": True, "frequency": 440, "amplitude": 128},
    "keyboard": {
        "0": "X",
        "1": "2",
        "2": "3",
        "3": "4",
        "4": "W",
        "5": "E",
        "6": "R",
        "7": "A",
        "8": "S",
        "9": "D",
        "A": "Z",
        "B": "C",
        "C": "5",
        "D": "T",
        "E": "F",
        "F": "V",
    },
}


def _deep_merge(
    target: MutableMapping[str, Any],
    overrides: Mapping[str, Any],
) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_config(cfg: Config) -> None:
    """Light validation, raises ValueError on the first bad entry."""
    for name in ("scale", "cpu_hz", "timer_hz"):
        if not _is_positive_int(cfg["general"][name]):
            raise ValueError(f"general.{name} must be a positive integer")

    if not isinstance(cfg["audio"]["enable"], bool):
        raise ValueError("audio.enable must be a boolean")

    if not _is_positive_int(cfg["audio"]["frequency"]):
        raise ValueError("audio.frequency must be a positive integer")

    amplitude = cfg["audio"]["amplitude"]
    if not isinstance(amplitude, int) or isinstance(amplitude, bool) or not 0 <= amplitude <= 255:
        raise ValueError("audio.amplitude must be an integer between 0 and 255")

    for key, name in cfg["keyboard"].items():
        if key not in HEX_KEYS:
            raise ValueError(f"keyboard.{key} is not a hex key (expected 0-F)")
        if not isinstance(name, str) or not name:
            raise ValueError(f"keyboard.{key} must be a non-empty key name")


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """
    Read the TOML config over the defaults.

    A missing file yields the defaults; a broken or invalid file is logged
    and the defaults are kept.
    """
    path = Path(path) if path is not None else config_file
    if not path.exists():
        return deepcopy(DEFAULT_CONFIG)

    config = deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            raise ValueError("Config file root must be a table (dict).")

        # Key names are case-insensitive hex digits
        if isinstance(data.get("keyboard"), dict):
            data["keyboard"] = {str(k).upper(): v for k, v in data["keyboard"].items()}

        merged = _deep_merge(deepcopy(DEFAULT_CONFIG), data)
        _validate_config(merged)  # type: ignore[arg-type]
        config = merged  # type: ignore[assignment]

    except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
        _log.error(f"Failed to load config: {e}", exc_info=(type(e), e, e.__traceback__))

    return config
