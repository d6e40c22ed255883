from util.config import DEFAULT_CONFIG, _deep_merge, _validate_config, load_config
from copy import deepcopy

import pytest


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "config.toml")
    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG


def test_default_keymap():
    assert "".join(DEFAULT_CONFIG["keyboard"][f"{i:X}"] for i in range(16)) == "X234WERASDZC5TFV"


def test_overrides_are_merged(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[general]\ncpu_hz = 700\n\n[keyboard]\na = "Q"\n', encoding="utf-8")
    cfg = load_config(path)
    assert cfg["general"]["cpu_hz"] == 700
    assert cfg["general"]["scale"] == DEFAULT_CONFIG["general"]["scale"]
    assert cfg["keyboard"]["A"] == "Q"
    assert cfg["keyboard"]["0"] == "X"


def test_invalid_values_keep_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[general]\nscale = -1\n", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_broken_toml_keeps_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[general\n", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_deep_merge():
    target = {"a": {"b": 1, "c": 2}, "d": 3}
    _deep_merge(target, {"a": {"b": 5}, "e": 6})
    assert target == {"a": {"b": 5, "c": 2}, "d": 3, "e": 6}


@pytest.mark.parametrize(
    "section, key, value",
    [
        ("general", "cpu_hz", 0),
        ("general", "timer_hz", True),
        ("audio", "enable", "yes"),
        ("audio", "amplitude", 300),
        ("keyboard", "G", "Q"),
        ("keyboard", "1", ""),
    ],
)
def test_validation(section, key, value):
    cfg = deepcopy(DEFAULT_CONFIG)
    cfg[section][key] = value
    with pytest.raises(ValueError):
        _validate_config(cfg)
