from typing import Final, Iterable, Mapping, Optional

import pygame
from logger import log as _log

KEY_COUNT: Final[int] = 16


def key_from_name(name: str) -> Optional[int]:
    """Resolve a config key name ("X", "5", "ENTER", "space") to a pygame key code."""
    py_key_name = name.strip()
    if py_key_name.upper() == "ENTER":
        py_key_name = "RETURN"
    py_key_name = py_key_name.lower() if len(py_key_name) == 1 else py_key_name.upper()
    return getattr(pygame, f"K_{py_key_name}", None)


class Control(object):
    """
    Keyboard state of the sixteen hex keys.

    Mapping comes from the ``keyboard`` config table, hex digit to key name.
    Escape and window close are reported by ``process_events`` as a quit.
    """

    def __init__(self, keyboard: Mapping[str, str]) -> None:
        self.KEY_MAPPING: dict[int, int] = self._build_key_mapping(keyboard)
        self.state: list[bool] = [False] * KEY_COUNT

    @staticmethod
    def _build_key_mapping(keyboard: Mapping[str, str]) -> dict[int, int]:
        mapping = {}
        for hex_key, name in keyboard.items():
            try:
                index = int(hex_key, 16)
            except ValueError:
                _log.warning(f"Invalid hex key '{hex_key}' in config")
                continue
            if not 0 <= index < KEY_COUNT:
                _log.warning(f"Invalid hex key '{hex_key}' in config")
                continue

            py_key = key_from_name(name)
            if py_key is None:
                _log.warning(f"Invalid key '{name}' in config for {hex_key}")
                continue
            mapping[py_key] = index

        return mapping

    def update(self, events: Iterable[pygame.event.Event]) -> None:
        """Update key state based on pygame events"""
        for event in events:
            if event.type == pygame.KEYDOWN:
                if event.key in self.KEY_MAPPING:
                    self.state[self.KEY_MAPPING[event.key]] = True
            elif event.type == pygame.KEYUP:
                if event.key in self.KEY_MAPPING:
                    self.state[self.KEY_MAPPING[event.key]] = False

    def process_events(self, events: Optional[Iterable[pygame.event.Event]] = None) -> bool:
        """
        Drain the pygame queue (or the given events) into the key state.

        Returns:
            False when the window was closed or Escape was pressed.
        """
        events = list(events) if events is not None else pygame.event.get()
        for event in events:
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return False

        self.update(events)
        return True

    def snapshot(self) -> tuple[bool, ...]:
        return tuple(self.state)

    def reset(self) -> None:
        """Clear all key states"""
        self.state = [False] * KEY_COUNT

    def pressed(self, key: int) -> bool:
        return self.state[key & 0x0F]
