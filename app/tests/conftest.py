import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pychip8.cpu import CPU  # noqa: E402
from pychip8.state import MachineState  # noqa: E402


class Keys:
    """Mutable 16-key pad for tests."""

    def __init__(self) -> None:
        self.state = [False] * 16

    def press(self, key: int) -> None:
        self.state[key] = True

    def release(self, key: int) -> None:
        self.state[key] = False

    def __call__(self) -> tuple:
        return tuple(self.state)


def program(*words: int) -> bytes:
    """Assemble 16-bit instruction words into big-endian bytes."""
    return b"".join(w.to_bytes(2, "big") for w in words)


@pytest.fixture
def state() -> MachineState:
    return MachineState()


@pytest.fixture
def keys() -> Keys:
    return Keys()


@pytest.fixture
def make_cpu(keys):
    def _make(*words: int, seed: int = 0) -> CPU:
        return CPU(program(*words), keyboard=keys, rng=np.random.default_rng(seed))

    return _make
