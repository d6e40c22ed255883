from typing import Final, Optional

import numpy as np
import pygame
from logger import log as _log
from numpy.typing import NDArray
from pygame import mixer

SAMPLE_RATE: Final[int] = 44100


def square_wave(sample_rate: int, frequency: int, amplitude: int, channels: int = 1) -> NDArray[np.int16]:
    """
    One period of a square wave, as signed 16 bit samples.

    amplitude is on the 0-255 scale of the config file.
    """
    period = max(2, round(sample_rate / frequency))
    level = amplitude * 128
    samples = np.full(period, -level, dtype=np.int16)
    samples[: period // 2] = level
    if channels > 1:
        samples = np.repeat(samples[:, np.newaxis], channels, axis=1)
    return samples


class Beeper:
    """
    Looping tone switched on and off by the sound timer.

    When the mixer cannot be opened the beeper stays silent; audio is never
    a reason to stop the interpreter.
    """

    def __init__(self, frequency: int = 440, amplitude: int = 128, enable: bool = True) -> None:
        self.frequency: Final[int] = frequency
        self.amplitude: Final[int] = amplitude
        self.playing: bool = False
        self._sound: Optional[mixer.Sound] = None
        self._channel: Optional[mixer.Channel] = None

        if not enable:
            _log.info("Audio disabled in config")
            return

        _log.debug(f"Creating beeper with {frequency} Hz and amplitude of {amplitude}")
        try:
            if not mixer.get_init():
                mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1, buffer=512)
            sample_rate, _size, channels = mixer.get_init()
            self._sound = pygame.sndarray.make_sound(square_wave(sample_rate, frequency, amplitude, channels))
        except pygame.error as e:
            _log.error(f"Unable to open audio device, sound disabled: {e}")
            self._sound = None

    @property
    def available(self) -> bool:
        return self._sound is not None

    def start(self) -> None:
        if self.playing:
            return
        self.playing = True
        if self._sound is not None:
            _log.debug("Beeper audio start")
            self._channel = self._sound.play(loops=-1)

    def stop(self) -> None:
        if not self.playing:
            return
        self.playing = False
        if self._sound is not None:
            _log.debug("Beeper audio pause")
            self._sound.stop()
            self._channel = None
