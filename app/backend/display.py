from typing import Final, Optional, Tuple

import numpy as np
import pygame
from logger import log as _log
from numpy.typing import NDArray
from pychip8.errors import ResourceError
from pychip8.state import SCREEN_HEIGHT, SCREEN_WIDTH

Color = Tuple[int, int, int]


class DisplayError(ResourceError):
    pass


class Display:
    """
    pygame window showing the monochrome framebuffer, scaled up.

    ``draw`` takes the flat row-major framebuffer handed out by the CPU's
    ``frame_complete`` event.
    """

    FOREGROUND: Final[Color] = (255, 255, 255)
    BACKGROUND: Final[Color] = (0, 0, 0)

    def __init__(
        self,
        title: str = "PyCHIP8",
        width: int = SCREEN_WIDTH,
        height: int = SCREEN_HEIGHT,
        scale: int = 20,
    ) -> None:
        self.width: Final[int] = width
        self.height: Final[int] = height
        self.scale: Final[int] = scale
        self.frames: int = 0

        self._palette: NDArray[np.uint8] = np.array([self.BACKGROUND, self.FOREGROUND], dtype=np.uint8)
        self._surface: pygame.Surface = pygame.Surface((width, height))
        self._window: Optional[pygame.Surface] = None

        _log.debug(f"Creating window {title!r} with the size of {width * scale}x{height * scale}")
        try:
            self._window = pygame.display.set_mode((width * scale, height * scale))
        except pygame.error as e:
            raise DisplayError(f"Failed to create window: {e}") from e
        pygame.display.set_caption(title)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def to_rgb(self, pixels: NDArray[np.bool_]) -> NDArray[np.uint8]:
        """Map a flat framebuffer to a (width, height, 3) array as surfarray expects."""
        if pixels.size != self.pixel_count:
            raise DisplayError(f"Size mismatch: expected {self.pixel_count} pixels, got {pixels.size}")
        frame = pixels.reshape(self.height, self.width).astype(np.uint8)
        return self._palette[frame.T]

    def draw(self, pixels: NDArray[np.bool_]) -> None:
        rgb = self.to_rgb(pixels)
        if self._window is None:
            raise DisplayError("Window is closed")

        pygame.surfarray.blit_array(self._surface, rgb)
        pygame.transform.scale(self._surface, self._window.get_size(), self._window)
        pygame.display.flip()
        self.frames += 1

    def close(self) -> None:
        if self._window is not None:
            _log.debug("Closing window")
            pygame.display.quit()
            self._window = None
