from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class RasterImage:
    """
    Simple data object: RGBA pixels owned by one extraction request.
    No OpenCV logic outside the repository/service layers.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]
