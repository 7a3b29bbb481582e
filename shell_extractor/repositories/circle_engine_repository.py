from typing import List
import cv2
import numpy as np

from ..models.circle_engine import CircleEngine
from ..models.raster_image import RasterImage


class CircleEngineRepository:
    """
    Thin wrapper around CircleEngine that provides low-level access to circle candidates.
    """

    def __init__(self):
        self.engine = CircleEngine()  # Singleton is handled inside

    @staticmethod
    def to_grayscale(image: RasterImage) -> np.ndarray:
        return cv2.cvtColor(np.ascontiguousarray(image.pixels), cv2.COLOR_RGBA2GRAY)

    def infer_circles(self, image: RasterImage, min_radius: int, max_radius: int) -> List[tuple]:
        """Returns (cx, cy, r) integer triples, strongest accumulator first."""
        gray = self.to_grayscale(image)
        raw = self.engine.circles(gray, min_radius, max_radius)
        return [(int(round(cx)), int(round(cy)), int(round(r))) for cx, cy, r in raw]
