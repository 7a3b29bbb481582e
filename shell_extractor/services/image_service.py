from pathlib import Path
from typing import Tuple, Union
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.raster_image import RasterImage
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ImageService:
    """Raster normalization and pixel-level helpers.  No detection logic."""

    DARK_THR = 60  # matches FloodFillBorderDetector.DARK_THRESHOLD

    def __init__(self, max_side: int = None):
        self.MAX_SIDE = int(max_side or os.getenv("SHELL_MAX_SIDE", "800"))
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray) -> RasterImage:
        return self.image_repository.create_image(pixels)

    # ─── Raster normalizer ─────────────────────────────────────────
    def fit_inside(self, width: int, height: int) -> Tuple[int, int]:
        """
        Target size that fits within MAX_SIDE x MAX_SIDE, aspect preserved.
        Never scales up.
        """
        scale = min(self.MAX_SIDE / width, self.MAX_SIDE / height, 1.0)
        if scale >= 1.0:
            return width, height
        return max(1, round(width * scale)), max(1, round(height * scale))

    def normalize(self, buffer: bytes) -> RasterImage:
        """
        Decode arbitrary image bytes to RGBA and downscale to the working frame.

        Raises:
            DecodeError: propagated from the repository for undecodable input.
        """
        image = self.image_repository.decode(buffer)
        target_w, target_h = self.fit_inside(image.width, image.height)
        if (target_w, target_h) != (image.width, image.height):
            logger.debug(f"Resizing {image.width}x{image.height} → {target_w}x{target_h}")
            image = self.image_repository.resize(image, target_w, target_h)
        return image

    def encode(self, image: RasterImage) -> str:
        return self.image_repository.encode_png_data_uri(image)

    def save(self, image: Union[RasterImage, str], path: Union[str, Path]) -> Path:
        return self.image_repository.save_png(image, path)

    # ─── Pixel classification ──────────────────────────────────────
    def dark_mask(self, image: RasterImage, threshold: int = None) -> np.ndarray:
        """
        Args:
            image (RasterImage): Normalized raster.
            threshold (int): Channel ceiling; a pixel is dark when R, G and B are all below it.

        Returns:
            (H, W) bool array, True for ink-dark pixels.  Fully transparent
            pixels are never ink.
        """
        thr = self.DARK_THR if threshold is None else threshold
        return np.all(image.rgb < thr, axis=2) & (image.alpha > 0)

    def dark_ratio(self, image: RasterImage, dark_mask: np.ndarray = None, threshold: int = None) -> float:
        if dark_mask is None:
            dark_mask = self.dark_mask(image, threshold)
        return float(dark_mask.sum()) / max(1, image.total_pixels)

    @staticmethod
    def white_mask(image: RasterImage, threshold: int) -> np.ndarray:
        return np.all(image.rgb > threshold, axis=2)

    @staticmethod
    def crop_pixels(image: RasterImage, bound_l: int, bound_t: int, bound_r: int, bound_b: int) -> np.ndarray:
        """Copy the half-open rectangle [bound_l, bound_r) x [bound_t, bound_b)."""
        if bound_l >= bound_r or bound_t >= bound_b:
            raise ValueError(
                f"Invalid crop bounds ({bound_l},{bound_t},{bound_r},{bound_b}) "
                f"for {image.width}x{image.height} image"
            )
        return image.pixels[bound_t:bound_b, bound_l:bound_r].copy()
