from __future__ import annotations
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.paper_color import PaperColorEstimate
from ..models.raster_image import RasterImage
from .image_service import ImageService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class BackgroundService:
    """
    Business-level helper for paper/background removal.

    • Inside a detected shell: drop everything outside the interior mask and
      the paper tone inside it.
    • Without a shell: strip near-white pixels only.
    Every method returns a **new** RasterImage; the input is never modified.
    """

    # Contrast boost curve: faint marks near the paper tone get MAX_BOOST,
    # marks CAP_DISTANCE or further away get MIN_BOOST.
    MIN_BOOST = 1.5
    MAX_BOOST = 5.5
    CAP_DISTANCE = 150.0

    def __init__(self, paper_distance: float = None, white_threshold: int = None):
        self.PAPER_DISTANCE = float(paper_distance or os.getenv("SHELL_PAPER_DISTANCE", "22"))
        self.WHITE_THR = int(white_threshold or os.getenv("SHELL_WHITE_THRESHOLD", "230"))
        self.image_service = ImageService()

    @staticmethod
    def _copy(image: RasterImage) -> RasterImage:
        return RasterImage(pixels=image.pixels.copy())

    @staticmethod
    def _paper_delta(image: RasterImage, paper: PaperColorEstimate) -> np.ndarray:
        """(H, W, 3) float32 signed difference from the paper colour."""
        return image.rgb.astype(np.float32) - np.asarray(paper.color, dtype=np.float32)

    # --------------------------------------------------------------
    def remove_white(self, image: RasterImage) -> RasterImage:
        """Fallback path: R, G and B all above WHITE_THR → transparent."""
        out = self._copy(image)
        out.pixels[..., 3][self.image_service.white_mask(image, self.WHITE_THR)] = 0
        return out

    def apply_mask(
            self,
            image: RasterImage,
            interior_mask: np.ndarray,
            paper: PaperColorEstimate | None,
    ) -> RasterImage:
        """
        Make non-interior and paper-coloured pixels fully transparent.

        For light, neutral paper the rule is colour distance to the paper tone;
        for coloured or dark stock only pure white is removed so the stock
        itself survives.
        """
        out = self._copy(image)
        alpha = out.pixels[..., 3]

        if paper is not None and paper.is_paper_like:
            delta = self._paper_delta(image, paper)
            near_paper = (delta ** 2).sum(axis=2) < self.PAPER_DISTANCE ** 2
            removable = near_paper
        else:
            removable = self.image_service.white_mask(image, self.WHITE_THR)

        alpha[~interior_mask] = 0
        alpha[interior_mask & removable] = 0
        logger.debug(f"Masked: {int((alpha > 0).sum())} visible pixels remain")
        return out

    def boost_contrast(
            self,
            image: RasterImage,
            interior_mask: np.ndarray,
            paper: PaperColorEstimate | None,
    ) -> RasterImage:
        """
        Push surviving interior pixels away from the paper tone.

        boost = MIN + (MAX - MIN) · max(0, 1 - d / CAP), where d is the RGB
        distance to the paper colour; channels are clamped to [0, 255].
        No-op unless the paper is paper-like.
        """
        if paper is None or not paper.is_paper_like:
            return image

        out = self._copy(image)
        target = interior_mask & (out.pixels[..., 3] > 0)
        if not target.any():
            return out

        delta = self._paper_delta(image, paper)[target]          # (N, 3)
        dist = np.sqrt((delta ** 2).sum(axis=1))
        boost = self.MIN_BOOST + (self.MAX_BOOST - self.MIN_BOOST) * np.maximum(0.0, 1.0 - dist / self.CAP_DISTANCE)

        boosted = np.asarray(paper.color, dtype=np.float32) + delta * boost[:, None]
        out.pixels[..., :3][target] = np.clip(np.floor(boosted + 0.5), 0, 255).astype(np.uint8)
        return out
