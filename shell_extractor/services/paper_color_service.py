from __future__ import annotations
import logging

import numpy as np

from ..models.paper_color import PaperColorEstimate
from ..models.raster_image import RasterImage

logger = logging.getLogger(__name__)


class PaperColorService:
    """
    Estimates the blank-paper tone inside the shell.

    Children draw shapes and patterns rather than uniform fills, so the paper
    stays the per-channel median even when one colour dominates.
    """

    MIN_BRIGHTNESS = 160
    MAX_SPREAD = 50

    def estimate(self, image: RasterImage, interior_mask: np.ndarray) -> PaperColorEstimate | None:
        """
        Args:
            image (RasterImage): Normalized raster.
            interior_mask (np.ndarray): (H, W) bool, True inside the shell.

        Returns:
            PaperColorEstimate, or None when the mask selects no pixels.
        """
        interior = image.rgb[interior_mask]  # (N, 3)
        if interior.size == 0:
            return None

        # Upper median of each independently sorted channel.
        mid = interior.shape[0] // 2
        r, g, b = (int(np.partition(interior[:, ch], mid)[mid]) for ch in range(3))

        brightness = (r + g + b) / 3
        spread = max(r, g, b) - min(r, g, b)
        is_paper_like = brightness > self.MIN_BRIGHTNESS and spread < self.MAX_SPREAD

        logger.debug(f"Paper colour ({r},{g},{b}) brightness={brightness:.1f} spread={spread} paper_like={is_paper_like}")
        return PaperColorEstimate(color=(r, g, b), brightness=brightness,
                                  spread=spread, is_paper_like=is_paper_like)
