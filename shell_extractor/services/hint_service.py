from __future__ import annotations
import logging
import os

from dotenv import load_dotenv

from ..models.detection import DetectionResult
from ..models.raster_image import RasterImage
from .image_service import ImageService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

REFRAME_HINT = (
    "We couldn't find the whole turtle shell circle. "
    "Please retake the photo so the entire circle is inside the picture."
)


class HintService:
    """
    Decides whether a failed detection looks like a cut-off coloring page.
    """

    def __init__(self, min_dark_ratio: float = None):
        self.MIN_DARK_RATIO = float(min_dark_ratio or os.getenv("SHELL_HINT_DARK_RATIO", "0.05"))
        self.image_service = ImageService()

    def build_hint(self, image: RasterImage, detection: DetectionResult, dark_threshold: int = None) -> str | None:
        """
        Args:
            dark_threshold (int): The ink threshold the detector used; defaults
                to ImageService.DARK_THR.

        Returns:
            REFRAME_HINT when detection failed against the frame edge while the
            photo carries substantial ink; None otherwise.
        """
        if detection.found or not detection.touches_edge:
            return None

        dark_ratio = self.image_service.dark_ratio(image, threshold=dark_threshold)
        logger.debug(f"Hint check: dark_ratio={dark_ratio:.3f} reason={detection.reason}")
        if dark_ratio > self.MIN_DARK_RATIO:
            return REFRAME_HINT
        return None
