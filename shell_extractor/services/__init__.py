from .image_service import ImageService
from .border_detection_service import (
    BorderDetector,
    FloodFillBorderDetector,
    GeometricBorderDetector,
    get_border_detector,
)
from .paper_color_service import PaperColorService
from .background_service import BackgroundService
from .cropping_service import CroppingService
from .hint_service import HintService, REFRAME_HINT

__all__ = [
    "ImageService",
    "BorderDetector",
    "FloodFillBorderDetector",
    "GeometricBorderDetector",
    "get_border_detector",
    "PaperColorService",
    "BackgroundService",
    "CroppingService",
    "HintService",
    "REFRAME_HINT",
]
