from .raster_image import RasterImage
from .detection import CircleDescriptor, DetectionResult
from .paper_color import PaperColorEstimate
from .shell_result import ShellResult

__all__ = [
    "RasterImage",
    "CircleDescriptor",
    "DetectionResult",
    "PaperColorEstimate",
    "ShellResult",
]
