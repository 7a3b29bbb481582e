from .image_repository import ImageRepository, PNG_DATA_URI_PREFIX
from .circle_engine_repository import CircleEngineRepository

__all__ = [
    "ImageRepository",
    "PNG_DATA_URI_PREFIX",
    "CircleEngineRepository",
]
