from pathlib import Path
from typing import Union
from io import BytesIO
import base64
import logging

import numpy as np
import cv2
from PIL import Image as PILImage, UnidentifiedImageError

from ..exceptions import DecodeError, EncodeError
from ..models.raster_image import RasterImage

logger = logging.getLogger(__name__)

PNG_DATA_URI_PREFIX = "data:image/png;base64,"


class ImageRepository:
    """
    Handles byte/file I/O and pixel updates for RasterImage entities.
    """

    @staticmethod
    def create_image(pixels: np.ndarray) -> RasterImage:
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA pixels, got shape {pixels.shape}")
        return RasterImage(pixels=np.ascontiguousarray(pixels, dtype=np.uint8))

    @staticmethod
    def decode(buffer: bytes) -> RasterImage:
        """
        Decode any Pillow-readable container into RGBA pixels.

        Raises:
            DecodeError: if the bytes are empty or not an image.
        """
        if not buffer:
            raise DecodeError("Empty image buffer")
        try:
            with PILImage.open(BytesIO(buffer)) as pil_img:
                pil_img.load()
                rgba = pil_img.convert("RGBA")
        except (UnidentifiedImageError, PILImage.DecompressionBombError, OSError, ValueError) as err:
            raise DecodeError(f"Unreadable image data: {err}") from err
        return RasterImage(pixels=np.array(rgba, dtype=np.uint8))

    @staticmethod
    def resize(image: RasterImage, width: int, height: int) -> RasterImage:
        # INTER_AREA is the shrink-friendly filter; callers never upscale.
        resized = cv2.resize(image.pixels, (width, height), interpolation=cv2.INTER_AREA)
        return RasterImage(pixels=resized)

    @staticmethod
    def encode_png(image: RasterImage) -> bytes:
        try:
            pil_image = PILImage.fromarray(np.ascontiguousarray(image.pixels, dtype=np.uint8))
            buffer = BytesIO()
            pil_image.save(buffer, format="PNG")
        except (ValueError, TypeError, OSError) as err:
            raise EncodeError(f"PNG encoding failed: {err}") from err
        return buffer.getvalue()

    def encode_png_data_uri(self, image: RasterImage) -> str:
        """Convert a RasterImage to a base64 PNG data URI."""
        base64_string = base64.b64encode(self.encode_png(image)).decode("utf-8")
        return f"{PNG_DATA_URI_PREFIX}{base64_string}"

    @staticmethod
    def decode_data_uri(data_uri: str) -> bytes:
        if not data_uri.startswith("data:image/") or ";base64," not in data_uri:
            raise DecodeError("Not a base64 image data URI")
        return base64.b64decode(data_uri.split(";base64,", 1)[1])

    def save_png(self, image: Union[RasterImage, str], path: Union[str, Path]) -> Path:
        """Write either a RasterImage or an already-encoded PNG data URI to disk."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(image, str):
            payload = self.decode_data_uri(image)
        else:
            payload = self.encode_png(image)
        path.write_bytes(payload)
        logger.debug(f"Saved PNG: {path}")
        return path
