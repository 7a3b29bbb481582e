from __future__ import annotations
import numpy as np

from ..models.detection import CircleDescriptor, DetectionResult
from ..models.raster_image import RasterImage
from .image_service import ImageService


class CroppingService:
    def __init__(self):
        self.image_service = ImageService()

    @staticmethod
    def mask_bounds(mask: np.ndarray):
        """Inclusive (left, top, right, bottom) of the set pixels, or None if empty."""
        rows = np.flatnonzero(mask.any(axis=1))
        cols = np.flatnonzero(mask.any(axis=0))
        if rows.size == 0:
            return None
        return int(cols[0]), int(rows[0]), int(cols[-1]), int(rows[-1])

    @staticmethod
    def circle_bounds(image: RasterImage, circle: CircleDescriptor):
        r = circle.inset_radius
        left = max(0, circle.cx - r)
        top = max(0, circle.cy - r)
        right = min(image.width - 1, circle.cx + r)
        bottom = min(image.height - 1, circle.cy + r)
        return left, top, right, bottom

    def crop_to_mask(self, image: RasterImage, mask: np.ndarray) -> RasterImage:
        bounds = self.mask_bounds(mask)
        if bounds is None:
            return image
        left, top, right, bottom = bounds
        new_pixels = self.image_service.crop_pixels(image, bound_l=left, bound_t=top,
                                                    bound_r=right + 1, bound_b=bottom + 1)
        return self.image_service.create_image(new_pixels)

    def crop_to_circle(self, image: RasterImage, circle: CircleDescriptor) -> RasterImage:
        """
        Crop to the inset circle's square and clear the corners that fall
        outside the circle.
        """
        left, top, right, bottom = self.circle_bounds(image, circle)
        new_pixels = self.image_service.crop_pixels(image, bound_l=left, bound_t=top,
                                                    bound_r=right + 1, bound_b=bottom + 1)

        ys, xs = np.ogrid[top:bottom + 1, left:right + 1]
        outside = (xs - circle.cx) ** 2 + (ys - circle.cy) ** 2 > circle.inset_radius ** 2
        new_pixels[..., 3][outside] = 0
        return self.image_service.create_image(new_pixels)

    def crop(self, image: RasterImage, detection: DetectionResult) -> RasterImage:
        """Full frame when nothing was detected."""
        if not detection.found:
            return image
        if detection.circle is not None:
            return self.crop_to_circle(image, detection.circle)
        return self.crop_to_mask(image, detection.interior_mask)
