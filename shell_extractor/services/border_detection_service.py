"""
Border detectors: decide whether a thick dark border encloses the middle of
the photo and, if so, which pixels lie inside it.

Two interchangeable strategies share the BorderDetector contract:

• FloodFillBorderDetector — no shape assumption; grows a region from the
  centre with dark ink as the barrier.  Handles hand-drawn outlines.
• GeometricBorderDetector — Hough circle search verified against dark ink
  around the circumference.  Survives small gaps in the printed circle.

Their thresholds were tuned independently; keep them on their own classes.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import math
import os
from typing import List, Optional, Tuple

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.detection import CircleDescriptor, DetectionResult
from ..models.raster_image import RasterImage
from ..repositories.circle_engine_repository import CircleEngineRepository
from .image_service import ImageService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class BorderDetector(ABC):
    """Common capability: detect(image) → DetectionResult."""

    name: str = ""
    boost_contrast: bool = False  # whether the pipeline should amplify faint marks

    @abstractmethod
    def detect(self, image: RasterImage) -> DetectionResult:
        ...


# ─── Flood fill ────────────────────────────────────────────────────
class FloodFillBorderDetector(BorderDetector):
    name = "flood_fill"
    boost_contrast = True

    DARK_THRESHOLD = 60
    START_SEARCH_FRACTION = 0.15   # of min(width, height)
    MIN_FILL_RATIO = 0.03
    MAX_FILL_RATIO = 0.7
    EDGE_TOUCH_FACTOR = 0.53       # allowed edge pixels = factor · √filled
    ERODE_ITERATIONS = 3

    def __init__(self, image_service: ImageService = None):
        self.image_service = image_service or ImageService()

    def find_start(self, dark: np.ndarray) -> Optional[Tuple[int, int]]:
        """
        Spiral outward from the centre in square rings and return the first
        non-dark (x, y).  None if every pixel within the search radius is ink.
        """
        height, width = dark.shape
        cx, cy = width // 2, height // 2
        max_ring = int(min(width, height) * self.START_SEARCH_FRACTION)

        for ring in range(max_ring + 1):
            for x, y in self._ring(cx, cy, ring):
                if 0 <= x < width and 0 <= y < height and not dark[y, x]:
                    return x, y
        return None

    @staticmethod
    def _ring(cx: int, cy: int, ring: int):
        if ring == 0:
            yield cx, cy
            return
        top, bottom = cy - ring, cy + ring
        left, right = cx - ring, cx + ring
        for x in range(left, right + 1):
            yield x, top
        for y in range(top + 1, bottom + 1):
            yield right, y
        for x in range(right - 1, left - 1, -1):
            yield x, bottom
        for y in range(bottom - 1, top, -1):
            yield left, y

    def flood_fill(self, dark: np.ndarray, start: Tuple[int, int]) -> Tuple[Optional[np.ndarray], int, int, bool]:
        """
        4-connected fill over non-dark pixels using an explicit stack on a
        flat row-major arena.

        Frame pixels join the region but are not expanded; each one counts as
        an edge touch.

        Returns:
            (filled mask or None if aborted, filled count, edge-touch count, aborted)
        """
        height, width = dark.shape
        total = width * height
        limit = int(total * self.MAX_FILL_RATIO)
        last_x, last_y = width - 1, height - 1

        barrier = dark.ravel().tolist()
        filled = bytearray(total)

        start_idx = start[1] * width + start[0]
        filled[start_idx] = 1
        stack = [start_idx]
        count = 1
        edge_touches = 0

        while stack:
            idx = stack.pop()
            y, x = divmod(idx, width)
            if x == 0 or y == 0 or x == last_x or y == last_y:
                edge_touches += 1
                continue
            for n in (idx - 1, idx + 1, idx - width, idx + width):
                if not filled[n] and not barrier[n]:
                    filled[n] = 1
                    stack.append(n)
                    count += 1
            if count > limit:
                return None, count, edge_touches, True

        mask = np.frombuffer(bytes(filled), dtype=np.uint8).reshape(height, width).astype(bool)
        return mask, count, edge_touches, False

    def erode(self, mask: np.ndarray) -> np.ndarray:
        """Peel the anti-aliased fringe: frame pixels and pixels with an unset 4-neighbour go."""
        kernel = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))
        eroded = cv2.erode(
            mask.astype(np.uint8), kernel,
            iterations=self.ERODE_ITERATIONS,
            borderType=cv2.BORDER_CONSTANT, borderValue=0,
        )
        return eroded.astype(bool)

    def accepts(self, filled_count: int, edge_touches: int, total: int) -> bool:
        fill_ratio = filled_count / total
        if not self.MIN_FILL_RATIO < fill_ratio < self.MAX_FILL_RATIO:
            return False
        return edge_touches < self.EDGE_TOUCH_FACTOR * math.sqrt(filled_count)

    def detect(self, image: RasterImage) -> DetectionResult:
        dark = self.image_service.dark_mask(image, self.DARK_THRESHOLD)

        start = self.find_start(dark)
        if start is None:
            logger.debug("Flood fill: no non-dark start pixel near centre")
            return DetectionResult.not_found("no_start_pixel")
        logger.debug(f"Flood fill: start pixel {start}")

        mask, count, edge_touches, aborted = self.flood_fill(dark, start)
        total = image.total_pixels
        if aborted:
            logger.debug(f"Flood fill aborted after {count}/{total} pixels")
            return DetectionResult.not_found("fill_overflow", touches_edge=True)

        logger.debug(
            f"Flood fill: ratio={count / total:.3f} edge_touches={edge_touches} "
            f"allowed<{self.EDGE_TOUCH_FACTOR * math.sqrt(count):.1f}"
        )
        if not self.accepts(count, edge_touches, total):
            return DetectionResult.not_found("rejected_region", touches_edge=edge_touches > 0)

        interior = self.erode(mask)
        if not interior.any():
            return DetectionResult.not_found("eroded_away", touches_edge=edge_touches > 0)
        return DetectionResult(found=True, interior_mask=interior, touches_edge=edge_touches > 0)


# ─── Geometric (Hough) ─────────────────────────────────────────────
class GeometricBorderDetector(BorderDetector):
    """
    Chooses among Hough candidates by darkHitRatio × radius, so a large,
    well-inked circle wins over small or faint ones.
    """
    name = "geometric"
    boost_contrast = False  # contrast handling is left to the consumer

    BORDER_DARK_THRESHOLD = 80
    MIN_RADIUS_FRACTION = 0.15
    MAX_RADIUS_FRACTION = 0.49
    SAMPLES = 72
    MIN_BAND = 10
    BAND_FRACTION = 0.08
    MIN_IN_BOUNDS_RATIO = 0.75
    MIN_DARK_HIT_RATIO = 0.3
    MIN_INSET = 8
    INSET_FRACTION = 0.15

    def __init__(self, circle_engine_repository: CircleEngineRepository = None):
        self.circle_engine_repository = circle_engine_repository or CircleEngineRepository()
        angles = np.arange(self.SAMPLES) * (2 * np.pi / self.SAMPLES)
        self._cos = np.cos(angles)
        self._sin = np.sin(angles)

    def radius_range(self, image: RasterImage) -> Tuple[int, int]:
        short_side = min(image.width, image.height)
        return (int(math.floor(short_side * self.MIN_RADIUS_FRACTION)),
                int(math.floor(short_side * self.MAX_RADIUS_FRACTION)))

    def inset_radius(self, radius: int) -> int:
        return radius - max(self.MIN_INSET, int(round(radius * self.INSET_FRACTION)))

    def sample_border(self, border_dark: np.ndarray, cx: int, cy: int, r: int) -> Tuple[int, int]:
        """
        For each of SAMPLES angles, look for ink anywhere in the radial band
        r ± band.  Returns (angles with any in-bounds sample, angles with ink).
        """
        height, width = border_dark.shape
        band = max(self.MIN_BAND, int(round(r * self.BAND_FRACTION)))
        radii = r + np.arange(-band, band + 1)

        xs = np.rint(cx + radii[None, :] * self._cos[:, None]).astype(int)
        ys = np.rint(cy + radii[None, :] * self._sin[:, None]).astype(int)
        in_bounds = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)

        hits = np.zeros_like(in_bounds)
        hits[in_bounds] = border_dark[ys[in_bounds], xs[in_bounds]]

        valid = int(in_bounds.any(axis=1).sum())
        dark = int(hits.any(axis=1).sum())
        return valid, dark

    def score_candidates(self, image: RasterImage, candidates: List[tuple]) -> Tuple[Optional[CircleDescriptor], bool]:
        """Returns (best circle or None, whether any candidate ran off the frame)."""
        border_dark = np.all(image.rgb < self.BORDER_DARK_THRESHOLD, axis=2)
        min_r, max_r = self.radius_range(image)
        best: Optional[CircleDescriptor] = None
        off_frame = False

        for cx, cy, r in candidates:
            if not min_r <= r <= max_r:
                continue
            valid, dark = self.sample_border(border_dark, cx, cy, r)
            if valid < self.SAMPLES * self.MIN_IN_BOUNDS_RATIO:
                off_frame = True
                logger.debug(f"Circle ({cx},{cy},r={r}) rejected: only {valid}/{self.SAMPLES} angles in frame")
                continue
            if dark < valid * self.MIN_DARK_HIT_RATIO:
                logger.debug(f"Circle ({cx},{cy},r={r}) rejected: dark {dark}/{valid}")
                continue

            circle = CircleDescriptor(cx=cx, cy=cy, radius=r,
                                      inset_radius=self.inset_radius(r),
                                      dark_hit_ratio=dark / valid)
            logger.debug(f"Circle ({cx},{cy},r={r}) score={circle.score:.2f}")
            if circle.inset_radius > 0 and (best is None or circle.score > best.score):
                best = circle
        return best, off_frame

    @staticmethod
    def circle_mask(image: RasterImage, circle: CircleDescriptor) -> np.ndarray:
        ys, xs = np.ogrid[:image.height, :image.width]
        dist_sq = (xs - circle.cx) ** 2 + (ys - circle.cy) ** 2
        return dist_sq <= circle.inset_radius ** 2

    def detect(self, image: RasterImage) -> DetectionResult:
        min_r, max_r = self.radius_range(image)
        if min_r < 1 or max_r <= min_r:
            return DetectionResult.not_found("frame_too_small")

        candidates = self.circle_engine_repository.infer_circles(image, min_r, max_r)
        logger.debug(f"Hough: {len(candidates)} candidate circles")
        if not candidates:
            return DetectionResult.not_found("no_candidates")

        best, off_frame = self.score_candidates(image, candidates)
        if best is None:
            return DetectionResult.not_found("no_dark_border", touches_edge=off_frame)

        return DetectionResult(found=True, interior_mask=self.circle_mask(image, best),
                               circle=best, touches_edge=off_frame)


# ─── Strategy selection ───────────────────────────────────────────
_DETECTORS = {
    "flood_fill": FloodFillBorderDetector,
    "floodfill": FloodFillBorderDetector,
    "geometric": GeometricBorderDetector,
    "hough": GeometricBorderDetector,
}


def get_border_detector(name: str = None) -> BorderDetector:
    """
    Build the configured detector.  name falls back to $SHELL_DETECTOR, then "flood_fill".
    """
    key = (name or os.getenv("SHELL_DETECTOR", "flood_fill")).strip().lower().replace("-", "_")
    try:
        detector_cls = _DETECTORS[key]
    except KeyError:
        raise ValueError(f"Unknown border detector '{key}'. Choose one of: flood_fill, geometric") from None
    return detector_cls()
