from __future__ import annotations
import logging
import os
import threading

import cv2
import numpy as np
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class CircleEngine:
    """
    Singleton wrapper around OpenCV's Hough circle transform.

    Reads the transform parameters once per process and keeps them, together
    with the cv2 handle, immutable afterwards so concurrent requests can share it.
    """

    _instance: CircleEngine | None = None  # Class-level cache for singleton
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        """
        Ensure the engine is prepared only once (Singleton pattern).

        Concurrent first callers block on the lock and all receive the instance
        built by whichever caller got there first.
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._init_engine(*args, **kwargs)
                    cls._instance = instance
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached engine; the next CircleEngine() call rebuilds it."""
        with cls._lock:
            cls._instance = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._instance is not None

    def _init_engine(self, dp: float = None, param1: float = None, param2: float = None):
        """
        Prepare the Hough transform settings on first instantiation.

        Args:
            dp (float): Inverse accumulator resolution. Defaults to env var.
            param1 (float): Canny high threshold. Defaults to env var.
            param2 (float): Accumulator threshold. Defaults to env var.
        """
        self.cv = cv2
        self.dp = float(dp if dp is not None else os.getenv("HOUGH_DP", "1"))
        self.param1 = float(param1 if param1 is not None else os.getenv("HOUGH_PARAM1", "100"))
        self.param2 = float(param2 if param2 is not None else os.getenv("HOUGH_PARAM2", "30"))
        self.min_dist_divisor = float(os.getenv("HOUGH_MIN_DIST_DIVISOR", "4"))

        kernel = int(os.getenv("HOUGH_BLUR_KERNEL", "9"))
        if kernel % 2 == 0:
            kernel += 1  # GaussianBlur needs an odd kernel
        self.blur_kernel = (kernel, kernel)
        self.blur_sigma = float(os.getenv("HOUGH_BLUR_SIGMA", "2"))

        logger.info(
            f"CircleEngine using OpenCV {cv2.__version__} | dp={self.dp} "
            f"param1={self.param1} param2={self.param2} blur={self.blur_kernel}/{self.blur_sigma}"
        )

    # --------------------------------------------------
    def circles(self, gray: np.ndarray, min_radius: int, max_radius: int) -> np.ndarray:
        """
        Args
        ----
        gray : np.ndarray  (H, W)  uint8 grayscale
        min_radius, max_radius : radius search range in pixels

        Returns
        -------
        circles : np.ndarray  (N, 3)  float32  rows of (cx, cy, r); empty when none found
        """
        blurred = self.cv.GaussianBlur(gray, self.blur_kernel, self.blur_sigma, self.blur_sigma)
        min_dist = max(1.0, gray.shape[0] / self.min_dist_divisor)
        found = self.cv.HoughCircles(
            blurred, self.cv.HOUGH_GRADIENT,
            dp=self.dp,
            minDist=min_dist,
            param1=self.param1,
            param2=self.param2,
            minRadius=int(min_radius),
            maxRadius=int(max_radius),
        )
        if found is None:
            return np.empty((0, 3), dtype=np.float32)
        return found[0]
