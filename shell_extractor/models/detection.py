from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class CircleDescriptor:
    """Circle found by the geometric detector, in normalized-frame pixels."""
    cx: int
    cy: int
    radius: int
    inset_radius: int  # radius shrunk inward to exclude the border ink
    dark_hit_ratio: float = 0.0

    @property
    def score(self) -> float:
        return self.dark_hit_ratio * self.radius


@dataclass
class DetectionResult:
    """
    Outcome of one BorderDetector.detect() call.

    interior_mask is None whenever found is False.
    """
    found: bool
    interior_mask: np.ndarray | None = None  # (H, W) bool, True inside the shell
    circle: CircleDescriptor | None = None   # geometric strategy only
    touches_edge: bool = False               # region/candidate ran into the frame
    reason: str = ""

    @classmethod
    def not_found(cls, reason: str, touches_edge: bool = False) -> "DetectionResult":
        return cls(found=False, touches_edge=touches_edge, reason=reason)
