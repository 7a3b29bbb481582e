from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PaperColorEstimate:
    """
    Value-object for the blank-paper tone inside the shell.
    brightness = mean of the three channel medians,
    spread     = max - min of the three channel medians.
    """
    color: Tuple[int, int, int]
    brightness: float
    spread: int
    is_paper_like: bool
