from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class ShellResult:
    """
    Data object returned once per extraction request.
    """
    image_data: str        # "data:image/png;base64,..."
    shell_detected: bool
    hint: str | None = None
    width: int = 0         # output raster size, after cropping
    height: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Key names used by the HTTP layer that serializes the result."""
        return {
            "imageData": self.image_data,
            "shellDetected": self.shell_detected,
            "hint": self.hint,
        }
