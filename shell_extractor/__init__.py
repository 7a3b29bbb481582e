"""
Coloring-page shell extractor.

Finds the thick circular border on a photographed turtle coloring page,
keeps only what was drawn inside it and returns a transparent PNG.
"""

from .exceptions import ShellExtractorError, DecodeError, EncodeError
from .models import ShellResult
from .pipeline import extract_shell, warm_up

__version__ = "1.0.0"

__all__ = [
    "extract_shell",
    "warm_up",
    "ShellResult",
    "ShellExtractorError",
    "DecodeError",
    "EncodeError",
]
