"""High-level pipeline orchestration for coloring-page shell extraction."""

from .shell_extractor import extract_shell, warm_up

__all__ = [
    "extract_shell",
    "warm_up",
]
