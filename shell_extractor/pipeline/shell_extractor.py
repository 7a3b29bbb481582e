"""
Shell Extractor Pipeline
Turns an uploaded photo of a turtle coloring page into a transparent PNG of
just the shell interior.

    normalize → detect border → (paper colour → mask → boost) → crop → encode

with the hint check consulted when no border is found.
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from ..models.circle_engine import CircleEngine
from ..models.shell_result import ShellResult
from ..services.background_service import BackgroundService
from ..services.border_detection_service import BorderDetector, get_border_detector
from ..services.cropping_service import CroppingService
from ..services.hint_service import HintService
from ..services.image_service import ImageService
from ..services.paper_color_service import PaperColorService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _resolve_boost(detector: BorderDetector, boost_contrast: bool | None) -> bool:
    if boost_contrast is not None:
        return boost_contrast
    setting = os.getenv("SHELL_BOOST_CONTRAST", "auto").strip().lower()
    if setting in ("1", "true", "yes", "on"):
        return True
    if setting in ("0", "false", "no", "off"):
        return False
    return detector.boost_contrast


def extract_shell(
    buffer: bytes,
    *,
    detector: BorderDetector | None = None,
    image_service: ImageService | None = None,
    paper_color_service: PaperColorService | None = None,
    background_service: BackgroundService | None = None,
    cropping_service: CroppingService | None = None,
    hint_service: HintService | None = None,
    boost_contrast: bool | None = None,
) -> ShellResult:
    """
    Process one uploaded image.

    Args:
        buffer: Encoded image bytes in any Pillow-readable format.
        detector: Border detection strategy; defaults to get_border_detector().
        boost_contrast: Force the contrast enhancer on/off. None follows
            $SHELL_BOOST_CONTRAST, then the detector's own policy.

    Returns:
        ShellResult with the PNG data URI, shellDetected flag and optional hint.

    Raises:
        DecodeError: buffer is not a decodable image.
        EncodeError: the processed pixels could not be written as PNG.
    """
    detector = detector or get_border_detector()
    image_service = image_service or ImageService()
    paper_color_service = paper_color_service or PaperColorService()
    background_service = background_service or BackgroundService()
    cropping_service = cropping_service or CroppingService()
    hint_service = hint_service or HintService()

    # 1. Decode + fit inside the working frame
    image = image_service.normalize(buffer)

    # 2. Look for the shell border
    detection = detector.detect(image)
    hint = None

    if detection.found:
        # 3. Paper colour → transparency → optional boost
        paper = paper_color_service.estimate(image, detection.interior_mask)
        processed = background_service.apply_mask(image, detection.interior_mask, paper)
        if _resolve_boost(detector, boost_contrast):
            processed = background_service.boost_contrast(processed, detection.interior_mask, paper)
        # 4. Tight crop around the shell
        processed = cropping_service.crop(processed, detection)
        logger.info(
            f"Shell detected ({detector.name}): {image.width}x{image.height} → "
            f"{processed.width}x{processed.height}"
        )
    else:
        processed = background_service.remove_white(image)
        hint = hint_service.build_hint(
            image, detection, dark_threshold=getattr(detector, "DARK_THRESHOLD", None)
        )
        logger.info(f"No shell detected ({detector.name}, {detection.reason}); hint={'yes' if hint else 'no'}")

    # 5. Encode
    image_data = image_service.encode(processed)
    return ShellResult(
        image_data=image_data,
        shell_detected=detection.found,
        hint=hint,
        width=processed.width,
        height=processed.height,
    )


def warm_up() -> CircleEngine:
    """Initialise the shared circle engine ahead of the first geometric request."""
    return CircleEngine()
