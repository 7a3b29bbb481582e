import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterator, List

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..exceptions import ShellExtractorError
from ..pipeline.shell_extractor import extract_shell
from ..services.border_detection_service import get_border_detector
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)

VALID_EXTS = {
    ext.strip().lower()
    for ext in os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.gif,.bmp,.webp,.tif,.tiff").split(",")
    if ext.strip()
}


def iter_inputs(inputs: List[str], recursive: bool = False) -> Iterator[Path]:
    """Yield image files from a mix of file and folder arguments."""
    pattern = "**/*" if recursive else "*"
    for raw in inputs:
        path = Path(raw)
        if path.is_dir():
            for p in sorted(path.glob(pattern)):
                if p.is_file() and p.suffix.lower() in VALID_EXTS:
                    yield p
        else:
            yield path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract the shell interior from photos of turtle coloring pages."
    )
    parser.add_argument("inputs", nargs="+", help="Image files or folders")
    parser.add_argument("--out-dir", "-o", default=os.getenv("SHELL_OUTPUT_DIR", "data/shells"),
                        help="Folder for the processed PNGs (default: data/shells)")
    parser.add_argument("--detector", "-d", default=None, choices=["flood_fill", "geometric"],
                        help="Border detection strategy (default: $SHELL_DETECTOR or flood_fill)")
    parser.add_argument("--recursive", "-r", action="store_true", help="Descend into sub-folders")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log detector internals")
    return parser


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    detector = get_border_detector(args.detector)
    image_service = ImageService()
    out_dir = Path(args.out_dir)

    processed = failed = 0
    for path in iter_inputs(args.inputs, recursive=args.recursive):
        try:
            result = extract_shell(path.read_bytes(), detector=detector, image_service=image_service)
        except (ShellExtractorError, OSError) as err:
            logger.error(f"Skipping {path.name}: {err}")
            failed += 1
            continue

        out_path = image_service.save(result.image_data, out_dir / f"{path.stem}.png")
        processed += 1
        logger.info(f"{path.name}: shellDetected={result.shell_detected} → {out_path}")
        if result.hint:
            logger.warning(f"{path.name}: {result.hint}")

    logger.info(f"Processed {processed} image(s), {failed} failed")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
