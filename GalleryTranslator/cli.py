import argparse
import asyncio
import json
import sys
from typing import List, Optional

from PIL import Image

from GalleryTranslator.util.config.configuration import get_config
from GalleryTranslator.util.logging_config import initialize_logging, logger


def _load_frame(path: str) -> Image.Image:
    with Image.open(path) as image:
        return image.convert("RGBA")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gallery-translator",
        description="Find, read and translate text in images.",
    )
    parser.add_argument("--debug", action="store_true", help="Log debug output to the console.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Detect, recognise and translate every text block in an image.")
    scan.add_argument("image")
    scan.add_argument("--lang", default=None, help="Target language (defaults to the configured one).")

    select = subparsers.add_parser("select", help="Recognise and translate one selection given in window pixels.")
    select.add_argument("image")
    select.add_argument("x", type=float)
    select.add_argument("y", type=float)
    select.add_argument("w", type=float)
    select.add_argument("h", type=float)
    select.add_argument("--view-mode", default="original", help="original, fit-width, fit-height, reader or landscape.")
    select.add_argument("--window", nargs=2, type=float, metavar=("W", "H"), default=None,
                        help="Window size; defaults to the image size.")
    select.add_argument("--zoom", type=float, default=1.0)
    select.add_argument("--rotation", type=int, default=0)
    select.add_argument("--pan", nargs=2, type=float, metavar=("X", "Y"), default=(0.0, 0.0))
    select.add_argument("--scroll", type=float, default=0.0)
    select.add_argument("--lang", default=None, help="Target language (defaults to the configured one).")

    regions = subparsers.add_parser("regions", help="Print the text regions found by the density detector.")
    regions.add_argument("image")

    return parser


def _make_resolver(config):
    from GalleryTranslator.ai.service import RecognitionService
    from GalleryTranslator.ocr.ocr_resolver import OCRResolver

    if not config.ai.is_configured():
        logger.warning(f"AI provider '{config.ai.provider}' is not fully configured")
    return OCRResolver(RecognitionService(config.ai), config=config)


def _run_scan(args, config) -> list:
    resolver = _make_resolver(config)
    results = asyncio.run(resolver.resolve_frame(_load_frame(args.image), target_language=args.lang))
    return [result.to_dict() for result in results]


def _run_select(args, config) -> list:
    from GalleryTranslator.ocr.models import BoundingBox
    from GalleryTranslator.viewport.view_state import ViewState

    frame = _load_frame(args.image)
    window_w, window_h = args.window or frame.size
    state = ViewState(
        media_width=frame.width,
        media_height=frame.height,
        window_width=window_w,
        window_height=window_h,
        view_mode=args.view_mode,
        zoom=args.zoom,
        pan_x=args.pan[0],
        pan_y=args.pan[1],
        rotation=args.rotation,
        scroll_offset=args.scroll,
    )
    resolver = _make_resolver(config)
    results = []
    selection = BoundingBox(x=args.x, y=args.y, w=args.w, h=args.h)
    asyncio.run(resolver.resolve_selection(selection, frame, state, results, target_language=args.lang))
    return [result.to_dict() for result in results]


def _run_regions(args, config) -> list:
    from GalleryTranslator.ocr.region_detector import RegionDetector

    detector = RegionDetector(config.detector)
    return [region.bbox.to_dict() for region in detector.detect(_load_frame(args.image))]


COMMANDS = {
    "scan": _run_scan,
    "select": _run_select,
    "regions": _run_regions,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    initialize_logging(console_level="DEBUG" if args.debug else "INFO")

    try:
        output = COMMANDS[args.command](args, get_config())
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
