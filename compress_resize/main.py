import argparse
import mimetypes
import os
import sys
from pathlib import Path

from compress_resize.errors import CompressResizeError
from compress_resize.image_engine.pipeline import run as run_pipeline
from compress_resize.logger import get_logger, setup_logger
from compress_resize.settings_manager import MODE_QUALITY, MODE_TARGET_SIZE, SettingsManager

# Largest file the host file picker accepts
DEFAULT_MAX_SOURCE_BYTES = 10 * 1024 * 1024

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/avif": ".avif",
    "image/tiff": ".tif",
    "image/gif": ".gif",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compress-resize",
        description="Resize an image and re-encode it to a quality level or a size budget.",
    )
    parser.add_argument("input", help="Source image file")
    parser.add_argument("-o", "--output", help="Output file (default: <input>.compressed.<ext>)")
    parser.add_argument("--max-width", type=int, help="Maximum width in pixels (0 = unconstrained)")
    parser.add_argument("--max-height", type=int, help="Maximum height in pixels (0 = unconstrained)")
    parser.add_argument("--mode", choices=[MODE_QUALITY, MODE_TARGET_SIZE], help="Compression mode")
    parser.add_argument("--quality", type=int, help="Quality 1-100 for quality mode (default 80)")
    parser.add_argument("--target-size-kb", type=float, help="Size budget in KB for targetSize mode (default 100)")
    parser.add_argument("--format", dest="output_mime_type", help="Output MIME type (default: source type)")
    parser.add_argument("--max-source-bytes", type=int, help="Reject larger sources (0 = no limit)")
    parser.add_argument("--settings", help="JSON settings file with default options")
    parser.add_argument("--data-url", action="store_true", help="Write a data: URL text file instead of raw bytes")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    return parser


def _apply_logging_options(args: argparse.Namespace) -> None:
    if args.log_level:
        os.environ["COMPRESS_RESIZE_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["COMPRESS_RESIZE_LOG_CATS"] = args.log_cats
    setup_logger()


def _default_output(source: Path, mime_type: str, data_url: bool) -> Path:
    suffix = ".txt" if data_url else _EXTENSIONS.get(mime_type, ".bin")
    return source.with_name(f"{source.stem}.compressed{suffix}")


def run(argv: list[str] | None = None) -> int:
    """Command line entrypoint. Returns a process exit code."""
    parser = _build_parser()
    try:
        args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    except SystemExit as e:
        return int(e.code or 0)

    _apply_logging_options(args)
    logger = get_logger("main")

    source = Path(args.input)
    try:
        data = source.read_bytes()
    except OSError as e:
        logger.error("cannot read %s: %s", source, e)
        return 1

    mime_type, _ = mimetypes.guess_type(source.name)
    max_source_bytes = DEFAULT_MAX_SOURCE_BYTES if args.max_source_bytes is None else args.max_source_bytes

    try:
        manager = SettingsManager(args.settings or "", strict=bool(args.settings))
        config = manager.compression_settings(
            max_width=args.max_width,
            max_height=args.max_height,
            mode=args.mode,
            quality=args.quality,
            target_size_kb=args.target_size_kb,
            output_mime_type=args.output_mime_type,
            max_source_bytes=max_source_bytes,
        )
        result = run_pipeline(data, mime_type, config)
    except CompressResizeError as e:
        logger.error("%s: %s", source, e)
        return 1

    out_path = Path(args.output) if args.output else _default_output(source, result.mime_type, args.data_url)
    try:
        if args.data_url:
            out_path.write_text(result.data_url, encoding="ascii")
        else:
            out_path.write_bytes(result.data)
    except OSError as e:
        logger.error("cannot write %s: %s", out_path, e)
        return 1

    quality = "-" if result.quality is None else f"{result.quality:.3f}"
    print(
        f"{source.name} -> {out_path.name}: {result.width}x{result.height} {result.mime_type} "
        f"{result.size_kb:.1f}KB quality={quality} attempts={result.attempts}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(run())
