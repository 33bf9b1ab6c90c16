"""
Quick local test helper: sends a local image to Gemini for background removal
and writes the PNG to disk. This bypasses the HTTP API and session layers.
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
from pathlib import Path

# Ensure project root is importable when running from scripts/
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bgremover_service.pipeline import process_image_bytes
from bgremover_service.postprocessing import download_filename


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove the background of a local image with Gemini")
    parser.add_argument("--input", required=True, help="Path to the input image")
    parser.add_argument("--output", help="Path to write the PNG (default: <name>_no_bg.png next to the input)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    input_path = Path(args.input)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    output_path = Path(args.output) if args.output else input_path.with_name(download_filename(input_path.name))

    content_type, _ = mimetypes.guess_type(input_path.name)
    png_bytes = asyncio.run(
        process_image_bytes(
            input_path.read_bytes(),
            content_type=content_type or "",
            filename=input_path.name,
        )
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(png_bytes)
    print(f"Wrote background-free PNG to {output_path}")


if __name__ == "__main__":
    main()
