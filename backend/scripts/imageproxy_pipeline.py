# ruff: noqa: E402

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List
from dotenv import load_dotenv

# --- Path Setup ---
_BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

from imageproxy.core.config import get_settings
from imageproxy.core.logging import configure_logging
from imageproxy.pipeline.orchestrator import run_pipeline
from imageproxy.raster.io import ensure_dir, save_png

# Usage:
#
#   python ./backend/scripts/imageproxy_pipeline.py \
#     --input ./samples \
#     --out-dir ./test_output \
#     --param shape=star --param strim= --param bg=#80ff0000


@dataclass
class ScriptConfig:
    """A centralized configuration object for the command-line script."""
    image_path: Path
    out_dir: Path
    params: Dict[str, str]


def parse_param(raw: str) -> tuple[str, str]:
    """Split ``key=value``; a bare ``key`` sets a flag param."""
    key, _, value = raw.partition("=")
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError(f"Invalid param: {raw!r}")
    return key, value


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    """Parses command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Image manipulation pipeline runner",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--input", type=str, required=True, help="Path to input image or a folder of images")
    parser.add_argument("--out-dir", type=str, required=True, help="Directory to write PNG outputs")
    parser.add_argument(
        "--param",
        type=parse_param,
        action="append",
        default=[],
        help="Manipulation param as key=value (repeatable), e.g. shape=circle",
    )
    return parser.parse_args(argv)


def process_image(config: ScriptConfig) -> None:
    """Runs the orchestrator over one image and writes the result as PNG."""
    print(f"Processing '{config.image_path.name}' with params {config.params}")

    try:
        image, state = run_pipeline(config.image_path, config.params)
        out_path = config.out_dir / f"{config.image_path.stem}.png"
        save_png(out_path, image)
        print(f"Saved {image.width}x{image.height} ({image.bands} bands) to: {out_path}")
        print(f"Orientation applied: rotation={state.rotation} flip={state.flip} flop={state.flop}")
    except Exception as e:
        print(f"\n!!! PIPELINE FAILED for {config.image_path.name} !!!")
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()


def main() -> None:
    """Main function to parse arguments and run the pipeline for all images."""
    overall_start_time = time.time()
    args = parse_args()

    load_dotenv(override=False)
    configure_logging(get_settings().log_level)

    input_path = Path(args.input)
    if not input_path.exists():
        raise FileNotFoundError(f"Input path not found: {input_path}")

    image_paths = []
    if input_path.is_file():
        image_paths.append(input_path)
    elif input_path.is_dir():
        supported_extensions = [".png", ".jpg", ".jpeg", ".webp", ".tif", ".tiff", ".gif"]
        image_paths = sorted([p for p in input_path.glob("*") if p.suffix.lower() in supported_extensions])

    if not image_paths:
        print(f"No supported images found in '{input_path}'.")
        return

    out_dir = Path(args.out_dir)
    ensure_dir(out_dir)
    params = dict(args.param)

    for image_path in image_paths:
        image_start_time = time.time()
        process_image(ScriptConfig(image_path=image_path, out_dir=out_dir, params=params))
        print(f"Finished {image_path.name} in {time.time() - image_start_time:.2f} seconds.")

    print(f"Processed {len(image_paths)} image(s) in {time.time() - overall_start_time:.2f} seconds.")


if __name__ == "__main__":
    main()
