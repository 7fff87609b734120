from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_DIR = os.path.join(ROOT_DIR, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import numpy as np
import soundfile as sf

from ogg_to_mp3.decoder import decode_ogg, describe
from ogg_to_mp3.loop import fade_samples_for, render_layer


def _parse_loops(value: str) -> List[int]:
    loops = [int(part.strip()) for part in value.split(",") if part.strip()]
    if not loops:
        raise argparse.ArgumentTypeError("loop counts must not be empty")
    if any(count < 0 for count in loops):
        raise argparse.ArgumentTypeError("loop counts must not be negative")
    return loops


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render looped WAV previews of an OGG layer")
    parser.add_argument("--input", required=True, help="Path to the .ogg file")
    parser.add_argument("--out", required=True, help="Output directory")
    parser.add_argument("--layer", type=int, default=1, help="Layer to render, starting at 1")
    parser.add_argument(
        "--loops",
        type=_parse_loops,
        default="1,2",
        help="Comma-separated loop counts, one WAV each (default: 1,2)",
    )
    parser.add_argument("--fade", type=float, default=2.0, help="Fade-out in seconds")
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    decoded = decode_ogg(args.input, args.layer - 1)
    if decoded.loop_end <= decoded.loop_start:
        raise SystemExit("Input does not contain a valid loop")

    os.makedirs(args.out, exist_ok=True)
    base_name = os.path.splitext(os.path.basename(args.input))[0]
    fade_samples = fade_samples_for(args.fade, decoded.frequency)

    outputs = []
    for loops in args.loops:
        left, right = render_layer(
            decoded.left,
            decoded.right,
            decoded.loop_start,
            decoded.loop_end,
            loops,
            fade_samples,
        )
        filename = f"{base_name}_layer{args.layer}_x{loops}.wav"
        sf.write(
            os.path.join(args.out, filename),
            np.column_stack((left, right)),
            decoded.frequency,
            subtype="PCM_16",
        )
        outputs.append({"loops": loops, "file": filename, "frames": len(left)})

    manifest = {
        "source": args.input,
        **describe(decoded, args.layer - 1),
        "fade_samples": fade_samples,
        "outputs": outputs,
    }
    with open(os.path.join(args.out, "manifest.json"), "w", encoding="utf-8") as handle:
        json.dump(manifest, handle, indent=2)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
