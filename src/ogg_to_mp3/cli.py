import argparse
import logging
import os
import sys
from typing import Callable, List, Optional

from ogg_to_mp3.decoder import DecodeError, decode_ogg
from ogg_to_mp3.encoder import EncodeError, encode_mp3, write_output
from ogg_to_mp3.loop import LoopConfigError, fade_samples_for, render_layer, should_process
from ogg_to_mp3.timing import timed

DEFAULT_LAYER = 1
DEFAULT_LOOPS = 2
DEFAULT_FADE_SECONDS = 10.0

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if number < 1:
        raise argparse.ArgumentTypeError("must be 1 or higher")
    return number


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return number


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return number


def automatic_output_name(input_path: str, output: Optional[str] = None) -> str:
    stem = os.path.splitext(os.path.basename(input_path))[0]
    filename = f"{stem}.mp3"
    if output and os.path.isdir(output):
        return os.path.join(output, filename)
    return os.path.join(os.path.dirname(input_path), filename)


def prompt(
    question: str,
    default: bool,
    input_fn: Callable[[str], str] = input,
    output=None,
) -> bool:
    default_text = "Y/n" if default else "y/N"
    while True:
        try:
            answer = input_fn(f"{question} [{default_text}] ")
        except EOFError:
            return default
        answer = answer.strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        if answer == "":
            return default
        print("Invalid input, expecting [y/yes/n/no] or an empty line.", file=output or sys.stdout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Encode one layer of a looping OGG to MP3, extended with loops and a fade-out"
    )
    parser.add_argument("input", metavar="INPUT", help="Source .ogg file")
    parser.add_argument(
        "output",
        metavar="OUTPUT",
        nargs="?",
        help="Destination .mp3 file (or directory with --automatic-name)",
    )
    parser.add_argument(
        "--automatic-name",
        action="store_true",
        help="Name the output after the input, with an .mp3 extension",
    )
    parser.add_argument(
        "--no-process",
        action="store_true",
        help="Encode the layer as-is, without looping or fading",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Overwrite the output without asking")
    parser.add_argument(
        "--layer",
        type=_positive_int,
        default=DEFAULT_LAYER,
        help="Stereo layer to encode, starting at 1 (default: %(default)s)",
    )
    parser.add_argument(
        "--fade",
        type=_non_negative_float,
        default=DEFAULT_FADE_SECONDS,
        help="Fade-out duration in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "--loops",
        type=_non_negative_int,
        default=DEFAULT_LOOPS,
        help="How many times the loop body is played (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output and stage timings")
    parser.add_argument("--log-file", default="", help="Also write logs to this file")
    return parser


def configure_logging(verbose: bool = False, log_file: str = "") -> None:
    level = logging.DEBUG if verbose else logging.INFO
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def resolve_output(args: argparse.Namespace) -> str:
    if args.automatic_name:
        if args.output and not os.path.isdir(args.output):
            raise ValueError(
                f"OUTPUT must be a directory when --automatic-name is given: {args.output}"
            )
        return automatic_output_name(args.input, args.output)
    if not args.output:
        raise ValueError("OUTPUT is required unless --automatic-name is given")
    return args.output


def run(args: argparse.Namespace, input_fn: Callable[[str], str] = input) -> int:
    try:
        output_path = resolve_output(args)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if os.path.exists(output_path) and not args.yes:
        if not prompt("Output file exists. Overwrite?", True, input_fn=input_fn):
            print("Okay. Bye!")
            return 0

    print(f"Encoding {os.path.basename(args.input)}...")

    with timed("program") as program:
        try:
            with timed("decode"):
                decoded = decode_ogg(args.input, args.layer - 1)

            process = should_process(decoded.loop_start, decoded.loop_end, not args.no_process)
            if not args.no_process and not process:
                logger.info(
                    "No usable loop markers (LoopStart=%d, LoopEnd=%d), encoding as-is",
                    decoded.loop_start,
                    decoded.loop_end,
                )

            with timed("loop"):
                left, right = render_layer(
                    decoded.left,
                    decoded.right,
                    decoded.loop_start,
                    decoded.loop_end,
                    args.loops,
                    fade_samples_for(args.fade, decoded.frequency),
                    process_requested=process,
                )

            with timed("encode"):
                data = encode_mp3(left, right, decoded.frequency)
            write_output(data, output_path)
        except (DecodeError, LoopConfigError, EncodeError) as exc:
            print(str(exc), file=sys.stderr)
            return 1
        except OSError as exc:
            print(f"I/O error: {exc}", file=sys.stderr)
            return 1

    print(f"Encoded {os.path.basename(output_path)} in {program.elapsed:.3f}s")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.log_file)
    return run(args)
