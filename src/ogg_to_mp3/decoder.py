from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

import mutagen
import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)

LOOP_START_KEY = "LoopStart"
LOOP_END_KEY = "LoopEnd"


class DecodeError(RuntimeError):
    pass


@dataclass
class DecodedFile:
    left: np.ndarray
    right: np.ndarray
    loop_start: int
    loop_end: int
    frequency: int


def _parse_marker(tags, key: str) -> int:
    if tags is None:
        return 0
    try:
        values = tags[key]
    except KeyError:
        return 0
    if not values:
        return 0
    raw = str(values[0]).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise DecodeError(f"{key} is not a number: {raw!r}") from exc


def read_loop_markers(path: str) -> Tuple[int, int]:
    """Return ``(loop_start, loop_end)`` from the file's comments, 0 when absent."""
    try:
        audio = mutagen.File(path)
    except mutagen.MutagenError as exc:
        raise DecodeError(f"Could not read comments from {path}: {exc}") from exc
    tags = getattr(audio, "tags", None) if audio is not None else None
    return _parse_marker(tags, LOOP_START_KEY), _parse_marker(tags, LOOP_END_KEY)


def select_layer(frames: np.ndarray, layer: int) -> Tuple[np.ndarray, np.ndarray]:
    """Pick the stereo pair for a 0-based *layer* out of ``(frames, channels)``.

    Mono sources only have layer 0 and are duplicated into both channels.
    """
    if frames.ndim == 1:
        frames = frames.reshape(-1, 1)
    channels = frames.shape[1]
    if layer < 0:
        raise DecodeError(f"Layer must be 1 or higher, got {layer + 1}")
    if channels == 1:
        if layer > 0:
            raise DecodeError(
                f"This file is mono channel, I can only encode layer 1 and you asked for {layer + 1}!"
            )
        mono = np.ascontiguousarray(frames[:, 0])
        return mono, mono.copy()
    if layer >= channels // 2:
        raise DecodeError(
            f"This file only has {channels // 2} layer(s), when you asked to encode layer {layer + 1}!"
        )
    left = np.ascontiguousarray(frames[:, layer * 2])
    right = np.ascontiguousarray(frames[:, layer * 2 + 1])
    return left, right


def decode_ogg(path: str, layer: int = 0) -> DecodedFile:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Input not found: {path}")

    loop_start, loop_end = read_loop_markers(path)

    try:
        frames, frequency = sf.read(path, dtype="int16", always_2d=True)
    except (sf.SoundFileError, RuntimeError) as exc:
        raise DecodeError(f"Could not decode {path}: {exc}") from exc

    left, right = select_layer(frames, layer)
    logger.debug(
        "Decoded %s: %d frames, %d channel(s), %d Hz, loop %d..%d",
        path,
        len(left),
        frames.shape[1],
        frequency,
        loop_start,
        loop_end,
    )
    return DecodedFile(
        left=left,
        right=right,
        loop_start=loop_start,
        loop_end=loop_end,
        frequency=int(frequency),
    )


def describe(decoded: DecodedFile, layer: Optional[int] = None) -> dict:
    info = {
        "frames": len(decoded.left),
        "sample_rate": decoded.frequency,
        "loop_start": decoded.loop_start,
        "loop_end": decoded.loop_end,
    }
    if layer is not None:
        info["layer"] = layer + 1
    return info
