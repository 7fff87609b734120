from __future__ import annotations

import io
import logging
import os
from typing import Sequence, Union

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)

CHUNK_FRAMES = 8192 * 4
# libsndfile's 0..1 compression scale; 0.2 lands close to LAME's V2 preset
VBR_QUALITY = 0.2

Samples = Union[np.ndarray, Sequence[int]]


class EncodeError(RuntimeError):
    pass


def encode_frames(frames: Samples, sample_rate: int) -> bytes:
    """Encode ``(frames, 2)`` int16 PCM to a joint-stereo VBR MP3 byte stream."""
    data = np.asarray(frames, dtype=np.int16)
    if data.ndim != 2 or data.shape[1] != 2:
        raise ValueError(f"Expected (frames, 2) stereo PCM, got shape {data.shape}")

    buf = io.BytesIO()
    try:
        with sf.SoundFile(
            buf,
            mode="w",
            samplerate=sample_rate,
            channels=2,
            format="MP3",
            subtype="MPEG_LAYER_III",
            compression_level=VBR_QUALITY,
            bitrate_mode="VARIABLE",
        ) as out:
            for offset in range(0, len(data), CHUNK_FRAMES):
                out.write(data[offset: offset + CHUNK_FRAMES])
    except (sf.SoundFileError, RuntimeError) as exc:
        raise EncodeError(f"Could not encode MP3: {exc}") from exc

    encoded = buf.getvalue()
    logger.debug("Encoded %d frames at %d Hz into %d bytes", len(data), sample_rate, len(encoded))
    return encoded


def encode_mp3(left: Samples, right: Samples, sample_rate: int) -> bytes:
    if len(left) != len(right):
        raise ValueError(f"Left and right channels must be equal length ({len(left)} != {len(right)})")
    frames = np.column_stack(
        (np.asarray(left, dtype=np.int16), np.asarray(right, dtype=np.int16))
    )
    return encode_frames(frames, sample_rate)


def write_output(data: bytes, path: Union[str, os.PathLike]) -> None:
    with open(path, "wb") as handle:
        handle.write(data)
