from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

Samples = Union[np.ndarray, Sequence[int]]


class LoopConfigError(ValueError):
    pass


@dataclass(frozen=True)
class LoopRegion:
    """Loop markers and extension settings, in frame units."""

    start: int
    end: int
    repeat_count: int = 0
    fade_samples: int = 0

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_active(self) -> bool:
        return self.end > self.start

    @property
    def output_length(self) -> int:
        return self.start + self.length * self.repeat_count + self.fade_samples

    def validate(self, buffer_length: int) -> None:
        if self.start < 0:
            raise LoopConfigError(f"Loop start must not be negative (got {self.start})")
        if self.end < self.start:
            raise LoopConfigError(f"Loop end {self.end} is before loop start {self.start}")
        if self.end > buffer_length:
            raise LoopConfigError(
                f"Loop end {self.end} is past the end of the audio ({buffer_length} frames)"
            )
        if self.repeat_count < 0:
            raise LoopConfigError(f"Loop count must not be negative (got {self.repeat_count})")
        if self.fade_samples < 0:
            raise LoopConfigError(f"Fade length must not be negative (got {self.fade_samples})")
        if self.start + self.fade_samples > buffer_length:
            raise LoopConfigError(
                f"Fade of {self.fade_samples} frames starting at frame {self.start} "
                f"runs past the end of the audio ({buffer_length} frames)"
            )


def should_process(loop_start: int, loop_end: int, process_requested: bool) -> bool:
    # Absent markers decode as 0/0, which lands here as well.
    return process_requested and loop_end > loop_start


def fade_samples_for(fade_seconds: float, frequency: int) -> int:
    if fade_seconds < 0:
        raise LoopConfigError(f"Fade duration must not be negative (got {fade_seconds})")
    return int(fade_seconds * frequency)


def fade_curve(fade_samples: int) -> np.ndarray:
    if fade_samples <= 0:
        return np.zeros(0, dtype=np.float64)
    return 1.0 - np.arange(fade_samples, dtype=np.float64) / float(fade_samples)


def apply_fade(window: Samples) -> np.ndarray:
    data = np.asarray(window, dtype=np.int16)
    scale = fade_curve(len(data))
    if data.ndim > 1:
        scale = scale.reshape((-1,) + (1,) * (data.ndim - 1))
    # float -> int16 casts truncate, matching previously encoded output
    return (data.astype(np.float64) * scale).astype(np.int16)


def process_samples(buffer: Samples, region: LoopRegion) -> np.ndarray:
    """Build intro + loop bodies + faded outro as a new int16 array."""
    source = np.asarray(buffer, dtype=np.int16)
    region.validate(len(source))

    intro = source[: region.start]
    body = source[region.start: region.end]
    outro = apply_fade(source[region.start: region.start + region.fade_samples])

    out = np.empty((region.output_length,) + source.shape[1:], dtype=np.int16)
    out[: region.start] = intro
    offset = region.start
    for _ in range(region.repeat_count):
        out[offset: offset + region.length] = body
        offset += region.length
    out[offset:] = outro
    return out


def process_layer(left: Samples, right: Samples, region: LoopRegion) -> Tuple[np.ndarray, np.ndarray]:
    if len(left) != len(right):
        raise LoopConfigError(
            f"Left and right channels must be equal length ({len(left)} != {len(right)})"
        )
    return process_samples(left, region), process_samples(right, region)


def render_layer(
    left: Samples,
    right: Samples,
    loop_start: int,
    loop_end: int,
    repeat_count: int,
    fade_samples: int,
    process_requested: bool = True,
) -> Tuple[np.ndarray, np.ndarray]:
    region = LoopRegion(loop_start, loop_end, repeat_count, fade_samples)
    if not process_requested or not region.is_active:
        return np.asarray(left, dtype=np.int16), np.asarray(right, dtype=np.int16)
    return process_layer(left, right, region)
