import numpy as np
import pytest
import soundfile as sf
from mutagen.oggvorbis import OggVorbis


def _tone(frames: int, rate: int, freq: float, amplitude: float) -> np.ndarray:
    t = np.arange(frames) / rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


@pytest.fixture
def make_ogg(tmp_path):
    """Write an OGG Vorbis file whose channel pair ``n`` carries a tone of amplitude ``levels[n]``."""

    def _make(name="source.ogg", channels=2, levels=None, frames=22050, rate=22050, comments=None):
        if levels is None:
            levels = [0.5] * max(1, channels // 2)
        data = np.zeros((frames, channels), dtype=np.float32)
        for ch in range(channels):
            data[:, ch] = _tone(frames, rate, 440.0, levels[min(ch // 2, len(levels) - 1)])
        path = tmp_path / name
        sf.write(str(path), data, rate, format="OGG", subtype="VORBIS")
        if comments:
            audio = OggVorbis(str(path))
            for key, value in comments.items():
                audio[key] = value
            audio.save()
        return str(path)

    return _make


@pytest.fixture
def mp3_supported():
    if "MP3" not in sf.available_formats():
        pytest.skip("libsndfile was built without MP3 support")
