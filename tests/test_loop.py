import numpy as np
import pytest

from ogg_to_mp3.loop import (
    LoopConfigError,
    LoopRegion,
    apply_fade,
    fade_curve,
    fade_samples_for,
    process_layer,
    process_samples,
    render_layer,
    should_process,
)


def test_should_process_requires_request_and_valid_markers():
    assert should_process(2, 6, True)
    assert not should_process(2, 6, False)
    assert not should_process(0, 0, True)
    assert not should_process(6, 2, True)
    assert not should_process(4, 4, True)


def test_process_samples_concrete_scenario():
    pcm = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    out = process_samples(pcm, LoopRegion(start=2, end=6, repeat_count=2, fade_samples=2))
    assert out.tolist() == [1, 2, 3, 4, 5, 6, 3, 4, 5, 6, 3, 2]


def test_process_samples_without_loops_or_fade_keeps_intro_only():
    pcm = list(range(1, 11))
    out = process_samples(pcm, LoopRegion(start=3, end=7))
    assert out.tolist() == [1, 2, 3]


def test_zero_repeats_still_appends_fade():
    pcm = [100] * 10
    region = LoopRegion(start=3, end=7, repeat_count=0, fade_samples=4)
    out = process_samples(pcm, region)
    assert len(out) == 3 + 4
    assert out.tolist() == [100, 100, 100, 100, 75, 50, 25]


def test_output_length_matches_formula():
    pcm = np.arange(1000, dtype=np.int16)
    for repeats in (0, 1, 3):
        for fade in (0, 1, 17):
            region = LoopRegion(start=100, end=350, repeat_count=repeats, fade_samples=fade)
            out = process_samples(pcm, region)
            assert len(out) == 100 + 250 * repeats + fade == region.output_length


def test_intro_and_loop_bodies_are_copied_exactly():
    rng = np.random.default_rng(7)
    pcm = rng.integers(-32768, 32767, size=500, dtype=np.int16)
    region = LoopRegion(start=40, end=140, repeat_count=3, fade_samples=25)
    out = process_samples(pcm, region)

    assert np.array_equal(out[:40], pcm[:40])
    for k in range(3):
        body = out[40 + k * 100: 40 + (k + 1) * 100]
        assert np.array_equal(body, pcm[40:140])


def test_fade_truncates_toward_zero():
    # 3.5 and -3.5 truncate, they do not round
    assert apply_fade([7, 7]).tolist() == [7, 3]
    assert apply_fade([-7, -7]).tolist() == [-7, -3]


def test_fade_curve_is_monotonic_and_never_silent():
    curve = fade_curve(50)
    assert curve[0] == 1.0
    assert curve[-1] > 0
    assert all(curve[i] >= curve[i + 1] for i in range(len(curve) - 1))
    assert len(fade_curve(0)) == 0


def test_process_samples_does_not_mutate_input():
    pcm = np.array([10, 20, 30, 40, 50, 60], dtype=np.int16)
    before = pcm.copy()
    process_samples(pcm, LoopRegion(start=1, end=4, repeat_count=2, fade_samples=3))
    assert np.array_equal(pcm, before)


def test_interleaved_frames_fade_both_channels_equally():
    frames = np.array([[1, -1], [2, -2], [100, -100], [100, -100], [5, -5]], dtype=np.int16)
    out = process_samples(frames, LoopRegion(start=2, end=4, repeat_count=1, fade_samples=2))
    assert out.shape == (2 + 2 + 2, 2)
    assert out.reshape(-1).tolist() == [1, -1, 2, -2, 100, -100, 100, -100, 100, -100, 50, -50]


def test_process_layer_matches_per_channel_processing():
    left = np.arange(0, 200, dtype=np.int16)
    right = np.arange(1000, 1200, dtype=np.int16)
    region = LoopRegion(start=20, end=80, repeat_count=2, fade_samples=30)
    out_left, out_right = process_layer(left, right, region)
    frames = process_samples(np.column_stack((left, right)), region)
    assert np.array_equal(out_left, frames[:, 0])
    assert np.array_equal(out_right, frames[:, 1])


def test_process_layer_identical_channels_stay_identical():
    pcm = np.arange(-500, 500, 7, dtype=np.int16)
    out_left, out_right = process_layer(pcm, pcm.copy(), LoopRegion(10, 60, 2, 40))
    assert np.array_equal(out_left, out_right)


def test_process_layer_rejects_unequal_channels():
    with pytest.raises(LoopConfigError):
        process_layer([1, 2, 3], [1, 2], LoopRegion(0, 1, 1, 0))


def test_fade_past_end_of_buffer_is_a_config_error():
    with pytest.raises(LoopConfigError, match="Fade"):
        process_samples(list(range(10)), LoopRegion(start=5, end=8, repeat_count=1, fade_samples=6))


def test_fade_longer_than_loop_body_reads_past_loop_end():
    pcm = list(range(1, 11))
    out = process_samples(pcm, LoopRegion(start=2, end=4, repeat_count=1, fade_samples=4))
    assert out.tolist() == [1, 2, 3, 4, 3, 3, 2, 1]


def test_loop_end_past_buffer_is_a_config_error():
    with pytest.raises(LoopConfigError):
        process_samples([1, 2, 3], LoopRegion(start=1, end=5, repeat_count=1))


def test_render_layer_passes_through_without_markers():
    left = [1, 2, 3]
    right = [4, 5, 6]
    out_left, out_right = render_layer(left, right, 0, 0, repeat_count=3, fade_samples=2)
    assert out_left.tolist() == left
    assert out_right.tolist() == right


def test_render_layer_passes_through_when_not_requested():
    left = list(range(10))
    out_left, _ = render_layer(left, left, 2, 6, 2, 2, process_requested=False)
    assert out_left.tolist() == left


def test_fade_samples_for_converts_seconds():
    assert fade_samples_for(10, 44100) == 441000
    assert fade_samples_for(0.5, 44100) == 22050
    assert fade_samples_for(0, 48000) == 0
    with pytest.raises(LoopConfigError):
        fade_samples_for(-1, 44100)


@pytest.mark.parametrize(
    "region",
    [
        LoopRegion(start=-1, end=4),
        LoopRegion(start=6, end=3),
        LoopRegion(start=1, end=4, repeat_count=-1),
        LoopRegion(start=1, end=4, fade_samples=-2),
    ],
)
def test_invalid_regions_are_config_errors(region):
    with pytest.raises(LoopConfigError):
        process_samples(list(range(10)), region)


def test_region_is_active_only_when_end_after_start():
    assert LoopRegion(2, 6).is_active
    assert not LoopRegion(0, 0).is_active
    assert not LoopRegion(6, 2).is_active
