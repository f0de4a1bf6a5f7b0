import pytest

from batch_transcoder.domain.models import SampleWindow
from batch_transcoder.services.sampling_service import compute_window


def test_window_is_centered_on_the_middle():
    assert compute_window(600, 120) == SampleWindow(start_seconds=240, stop_seconds=120)


def test_odd_lengths_use_integer_halves():
    assert compute_window(601, 121) == SampleWindow(start_seconds=240, stop_seconds=121)


def test_short_source_is_encoded_whole():
    assert compute_window(60, 120) == SampleWindow(start_seconds=0, stop_seconds=60)
    assert compute_window(120, 120) == SampleWindow(start_seconds=0, stop_seconds=120)


def test_unknown_duration_samples_a_full_clip_from_the_start(log_messages):
    assert compute_window(0, 120, "mystery") == SampleWindow(start_seconds=0, stop_seconds=120)
    assert any("mystery" in m and "Unknown duration" in m for m in log_messages)


def test_window_is_never_zero_length():
    for duration in (0, 1, 59, 600):
        assert compute_window(duration, 120).stop_seconds > 0


def test_start_is_never_negative():
    window = compute_window(121, 120)
    assert window.start_seconds >= 0


@pytest.mark.parametrize("seconds", [0, -5])
def test_non_positive_clip_length_is_rejected(seconds):
    with pytest.raises(ValueError):
        compute_window(600, seconds)
