"""
Chooses the clip used for a test encode.

The clip is centered on the middle of the source, where the content is most
likely to be representative (no studio logos, no credits). A source that is
not longer than the requested clip is encoded whole. A source whose duration
the probe did not report is sampled from its start.
"""
from typing import Optional

from loguru import logger

from ..domain.models import SampleWindow


def compute_window(
    duration_seconds: int, test_encode_seconds: int, source_name: Optional[str] = None
) -> SampleWindow:
    """
    Computes the sample window for one source.

    Args:
        duration_seconds: Source duration in whole seconds; 0 means unknown.
        test_encode_seconds: Requested clip length in seconds.
        source_name: Used in the warning for an unknown duration.

    Returns:
        A `SampleWindow` whose `stop_seconds` is the clip length counted from
        `start_seconds`. For example a 600 s source with a 120 s clip gives
        start=240, stop=120. An unknown duration gives start=0 with the full
        clip length, never a zero-length window.

    Raises:
        ValueError: If `test_encode_seconds` is not positive.
    """
    if test_encode_seconds <= 0:
        raise ValueError(f"test_encode_seconds must be positive, got {test_encode_seconds}.")

    duration_seconds = max(0, int(duration_seconds))
    if duration_seconds == 0:
        logger.warning(
            f"Unknown duration for '{source_name or 'source'}'; sampling the first {test_encode_seconds}s."
        )
        return SampleWindow(start_seconds=0, stop_seconds=test_encode_seconds)

    if duration_seconds <= test_encode_seconds:
        return SampleWindow(start_seconds=0, stop_seconds=duration_seconds)

    midpoint = duration_seconds // 2
    # Never before the first frame.
    start = max(0, midpoint - test_encode_seconds // 2)
    return SampleWindow(start_seconds=start, stop_seconds=test_encode_seconds)
