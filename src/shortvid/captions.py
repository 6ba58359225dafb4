"""
Caption timeline building from word-level transcription timestamps.
"""

import logging
import math

from .errors import InvalidInput
from .models import SubtitleEvent, WordObservation

logger = logging.getLogger("shortvid")

EPSILON = 0.01


def _min_end(start: float, min_duration: float) -> float:
    """``start + min_duration``, nudged up until ``end - start >= min_duration`` holds in floats."""
    end = start + min_duration
    while end - start < min_duration:
        end = math.nextafter(end, math.inf)
    return end


def build_timeline(
    words: list[WordObservation],
    min_duration: float,
    epsilon: float = EPSILON,
) -> list[SubtitleEvent]:
    """
    Turn raw word timings into one caption event per word.

    Single left-to-right pass:
    - a word never starts before the previous event ended (pushed to ``last_end + epsilon``),
    - every event lasts at least ``min_duration``,
    - an event is cut to end just before the next word's raw start, unless that
      would leave less than ``min_duration``; then the minimum duration wins and the
      next word is pushed instead.

    The result never overlaps, is monotonic, and every event has ``end > start``.
    An empty input gives an empty timeline.
    """
    if min_duration <= 0:
        raise InvalidInput(f"min_duration must be positive, got {min_duration}")
    for w in words:
        if w.end < w.start:
            raise InvalidInput(f"Word {w.text!r} ends before it starts ({w.start} > {w.end})")

    words = [w for w in words if w.text.strip()]
    events: list[SubtitleEvent] = []
    last_end = 0.0
    for i, w in enumerate(words):
        start = w.start
        if start < last_end:
            start = last_end + epsilon
        end = max(w.end, _min_end(start, min_duration))
        if i + 1 < len(words):
            next_start = words[i + 1].start
            if end >= next_start:
                # Floor at min duration; the next word gets pushed by the clamp above.
                end = max(next_start - epsilon, _min_end(start, min_duration))
        events.append(SubtitleEvent(text=w.text.strip(), start=start, end=end))
        last_end = end

    logger.debug("Built %d caption events from %d words", len(events), len(words))
    return events
