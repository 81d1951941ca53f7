"""Pure availability aggregation functions.

Stateless, side-effect-free helpers reducing a timeline of samples to the
figures shown by the card rows and the bubble.
"""

from collections.abc import Sequence
from typing import Final

from relay_pulse.types.models import TimelineSample

DEFAULT_RECENT_SAMPLES: Final[int] = 24


def aggregate(timeline: Sequence[TimelineSample]) -> float:
    """Average the per-sample availability over the full timeline.

    Args:
        timeline: Samples ordered oldest to newest

    Returns:
        Mean of ``availability_pct`` in [0, 100]; 0.0 for an empty timeline

    Examples:
        >>> aggregate([])
        0.0
    """
    if not timeline:
        return 0.0
    total = sum(sample.availability_pct for sample in timeline)
    return total / len(timeline)


def recent_window(
    timeline: Sequence[TimelineSample],
    n: int = DEFAULT_RECENT_SAMPLES,
) -> tuple[TimelineSample, ...]:
    """Return the last ``n`` samples in their original order.

    Only used for the compact bar strip; the mean always covers the full
    timeline.

    Args:
        timeline: Samples ordered oldest to newest
        n: Maximum number of samples to keep (must be non-negative)

    Returns:
        At most ``n`` newest samples, or the whole timeline when shorter

    Raises:
        ValueError: If n is negative
    """
    if n < 0:
        msg = "n must be non-negative"
        raise ValueError(msg)
    if n == 0:
        return ()
    return tuple(timeline[-n:])
