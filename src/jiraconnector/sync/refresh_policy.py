from __future__ import annotations

FULL_REFRESH_WINDOW_MINUTES = 14 * 24 * 60
MINIMUM_REFRESH_BATCH_SIZE = 10


def compute_refresh_batch_size(
    tag_count: int,
    interval_minutes: int,
    upsert_batch_size: int,
    window_minutes: int = FULL_REFRESH_WINDOW_MINUTES,
    minimum_batch_size: int = MINIMUM_REFRESH_BATCH_SIZE,
) -> int:
    """
    Batch size needed to refresh every tag once per window when called every
    `interval_minutes`. Never below the minimum, so small tag sets still make
    progress, and never above the upsert batch size.
    """
    slots = max(1, window_minutes // max(1, interval_minutes))
    ideal = tag_count // slots
    if ideal > upsert_batch_size:
        return upsert_batch_size
    if ideal < minimum_batch_size:
        return minimum_batch_size
    return ideal
