# backend/agentsalud/services/availability/merger.py
"""
Merge weekly availability blocks of one provider/weekday into disjoint intervals.

Blocks may arrive unsorted, overlapping or adjacent (09:00-13:00 + 13:00-17:00).
Adjacent blocks merge, so a duration may straddle the boundary between them.
"""

import logging

from .entities import Diagnostic, Interval, WeeklyAvailabilityBlock
from .times import time_str_to_minutes

logger = logging.getLogger(__name__)


def block_to_interval(block: WeeklyAvailabilityBlock) -> Interval:
    """Raises ValueError for unparsable times or end <= start."""
    start = time_str_to_minutes(block.start_time)
    end = time_str_to_minutes(block.end_time)
    if end <= start:
        raise ValueError(f"end {block.end_time} is not after start {block.start_time}")
    return Interval(start, end)


def merge_intervals(intervals: list[Interval]) -> list[Interval]:
    """Sorted, pairwise-disjoint intervals covering the same union."""
    if not intervals:
        return []

    ordered = sorted(intervals)
    merged: list[Interval] = []
    running = ordered[0]

    for nxt in ordered[1:]:
        if running.end >= nxt.start:
            running = Interval(running.start, max(running.end, nxt.end))
        else:
            merged.append(running)
            running = nxt

    merged.append(running)
    return merged


def merge_blocks(
    blocks: list[WeeklyAvailabilityBlock],
    diagnostics: list[Diagnostic] | None = None,
) -> list[Interval]:
    """
    Merge blocks into minimal disjoint intervals.

    Malformed blocks are skipped; a Diagnostic is appended to `diagnostics`
    when given.
    """
    intervals = []
    for block in blocks:
        try:
            intervals.append(block_to_interval(block))
        except ValueError as e:
            logger.warning(f"Skipping schedule block of provider {block.provider_id}: {e}")
            if diagnostics is not None:
                diagnostics.append(Diagnostic(block.provider_id, "schedule", str(e)))

    return merge_intervals(intervals)
