"""Pack file diffs into prompt-sized batches."""

from __future__ import annotations

import logging

from diffgate.schemas import FileDiff

logger = logging.getLogger(__name__)

# Room for the "===== FILE: ... =====" delimiter and newlines per file
PER_FILE_OVERHEAD = 64


def batch_by_char_limit(
    units: list[FileDiff],
    limit: int,
    overhead: int = PER_FILE_OVERHEAD,
) -> list[list[FileDiff]]:
    """Greedily group *units*, in order, into batches costing at most *limit*.

    A unit is never split. One whose own cost exceeds *limit* ends up alone
    in an over-limit batch instead of being dropped.
    """
    if limit <= 0:
        raise ValueError(f"Batch limit must be positive, got {limit}")

    batches: list[list[FileDiff]] = []
    current: list[FileDiff] = []
    current_size = 0

    for unit in units:
        cost = unit.cost(overhead)
        if current and current_size + cost > limit:
            batches.append(current)
            current = []
            current_size = 0
        current.append(unit)
        current_size += cost
        if cost > limit:
            logger.warning("%s exceeds the prompt budget on its own (%d > %d chars)", unit.path, cost, limit)

    if current:
        batches.append(current)

    logger.info("Packed %d file(s) into %d batch(es)", len(units), len(batches))
    return batches


def batch_size(batch: list[FileDiff], overhead: int = PER_FILE_OVERHEAD) -> int:
    return sum(unit.cost(overhead) for unit in batch)
