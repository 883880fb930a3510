"""
History merger.
Combines trend records from the fast cache and the durable store into one
deduplicated, time-ordered sequence.
"""

import logging
from typing import Dict, List, Tuple, Optional

from ..parsers.models import TrendData
from ..utils import parse_timestamp

logger = logging.getLogger(__name__)


def merge_histories(fast_history: List[TrendData], durable_history: List[TrendData]) -> List[TrendData]:
    """
    Merge two histories keyed by (run_id, matrix_key).

    When both sources hold a record for the same key the fast-store copy wins.
    The result is sorted ascending by timestamp; inputs are not modified.

    Args:
        fast_history: Records from the short-retention cache
        durable_history: Records from the long-retention store

    Returns:
        New list of unique records, oldest first
    """
    merged: Dict[Tuple[str, Optional[str]], TrendData] = {}

    for record in durable_history:
        if record is not None:
            merged[record.identity] = record

    for record in fast_history:
        if record is not None:
            merged[record.identity] = record

    duplicates = len(fast_history) + len(durable_history) - len(merged)
    if duplicates:
        logger.debug(f"Dropped {duplicates} duplicate trend records while merging history")

    return sorted(merged.values(), key=lambda r: parse_timestamp(r.timestamp))
