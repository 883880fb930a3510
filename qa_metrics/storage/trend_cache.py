"""
Fast, short-retention trend store.
Keeps recent TrendData records in a JSON file in the runner's temp directory,
namespaced by a cache key prefix. Best-effort: failures are logged, never raised.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from ..parsers.models import TrendData
from ..settings import Config
from ..utils import parse_timestamp, sanitize_name

logger = logging.getLogger(__name__)


class TrendCache:
    """JSON-file backed trend history"""

    def __init__(self, cache_key_prefix: str = None, retention_days: int = None, cache_dir: str = None):
        """
        Args:
            cache_key_prefix: Namespace for the cache file
            retention_days: Records older than this are dropped on save
            cache_dir: Directory holding the cache file (defaults to RUNNER_TEMP)
        """
        self.cache_key = f"{cache_key_prefix or Config.CACHE_KEY_PREFIX}-trends"
        self.retention_days = retention_days if retention_days is not None else Config.CACHE_RETENTION_DAYS
        self.cache_dir = Path(cache_dir or Config.RUNNER_TEMP)

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / f"{sanitize_name(self.cache_key.replace('-', '_'))}.json"

    def load(self) -> List[TrendData]:
        """
        Load all cached records.

        Returns:
            Records ordered as stored (oldest first); empty on any failure
        """
        path = self.cache_path
        if not path.exists():
            logger.info("ℹ️ No cached trend history found")
            return []

        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load trend data from {path}: {e}")
            return []

        if not isinstance(raw, list):
            logger.warning(f"Ignoring trend cache {path}: expected a list")
            return []

        records = []
        for item in raw:
            try:
                records.append(TrendData.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed trend record: {e}")

        logger.info(f"Loaded {len(records)} historical trend records from cache")
        return records

    def save(self, records: List[TrendData], now: Optional[datetime] = None) -> List[TrendData]:
        """
        Replace the cached history.

        Records outside the retention window are dropped and the rest are
        sorted by timestamp before writing.

        Returns:
            The records actually written
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.retention_days)
        kept = [r for r in records if parse_timestamp(r.timestamp) >= cutoff]
        kept.sort(key=lambda r: parse_timestamp(r.timestamp))

        path = self.cache_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump([r.to_dict() for r in kept], f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save trend data to {path}: {e}")
            return kept

        logger.info(f"Saved trend data for {len(kept)} runs")
        return kept

    def append(self, record: TrendData, now: Optional[datetime] = None) -> List[TrendData]:
        """Add one record to the cached history, replacing a record with the same identity"""
        existing = [r for r in self.load() if r.identity != record.identity]
        existing.append(record)
        return self.save(existing, now=now)

    def get_trend_history(self, days: int = 7, now: Optional[datetime] = None) -> List[TrendData]:
        """Records from the last ``days`` days"""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=days)
        return [r for r in self.load() if parse_timestamp(r.timestamp) >= cutoff]

    def get_latest_trend(self) -> Optional[TrendData]:
        records = self.load()
        return records[-1] if records else None
