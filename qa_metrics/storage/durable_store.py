"""
Durable, long-retention trend store backed by MySQL.
One table per framework (and matrix leg); each row holds one TrendData record
as JSON. Best-effort: failures are logged and the pipeline carries on.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pymysql import MySQLError

from ..database import Database
from ..parsers.models import TrendData
from ..settings import Config
from ..utils import parse_timestamp

logger = logging.getLogger(__name__)


class DurableTrendStore:
    """Stores and retrieves trend records using a MySQL database"""

    def __init__(self, framework: str = 'junit', retention_days: int = None,
                 matrix_suffix: Optional[str] = None, database: Optional[Database] = None):
        """
        Args:
            framework: Detected framework type, part of the table name
            retention_days: Rows older than this are pruned on save
            matrix_suffix: Optional matrix key, part of the table name
            database: Database helper (defaults to one built from Config)
        """
        self.db = database or Database()
        self.table_name = Database.get_table_name(framework, matrix_suffix)
        self.retention_days = retention_days if retention_days is not None else Config.ARTIFACT_RETENTION_DAYS

    def _ensure_table(self, cursor):
        cursor.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                id BIGINT AUTO_INCREMENT PRIMARY KEY,
                run_id VARCHAR(64) NOT NULL,
                matrix_key VARCHAR(255) NULL,
                commit_sha VARCHAR(64) NOT NULL DEFAULT '',
                recorded_at DATETIME(6) NOT NULL,
                payload LONGTEXT NOT NULL,
                INDEX idx_recorded_at (recorded_at)
            )
        """)

    def save(self, record: TrendData, now: Optional[datetime] = None) -> bool:
        """
        Persist one trend record and prune rows past the retention window.

        Returns:
            True if saved, False otherwise
        """
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(days=self.retention_days)).replace(tzinfo=None)
        recorded_at = parse_timestamp(record.timestamp).replace(tzinfo=None)

        connection = None
        try:
            connection = self.db.get_connection()
            with connection.cursor() as cursor:
                self._ensure_table(cursor)
                cursor.execute(
                    f"""
                    INSERT INTO {self.table_name} (run_id, matrix_key, commit_sha, recorded_at, payload)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (record.run_id, record.matrix_key, record.commit_sha, recorded_at,
                     json.dumps(record.to_dict()))
                )
                cursor.execute(f"DELETE FROM {self.table_name} WHERE recorded_at < %s", (cutoff,))
                pruned = cursor.rowcount
            connection.commit()
            logger.info(f"✅ Saved trend record for run {record.run_id} to {self.table_name}")
            if pruned:
                logger.debug(f"Pruned {pruned} trend records older than {self.retention_days} days")
            return True
        except MySQLError as e:
            logger.warning(f"⚠️ Failed to save trend record to {self.table_name}: {e}")
            return False
        finally:
            if connection:
                connection.close()

    def load_recent(self, limit: int = None) -> List[TrendData]:
        """
        Load the most recent trend records.

        Args:
            limit: Maximum number of records

        Returns:
            Records ordered oldest to newest; empty on any failure
        """
        limit = limit or Config.HISTORY_LIMIT
        connection = None
        try:
            connection = self.db.get_connection()
            with connection.cursor() as cursor:
                self._ensure_table(cursor)
                cursor.execute(
                    f"SELECT payload FROM {self.table_name} ORDER BY recorded_at DESC, id DESC LIMIT %s",
                    (limit,)
                )
                rows = cursor.fetchall()
            connection.commit()
        except MySQLError as e:
            logger.warning(f"⚠️ Failed to load trend records from {self.table_name}: {e}")
            return []
        finally:
            if connection:
                connection.close()

        records = []
        for row in reversed(rows):
            try:
                records.append(TrendData.from_dict(json.loads(row['payload'])))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed trend row: {e}")

        logger.info(f"✅ Loaded {len(records)} trend records from {self.table_name}")
        return records
