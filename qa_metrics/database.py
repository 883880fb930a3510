"""
Database connection and helper functions for MySQL operations.
Centralizes all database-related code.
"""

import logging
from typing import Optional

import pymysql
import pymysql.cursors
from pymysql import MySQLError

from .settings import Config
from .utils import sanitize_name

logger = logging.getLogger(__name__)

# MySQL identifiers are limited to 64 characters
MAX_TABLE_NAME_LENGTH = 64


class Database:
    """Database connection and helper functions"""
    
    def __init__(self, db_config: Optional[dict] = None):
        """Initialize with configuration from Config unless one is given"""
        self.db_config = db_config or Config.get_db_config()
    
    def get_connection(self):
        """Get MySQL database connection."""
        try:
            return pymysql.connect(
                cursorclass=pymysql.cursors.DictCursor,
                autocommit=False,
                **self.db_config
            )
        except MySQLError as e:
            logger.error(f"Error connecting to MySQL database: {e}")
            raise
    
    @staticmethod
    def get_table_name(framework: str, matrix_suffix: Optional[str] = None) -> str:
        """
        Derive the trend table name from the framework and an optional matrix suffix.
        
        Example: ("jest", None) -> "test_metrics_trends_jest"
        Example: ("junit", "os:ubuntu,node_version:20") -> "test_metrics_trends_junit_os_ubuntu_node_version_20"
        
        Args:
            framework: Detected framework type ('junit', 'jest', 'playwright')
            matrix_suffix: Optional matrix key distinguishing parallel legs
        
        Returns:
            Sanitized table name
        """
        name = f"test_metrics_trends_{framework or 'unknown'}"
        if matrix_suffix:
            name = f"{name}_{matrix_suffix}"
        return sanitize_name(name, MAX_TABLE_NAME_LENGTH)
