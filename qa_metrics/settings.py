"""
Configuration management for the QA Metrics Analyzer.
Centralizes environment variable loading, configuration, and constants.
"""

import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables once at module level
_config_path = Path(__file__).parent.parent / 'config' / '.env'
if _config_path.exists():
    load_dotenv(_config_path)
else:
    # Fallback to root .env if config/.env doesn't exist
    load_dotenv(Path(__file__).parent.parent / '.env')


def _get_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Centralized configuration class"""
    
    # Trend Storage Configuration
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'test-metrics')
    CACHE_RETENTION_DAYS = int(os.getenv('CACHE_RETENTION_DAYS', '30'))
    ARTIFACT_RETENTION_DAYS = int(os.getenv('ARTIFACT_RETENTION_DAYS', '90'))
    HISTORY_LIMIT = int(os.getenv('HISTORY_LIMIT', '30'))
    RUNNER_TEMP = os.getenv('RUNNER_TEMP', tempfile.gettempdir())
    
    # Durable Store (MySQL) Configuration
    DURABLE_STORE_ENABLED = _get_bool('DURABLE_STORE_ENABLED')
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', '3306'))
    DB_USER = os.getenv('DB_USER', 'root')
    DB_PASSWORD = os.getenv('DB_PASSWORD', '')
    DB_NAME = os.getenv('DB_NAME', 'test_metrics')
    
    # CI Context
    GITHUB_SHA = os.getenv('GITHUB_SHA', '')
    GITHUB_RUN_ID = os.getenv('GITHUB_RUN_ID', '')
    GITHUB_JOB = os.getenv('GITHUB_JOB', '')
    GITHUB_EVENT_NAME = os.getenv('GITHUB_EVENT_NAME', '')
    GITHUB_EVENT_PATH = os.getenv('GITHUB_EVENT_PATH', '')
    GITHUB_REPOSITORY = os.getenv('GITHUB_REPOSITORY', '')
    GITHUB_TOKEN = os.getenv('GITHUB_TOKEN', '')
    GITHUB_API_URL = os.getenv('GITHUB_API_URL', 'https://api.github.com')
    GITHUB_STEP_SUMMARY = os.getenv('GITHUB_STEP_SUMMARY', '')
    GITHUB_OUTPUT = os.getenv('GITHUB_OUTPUT', '')
    
    # Logging Configuration
    LOG_FILE_NAME = os.getenv('LOG_FILE_NAME', 'qa-metrics.log')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    
    @classmethod
    def get_db_config(cls) -> dict:
        """Get database configuration dictionary"""
        return {
            'host': cls.DB_HOST,
            'port': cls.DB_PORT,
            'user': cls.DB_USER,
            'password': cls.DB_PASSWORD,
            'database': cls.DB_NAME
        }
