"""
Common utility functions used across the codebase.
"""

import os
import re
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

# Matrix variables exported by workflow authors, e.g. MATRIX_OS=ubuntu-latest
MATRIX_VARIABLES = [
    'MATRIX_NODE_VERSION',
    'MATRIX_OS',
    'MATRIX_PYTHON_VERSION',
    'MATRIX_JAVA_VERSION',
    'MATRIX_RUBY_VERSION',
]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken as UTC, a trailing 'Z' is accepted and anything
    unparseable sorts first (epoch).
    """
    if not value:
        return _EPOCH
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def get_matrix_key(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Build a key identifying the current build-matrix leg.

    Args:
        env: Environment mapping (defaults to os.environ)

    Returns:
        Comma-separated 'name:value' pairs, or None outside a matrix build
    """
    env = os.environ if env is None else env
    matrix_values = []

    for var_name in MATRIX_VARIABLES:
        value = env.get(var_name)
        if value:
            matrix_values.append(f"{var_name.replace('MATRIX_', '').lower()}:{value}")

    job = env.get('GITHUB_JOB', '')
    if job and 'matrix' in job:
        matrix_values.append(job)

    return ','.join(matrix_values) if matrix_values else None


def sanitize_name(name: str, max_length: int = 64) -> str:
    """Lower-case identifier safe for table and file names"""
    cleaned = re.sub(r'[^a-z0-9_]+', '_', (name or '').lower()).strip('_')
    return cleaned[:max_length]


def format_duration(seconds: float) -> str:
    """Render seconds as '850ms', '12.3s' or '4m 05s'"""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    return f"{minutes}m {secs:02d}s"


def get_pull_request_number(event: Dict) -> Optional[int]:
    """Pull request number from a GitHub event payload"""
    pull_request = event.get('pull_request') or {}
    number = pull_request.get('number') or event.get('number')
    return int(number) if number else None
