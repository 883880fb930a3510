"""
Shared pytest fixtures.
"""

from pathlib import Path

import pytest

from qa_metrics.parsers.models import TestMetrics, TrendData

FIXTURES_DIR = Path(__file__).parent / 'fixtures'


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def make_record():
    """Factory for TrendData records with only the interesting fields set"""
    def _make(run_id, timestamp='2024-01-01T00:00:00Z', matrix_key=None, **metrics):
        return TrendData(
            timestamp=timestamp,
            commit_sha=f"sha-{run_id}",
            metrics=TestMetrics(**metrics),
            run_id=run_id,
            matrix_key=matrix_key,
        )
    return _make
