"""
Tests for merging fast-cache and durable-store histories.
"""

from qa_metrics.storage.history import merge_histories


def test_merge_deduplicates_by_run_and_matrix(make_record):
    fast = [make_record("1", "2024-01-02T00:00:00Z")]
    durable = [make_record("1", "2024-01-02T00:00:00Z"), make_record("2", "2024-01-01T00:00:00Z")]

    merged = merge_histories(fast, durable)

    assert [r.run_id for r in merged] == ["2", "1"]


def test_fast_store_wins(make_record):
    fast = [make_record("1", pass_rate=99.0)]
    durable = [make_record("1", pass_rate=10.0)]

    merged = merge_histories(fast, durable)

    assert len(merged) == 1
    assert merged[0].metrics.pass_rate == 99.0


def test_matrix_legs_are_distinct(make_record):
    fast = [make_record("7", matrix_key="os:ubuntu"), make_record("7", matrix_key="os:windows")]
    durable = [make_record("7")]

    merged = merge_histories(fast, durable)

    assert len(merged) == 3
    assert {r.matrix_key for r in merged} == {"os:ubuntu", "os:windows", None}


def test_sorted_by_timestamp_across_offsets(make_record):
    fast = [make_record("late", "2024-01-01T12:00:00+02:00")]
    durable = [make_record("early", "2024-01-01T09:00:00Z")]

    merged = merge_histories(fast, durable)

    assert [r.run_id for r in merged] == ["early", "late"]


def test_merge_is_idempotent_and_pure(make_record):
    fast = [make_record("1", "2024-01-03T00:00:00Z")]
    durable = [make_record("2", "2024-01-01T00:00:00Z"), make_record("3", "2024-01-02T00:00:00Z")]
    fast_before, durable_before = list(fast), list(durable)

    merged = merge_histories(fast, durable)

    assert merge_histories(merged, merged) == merged
    assert fast == fast_before
    assert durable == durable_before


def test_merge_empty_sources():
    assert merge_histories([], []) == []
