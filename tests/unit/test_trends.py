"""
Tests for the trend engine.
"""

import pytest

from qa_metrics.metrics.trends import (
    DURATION, FLAKY_TESTS, PASS_RATE, TEST_COUNT, TrendAnalyzer, classify, determine_trend
)
from qa_metrics.parsers.models import FlakyTest, TestMetrics, TestResult, TestStatus, Trend


def flaky(name):
    return FlakyTest(name=name, flakiness_score=0.5, failure_pattern="timeout", retry_count=2, last_seen="")


def test_duration_drop_is_improving():
    """100s now against 120s before is a 16.7% improvement"""
    trend = classify(100.0, 120.0, DURATION)

    assert trend.change == pytest.approx(-20.0)
    assert trend.change_percent == pytest.approx(-16.67, abs=0.01)
    assert trend.trend == Trend.IMPROVING


@pytest.mark.parametrize("percent,expected", [
    (-5.0, Trend.STABLE),
    (-5.1, Trend.IMPROVING),
    (9.9, Trend.STABLE),
    (10.0, Trend.STABLE),
    (10.1, Trend.DECLINING),
])
def test_duration_thresholds_are_asymmetric(percent, expected):
    assert determine_trend(percent, DURATION) == expected


@pytest.mark.parametrize("metric,percent,expected", [
    (PASS_RATE, 6.0, Trend.IMPROVING),
    (PASS_RATE, -6.0, Trend.DECLINING),
    (PASS_RATE, 5.0, Trend.STABLE),
    (TEST_COUNT, 20.0, Trend.IMPROVING),
    (FLAKY_TESTS, 50.0, Trend.DECLINING),
    (FLAKY_TESTS, -50.0, Trend.IMPROVING),
])
def test_metric_direction(metric, percent, expected):
    assert determine_trend(percent, metric) == expected


def test_unknown_metric():
    with pytest.raises(ValueError):
        determine_trend(1.0, "coverage")


def test_zero_previous_value_is_stable():
    trend = classify(12.0, 0.0, PASS_RATE)

    assert trend.change == pytest.approx(12.0)
    assert trend.change_percent == 0.0
    assert trend.trend == Trend.STABLE


def test_no_history_is_stable():
    metrics = TestMetrics(total_tests=10, pass_rate=90.0, total_duration=50.0)
    summary = TrendAnalyzer().get_trend_summary(metrics, [])

    for trend in (summary.duration_trend, summary.pass_rate_trend,
                  summary.test_count_trend, summary.flaky_tests_trend):
        assert trend.previous == 0
        assert trend.change == 0
        assert trend.trend == Trend.STABLE
    assert summary.duration_trend.current == 50.0
    assert summary.test_count_trend.current == 10


def test_summary_compares_with_latest_record(make_record):
    history = [
        make_record("1", "2024-01-01T00:00:00Z", total_duration=500.0, pass_rate=50.0, total_tests=10),
        make_record("2", "2024-01-02T00:00:00Z", total_duration=120.0, pass_rate=80.0, total_tests=10,
                    flaky_tests=[flaky("a"), flaky("b")]),
    ]
    current = TestMetrics(total_tests=10, pass_rate=90.0, total_duration=100.0, flaky_tests=[flaky("a")])
    summary = TrendAnalyzer().get_trend_summary(current, history)

    assert summary.duration_trend.previous == 120.0
    assert summary.duration_trend.trend == Trend.IMPROVING
    assert summary.pass_rate_trend.trend == Trend.IMPROVING
    assert summary.test_count_trend.trend == Trend.STABLE
    assert summary.flaky_tests_trend.change == -1
    assert summary.flaky_tests_trend.trend == Trend.IMPROVING


def test_performance_insights(make_record):
    history = [make_record("1", total_duration=100.0, pass_rate=100.0)]
    slow = TestResult(name="slow", status=TestStatus.PASSED, duration=42.0)
    current = TestMetrics(total_duration=150.0, pass_rate=80.0, slow_tests=[slow])
    insights = TrendAnalyzer().get_performance_insights(current, history)

    assert insights[0] == "⚠️ Test execution time increased by 50.0%"
    assert insights[1] == "📉 Pass rate decreased by 20.0%"
    assert insights[2] == "🐌 1 tests are in the slowest 5% (42.0s+)"


def test_insights_empty_when_nothing_changed(make_record):
    history = [make_record("1", total_duration=100.0, pass_rate=95.0)]
    current = TestMetrics(total_duration=101.0, pass_rate=95.0)

    assert TrendAnalyzer().get_performance_insights(current, history) == []


def test_trend_stats_window(make_record):
    history = [
        make_record("1", "2024-01-01T00:00:00Z", total_duration=200.0, pass_rate=80.0),
        make_record("2", "2024-01-02T00:00:00Z", total_duration=150.0, pass_rate=85.0),
        make_record("3", "2024-01-03T00:00:00Z", total_duration=100.0, pass_rate=90.0),
    ]
    stats = TrendAnalyzer().get_trend_stats(history)

    assert stats['average_duration'] == pytest.approx(150.0)
    assert stats['average_pass_rate'] == pytest.approx(85.0)
    assert stats['pass_rate_trend'] == Trend.IMPROVING
    assert stats['performance_trend'] == Trend.IMPROVING


def test_trend_stats_without_history():
    stats = TrendAnalyzer().get_trend_stats([])

    assert stats['average_duration'] == 0.0
    assert stats['pass_rate_trend'] == Trend.STABLE
