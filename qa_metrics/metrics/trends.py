"""
Trend engine.
Compares the current metrics snapshot with historical records and classifies
each metric as improving, declining or stable.
"""

import logging
from typing import Dict, List, Optional

from ..parsers.models import PerformanceTrend, TestMetrics, Trend, TrendData, TrendSummary

logger = logging.getLogger(__name__)

# Metric kinds
DURATION = 'duration'
PASS_RATE = 'pass_rate'
TEST_COUNT = 'test_count'
FLAKY_TESTS = 'flaky_tests'

# Regressions in duration are flagged more eagerly than improvements
DURATION_IMPROVING_PERCENT = -5.0
DURATION_DECLINING_PERCENT = 10.0
STABLE_BAND_PERCENT = 5.0

HIGHER_IS_BETTER = {PASS_RATE, TEST_COUNT}
LOWER_IS_BETTER = {DURATION, FLAKY_TESTS}


def change_percent(current: float, previous: float) -> float:
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def determine_trend(percent: float, metric: str) -> Trend:
    """
    Classify a percentage change for a metric.

    Args:
        percent: Change relative to the previous value
        metric: One of 'duration', 'pass_rate', 'test_count', 'flaky_tests'

    Returns:
        Trend
    """
    if metric == DURATION:
        if percent < DURATION_IMPROVING_PERCENT:
            return Trend.IMPROVING
        if percent > DURATION_DECLINING_PERCENT:
            return Trend.DECLINING
        return Trend.STABLE

    if metric in LOWER_IS_BETTER:
        if percent < -STABLE_BAND_PERCENT:
            return Trend.IMPROVING
        if percent > STABLE_BAND_PERCENT:
            return Trend.DECLINING
        return Trend.STABLE

    if metric in HIGHER_IS_BETTER:
        if percent > STABLE_BAND_PERCENT:
            return Trend.IMPROVING
        if percent < -STABLE_BAND_PERCENT:
            return Trend.DECLINING
        return Trend.STABLE

    raise ValueError(f"Unknown metric: {metric}")


def classify(current: float, previous: float, metric: str = DURATION) -> PerformanceTrend:
    """Build a PerformanceTrend comparing two values of one metric"""
    change = current - previous
    percent = change_percent(current, previous)
    return PerformanceTrend(
        current=current,
        previous=previous,
        change=change,
        change_percent=percent,
        trend=determine_trend(percent, metric),
    )


def no_history_trend(current: float) -> PerformanceTrend:
    return PerformanceTrend(current=current, previous=0, change=0, change_percent=0.0, trend=Trend.STABLE)


def metric_value(metrics: TestMetrics, metric: str) -> float:
    if metric == DURATION:
        return metrics.total_duration
    if metric == PASS_RATE:
        return metrics.pass_rate
    if metric == TEST_COUNT:
        return metrics.total_tests
    if metric == FLAKY_TESTS:
        return len(metrics.flaky_tests)
    raise ValueError(f"Unknown metric: {metric}")


class TrendAnalyzer:
    """Compares a metrics snapshot with history"""

    def analyze_trend(self, current_metrics: TestMetrics, historical_data: List[TrendData],
                      metric: str = DURATION) -> PerformanceTrend:
        """
        Trend of one metric against the most recent historical record.

        Args:
            current_metrics: Metrics of the current run
            historical_data: History ordered oldest to newest
            metric: Metric kind

        Returns:
            PerformanceTrend; stable with previous=0 when there is no history
        """
        current = metric_value(current_metrics, metric)
        if not historical_data:
            return no_history_trend(current)

        latest = historical_data[-1]
        return classify(current, metric_value(latest.metrics, metric), metric)

    def get_trend_summary(self, current_metrics: TestMetrics, historical_data: List[TrendData]) -> TrendSummary:
        """Trends for duration, pass rate, test count and flaky test count"""
        return TrendSummary(
            duration_trend=self.analyze_trend(current_metrics, historical_data, DURATION),
            pass_rate_trend=self.analyze_trend(current_metrics, historical_data, PASS_RATE),
            test_count_trend=self.analyze_trend(current_metrics, historical_data, TEST_COUNT),
            flaky_tests_trend=self.analyze_trend(current_metrics, historical_data, FLAKY_TESTS),
        )

    def get_performance_insights(self, current_metrics: TestMetrics, historical_data: List[TrendData],
                                 summary: Optional[TrendSummary] = None) -> List[str]:
        """
        Human-readable insights about the current run.

        Returns:
            List of one-line messages (possibly empty)
        """
        insights = []
        summary = summary or self.get_trend_summary(current_metrics, historical_data)

        duration = summary.duration_trend
        if duration.trend == Trend.DECLINING:
            insights.append(f"⚠️ Test execution time increased by {duration.change_percent:.1f}%")
        elif duration.trend == Trend.IMPROVING:
            insights.append(f"✅ Test execution time improved by {abs(duration.change_percent):.1f}%")

        pass_rate = summary.pass_rate_trend
        if pass_rate.trend == Trend.DECLINING:
            insights.append(f"📉 Pass rate decreased by {abs(pass_rate.change_percent):.1f}%")
        elif pass_rate.trend == Trend.IMPROVING:
            insights.append(f"📈 Pass rate improved by {pass_rate.change_percent:.1f}%")

        flaky = summary.flaky_tests_trend
        if flaky.trend == Trend.DECLINING:
            insights.append(f"🐛 Flaky tests increased by {flaky.change:.0f} ({flaky.change_percent:.1f}%)")
        elif flaky.trend == Trend.IMPROVING:
            insights.append(f"🎯 Flaky tests decreased by {abs(flaky.change):.0f}")

        if current_metrics.slow_tests:
            slowest = current_metrics.slow_tests[0].duration
            insights.append(
                f"🐌 {len(current_metrics.slow_tests)} tests are in the slowest 5% ({slowest:.1f}s+)"
            )

        return insights

    def get_trend_stats(self, historical_data: List[TrendData]) -> Dict:
        """
        Window statistics over a whole history.

        Returns:
            Dictionary with average_duration, average_pass_rate,
            pass_rate_trend and performance_trend (oldest vs newest record)
        """
        valid = [t for t in historical_data if t is not None and t.metrics is not None]
        if not valid:
            return {
                'average_duration': 0.0,
                'average_pass_rate': 0.0,
                'pass_rate_trend': Trend.STABLE,
                'performance_trend': Trend.STABLE,
            }

        oldest, newest = valid[0].metrics, valid[-1].metrics
        return {
            'average_duration': sum(t.metrics.total_duration for t in valid) / len(valid),
            'average_pass_rate': sum(t.metrics.pass_rate for t in valid) / len(valid),
            'pass_rate_trend': determine_trend(change_percent(newest.pass_rate, oldest.pass_rate), PASS_RATE),
            'performance_trend': determine_trend(
                change_percent(newest.total_duration, oldest.total_duration), DURATION
            ),
        }
