"""
Markdown job summary for a metrics snapshot and its trends.
"""

import logging
from typing import List, Optional

from ..parsers.models import (
    FailureCategory, FlakyTest, PerformanceTrend, TestMetrics, TestResult, Trend, TrendData, TrendSummary
)
from ..settings import Config
from ..utils import format_duration

logger = logging.getLogger(__name__)

# Names listed per failure category before truncating
MAX_CATEGORY_TESTS = 5
TREND_CHART_RECORDS = 7


def get_status_emoji(pass_rate: float) -> str:
    if pass_rate >= 95:
        return "🟢"
    if pass_rate >= 80:
        return "🟡"
    return "🔴"


def get_trend_emoji(trend: Trend) -> str:
    return {
        Trend.IMPROVING: "📈",
        Trend.DECLINING: "📉",
        Trend.STABLE: "➡️",
    }.get(trend, "➡️")


def format_change(trend: PerformanceTrend) -> str:
    if trend.previous == 0 and trend.change == 0:
        return "-"
    sign = "+" if trend.change_percent >= 0 else ""
    return f"{sign}{trend.change_percent:.1f}%"


class SummaryReporter:
    """Builds the markdown summary shown on the CI job page"""

    def generate_job_summary(
        self,
        metrics: TestMetrics,
        summary: TrendSummary,
        insights: List[str],
        historical_data: List[TrendData],
        framework: str
    ) -> str:
        """
        Build the full markdown summary.

        Args:
            metrics: Current metrics snapshot
            summary: Trend summary against the latest historical record
            insights: Performance insight lines
            historical_data: Merged history, oldest first
            framework: Framework label for the heading

        Returns:
            Markdown text
        """
        markdown = f"# 🧪 Test Metrics Report ({framework})\n\n"
        markdown += self._generate_summary_table(metrics, summary)

        markdown += "\n## 📈 Test Execution Details\n\n"
        markdown += self._generate_execution_details(metrics)

        if metrics.slow_tests or insights:
            markdown += "\n## 🐌 Performance Analysis\n\n"
            for insight in insights:
                markdown += f"- {insight}\n"
            if insights:
                markdown += "\n"
            if metrics.slow_tests:
                markdown += "**Slowest Tests (Top 5%):**\n\n"
                markdown += self._generate_slow_tests_table(metrics.slow_tests)

        if metrics.flaky_tests:
            markdown += "\n## 🐛 Flaky Tests Detected\n\n"
            markdown += self._generate_flaky_tests_table(metrics.flaky_tests)

        if metrics.failure_categories:
            markdown += "\n## ❌ Failure Analysis\n\n"
            markdown += self._generate_failure_categories_table(metrics.failure_categories)

        if len(historical_data) > 1:
            markdown += f"\n## 📊 Pass Rate Trend (Last {TREND_CHART_RECORDS} Runs)\n\n"
            markdown += self._generate_trend_chart(historical_data[-TREND_CHART_RECORDS:])

        return markdown

    def write_job_summary(self, markdown: str, summary_path: Optional[str] = None) -> bool:
        """Append the summary to the CI step summary file, if one is configured"""
        summary_path = summary_path or Config.GITHUB_STEP_SUMMARY
        if not summary_path:
            logger.debug("No step summary file configured, skipping job summary")
            return False
        try:
            with open(summary_path, 'a', encoding='utf-8') as f:
                f.write(markdown)
                f.write("\n")
        except OSError as e:
            logger.warning(f"Failed to write job summary to {summary_path}: {e}")
            return False
        logger.info(f"📝 Job summary written to {summary_path}")
        return True

    def _generate_summary_table(self, metrics: TestMetrics, summary: TrendSummary) -> str:
        tests, rate = summary.test_count_trend, summary.pass_rate_trend
        duration, flaky = summary.duration_trend, summary.flaky_tests_trend
        rows = [
            "| Metric | Current | Previous | Change | Trend |",
            "|--------|---------|----------|--------|-------|",
            f"| **Tests** | {metrics.total_tests} | {tests.previous:.0f} | {format_change(tests)} "
            f"| {get_trend_emoji(tests.trend)} |",
            f"| **Pass Rate** | {metrics.pass_rate:.1f}% {get_status_emoji(metrics.pass_rate)} | {rate.previous:.1f}% "
            f"| {format_change(rate)} | {get_trend_emoji(rate.trend)} |",
            f"| **Duration** | {format_duration(metrics.total_duration)} | {format_duration(duration.previous)} "
            f"| {format_change(duration)} | {get_trend_emoji(duration.trend)} |",
            f"| **Flaky Tests** | {len(metrics.flaky_tests)} | {flaky.previous:.0f} | {format_change(flaky)} "
            f"| {get_trend_emoji(flaky.trend)} |",
        ]
        return "\n".join(rows) + "\n"

    @staticmethod
    def _generate_execution_details(metrics: TestMetrics) -> str:
        return (
            f"- ✅ **Passed:** {metrics.passed_tests}\n"
            f"- ❌ **Failed:** {metrics.failed_tests}\n"
            f"- ⏭️ **Skipped:** {metrics.skipped_tests}\n"
            f"- ⏱️ **Average Duration:** {format_duration(metrics.average_duration)}\n"
        )

    @staticmethod
    def _generate_slow_tests_table(slow_tests: List[TestResult]) -> str:
        rows = ["| Test | Suite | Duration |", "|------|-------|----------|"]
        for test in slow_tests:
            rows.append(f"| {test.name} | {test.suite or '-'} | {format_duration(test.duration)} |")
        return "\n".join(rows) + "\n"

    @staticmethod
    def _generate_flaky_tests_table(flaky_tests: List[FlakyTest]) -> str:
        rows = ["| Test | Score | Pattern | Retries |", "|------|-------|---------|---------|"]
        for flaky in flaky_tests:
            rows.append(
                f"| {flaky.name} | {flaky.flakiness_score:.2f} | {flaky.failure_pattern} | {flaky.retry_count} |"
            )
        return "\n".join(rows) + "\n"

    @staticmethod
    def _generate_failure_categories_table(categories: List[FailureCategory]) -> str:
        rows = ["| Category | Count | Percentage | Tests |", "|----------|-------|------------|-------|"]
        for category in categories:
            names = ", ".join(category.tests[:MAX_CATEGORY_TESTS])
            hidden = len(category.tests) - MAX_CATEGORY_TESTS
            if hidden > 0:
                names += f" (+{hidden} more)"
            rows.append(f"| {category.type.value} | {category.count} | {category.percentage:.1f}% | {names} |")
        return "\n".join(rows) + "\n"

    @staticmethod
    def _generate_trend_chart(history: List[TrendData]) -> str:
        lines = ["```"]
        for record in history:
            bar = "█" * int(record.metrics.pass_rate / 5)
            lines.append(f"{record.timestamp[:10]} {bar} {record.metrics.pass_rate:.1f}%")
        lines.append("```")
        return "\n".join(lines) + "\n"
