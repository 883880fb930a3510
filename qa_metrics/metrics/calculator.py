"""
Metrics engine.
Derives pass/fail statistics, flakiness scores, slow tests and failure
categories from parsed test suites. Pure: no I/O, inputs are never mutated.
"""

import math
import logging
from typing import Dict, List, Optional

from .category_rules import CategoryRuleEngine
from ..parsers.models import (
    FailureCategory, FailureType, FlakyTest, TestMetrics, TestResult, TestStatus, TestSuite,
    utc_now_iso
)

logger = logging.getLogger(__name__)

# Flakiness scoring
RETRY_WEIGHT = 0.2
TIMEOUT_BONUS = 0.3
NETWORK_BONUS = 0.2
FLAKINESS_THRESHOLD = 0.3

# Top N percent of passed tests by duration
SLOW_TEST_PERCENT = 5


def flatten_tests(suites: List[TestSuite]) -> List[TestResult]:
    """All individual test results, in suite order"""
    all_tests = []
    for suite in suites:
        all_tests.extend(suite.tests)
    return all_tests


def calculate_flakiness_score(test: TestResult) -> float:
    """
    Heuristic 0-1 score of how likely a failure is environmental.

    Each retry adds 0.2; a timeout message adds 0.3; a network/connection
    message adds 0.2. Capped at 1.0.
    """
    score = test.retry_count * RETRY_WEIGHT

    if test.error_message:
        error = test.error_message.lower()
        if 'timeout' in error:
            score += TIMEOUT_BONUS
        if 'network' in error or 'connection' in error:
            score += NETWORK_BONUS

    return round(min(score, 1.0), 4)


class MetricsCalculator:
    """Computes a TestMetrics snapshot from parsed suites"""

    def __init__(self, rule_engine: Optional[CategoryRuleEngine] = None):
        self.rule_engine = rule_engine or CategoryRuleEngine()

    def calculate_metrics(self, suites: List[TestSuite], observed_at: Optional[str] = None) -> TestMetrics:
        """
        Compute one metrics snapshot.

        Args:
            suites: Parsed test suites (concatenated across report files)
            observed_at: Timestamp recorded as ``last_seen`` on flaky tests;
                defaults to now

        Returns:
            TestMetrics. An empty suite list yields a zero-valued snapshot.
        """
        observed_at = observed_at or utc_now_iso()
        all_tests = flatten_tests(suites)

        total_tests = len(all_tests)
        passed_tests = sum(1 for t in all_tests if t.status == TestStatus.PASSED)
        failed_tests = sum(1 for t in all_tests if t.status == TestStatus.FAILED)
        skipped_tests = sum(1 for t in all_tests if t.status == TestStatus.SKIPPED)
        total_duration = sum(t.duration for t in all_tests)

        # Suites known only by aggregate counts still count toward the totals
        for suite in suites:
            if suite.is_virtual:
                total_tests += suite.total_tests
                passed_tests += suite.passed_tests
                failed_tests += suite.failed_tests
                skipped_tests += suite.skipped_tests
                total_duration += suite.duration

        pass_rate = (passed_tests / total_tests) * 100 if total_tests > 0 else 0.0
        average_duration = total_duration / total_tests if total_tests > 0 else 0.0

        metrics = TestMetrics(
            total_tests=total_tests,
            passed_tests=passed_tests,
            failed_tests=failed_tests,
            skipped_tests=skipped_tests,
            pass_rate=pass_rate,
            total_duration=total_duration,
            average_duration=average_duration,
            flaky_tests=self.identify_flaky_tests(all_tests, observed_at),
            slow_tests=self.identify_slow_tests(all_tests),
            failure_categories=self.categorize_failures(all_tests),
        )
        logger.debug(f"Computed {metrics!r}")
        return metrics

    def identify_flaky_tests(self, tests: List[TestResult], observed_at: str) -> List[FlakyTest]:
        """Retried tests scoring above the flakiness threshold, highest score first"""
        flaky_tests = []

        for test in tests:
            if test.retry_count <= 0:
                continue
            score = calculate_flakiness_score(test)
            if score > FLAKINESS_THRESHOLD:
                flaky_tests.append(FlakyTest(
                    name=test.name,
                    flakiness_score=score,
                    failure_pattern=self.rule_engine.failure_pattern(test.error_message),
                    retry_count=test.retry_count,
                    last_seen=observed_at,
                ))

        # sorted() is stable: equal scores keep source order
        return sorted(flaky_tests, key=lambda f: f.flakiness_score, reverse=True)

    @staticmethod
    def identify_slow_tests(tests: List[TestResult]) -> List[TestResult]:
        """
        Slowest 5% of passed tests.

        Failed and skipped tests are excluded: their duration may reflect early
        termination rather than real work.
        """
        passed = [t for t in tests if t.status == TestStatus.PASSED]
        ranked = sorted(passed, key=lambda t: t.duration, reverse=True)
        slow_test_count = math.ceil(len(ranked) * SLOW_TEST_PERCENT / 100)
        return ranked[:slow_test_count]

    def categorize_failures(self, tests: List[TestResult]) -> List[FailureCategory]:
        """Group failed tests with an error message by root cause category"""
        grouped: Dict[FailureType, List[str]] = {}

        for test in tests:
            if test.status == TestStatus.FAILED and test.error_message:
                category = self.rule_engine.classify(test.error_message)
                grouped.setdefault(category, []).append(test.name)

        failed_count = sum(1 for t in tests if t.status == TestStatus.FAILED)
        categories = [
            FailureCategory(
                type=category,
                count=len(names),
                percentage=(len(names) / failed_count) * 100 if failed_count > 0 else 0.0,
                tests=names,
            )
            for category, names in grouped.items()
        ]
        return sorted(categories, key=lambda c: c.count, reverse=True)


def calculate_metrics(suites: List[TestSuite], observed_at: Optional[str] = None) -> TestMetrics:
    """Module-level shortcut for MetricsCalculator().calculate_metrics()"""
    return MetricsCalculator().calculate_metrics(suites, observed_at)
