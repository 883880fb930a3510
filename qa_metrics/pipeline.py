"""
Batch pipeline helpers: resolve report files, parse them with warn-and-skip
semantics, and combine the results in input order.
"""

import glob
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .errors import MetricsError
from .metrics.calculator import MetricsCalculator
from .parsers.models import (
    FrameworkType, ParsedReport, TestFramework, TestMetrics, TrendData, utc_now_iso
)
from .parsers.parser_factory import AUTO, select_parser

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of parsing a batch of report files"""
    reports: List[ParsedReport] = field(default_factory=list)
    failures: List[Tuple[str, MetricsError]] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return not self.reports and bool(self.failures)


def expand_report_paths(patterns: Sequence[str]) -> List[str]:
    """
    Resolve glob patterns to files.

    Matches of each pattern are sorted; patterns are expanded in the order
    given and a path matched twice is kept at its first position.
    """
    paths = []
    seen = set()
    for pattern in patterns:
        for match in sorted(glob.glob(pattern, recursive=True)):
            if match not in seen and not os.path.isdir(match):
                seen.add(match)
                paths.append(match)
    return paths


def parse_reports(paths: Sequence[str], format_hint: str = AUTO) -> BatchResult:
    """
    Parse each file independently; a failing file is logged and skipped.

    Args:
        paths: Report file paths
        format_hint: 'auto' or an explicit format name

    Returns:
        BatchResult with successful reports in input order and per-file failures
    """
    batch = BatchResult()

    for path in paths:
        logger.debug(f"📄 Parsing file: {path}")
        try:
            parser = select_parser(path, format_hint)
            report = parser.parse_file(path)
        except MetricsError as e:
            logger.warning(f"Failed to parse {path}: {e}")
            batch.failures.append((path, e))
            continue

        batch.reports.append(report)
        logger.info(
            f"✅ Parsed {path} ({report.framework.type.value}) - found {len(report.suites)} suites "
            f"with {report.test_count} tests"
        )

    return batch


def combine_reports(reports: Sequence[ParsedReport]) -> ParsedReport:
    """
    Concatenate suites of several reports, preserving input order.

    The combined framework is the one of the last report (JUnit when empty).
    """
    suites = []
    framework = TestFramework(type=FrameworkType.JUNIT)
    timestamp = utc_now_iso()

    for report in reports:
        suites.extend(report.suites)
        framework = report.framework
        timestamp = report.timestamp

    return ParsedReport(suites=suites, framework=framework, timestamp=timestamp)


def analyze(reports: Sequence[ParsedReport], observed_at: Optional[str] = None) -> Tuple[ParsedReport, TestMetrics]:
    """Combine parsed reports and compute their metrics snapshot"""
    combined = combine_reports(reports)
    metrics = MetricsCalculator().calculate_metrics(combined.suites, observed_at or combined.timestamp)
    return combined, metrics


def build_trend_record(metrics: TestMetrics, commit_sha: str, run_id: str,
                       matrix_key: Optional[str] = None, timestamp: Optional[str] = None) -> TrendData:
    """Wrap a completed metrics snapshot as a history record"""
    return TrendData(
        timestamp=timestamp or utc_now_iso(),
        commit_sha=commit_sha or '',
        metrics=metrics,
        run_id=str(run_id or ''),
        matrix_key=matrix_key,
    )
