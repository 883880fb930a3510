"""
Main Orchestrator for the QA Metrics Analyzer.
Ties together Parsers, Metrics, Trend Storage, and Reporters.
"""

import sys
import json
import logging
import argparse
from typing import Dict, List, Optional

from .settings import Config
from .pipeline import analyze, build_trend_record, expand_report_paths, parse_reports
from .metrics.trends import TrendAnalyzer
from .parsers.models import TestMetrics, utc_now_iso
from .storage.trend_cache import TrendCache
from .storage.durable_store import DurableTrendStore
from .storage.history import merge_histories
from .reporters.summary_reporter import SummaryReporter
from .reporters.pr_reporter import PRReporter
from .utils import get_matrix_key

logger = logging.getLogger("Orchestrator")


def setup_logging(verbose: bool = False):
    """Configure root logging; --verbose switches to DEBUG"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=Config.LOG_FORMAT,
        handlers=[
            logging.FileHandler(Config.LOG_FILE_NAME),
            logging.StreamHandler()
        ],
        force=True
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="QA Metrics Analyzer")
    parser.add_argument("--report-paths", action="append", required=True,
                        help="Glob pattern of test report files (repeatable)")
    parser.add_argument("--framework", default="auto",
                        help="Report format: auto, junit, jest or playwright")
    parser.add_argument("--fail-on-failure", action="store_true", help="Exit with 1 when tests failed")
    parser.add_argument("--annotate-only", action="store_true", help="Only report failures as a notice")
    parser.add_argument("--include-passed", action="store_true", help="Comment on PRs even when all tests pass")
    parser.add_argument("--no-summary", action="store_true", help="Skip the markdown job summary")
    parser.add_argument("--require-tests", action="store_true",
                        help="Fail when no report files are found or none can be parsed")
    parser.add_argument("--retention-days", type=int, default=Config.CACHE_RETENTION_DAYS,
                        help="Fast cache retention window in days")
    parser.add_argument("--artifact-retention-days", type=int, default=Config.ARTIFACT_RETENTION_DAYS,
                        help="Durable store retention window in days")
    parser.add_argument("--cache-key-prefix", default=Config.CACHE_KEY_PREFIX,
                        help="Namespace of the fast trend cache")
    parser.add_argument("--durable-store", action="store_true", default=Config.DURABLE_STORE_ENABLED,
                        help="Also keep history in the MySQL durable store")
    parser.add_argument("--history-limit", type=int, default=Config.HISTORY_LIMIT,
                        help="Records loaded from the durable store")
    parser.add_argument("--json-output", help="Write metrics and trends as JSON to this path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def write_outputs(metrics: TestMetrics, output_path: Optional[str] = None):
    """Expose headline numbers as CI step outputs"""
    output_path = output_path or Config.GITHUB_OUTPUT
    outputs = {
        'total_tests': str(metrics.total_tests),
        'passed_tests': str(metrics.passed_tests),
        'failed_tests': str(metrics.failed_tests),
        'skipped_tests': str(metrics.skipped_tests),
        'pass_rate': f"{metrics.pass_rate:.2f}",
        'total_duration': f"{metrics.total_duration:.2f}",
        'flaky_tests_count': str(len(metrics.flaky_tests)),
    }
    if not output_path:
        logger.debug(f"No step output file configured: {outputs}")
        return outputs
    try:
        with open(output_path, 'a', encoding='utf-8') as f:
            for key, value in outputs.items():
                f.write(f"{key}={value}\n")
    except OSError as e:
        logger.warning(f"Failed to write step outputs to {output_path}: {e}")
    return outputs


def load_history(args, framework: str, matrix_key: Optional[str]):
    """Load and merge fast-cache and durable-store history"""
    trend_cache = TrendCache(args.cache_key_prefix, args.retention_days)
    fast_history = trend_cache.load()

    durable_store = None
    durable_history = []
    if args.durable_store:
        durable_store = DurableTrendStore(framework, args.artifact_retention_days, matrix_key)
        durable_history = durable_store.load_recent(args.history_limit)

    history = merge_histories(fast_history, durable_history)
    logger.info(f"📚 Trend history: {len(history)} records "
                f"({len(fast_history)} cached, {len(durable_history)} durable)")
    return trend_cache, durable_store, history


def run(argv: Optional[List[str]] = None) -> int:
    """Run the analyzer workflow; returns the process exit code"""
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)

    logger.info("🚀 Starting QA Metrics Analyzer...")
    logger.info(f"Looking for test reports matching: {', '.join(args.report_paths)}")

    # 1. Locate Reports
    files = expand_report_paths(args.report_paths)
    if not files:
        message = f"No test result files found matching: {', '.join(args.report_paths)}"
        if args.require_tests:
            logger.error(f"❌ {message}")
            return 1
        logger.warning(f"⚠️ {message}")
        return 0
    logger.info(f"📂 Found {len(files)} test result files")

    # 2. Parse Reports
    batch = parse_reports(files, args.framework)
    if not batch.reports:
        message = "No test results could be parsed"
        if args.require_tests:
            logger.error(f"❌ {message}")
            return 1
        logger.warning(f"⚠️ {message}")
        return 0
    if batch.failures:
        logger.warning(f"⚠️ Skipped {len(batch.failures)} unparseable files")

    # 3. Compute Metrics
    observed_at = utc_now_iso()
    combined, metrics = analyze(batch.reports, observed_at)
    framework = combined.framework.type.value
    logger.info(f"📊 Total tests: {metrics.total_tests}. Pass Rate: {metrics.pass_rate:.1f}%")

    # 4. Trends
    matrix_key = get_matrix_key()
    trend_cache, durable_store, history = load_history(args, framework, matrix_key)
    analyzer = TrendAnalyzer()
    summary = analyzer.get_trend_summary(metrics, history)
    insights = analyzer.get_performance_insights(metrics, history, summary)
    for insight in insights:
        logger.info(insight)

    # 5. Persist the complete snapshot
    record = build_trend_record(
        metrics,
        commit_sha=Config.GITHUB_SHA,
        run_id=Config.GITHUB_RUN_ID or f"local-{observed_at}",
        matrix_key=matrix_key,
        timestamp=observed_at,
    )
    trend_cache.append(record)
    if durable_store is not None:
        durable_store.save(record)

    # 6. Outputs
    write_outputs(metrics)
    if args.json_output:
        write_json_report(args.json_output, metrics, summary, insights, framework)

    if not args.no_summary:
        reporter = SummaryReporter()
        markdown = reporter.generate_job_summary(metrics, summary, insights, history, framework)
        if not reporter.write_job_summary(markdown):
            logger.debug(markdown)

    # 7. PR annotation
    if (args.include_passed or metrics.failed_tests > 0) and Config.GITHUB_EVENT_NAME == 'pull_request':
        logger.info("💬 Commenting on pull request...")
        PRReporter().post_comment(metrics)

    # 8. Failure policy
    exit_code = 0
    if metrics.failed_tests > 0:
        message = f"{metrics.failed_tests} test(s) failed"
        if args.annotate_only:
            logger.info(f"ℹ️ {message}")
        elif args.fail_on_failure:
            logger.error(f"❌ {message}")
            exit_code = 1
        else:
            logger.warning(f"⚠️ {message}")

    logger.info("🎉 Test metrics analysis completed")
    return exit_code


def write_json_report(path: str, metrics: TestMetrics, summary, insights: List[str], framework: str):
    payload: Dict = {
        'framework': framework,
        'metrics': metrics.to_dict(),
        'trends': {
            name: {
                'current': trend.current,
                'previous': trend.previous,
                'change': trend.change,
                'change_percent': trend.change_percent,
                'trend': trend.trend.value,
            }
            for name, trend in (
                ('duration', summary.duration_trend),
                ('pass_rate', summary.pass_rate_trend),
                ('test_count', summary.test_count_trend),
                ('flaky_tests', summary.flaky_tests_trend),
            )
        },
        'insights': insights,
    }
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
        logger.info(f"📄 JSON report saved to: {path}")
    except OSError as e:
        logger.warning(f"Failed to write JSON report to {path}: {e}")


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
