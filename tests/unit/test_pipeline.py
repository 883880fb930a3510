"""
Tests for the batch pipeline: path expansion, warn-and-skip parsing and combining.
"""

import shutil

import pytest

from qa_metrics.errors import ParseError, UnsupportedExtensionError
from qa_metrics.parsers.models import FrameworkType, ParsedReport, TestFramework, TestSuite
from qa_metrics.pipeline import (
    analyze, build_trend_record, combine_reports, expand_report_paths, parse_reports
)


@pytest.fixture
def reports_dir(tmp_path, fixtures_dir):
    for name in ('junit_report.xml', 'jest_report.json', 'playwright_flat.json'):
        shutil.copy(fixtures_dir / name, tmp_path / name)
    (tmp_path / 'nested').mkdir()
    shutil.copy(fixtures_dir / 'junit_report.xml', tmp_path / 'nested' / 'TEST-more.xml')
    return tmp_path


def test_expand_report_paths_sorted_and_unique(reports_dir):
    paths = expand_report_paths([str(reports_dir / '*.json'), str(reports_dir / '**' / '*')])

    names = [p.replace(str(reports_dir), '') for p in paths]
    assert names[:2] == ['/jest_report.json', '/playwright_flat.json']
    assert len(paths) == len(set(paths)) == 4
    assert all('nested' != p.rsplit('/', 1)[-1] for p in paths)


def test_expand_report_paths_no_match(tmp_path):
    assert expand_report_paths([str(tmp_path / '*.xml')]) == []


def test_parse_reports_skips_bad_files(reports_dir):
    (reports_dir / 'notes.txt').write_text("hello", encoding="utf-8")
    (reports_dir / 'broken.xml').write_text("<html/>", encoding="utf-8")
    paths = [
        str(reports_dir / 'junit_report.xml'),
        str(reports_dir / 'notes.txt'),
        str(reports_dir / 'broken.xml'),
        str(reports_dir / 'jest_report.json'),
    ]

    batch = parse_reports(paths)

    assert [r.framework.type for r in batch.reports] == [FrameworkType.JUNIT, FrameworkType.JEST]
    assert [p for p, _ in batch.failures] == paths[1:3]
    assert isinstance(batch.failures[0][1], UnsupportedExtensionError)
    assert isinstance(batch.failures[1][1], ParseError)
    assert not batch.all_failed


def test_parse_reports_all_failed(tmp_path):
    path = tmp_path / 'bad.json'
    path.write_text("[", encoding="utf-8")

    batch = parse_reports([str(path)])

    assert batch.reports == []
    assert batch.all_failed


def test_combine_reports_keeps_order_and_last_framework():
    first = ParsedReport(suites=[TestSuite(name="a")], framework=TestFramework(FrameworkType.JUNIT),
                         timestamp="2024-01-01T00:00:00Z")
    second = ParsedReport(suites=[TestSuite(name="b"), TestSuite(name="c")],
                          framework=TestFramework(FrameworkType.JEST, "29"), timestamp="2024-01-02T00:00:00Z")

    combined = combine_reports([first, second])

    assert [s.name for s in combined.suites] == ["a", "b", "c"]
    assert combined.framework.type == FrameworkType.JEST
    assert combined.timestamp == "2024-01-02T00:00:00Z"


def test_combine_no_reports_defaults_to_junit():
    combined = combine_reports([])

    assert combined.suites == []
    assert combined.framework.type == FrameworkType.JUNIT


def test_analyze_mixed_formats(fixtures_dir):
    batch = parse_reports([str(fixtures_dir / 'junit_report.xml'), str(fixtures_dir / 'jest_report.json')])

    combined, metrics = analyze(batch.reports, observed_at="2024-03-01T00:00:00Z")

    assert combined.framework.type == FrameworkType.JEST
    assert metrics.total_tests == 12
    assert metrics.failed_tests == 2
    assert metrics.skipped_tests == 2
    assert metrics.pass_rate == pytest.approx(8 / 12 * 100)
    assert [f.name for f in metrics.flaky_tests] == ["checks out"]
    assert metrics.flaky_tests[0].last_seen == "2024-03-01T00:00:00Z"


def test_build_trend_record():
    record = build_trend_record(analyze([])[1], commit_sha="abc", run_id=123, matrix_key="os:linux",
                                timestamp="2024-01-01T00:00:00Z")

    assert record.run_id == "123"
    assert record.identity == ("123", "os:linux")
    assert record.metrics.total_tests == 0


def test_badly_shaped_report_does_not_abort_batch(tmp_path, fixtures_dir):
    bad = tmp_path / 'bad.json'
    bad.write_text('{"testResults": [{"assertionResults": ["oops"]}]}', encoding="utf-8")
    truncated = tmp_path / 'truncated.xml'
    truncated.write_text('<testsuite name="a" tests="2"><testcase name="x"/>', encoding="utf-8")
    good = str(fixtures_dir / 'jest_report.json')

    batch = parse_reports([str(bad), str(truncated), good])

    assert [r.source for r in batch.reports] == [good]
    assert [p for p, _ in batch.failures] == [str(bad), str(truncated)]
    assert all(isinstance(e, ParseError) for _, e in batch.failures)
