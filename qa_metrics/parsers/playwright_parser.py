"""
Playwright JSON report parser.
Accepts a flat array of test results, a nested ``suites`` tree, and the
``suites -> specs -> tests -> results`` layout of Playwright's JSON reporter.
Durations are milliseconds in the input and seconds in the output.
"""

import json
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from .base_parser import BaseParser
from .jest_parser import ms_to_seconds
from .models import (
    ParsedReport, TestFramework, TestResult, TestStatus, TestSuite, FrameworkType
)
from ..errors import ParseError

logger = logging.getLogger(__name__)

PLAYWRIGHT_STATUS_MAP = {
    'passed': TestStatus.PASSED,
    'ok': TestStatus.PASSED,
    'expected': TestStatus.PASSED,
    'flaky': TestStatus.PASSED,
    'failed': TestStatus.FAILED,
    'fail': TestStatus.FAILED,
    'error': TestStatus.FAILED,
    'timedout': TestStatus.FAILED,
    'unexpected': TestStatus.FAILED,
    'interrupted': TestStatus.FAILED,
    'skipped': TestStatus.SKIPPED,
    'skip': TestStatus.SKIPPED,
    'pending': TestStatus.SKIPPED,
}


def map_playwright_status(status: Optional[str]) -> TestStatus:
    """Case-insensitive status mapping; unknown values fall back to skipped"""
    return PLAYWRIGHT_STATUS_MAP.get(str(status or '').lower(), TestStatus.SKIPPED)


def extract_error_message(data: Dict) -> Optional[str]:
    error = data.get('error')
    if isinstance(error, dict):
        message = error.get('message')
        if message:
            return message
    elif isinstance(error, str) and error:
        return error
    errors = data.get('errors')
    if isinstance(errors, list):
        messages = [e.get('message') for e in errors if isinstance(e, dict) and e.get('message')]
        if messages:
            return '\n'.join(messages)
    return data.get('failure') or None


def extract_file(data: Dict) -> Optional[str]:
    location = data.get('location')
    if data.get('file'):
        return data['file']
    if isinstance(location, dict):
        return location.get('file')
    return None


class PlaywrightParser(BaseParser):
    """Parser for Playwright JSON reports"""

    framework = FrameworkType.PLAYWRIGHT

    def parse(self, content: str) -> ParsedReport:
        try:
            data = json.loads(content)
        except (TypeError, ValueError) as e:
            raise ParseError("Malformed Playwright JSON", cause=e) from e
        return self.parse_data(data)

    def parse_data(self, data) -> ParsedReport:
        """Parse an already-decoded Playwright report"""
        version = None
        is_nested = isinstance(data, dict) and isinstance(data.get('suites'), list)
        if not isinstance(data, list) and not is_nested:
            raise ParseError("Playwright report must be a result array or contain a 'suites' array")

        try:
            if is_nested:
                suites = [self._parse_suite(s) for s in data['suites'] if isinstance(s, dict)]
                config = data.get('config')
                version = data.get('version') or (config.get('version') if isinstance(config, dict) else None)
            else:
                suites = self._parse_flat_results(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ParseError("Unexpected Playwright report structure", cause=e) from e

        return ParsedReport(
            suites=suites,
            framework=TestFramework(type=FrameworkType.PLAYWRIGHT, version=str(version) if version else None),
        )

    def _parse_flat_results(self, results: List) -> List[TestSuite]:
        """Group a flat result array into suites, keeping first-seen suite order"""
        suite_map: Dict[str, TestSuite] = OrderedDict()

        for result in results:
            if not isinstance(result, dict):
                continue
            suite_name = result.get('suite') or result.get('file') or 'Default Suite'
            if suite_name not in suite_map:
                suite_map[suite_name] = TestSuite(name=suite_name)
            suite = suite_map[suite_name]
            suite.add_test(self._build_test(result, suite_name), count_duration=True)

        return list(suite_map.values())

    def _parse_suite(self, suite_data: Dict) -> TestSuite:
        """Parse a suite and roll its child suites up into it"""
        name = suite_data.get('title') or suite_data.get('name') or 'Unknown Suite'
        suite = TestSuite(name=name, duration=ms_to_seconds(suite_data.get('duration')))

        for test in suite_data.get('tests') or []:
            if isinstance(test, dict):
                suite.add_test(self._build_test(test, name))

        for spec in suite_data.get('specs') or []:
            if isinstance(spec, dict):
                for test in self._parse_spec(spec, name):
                    suite.add_test(test, count_duration=True)

        for child_data in suite_data.get('suites') or []:
            if isinstance(child_data, dict):
                suite.absorb(self._parse_suite(child_data))

        return suite

    def _build_test(self, data: Dict, suite_name: str) -> TestResult:
        return TestResult(
            name=data.get('title') or data.get('name') or 'Unknown Test',
            status=map_playwright_status(data.get('status')),
            duration=ms_to_seconds(data.get('duration')),
            error_message=extract_error_message(data),
            retry_count=data.get('retry') or 0,
            suite=suite_name,
            file=extract_file(data),
        )

    def _parse_spec(self, spec: Dict, suite_name: str) -> List[TestResult]:
        """One spec may run under several projects; each run is its own result"""
        title = spec.get('title') or 'Unknown Test'
        tests = []
        for run in spec.get('tests') or []:
            if not isinstance(run, dict):
                continue
            attempts = [a for a in run.get('results') or [] if isinstance(a, dict)]
            last = attempts[-1] if attempts else {}
            status = last.get('status') or run.get('status')
            retry = last.get('retry')
            if retry is None:
                retry = max(0, len(attempts) - 1)
            tests.append(TestResult(
                name=title,
                status=map_playwright_status(status),
                duration=ms_to_seconds(last.get('duration')),
                error_message=extract_error_message(last),
                retry_count=retry,
                suite=suite_name,
                file=spec.get('file') or extract_file(spec),
            ))
        return tests
