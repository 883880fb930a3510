"""
Jest JSON report parser (``jest --json`` output and the nested ``suites`` variant).
Jest reports durations in milliseconds; they are converted to seconds here.
"""

import json
import logging
from typing import Dict, List, Optional

from .base_parser import BaseParser
from .models import (
    ParsedReport, TestFramework, TestResult, TestStatus, TestSuite, FrameworkType
)
from ..errors import ParseError

logger = logging.getLogger(__name__)

JEST_STATUS_MAP = {
    'passed': TestStatus.PASSED,
    'failed': TestStatus.FAILED,
    'pending': TestStatus.SKIPPED,
    'skipped': TestStatus.SKIPPED,
    'disabled': TestStatus.SKIPPED,
    'todo': TestStatus.SKIPPED,
}


def ms_to_seconds(value) -> float:
    try:
        return max(0.0, float(value or 0) / 1000.0)
    except (TypeError, ValueError):
        return 0.0


def map_jest_status(status: Optional[str]) -> TestStatus:
    mapped = JEST_STATUS_MAP.get(str(status or '').lower())
    if mapped is None:
        logger.debug(f"Unknown Jest status {status!r}, treating as skipped")
        return TestStatus.SKIPPED
    return mapped


def join_failure_messages(messages) -> Optional[str]:
    if not messages:
        return None
    if isinstance(messages, str):
        return messages
    return '\n'.join(str(m) for m in messages)


class JestParser(BaseParser):
    """Parser for Jest JSON reports"""

    framework = FrameworkType.JEST

    def parse(self, content: str) -> ParsedReport:
        try:
            data = json.loads(content)
        except (TypeError, ValueError) as e:
            raise ParseError("Malformed Jest JSON", cause=e) from e
        return self.parse_data(data)

    def parse_data(self, data) -> ParsedReport:
        """Parse an already-decoded Jest report"""
        if not isinstance(data, dict):
            raise ParseError("Jest report root must be a JSON object")

        if not isinstance(data.get('testResults'), list) and not isinstance(data.get('suites'), list):
            raise ParseError("Jest report has neither 'testResults' nor 'suites'")

        try:
            suites = self._parse_suites(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ParseError("Unexpected Jest report structure", cause=e) from e

        version = data.get('version')
        return ParsedReport(
            suites=suites,
            framework=TestFramework(type=FrameworkType.JEST, version=str(version) if version else None),
        )

    def _parse_suites(self, data: Dict) -> List[TestSuite]:
        if isinstance(data.get('testResults'), list):
            return [self._parse_file_result(r) for r in data['testResults'] if isinstance(r, dict)]

        suites = []
        for suite_data in data['suites']:
            if not isinstance(suite_data, dict):
                continue
            if isinstance(suite_data.get('testResults'), list):
                suites.extend(self._parse_file_result(r) for r in suite_data['testResults'] if isinstance(r, dict))
            else:
                suites.append(self._parse_suite(suite_data))
        return suites

    def _parse_file_result(self, file_result: Dict) -> TestSuite:
        """One entry of ``testResults``: a test file with its assertion results"""
        name = file_result.get('name') or 'Unknown Suite'
        start, end = file_result.get('startTime'), file_result.get('endTime')
        duration = ms_to_seconds(end - start) if isinstance(start, (int, float)) and isinstance(end, (int, float)) else 0.0
        suite = TestSuite(name=name, duration=duration)

        for assertion in file_result.get('assertionResults') or []:
            invocations = assertion.get('invocations') or 1
            suite.add_test(TestResult(
                name=assertion.get('title') or assertion.get('fullName') or 'Unknown Test',
                status=map_jest_status(assertion.get('status')),
                duration=ms_to_seconds(assertion.get('duration')),
                error_message=join_failure_messages(assertion.get('failureMessages')),
                retry_count=max(0, int(invocations) - 1),
                suite=name,
                file=name,
            ))
        return suite

    def _parse_suite(self, suite_data: Dict) -> TestSuite:
        name = suite_data.get('name') or suite_data.get('title') or 'Unknown Suite'
        suite = TestSuite(name=name, duration=ms_to_seconds(suite_data.get('duration')))

        for test in suite_data.get('tests') or []:
            suite.add_test(TestResult(
                name=test.get('name') or test.get('title') or 'Unknown Test',
                status=map_jest_status(test.get('status')),
                duration=ms_to_seconds(test.get('duration')),
                error_message=join_failure_messages(test.get('failureMessages')),
                retry_count=max(0, int(test.get('invocations') or 1) - 1),
                suite=name,
                file=test.get('file'),
            ))
        return suite


def has_jest_shape(data) -> bool:
    """True for ``testResults`` reports or ``suites`` whose every entry has ``testResults``"""
    if not isinstance(data, dict):
        return False
    if 'testResults' in data:
        return True
    suites: List = data.get('suites')
    return isinstance(suites, list) and all(isinstance(s, dict) and 'testResults' in s for s in suites)
