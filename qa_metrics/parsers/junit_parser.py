"""
JUnit XML report parser.
Understands <testsuites> documents, single <testsuite> documents and bare
collections of <testcase> elements carrying aggregate counts.
"""

import logging
from typing import List, Optional
from bs4 import BeautifulSoup, Tag
from lxml import etree

from .base_parser import BaseParser
from .models import (
    ParsedReport, TestFramework, TestResult, TestStatus, TestSuite, FrameworkType
)
from ..errors import ParseError

logger = logging.getLogger(__name__)

# Surefire writes one of these per re-run of a test that eventually settled
RERUN_MARKERS = ('flakyFailure', 'flakyError', 'rerunFailure', 'rerunError')


def get_attribute(element: Tag, name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read a logical attribute that may be written either as an XML attribute
    or as a nested child element of the same name.

    Args:
        element: XML element
        name: Attribute name
        default: Value returned when the attribute is absent or empty

    Returns:
        Attribute value as a string, or default
    """
    value = element.get(name)
    if value is None:
        child = element.find(name, recursive=False)
        if isinstance(child, Tag):
            value = child.get_text(strip=True)
    if value is None or value == '':
        return default
    return value


def get_int_attribute(element: Tag, name: str) -> int:
    value = get_attribute(element, name)
    if value is None:
        return 0
    try:
        return int(float(value))
    except ValueError:
        logger.debug(f"Non-numeric '{name}' attribute on <{element.name}>: {value!r}")
        return 0


def get_float_attribute(element: Tag, name: str) -> float:
    value = get_attribute(element, name)
    if value is None:
        return 0.0
    try:
        # Some writers use a thousands separator ("1,234.5")
        return float(value.replace(',', ''))
    except ValueError:
        logger.debug(f"Non-numeric '{name}' attribute on <{element.name}>: {value!r}")
        return 0.0


class JUnitParser(BaseParser):
    """Parser for JUnit-style XML reports"""

    framework = FrameworkType.JUNIT

    def parse(self, content: str) -> ParsedReport:
        if not content or not content.strip():
            raise ParseError("Empty JUnit XML document")

        # BeautifulSoup recovers from broken markup, so check well-formedness with lxml first
        try:
            etree.fromstring(content.strip().encode('utf-8'), etree.XMLParser(resolve_entities=False))
        except (etree.XMLSyntaxError, ValueError) as e:
            raise ParseError("Malformed JUnit XML", cause=e) from e

        try:
            soup = BeautifulSoup(content, 'xml')
        except Exception as e:
            raise ParseError("Malformed JUnit XML", cause=e) from e

        root = soup.find(True)
        if root is None:
            raise ParseError("Malformed JUnit XML: no root element found")

        suites = []
        for suite_element in self._find_suite_elements(root):
            suites.extend(self._parse_suite(suite_element))

        logger.debug(f"JUnit document <{root.name}> produced {len(suites)} suites")
        return ParsedReport(suites=suites, framework=TestFramework(type=FrameworkType.JUNIT))

    def _find_suite_elements(self, root: Tag) -> List[Tag]:
        """Normalize the three supported document shapes into a list of suite elements"""
        if root.name == 'testsuites':
            children = root.find_all('testsuite', recursive=False)
            if children:
                return children
            # Aggregate-only <testsuites> or one carrying bare test cases
            if root.find('testcase', recursive=False) or get_attribute(root, 'tests') is not None:
                return [root]
            return []

        if root.name in ('testsuite', 'testcase'):
            return [root]

        # Bare <testcase> set under an arbitrary root with aggregate counts
        if root.find('testcase', recursive=False) or root.find('testsuite', recursive=False):
            return [root]

        raise ParseError(f"Missing <testsuites> or <testsuite> root element (found <{root.name}>)")

    def _parse_suite(self, element: Tag) -> List[TestSuite]:
        """Parse a suite element; nested <testsuite> children become their own suites"""
        if element.name == 'testcase':
            suite = TestSuite(name='Unknown Suite')
            suite.add_test(self._parse_testcase(element, suite.name), count_duration=True)
            return [suite]

        nested = element.find_all('testsuite', recursive=False)
        testcases = element.find_all('testcase', recursive=False)

        results = []
        if testcases or not nested:
            results.append(self._build_suite(element, testcases))
        for child in nested:
            results.extend(self._parse_suite(child))
        return results

    def _build_suite(self, element: Tag, testcases: List[Tag]) -> TestSuite:
        name = get_attribute(element, 'name', 'Unknown Suite')
        suite = TestSuite(name=name, duration=get_float_attribute(element, 'time'))

        if testcases:
            for testcase in testcases:
                suite.add_test(self._parse_testcase(testcase, name))
            return suite

        # No individual cases: keep virtual counters only
        total = get_int_attribute(element, 'tests')
        failures = get_int_attribute(element, 'failures')
        errors = get_int_attribute(element, 'errors')
        skipped = get_int_attribute(element, 'skipped')
        suite.total_tests = total
        suite.failed_tests = failures + errors
        suite.skipped_tests = skipped
        suite.passed_tests = max(0, total - failures - errors - skipped)
        return suite

    def _parse_testcase(self, testcase: Tag, suite_name: str) -> TestResult:
        return TestResult(
            name=get_attribute(testcase, 'name', 'Unknown Test'),
            status=self._determine_status(testcase),
            duration=get_float_attribute(testcase, 'time'),
            error_message=self._extract_error_message(testcase),
            retry_count=sum(len(testcase.find_all(marker, recursive=False)) for marker in RERUN_MARKERS),
            suite=suite_name,
            file=get_attribute(testcase, 'file') or get_attribute(testcase, 'classname'),
        )

    @staticmethod
    def _determine_status(testcase: Tag) -> TestStatus:
        if testcase.find('skipped', recursive=False):
            return TestStatus.SKIPPED
        if testcase.find('failure', recursive=False) or testcase.find('error', recursive=False):
            return TestStatus.FAILED
        return TestStatus.PASSED

    @staticmethod
    def _extract_error_message(testcase: Tag) -> Optional[str]:
        for marker_name in ('failure', 'error'):
            marker = testcase.find(marker_name, recursive=False)
            if marker is not None:
                message = marker.get('message') or marker.get_text(strip=True)
                return message or None
        return None
