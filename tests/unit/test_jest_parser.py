"""
Tests for the Jest JSON parser.
"""

import json

import pytest

from qa_metrics.errors import ParseError
from qa_metrics.parsers.jest_parser import JestParser, has_jest_shape, map_jest_status
from qa_metrics.parsers.models import FrameworkType, TestStatus


def test_parse_test_results_report(fixtures_dir):
    report = JestParser().parse_file(str(fixtures_dir / 'jest_report.json'))

    assert report.framework.type == FrameworkType.JEST
    assert [s.name for s in report.suites] == ["/app/src/cart.test.js", "/app/src/user.test.js"]

    cart, user = report.suites
    assert cart.duration == pytest.approx(2.5)
    assert user.duration == pytest.approx(0.4)
    assert (cart.passed_tests, cart.failed_tests) == (1, 1)
    assert user.skipped_tests == 1

    checkout = cart.tests[1]
    assert checkout.name == "checks out"
    assert checkout.status == TestStatus.FAILED
    assert checkout.duration == pytest.approx(5.01)
    assert checkout.retry_count == 2
    assert "Timeout" in checkout.error_message
    assert checkout.file == "/app/src/cart.test.js"


def test_milliseconds_become_seconds():
    content = json.dumps({
        "testResults": [{
            "name": "a.test.js",
            "assertionResults": [{"title": "t", "status": "passed", "duration": 1500}],
        }]
    })
    test = JestParser().parse(content).suites[0].tests[0]

    assert test.duration == pytest.approx(1.5)


def test_failure_messages_are_joined():
    content = json.dumps({
        "testResults": [{
            "name": "a.test.js",
            "assertionResults": [
                {"fullName": "only full name", "status": "failed", "failureMessages": ["first", "second"]}
            ],
        }]
    })
    test = JestParser().parse(content).suites[0].tests[0]

    assert test.name == "only full name"
    assert test.error_message == "first\nsecond"


def test_suites_variant_with_tests():
    content = json.dumps({
        "version": "29.7.0",
        "suites": [{
            "name": "math",
            "duration": 250,
            "tests": [
                {"name": "adds", "status": "passed", "duration": 100},
                {"name": "divides", "status": "todo"},
            ],
        }]
    })
    report = JestParser().parse(content)
    suite = report.suites[0]

    assert report.framework.version == "29.7.0"
    assert suite.name == "math"
    assert suite.duration == pytest.approx(0.25)
    assert [t.status for t in suite.tests] == [TestStatus.PASSED, TestStatus.SKIPPED]


def test_suites_variant_with_file_results():
    content = json.dumps({
        "suites": [{"testResults": [{"name": "x.test.js", "assertionResults": [{"title": "x", "status": "passed"}]}]}]
    })
    suites = JestParser().parse(content).suites

    assert [s.name for s in suites] == ["x.test.js"]


@pytest.mark.parametrize("status,expected", [
    ("passed", TestStatus.PASSED),
    ("failed", TestStatus.FAILED),
    ("pending", TestStatus.SKIPPED),
    ("disabled", TestStatus.SKIPPED),
    ("mystery", TestStatus.SKIPPED),
    (None, TestStatus.SKIPPED),
])
def test_status_mapping(status, expected):
    assert map_jest_status(status) == expected


def test_has_jest_shape():
    assert has_jest_shape({"testResults": []})
    assert has_jest_shape({"suites": [{"testResults": []}]})
    assert not has_jest_shape({"suites": [{"specs": []}]})
    assert not has_jest_shape([])


@pytest.mark.parametrize("content", ["not json", "[]", '{"numTotalTests": 0}'])
def test_invalid_reports_raise_parse_error(content):
    with pytest.raises(ParseError):
        JestParser().parse(content)


@pytest.mark.parametrize("data", [
    {"testResults": [{"name": "a.test.js", "assertionResults": ["oops"]}]},
    {"testResults": [{"name": "a.test.js", "assertionResults": [{"title": "t", "invocations": "n/a"}]}]},
    {"suites": [{"name": "s", "tests": [{"name": "t", "status": "passed", "invocations": "x"}]}]},
    {"suites": [{"name": "s", "tests": [42]}]},
])
def test_unexpected_structure_raises_parse_error(data):
    """Well-formed JSON with the wrong nested shapes is still a parse failure"""
    with pytest.raises(ParseError) as exc_info:
        JestParser().parse(json.dumps(data))

    assert exc_info.value.cause is not None
