"""
Test pull request commenting with a mocked GitHub API.
"""

import json
from unittest.mock import MagicMock, patch

import requests

from qa_metrics.parsers.models import FlakyTest, TestMetrics
from qa_metrics.reporters.pr_reporter import PRReporter


def sample_metrics(failed=2):
    return TestMetrics(
        total_tests=10,
        passed_tests=10 - failed,
        failed_tests=failed,
        pass_rate=(10 - failed) * 10.0,
        total_duration=42.5,
        flaky_tests=[FlakyTest("login", 0.7, "timeout", 2, "2024-01-01T00:00:00Z")],
    )


def test_comment_format():
    """Test comment formatting (without actually posting)"""
    body = PRReporter.build_comment(sample_metrics())

    assert body.startswith("## 🧪 Test Results")
    assert "🟡 Some tests failed" in body
    assert "**Pass Rate:** 80.0% (8/10)" in body
    assert "**Duration:** 42.5s" in body
    assert "**Flaky Tests:** 1" in body
    assert "⚠️ 2 test(s) failed" in body


def test_comment_all_passed():
    body = PRReporter.build_comment(sample_metrics(failed=0))

    assert "🟢 All tests passed" in body
    assert "✅ All tests passed!" in body


@patch("qa_metrics.reporters.pr_reporter.requests.post")
def test_post_comment(mock_post):
    mock_post.return_value = MagicMock(status_code=201)
    reporter = PRReporter(token="t0ken", repository="acme/shop", api_url="https://api.example.com/")

    assert reporter.post_comment(sample_metrics(), pr_number=12) is True

    args, kwargs = mock_post.call_args
    assert args[0] == "https://api.example.com/repos/acme/shop/issues/12/comments"
    assert kwargs["headers"]["Authorization"] == "Bearer t0ken"
    assert kwargs["json"]["body"].startswith("## 🧪 Test Results")
    assert kwargs["timeout"] == 10


@patch("qa_metrics.reporters.pr_reporter.requests.post")
def test_pr_number_from_event_payload(mock_post, tmp_path, monkeypatch):
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"pull_request": {"number": 99}}), encoding="utf-8")
    monkeypatch.setattr("qa_metrics.reporters.pr_reporter.Config.GITHUB_EVENT_PATH", str(event_path))
    mock_post.return_value = MagicMock(status_code=201)
    reporter = PRReporter(token="t", repository="acme/shop")

    assert reporter.post_comment(sample_metrics()) is True
    assert "/issues/99/comments" in mock_post.call_args.args[0]


@patch("qa_metrics.reporters.pr_reporter.requests.post")
def test_post_comment_http_error(mock_post):
    mock_post.return_value = MagicMock(status_code=403, text="Resource not accessible by integration")
    reporter = PRReporter(token="t", repository="acme/shop")

    assert reporter.post_comment(sample_metrics(), pr_number=1) is False


@patch("qa_metrics.reporters.pr_reporter.requests.post")
def test_post_comment_network_error(mock_post):
    mock_post.side_effect = requests.ConnectionError("unreachable")
    reporter = PRReporter(token="t", repository="acme/shop")

    assert reporter.post_comment(sample_metrics(), pr_number=1) is False


@patch("qa_metrics.reporters.pr_reporter.requests.post")
def test_missing_configuration(mock_post, monkeypatch):
    monkeypatch.setattr("qa_metrics.reporters.pr_reporter.Config.GITHUB_TOKEN", "")
    reporter = PRReporter(repository="acme/shop")

    assert reporter.post_comment(sample_metrics(), pr_number=1) is False
    mock_post.assert_not_called()
