"""
Pull request reporter for posting a short test status comment.
Uses the GitHub REST API.
"""

import json
import logging
from typing import Dict, Optional

import requests

from ..parsers.models import TestMetrics
from ..settings import Config
from ..utils import get_pull_request_number

logger = logging.getLogger(__name__)


class PRReporter:
    """Posts test summaries as pull request comments"""

    def __init__(self, token: Optional[str] = None, repository: Optional[str] = None,
                 api_url: Optional[str] = None):
        """Initialize with token and repository from Config unless given"""
        self.token = token or Config.GITHUB_TOKEN
        self.repository = repository or Config.GITHUB_REPOSITORY
        self.api_url = (api_url or Config.GITHUB_API_URL).rstrip('/')

        if not self.token:
            logger.warning("GITHUB_TOKEN not configured, PR comments are disabled")

    @staticmethod
    def build_comment(metrics: TestMetrics) -> str:
        """Short human-readable status for a metrics snapshot"""
        if metrics.pass_rate >= 95:
            status = "🟢 All tests passed"
        elif metrics.pass_rate >= 80:
            status = "🟡 Some tests failed"
        else:
            status = "🔴 Tests failing"

        lines = [
            "## 🧪 Test Results",
            "",
            f"**Status:** {status}",
            f"**Pass Rate:** {metrics.pass_rate:.1f}% ({metrics.passed_tests}/{metrics.total_tests})",
            f"**Duration:** {metrics.total_duration:.1f}s",
        ]
        if metrics.flaky_tests:
            lines.append(f"**Flaky Tests:** {len(metrics.flaky_tests)}")
        lines.append("")
        if metrics.failed_tests > 0:
            lines.append(f"⚠️ {metrics.failed_tests} test(s) failed")
        else:
            lines.append("✅ All tests passed!")
        return "\n".join(lines)

    @staticmethod
    def load_event(event_path: Optional[str] = None) -> Dict:
        """Read the CI event payload; empty when unavailable"""
        event_path = event_path or Config.GITHUB_EVENT_PATH
        if not event_path:
            return {}
        try:
            with open(event_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read event payload {event_path}: {e}")
            return {}

    def post_comment(self, metrics: TestMetrics, pr_number: Optional[int] = None) -> bool:
        """
        Post the status comment on a pull request.

        Args:
            metrics: Current metrics snapshot
            pr_number: Pull request number (read from the event payload when omitted)

        Returns:
            True if posted successfully, False otherwise
        """
        if not self.token or not self.repository:
            logger.error("Cannot comment on PR: GITHUB_TOKEN or GITHUB_REPOSITORY not configured")
            return False

        pr_number = pr_number or get_pull_request_number(self.load_event())
        if not pr_number:
            logger.error("Cannot comment on PR: pull request number not found in event payload")
            return False

        url = f"{self.api_url}/repos/{self.repository}/issues/{pr_number}/comments"
        try:
            response = requests.post(
                url,
                json={'body': self.build_comment(metrics)},
                headers={
                    'Accept': 'application/vnd.github+json',
                    'Authorization': f'Bearer {self.token}'
                },
                timeout=10
            )
        except requests.RequestException as e:
            logger.warning(f"Failed to create PR comment: {e}")
            return False

        if response.status_code == 201:
            logger.info(f"✅ Posted test results comment on PR #{pr_number}")
            return True

        logger.warning(f"Failed to create PR comment: HTTP {response.status_code} {response.text[:200]}")
        return False
