"""
Failure category rule engine.
Classifies a failed test's error message into a root cause category.
"""

import logging
from typing import Optional

from ..parsers.models import FailureType

logger = logging.getLogger(__name__)


class CategoryRule:
    """Base class for category classification rules"""

    priority: int = 0  # Higher = checked first
    category: FailureType = FailureType.OTHER
    keywords: tuple = ()

    def matches(self, error_message: str) -> bool:
        """
        Check if this rule matches an error message.

        Args:
            error_message: Error message, already lower-cased

        Returns:
            True if any of the rule's keywords occurs in the message
        """
        return any(keyword in error_message for keyword in self.keywords)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(priority={self.priority}, category={self.category.value})"


class TimeoutRule(CategoryRule):
    priority = 40
    category = FailureType.TIMEOUT
    keywords = ('timeout', 'timed out')


class NetworkRule(CategoryRule):
    priority = 30
    category = FailureType.NETWORK
    keywords = ('network', 'connection', 'fetch', 'http')


class AssertionRule(CategoryRule):
    priority = 20
    category = FailureType.ASSERTION
    keywords = ('assertion', 'expect', 'assert', 'should')


class SetupRule(CategoryRule):
    priority = 10
    category = FailureType.SETUP
    keywords = ('setup', 'beforeeach', 'beforeall', 'initialization')


class CategoryRuleEngine:
    """Engine to apply category classification rules"""

    def __init__(self):
        """Initialize with all rules, sorted by priority (highest first)"""
        self.rules = [
            TimeoutRule(),
            NetworkRule(),
            AssertionRule(),
            SetupRule(),
        ]
        self.rules.sort(key=lambda r: r.priority, reverse=True)

    def classify(self, error_message: Optional[str]) -> FailureType:
        """
        Classify an error message by the first matching rule.

        Args:
            error_message: Raw error message

        Returns:
            FailureType, OTHER when no rule matches
        """
        message = (error_message or '').lower()
        for rule in self.rules:
            if rule.matches(message):
                return rule.category
        return FailureType.OTHER

    def failure_pattern(self, error_message: Optional[str]) -> str:
        """Failure pattern label for a flaky test; 'unknown' without a message"""
        if not error_message:
            return 'unknown'
        return self.classify(error_message).value
