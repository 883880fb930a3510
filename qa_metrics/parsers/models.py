"""
Canonical data models shared by every parser and every analytics stage.
All durations are fractional seconds.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from enum import Enum


class TestStatus(Enum):
    """Test execution status"""
    __test__ = False
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class FrameworkType(Enum):
    """Test runner that produced a report"""
    JUNIT = "junit"
    JEST = "jest"
    PLAYWRIGHT = "playwright"


class FailureType(Enum):
    """Root cause category for a failed test"""
    TIMEOUT = "timeout"
    ASSERTION = "assertion"
    SETUP = "setup"
    NETWORK = "network"
    OTHER = "other"


class Trend(Enum):
    """Direction of a metric between two runs"""
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class TestResult:
    """Represents a single executed test case"""
    __test__ = False
    name: str
    status: TestStatus
    duration: float = 0.0
    error_message: Optional[str] = None
    retry_count: int = 0
    suite: Optional[str] = None
    file: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            object.__setattr__(self, 'status', TestStatus(self.status))
        object.__setattr__(self, 'duration', max(0.0, float(self.duration or 0.0)))
        object.__setattr__(self, 'retry_count', max(0, int(self.retry_count or 0)))

    @property
    def is_failure(self) -> bool:
        return self.status == TestStatus.FAILED

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'status': self.status.value,
            'duration': self.duration,
            'error_message': self.error_message,
            'retry_count': self.retry_count,
            'suite': self.suite,
            'file': self.file,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'TestResult':
        return cls(
            name=data.get('name', ''),
            status=TestStatus(data.get('status', 'skipped')),
            duration=data.get('duration', 0.0),
            error_message=data.get('error_message'),
            retry_count=data.get('retry_count', 0),
            suite=data.get('suite'),
            file=data.get('file'),
        )

    def __repr__(self) -> str:
        status_icon = "✅" if self.status == TestStatus.PASSED else "❌" if self.is_failure else "⏭️"
        return f"{status_icon} {self.name} ({self.status.value}, {self.duration:.3f}s)"


@dataclass
class TestSuite:
    """
    A named grouping of test results with precomputed counters.

    Suites built from aggregate counts only (no individual test cases) keep
    ``tests`` empty and carry virtual counters.
    """
    __test__ = False
    name: str
    tests: List[TestResult] = field(default_factory=list)
    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    duration: float = 0.0

    def add_test(self, test: TestResult, count_duration: bool = False) -> None:
        """Append a test and update the counters"""
        self.tests.append(test)
        self.total_tests += 1
        if test.status == TestStatus.PASSED:
            self.passed_tests += 1
        elif test.status == TestStatus.FAILED:
            self.failed_tests += 1
        else:
            self.skipped_tests += 1
        if count_duration:
            self.duration += test.duration

    def absorb(self, child: 'TestSuite') -> None:
        """Roll a child suite's tests and statistics up into this suite"""
        self.tests.extend(child.tests)
        self.total_tests += child.total_tests
        self.passed_tests += child.passed_tests
        self.failed_tests += child.failed_tests
        self.skipped_tests += child.skipped_tests
        self.duration += child.duration

    @property
    def is_virtual(self) -> bool:
        """True when counters come from aggregate attributes, not test cases"""
        return not self.tests and self.total_tests > 0

    def __repr__(self) -> str:
        return (
            f"TestSuite(name={self.name!r}, total={self.total_tests}, passed={self.passed_tests}, "
            f"failed={self.failed_tests}, skipped={self.skipped_tests})"
        )


@dataclass(frozen=True)
class TestFramework:
    __test__ = False
    type: FrameworkType
    version: Optional[str] = None


@dataclass
class ParsedReport:
    """Output of a parser"""
    suites: List[TestSuite]
    framework: TestFramework
    timestamp: str = field(default_factory=utc_now_iso)
    source: Optional[str] = None

    @property
    def test_count(self) -> int:
        return sum(len(s.tests) for s in self.suites)


@dataclass(frozen=True)
class FlakyTest:
    name: str
    flakiness_score: float
    failure_pattern: str
    retry_count: int
    last_seen: str

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'flakiness_score': self.flakiness_score,
            'failure_pattern': self.failure_pattern,
            'retry_count': self.retry_count,
            'last_seen': self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'FlakyTest':
        return cls(
            name=data.get('name', ''),
            flakiness_score=float(data.get('flakiness_score', 0.0)),
            failure_pattern=data.get('failure_pattern', 'unknown'),
            retry_count=int(data.get('retry_count', 0)),
            last_seen=data.get('last_seen', ''),
        )


@dataclass(frozen=True)
class FailureCategory:
    type: FailureType
    count: int
    percentage: float
    tests: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'type': self.type.value,
            'count': self.count,
            'percentage': self.percentage,
            'tests': list(self.tests),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'FailureCategory':
        return cls(
            type=FailureType(data.get('type', 'other')),
            count=int(data.get('count', 0)),
            percentage=float(data.get('percentage', 0.0)),
            tests=list(data.get('tests', [])),
        )


@dataclass(frozen=True)
class TestMetrics:
    """One fully-derived metrics snapshot"""
    __test__ = False
    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    pass_rate: float = 0.0
    total_duration: float = 0.0
    average_duration: float = 0.0
    flaky_tests: List[FlakyTest] = field(default_factory=list)
    slow_tests: List[TestResult] = field(default_factory=list)
    failure_categories: List[FailureCategory] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'total_tests': self.total_tests,
            'passed_tests': self.passed_tests,
            'failed_tests': self.failed_tests,
            'skipped_tests': self.skipped_tests,
            'pass_rate': self.pass_rate,
            'total_duration': self.total_duration,
            'average_duration': self.average_duration,
            'flaky_tests': [f.to_dict() for f in self.flaky_tests],
            'slow_tests': [t.to_dict() for t in self.slow_tests],
            'failure_categories': [c.to_dict() for c in self.failure_categories],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'TestMetrics':
        return cls(
            total_tests=int(data.get('total_tests', 0)),
            passed_tests=int(data.get('passed_tests', 0)),
            failed_tests=int(data.get('failed_tests', 0)),
            skipped_tests=int(data.get('skipped_tests', 0)),
            pass_rate=float(data.get('pass_rate', 0.0)),
            total_duration=float(data.get('total_duration', 0.0)),
            average_duration=float(data.get('average_duration', 0.0)),
            flaky_tests=[FlakyTest.from_dict(f) for f in data.get('flaky_tests', [])],
            slow_tests=[TestResult.from_dict(t) for t in data.get('slow_tests', [])],
            failure_categories=[FailureCategory.from_dict(c) for c in data.get('failure_categories', [])],
        )

    def __repr__(self) -> str:
        return (
            f"TestMetrics(total={self.total_tests}, passed={self.passed_tests}, "
            f"failed={self.failed_tests}, pass_rate={self.pass_rate:.1f}%)"
        )


@dataclass(frozen=True)
class TrendData:
    """One historical metrics record"""
    timestamp: str
    commit_sha: str
    metrics: TestMetrics
    run_id: str
    matrix_key: Optional[str] = None

    @property
    def identity(self):
        """Deduplication key: parallel matrix legs of one run are distinct records"""
        return (self.run_id, self.matrix_key)

    def to_dict(self) -> Dict:
        data = {
            'timestamp': self.timestamp,
            'commit_sha': self.commit_sha,
            'metrics': self.metrics.to_dict(),
            'run_id': self.run_id,
        }
        if self.matrix_key is not None:
            data['matrix_key'] = self.matrix_key
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'TrendData':
        return cls(
            timestamp=data['timestamp'],
            commit_sha=data.get('commit_sha', ''),
            metrics=TestMetrics.from_dict(data.get('metrics') or {}),
            run_id=str(data.get('run_id', '')),
            matrix_key=data.get('matrix_key'),
        )


@dataclass(frozen=True)
class PerformanceTrend:
    current: float
    previous: float
    change: float
    change_percent: float
    trend: Trend


@dataclass(frozen=True)
class TrendSummary:
    duration_trend: PerformanceTrend
    pass_rate_trend: PerformanceTrend
    test_count_trend: PerformanceTrend
    flaky_tests_trend: PerformanceTrend
