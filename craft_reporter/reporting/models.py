"""
Data models for test reporting.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, Any, Tuple
from enum import Enum


class TestStatus(Enum):
    """Final status of one concluded test attempt."""
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"

    @property
    def is_failure(self) -> bool:
        return self in (TestStatus.FAILED, TestStatus.TIMED_OUT)


def _object(value: Any, what: str) -> Dict[str, Any]:
    """Return a decoded JSON object, treating null as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def _array(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{what} must be a JSON array, got {type(value).__name__}")
    return value


# Wire keys of TestMetadata, in serialization order
_METADATA_KEYS = (
    ("epic", "epic"),
    ("feature", "feature"),
    ("story", "story"),
    ("suite", "suite"),
    ("sub_suite", "subSuite"),
    ("parent_suite", "parentSuite"),
    ("severity", "severity"),
    ("owner", "owner"),
    ("description", "description"),
)


@dataclass
class TestMetadata:
    """Structured labels derived from a test's annotations and title path."""
    __test__ = False

    epic: Optional[str] = None
    feature: Optional[str] = None
    story: Optional[str] = None
    suite: Optional[str] = None
    sub_suite: Optional[str] = None
    parent_suite: Optional[str] = None
    severity: Optional[str] = None
    owner: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    description: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization, excluding unset fields."""
        result: Dict[str, Any] = {}
        for attr, key in _METADATA_KEYS:
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        if self.tags:
            result["tags"] = list(self.tags)
        if self.parameters:
            result["parameters"] = dict(self.parameters)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestMetadata":
        data = _object(data, "metadata")
        kwargs: Dict[str, Any] = {attr: data.get(key) for attr, key in _METADATA_KEYS}
        kwargs["tags"] = [str(tag) for tag in _array(data.get("tags"), "tags")]
        kwargs["parameters"] = {str(k): str(v) for k, v in _object(data.get("parameters"), "parameters").items()}
        return cls(**kwargs)


@dataclass
class TestOutcome:
    """One concluded execution attempt of one test."""
    __test__ = False

    test_id: str
    name: str
    full_title: str
    status: TestStatus
    duration: int  # milliseconds
    file_path: str
    line: int
    start_time: str  # ISO-8601
    retries: int = 0
    error_trace: Optional[str] = None
    metadata: TestMetadata = field(default_factory=TestMetadata)

    def __post_init__(self):
        if self.duration < 0:
            raise ValueError(f"duration must be non-negative, got {self.duration}")
        if self.retries < 0:
            raise ValueError(f"retries must be non-negative, got {self.retries}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "testId": self.test_id,
            "name": self.name,
            "fullTitle": self.full_title,
            "status": self.status.value,
            "duration": self.duration,
        }
        if self.error_trace is not None:
            result["errorTrace"] = self.error_trace
        result.update({
            "metadata": self.metadata.to_dict(),
            "filePath": self.file_path,
            "line": self.line,
            "startTime": self.start_time,
            "retries": self.retries,
        })
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestOutcome":
        data = _object(data, "test entry")
        try:
            status = TestStatus(data.get("status", "unknown"))
        except ValueError:
            status = TestStatus.UNKNOWN
        return cls(
            test_id=str(data["testId"]),
            name=str(data["name"]),
            full_title=str(data.get("fullTitle", data["name"])),
            status=status,
            duration=int(data.get("duration", 0)),
            file_path=str(data.get("filePath", "")),
            line=int(data.get("line", 0)),
            start_time=str(data.get("startTime", "")),
            retries=int(data.get("retries", 0)),
            error_trace=data.get("errorTrace"),
            metadata=TestMetadata.from_dict(data.get("metadata")),
        )


@dataclass(frozen=True)
class RunSummary:
    """Complete test run report, built once at run end."""
    timestamp: str
    total_tests: int
    passed: int
    failed: int
    skipped: int
    duration: int  # wall clock milliseconds
    tests: Tuple[TestOutcome, ...] = ()
    comments: Dict[str, str] = field(default_factory=dict)

    def with_comments(self, comments: Dict[str, str]) -> "RunSummary":
        """Return a copy carrying the given historical comments."""
        return replace(self, comments=dict(comments))

    def get_failed_tests(self) -> List[TestOutcome]:
        return [t for t in self.tests if t.status.is_failure]

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "totalTests": self.total_tests,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "duration": self.duration,
            "tests": [test.to_dict() for test in self.tests],
            "comments": dict(self.comments),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunSummary":
        tests = tuple(TestOutcome.from_dict(entry) for entry in _array(data.get("tests"), "tests"))
        return cls(
            timestamp=str(data.get("timestamp", "")),
            total_tests=int(data.get("totalTests", len(tests))),
            passed=int(data.get("passed", 0)),
            failed=int(data.get("failed", 0)),
            skipped=int(data.get("skipped", 0)),
            duration=int(data.get("duration", 0)),
            tests=tests,
            comments={str(k): v for k, v in _object(data.get("comments"), "comments").items() if isinstance(v, str)},
        )
