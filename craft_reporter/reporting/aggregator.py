"""
Run-level aggregation of concluded test outcomes.
"""

import re
import time
import unicodedata
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from craft_reporter.core.errors import ReporterStateError
from craft_reporter.core.logging import get_logger
from craft_reporter.reporting.models import RunSummary, TestOutcome, TestStatus

_TOKENS = re.compile(r"(\d+)|(.)", re.DOTALL)

# Collation classes: whitespace < punctuation < symbols < digit runs < letters
_SPACE, _PUNCT, _SYMBOL, _NUMBER, _LETTER = range(5)


class RunState(Enum):
    """Lifecycle of a RunAggregator."""
    IDLE = "idle"
    COLLECTING = "collecting"
    FINALIZED = "finalized"


def _fold(text: str) -> str:
    """Drop accents and case so that only base letters compare."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _char_class(ch: str) -> int:
    if ch.isspace():
        return _SPACE
    category = unicodedata.category(ch)[0]
    if category == "P":
        return _PUNCT
    if category == "S":
        return _SYMBOL
    return _LETTER


def natural_sort_key(name: str) -> List[Tuple[int, Union[str, int]]]:
    """
    Sort key for locale-style numeric, base-sensitivity ordering.

    Every token carries its class first, so a space or punctuation sorts
    before a digit and a digit before a letter regardless of code point.
    Digit runs compare by value; letters compare with accents and case folded.
    """
    key = []
    for digits, ch in _TOKENS.findall(_fold(name)):
        if digits:
            key.append((_NUMBER, int(digits)))
        else:
            key.append((_char_class(ch), ch))
    return key


class RunAggregator:
    """
    Owns the live outcome collection for one test run.

    Construct one instance per run: begin() once, record_outcome() for every
    concluded attempt, finalize() once.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self.state = RunState.IDLE
        self.expected_tests = 0
        self.start_time: Optional[datetime] = None
        self._start_monotonic = 0.0
        self._outcomes: List[TestOutcome] = []
        self._positions: Dict[str, int] = {}

    def begin(self, expected_tests: int = 0) -> None:
        """Record the run start."""
        if self.state is not RunState.IDLE:
            raise ReporterStateError(f"begin() called in state {self.state.value}")
        self.expected_tests = expected_tests
        self.start_time = datetime.now(timezone.utc)
        self._start_monotonic = time.monotonic()
        self.state = RunState.COLLECTING
        self.logger.debug(f"Run started, {expected_tests} tests expected")

    def record_outcome(self, outcome: TestOutcome) -> None:
        """
        Store a concluded attempt.

        A later attempt for a known test id replaces the earlier one in place,
        so only the most recent retry survives and keeps the first position.
        """
        if self.state is not RunState.COLLECTING:
            raise ReporterStateError(f"record_outcome() called in state {self.state.value}")
        position = self._positions.get(outcome.test_id)
        if position is None:
            self._positions[outcome.test_id] = len(self._outcomes)
            self._outcomes.append(outcome)
        else:
            self._outcomes[position] = outcome

    @property
    def outcomes(self) -> List[TestOutcome]:
        """Snapshot of the live collection in insertion order."""
        return list(self._outcomes)

    def finalize(self) -> RunSummary:
        """Order the collection, count statuses and build the RunSummary."""
        if self.state is not RunState.COLLECTING:
            raise ReporterStateError(f"finalize() called in state {self.state.value}")
        self.state = RunState.FINALIZED

        duration = int(round((time.monotonic() - self._start_monotonic) * 1000))
        ordered = sorted(self._outcomes, key=lambda outcome: natural_sort_key(outcome.name))

        passed = failed = skipped = 0
        for outcome in ordered:
            if outcome.status is TestStatus.PASSED:
                passed += 1
            elif outcome.status.is_failure:
                failed += 1
            else:
                skipped += 1

        summary = RunSummary(
            timestamp=datetime.now(timezone.utc).isoformat(),
            total_tests=len(ordered),
            passed=passed,
            failed=failed,
            skipped=skipped,
            duration=duration,
            tests=tuple(ordered),
        )
        self.logger.debug(
            f"Run finalized: {summary.total_tests} total, {passed} passed, "
            f"{failed} failed, {skipped} skipped in {duration} ms"
        )
        return summary
