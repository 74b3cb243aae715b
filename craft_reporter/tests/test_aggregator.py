import pytest

from craft_reporter.core.errors import ReporterStateError
from craft_reporter.reporting.aggregator import RunAggregator, RunState, natural_sort_key
from craft_reporter.reporting.models import TestOutcome, TestStatus


def _outcome(test_id: str, name: str = None, status: TestStatus = TestStatus.PASSED,
             duration: int = 100, retries: int = 0) -> TestOutcome:
    name = name or test_id
    return TestOutcome(
        test_id=test_id,
        name=name,
        full_title=f"suite > {name}",
        status=status,
        duration=duration,
        file_path="tests/test_example.py",
        line=1,
        start_time="2026-01-01T00:00:00+00:00",
        retries=retries,
    )


def _collecting() -> RunAggregator:
    aggregator = RunAggregator()
    aggregator.begin(expected_tests=3)
    return aggregator


def test_end_to_end_run_with_retry_and_skip():
    aggregator = _collecting()
    aggregator.record_outcome(_outcome("t1", duration=500))
    aggregator.record_outcome(_outcome("t2", status=TestStatus.FAILED, duration=200))
    aggregator.record_outcome(_outcome("t2", duration=150, retries=1))
    aggregator.record_outcome(_outcome("t3", status=TestStatus.SKIPPED, duration=0))

    summary = aggregator.finalize()

    assert summary.total_tests == 3
    assert (summary.passed, summary.failed, summary.skipped) == (2, 0, 1)
    assert [t.test_id for t in summary.tests] == ["t1", "t2", "t3"]
    t2 = summary.tests[1]
    assert t2.retries == 1
    assert t2.status is TestStatus.PASSED
    assert t2.duration == 150
    assert summary.success


def test_retry_keeps_first_position_in_live_collection():
    aggregator = _collecting()
    aggregator.record_outcome(_outcome("b"))
    aggregator.record_outcome(_outcome("a"))
    aggregator.record_outcome(_outcome("b", status=TestStatus.FAILED, retries=1))

    assert [(o.test_id, o.retries) for o in aggregator.outcomes] == [("b", 1), ("a", 0)]


def test_final_attempt_wins_even_when_it_fails():
    aggregator = _collecting()
    aggregator.record_outcome(_outcome("t", status=TestStatus.PASSED))
    aggregator.record_outcome(_outcome("t", status=TestStatus.FAILED, retries=1))

    summary = aggregator.finalize()
    assert summary.failed == 1
    assert summary.passed == 0
    assert summary.get_failed_tests()[0].retries == 1


def test_ordering_is_natural():
    aggregator = _collecting()
    for index, name in enumerate(["test 10", "test 2", "test 1"]):
        aggregator.record_outcome(_outcome(f"id{index}", name=name))

    assert [t.name for t in aggregator.finalize().tests] == ["test 1", "test 2", "test 10"]


def test_natural_sort_key_ignores_case_and_accents():
    names = ["Zeta", "alpha", "Émile", "beta"]
    assert sorted(names, key=natural_sort_key) == ["alpha", "beta", "Émile", "Zeta"]


def test_ordering_ranks_spaces_and_punctuation_before_digits_before_letters():
    aggregator = _collecting()
    for index, name in enumerate(["test1", "test 1", "test_a", "test2fa", "a~", "ab"]):
        aggregator.record_outcome(_outcome(f"id{index}", name=name))

    names = [t.name for t in aggregator.finalize().tests]
    assert names == ["a~", "ab", "test 1", "test_a", "test1", "test2fa"]


def test_natural_sort_key_puts_shorter_prefix_first():
    assert sorted(["test10", "test", "test-x"], key=natural_sort_key) == ["test", "test-x", "test10"]


def test_natural_sort_key_handles_leading_digits():
    names = ["b", "10 things", "2 things", "a"]
    assert sorted(names, key=natural_sort_key) == ["2 things", "10 things", "a", "b"]


def test_equal_names_keep_insertion_order():
    aggregator = _collecting()
    aggregator.record_outcome(_outcome("first", name="same"))
    aggregator.record_outcome(_outcome("second", name="same"))

    assert [t.test_id for t in aggregator.finalize().tests] == ["first", "second"]


def test_counts_always_add_up_to_total():
    aggregator = _collecting()
    statuses = [TestStatus.PASSED, TestStatus.FAILED, TestStatus.TIMED_OUT,
                TestStatus.SKIPPED, TestStatus.UNKNOWN]
    for index, status in enumerate(statuses):
        aggregator.record_outcome(_outcome(f"t{index}", status=status))

    summary = aggregator.finalize()
    assert (summary.passed, summary.failed, summary.skipped) == (1, 2, 2)
    assert summary.passed + summary.failed + summary.skipped == summary.total_tests


def test_empty_run_finalizes():
    summary = _collecting().finalize()
    assert summary.total_tests == 0
    assert summary.tests == ()
    assert summary.duration >= 0


def test_lifecycle_misuse_raises():
    aggregator = RunAggregator()
    assert aggregator.state is RunState.IDLE
    with pytest.raises(ReporterStateError):
        aggregator.record_outcome(_outcome("t"))
    with pytest.raises(ReporterStateError):
        aggregator.finalize()

    aggregator.begin()
    with pytest.raises(ReporterStateError):
        aggregator.begin()

    aggregator.finalize()
    assert aggregator.state is RunState.FINALIZED
    with pytest.raises(ReporterStateError):
        aggregator.record_outcome(_outcome("t"))
    with pytest.raises(ReporterStateError):
        aggregator.finalize()


def test_outcome_rejects_negative_duration():
    with pytest.raises(ValueError):
        _outcome("t", duration=-1)
