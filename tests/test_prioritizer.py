"""Tests for the execution orderer."""

import pytest

from testintel.risk.predictor import FailurePredictor, TestPrediction
from testintel.risk.prioritizer import ExecutionOrderer
from testintel.risk.scorer import RiskFactors, RiskScore, RiskScorer
from testintel.storage.models import TestCase

from conftest import NOW, make_record


class FixedScorer(RiskScorer):
    """Scorer returning a preset score per test case id."""

    def __init__(self, scores):
        super().__init__()
        self.scores = scores

    def score(self, test_case, history, now=None):
        value = self.scores[test_case.id]
        level = self.categorize(value)
        return RiskScore(
            test_case_id=test_case.id,
            test_name=test_case.name,
            risk_level=level,
            score=value,
            factors=RiskFactors(),
            recommendation="",
        )


class FixedPredictor(FailurePredictor):
    """Predictor returning a preset (outcome, confidence) per test case id."""

    def __init__(self, predictions):
        super().__init__()
        self.predictions = predictions

    def predict(self, test_case, history, now=None):
        outcome, confidence = self.predictions[test_case.id]
        return TestPrediction(test_case.id, test_case.name, outcome, confidence)


@pytest.fixture
def orderer():
    return ExecutionOrderer()


def durations(mapping):
    """History provider with one passing run per listed duration."""
    return lambda test_case_id: [
        make_record(test_case_id=test_case_id, days_ago=40, duration_ms=d)
        for d in mapping.get(test_case_id, [])
    ]


class TestExecutionOrderer:
    """Tests for ExecutionOrderer."""

    def test_empty_input(self, orderer):
        """Test an empty set yields an empty order."""
        result = orderer.order([], durations({}), now=NOW)
        assert result.ordered_tests == []
        assert result.estimated_total_time == 0
        assert result.expected_failure_detection_time == 0

    def test_likely_failure_runs_first(self):
        """Test a fast likely failure is placed before a slow likely pass."""
        fast = TestCase(id=1, name="Fast flaky", type="unit")
        slow = TestCase(id=2, name="Slow stable", type="unit")
        orderer = ExecutionOrderer(
            scorer=FixedScorer({1: 60, 2: 5}),
            predictor=FixedPredictor({1: ("fail", 80), 2: ("pass", 10)}),
        )

        result = orderer.order([slow, fast], durations({1: [1000], 2: [9000]}), now=NOW)

        first, second = result.ordered_tests
        assert first.test_case_id == 1
        assert first.failure_probability == 80
        assert second.failure_probability == 5
        # 0.8*40 + 0.9*30 + 0.6*20 = 71
        assert first.priority == 71
        # 0.05*40 + 0.1*30 + 0.05*20 = 6
        assert second.priority == 6
        assert result.estimated_total_time == 10000
        assert result.expected_failure_detection_time == 1000
        assert first.reason == "High failure probability, Quick execution, high risk test"

    def test_defaults_without_history(self, orderer, unit_test_case):
        """Test a test without history uses the default duration."""
        result = orderer.order([unit_test_case], durations({}), now=NOW)

        test = result.ordered_tests[0]
        assert test.estimated_duration == 3000
        # risk score 6: 0.06*40 + 0.7*30 + 0.06*20 = 24.6
        assert test.failure_probability == 6
        assert test.priority == 25
        assert test.reason == "Standard priority"
        assert result.expected_failure_detection_time == 0

    def test_high_priority_bonus(self, orderer):
        """Test declared high priority adds ten points."""
        low = TestCase(id=1, name="a", type="unit", priority="low")
        high = TestCase(id=2, name="b", type="unit", priority="high")
        result = orderer.order([low, high], durations({}), now=NOW)

        assert [t.test_case_id for t in result.ordered_tests] == [2, 1]
        assert result.ordered_tests[0].priority - result.ordered_tests[1].priority == 10

    def test_slow_tests_can_go_negative(self, orderer, unit_test_case):
        """Test the duration term is not clamped."""
        result = orderer.order([unit_test_case], durations({1: [40000]}), now=NOW)
        assert result.ordered_tests[0].priority < 0

    def test_ties_keep_input_order(self, orderer):
        """Test equal priorities preserve the given order."""
        tests = [TestCase(id=i, name=f"t{i}", type="unit") for i in (5, 3, 9)]
        result = orderer.order(tests, durations({}), now=NOW)
        assert [t.test_case_id for t in result.ordered_tests] == [5, 3, 9]

    def test_id_filter(self, orderer):
        """Test only the requested ids are ordered."""
        tests = [TestCase(id=i, name=f"t{i}", type="unit") for i in range(1, 5)]
        result = orderer.order(tests, durations({}), test_case_ids=[2, 4], now=NOW)
        assert {t.test_case_id for t in result.ordered_tests} == {2, 4}

    def test_empty_id_filter_means_all(self, orderer):
        """Test an empty filter orders every test."""
        tests = [TestCase(id=i, name=f"t{i}", type="unit") for i in range(1, 4)]
        result = orderer.order(tests, durations({}), test_case_ids=[], now=NOW)
        assert len(result.ordered_tests) == 3

    def test_totals_and_sorting(self, orderer):
        """Test the total time and non-increasing priority invariants."""
        tests = [
            TestCase(id=1, name="a", type="e2e", priority="high"),
            TestCase(id=2, name="b", type="unit"),
            TestCase(id=3, name="c", type="integration", description="d" * 80),
        ]
        result = orderer.order(tests, durations({1: [8000, 12000], 2: [150], 3: [2500, 2501]}), now=NOW)

        priorities = [t.priority for t in result.ordered_tests]
        assert priorities == sorted(priorities, reverse=True)
        assert result.estimated_total_time == sum(t.estimated_duration for t in result.ordered_tests)
        assert {t.test_case_id: t.estimated_duration for t in result.ordered_tests} == {
            1: 10000, 2: 150, 3: 2501,
        }

    def test_detection_time_accumulates(self):
        """Test detection time sums durations up to the first likely failure."""
        tests = [
            TestCase(id=1, name="t1", type="unit", priority="high"),
            TestCase(id=2, name="t2", type="unit"),
            TestCase(id=3, name="t3", type="unit"),
        ]
        orderer = ExecutionOrderer(
            scorer=FixedScorer({1: 45, 2: 30, 3: 10}),
            predictor=FixedPredictor({1: ("pass", 0), 2: ("pass", 0), 3: ("fail", 90)}),
        )
        result = orderer.order(tests, durations({1: [100], 2: [700], 3: [2000]}), now=NOW)

        # priorities: t1 67, t3 62, t2 46
        assert [t.test_case_id for t in result.ordered_tests] == [1, 3, 2]
        assert result.expected_failure_detection_time == 2100

    def test_execution_order_names(self, orderer):
        """Test helper listing names in run order."""
        tests = [TestCase(id=i, name=f"t{i}", type="unit") for i in (1, 2, 3)]
        result = orderer.order(tests, durations({}), now=NOW)
        assert result.get_execution_order() == ["t1", "t2", "t3"]
        assert result.get_execution_order(max_tests=2) == ["t1", "t2"]
