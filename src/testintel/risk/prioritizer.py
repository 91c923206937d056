"""Test execution ordering based on risk scores and failure predictions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from testintel.config import OrderingConfig
from testintel.risk.predictor import FailurePredictor
from testintel.risk.scorer import RiskLevel, RiskScorer, round_half_up
from testintel.storage.history import HistoryProvider
from testintel.storage.models import ExecutionRecord, TestCase


@dataclass
class OrderedTest:
    """A test with its position-determining priority information."""

    test_case_id: int
    test_name: str
    priority: int
    estimated_duration: int
    failure_probability: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "test_case_id": self.test_case_id,
            "test_name": self.test_name,
            "priority": self.priority,
            "estimated_duration": self.estimated_duration,
            "failure_probability": self.failure_probability,
            "reason": self.reason,
        }


@dataclass
class OptimalOrder:
    """A run order with timing projections (all times in milliseconds)."""

    ordered_tests: list[OrderedTest] = field(default_factory=list)
    estimated_total_time: int = 0
    expected_failure_detection_time: int = 0

    def get_execution_order(self, max_tests: Optional[int] = None) -> list[str]:
        """Get test names in execution order.

        Args:
            max_tests: Optional maximum number of tests to return
        """
        names = [t.test_name for t in self.ordered_tests]

        if max_tests:
            return names[:max_tests]

        return names

    def to_dict(self) -> dict:
        return {
            "ordered_tests": [t.to_dict() for t in self.ordered_tests],
            "estimated_total_time": self.estimated_total_time,
            "expected_failure_detection_time": self.expected_failure_detection_time,
        }


class ExecutionOrderer:
    """Orders tests so likely failures and cheap tests run first."""

    def __init__(
        self,
        scorer: Optional[RiskScorer] = None,
        predictor: Optional[FailurePredictor] = None,
        config: Optional[OrderingConfig] = None,
    ):
        self.scorer = scorer or RiskScorer()
        self.predictor = predictor or FailurePredictor()
        self.config = config or OrderingConfig()

    def order(
        self,
        test_cases: Sequence[TestCase],
        history_provider: HistoryProvider,
        test_case_ids: Optional[Sequence[int]] = None,
        now: Optional[datetime] = None,
    ) -> OptimalOrder:
        """Produce the optimal execution order.

        Args:
            test_cases: All test cases of the project
            history_provider: Callable returning the history of a test case id
            test_case_ids: Optional subset to order (empty or None means all)
            now: Reference time for recency based signals

        Returns:
            OptimalOrder sorted by priority (highest first)
        """
        now = now or datetime.now()
        if test_case_ids:
            wanted = set(test_case_ids)
            test_cases = [tc for tc in test_cases if tc.id in wanted]

        ordered = [self._order_entry(tc, history_provider(tc.id), now) for tc in test_cases]

        # list.sort is stable, so ties keep input order
        ordered.sort(key=lambda t: t.priority, reverse=True)

        estimated_total_time = sum(t.estimated_duration for t in ordered)

        expected_failure_detection_time = 0
        cumulative_time = 0
        for test in ordered:
            cumulative_time += test.estimated_duration
            if test.failure_probability > self.config.detection_threshold:
                expected_failure_detection_time = cumulative_time
                break

        return OptimalOrder(
            ordered_tests=ordered,
            estimated_total_time=estimated_total_time,
            expected_failure_detection_time=expected_failure_detection_time,
        )

    def _order_entry(
        self,
        test_case: TestCase,
        history: Sequence[ExecutionRecord],
        now: datetime,
    ) -> OrderedTest:
        risk = self.scorer.score(test_case, history, now)
        prediction = self.predictor.predict(test_case, history, now)

        avg_duration = self.average_duration(history)
        if prediction.will_fail:
            failure_probability = prediction.confidence / 100
        else:
            failure_probability = risk.score / 100

        # Duration term is unclamped: very slow tests sink below zero
        priority = (
            failure_probability * 40
            + (1 - avg_duration / self.config.duration_scale_ms) * 30
            + (risk.score / 100) * 20
            + (10 if test_case.priority == "high" else 0)
        )

        return OrderedTest(
            test_case_id=test_case.id,
            test_name=test_case.name,
            priority=round_half_up(priority),
            estimated_duration=round_half_up(avg_duration),
            failure_probability=round_half_up(failure_probability * 100),
            reason=self._order_reason(failure_probability, avg_duration, risk.risk_level),
        )

    def average_duration(self, history: Sequence[ExecutionRecord]) -> float:
        if not history:
            return float(self.config.default_duration_ms)
        return sum(h.duration_ms for h in history) / len(history)

    def _order_reason(self, failure_probability: float, duration: float, risk_level: RiskLevel) -> str:
        reasons = []

        if failure_probability > 0.7:
            reasons.append("High failure probability")
        if duration < 2000:
            reasons.append("Quick execution")
        if risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            reasons.append(f"{risk_level.value} risk test")

        return ", ".join(reasons) or "Standard priority"
