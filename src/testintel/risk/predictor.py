"""Predicting the outcome of a test's next run from recent history."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from testintel.config import PredictionConfig
from testintel.risk.rules import DEFAULT_RULES, PatternContext, PatternRule, SimilarFailure
from testintel.risk.scorer import clamp, round_half_up
from testintel.storage.history import HistoryProvider
from testintel.storage.models import ExecutionRecord, TestCase

logger = logging.getLogger(__name__)


@dataclass
class TestPrediction:
    """Forecast of a test's next run."""

    __test__ = False  # not a pytest test class

    test_case_id: int
    test_name: str
    predicted_outcome: str  # 'pass' or 'fail'
    confidence: int
    risk_factors: list[str] = field(default_factory=list)
    similar_failures: list[SimilarFailure] = field(default_factory=list)

    @property
    def will_fail(self) -> bool:
        return self.predicted_outcome == "fail"

    def to_dict(self) -> dict:
        return {
            "test_case_id": self.test_case_id,
            "test_name": self.test_name,
            "predicted_outcome": self.predicted_outcome,
            "confidence": self.confidence,
            "risk_factors": self.risk_factors,
            "similar_failures": [s.to_dict() for s in self.similar_failures],
        }


class FailurePredictor:
    """Classifies the next run of a test as a likely pass or fail."""

    def __init__(
        self,
        config: Optional[PredictionConfig] = None,
        rules: Optional[Sequence[PatternRule]] = None,
    ):
        """Initialize the predictor.

        Args:
            config: Window size and decision thresholds (defaults if omitted)
            rules: Pattern rules to evaluate, in order (default: DEFAULT_RULES)
        """
        self.config = config or PredictionConfig()
        self.rules = tuple(DEFAULT_RULES if rules is None else rules)

    def predict(
        self,
        test_case: TestCase,
        history: Sequence[ExecutionRecord],
        now: Optional[datetime] = None,
    ) -> TestPrediction:
        """Predict the next outcome of a test case."""
        if not history:
            return TestPrediction(
                test_case_id=test_case.id,
                test_name=test_case.name,
                predicted_outcome="pass",
                confidence=0,
            )

        recent = list(history)[-self.config.window_size:]
        ctx = PatternContext(
            test_case=test_case,
            recent=recent,
            failures=[h for h in recent if h.failed],
            now=now or datetime.now(),
        )

        risk_factors: list[str] = []
        similar_failures: list[SimilarFailure] = []
        for rule in self.rules:
            finding = rule(ctx)
            risk_factors.extend(finding.risk_factors)
            similar_failures.extend(finding.similar_failures)

        failure_rate = len(ctx.failures) / max(1, len(recent))
        will_fail = (
            failure_rate > self.config.failure_rate_threshold
            or len(risk_factors) > self.config.risk_factor_threshold
        )
        confidence = round_half_up(
            clamp(failure_rate * 50 + len(risk_factors) * 15 + len(similar_failures) * 10)
        )

        logger.debug(
            "Predicted %s for %s (failure rate %.2f, %d risk factors)",
            "fail" if will_fail else "pass",
            test_case.name,
            failure_rate,
            len(risk_factors),
        )

        return TestPrediction(
            test_case_id=test_case.id,
            test_name=test_case.name,
            predicted_outcome="fail" if will_fail else "pass",
            confidence=confidence,
            risk_factors=risk_factors,
            similar_failures=similar_failures,
        )

    def predict_all(
        self,
        test_cases: Sequence[TestCase],
        history_provider: HistoryProvider,
        now: Optional[datetime] = None,
    ) -> list[TestPrediction]:
        """Predict every test case, likely failures first then by confidence."""
        now = now or datetime.now()
        predictions = [self.predict(tc, history_provider(tc.id), now) for tc in test_cases]
        predictions.sort(key=lambda p: (not p.will_fail, -p.confidence))
        return predictions
