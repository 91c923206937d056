"""Risk scoring for tests based on history and static metadata."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Sequence

from testintel.config import DEFAULT_WEIGHTS, ScoringConfig
from testintel.storage.history import HistoryProvider
from testintel.storage.models import ExecutionRecord, TestCase

logger = logging.getLogger(__name__)

TYPE_COMPLEXITY = {
    "unit": 20,
    "integration": 50,
    "e2e": 80,
    "performance": 70,
    "security": 75,
}
DEFAULT_COMPLEXITY = 40

TYPE_DEPENDENCY_WEIGHT = {
    "unit": 10,
    "integration": 60,
    "e2e": 85,
    "performance": 40,
    "security": 50,
}
DEFAULT_DEPENDENCY_WEIGHT = 30

NO_FAILURE_DAYS = 999


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(high, max(low, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounding up (2.5 -> 3)."""
    return math.floor(value + 0.5)


class RiskLevel(str, Enum):
    """Risk category derived from a score."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


RECOMMENDATIONS = {
    RiskLevel.CRITICAL: "Run this test in every build. Consider adding more granular tests.",
    RiskLevel.HIGH: "Include in smoke tests and run on every change-set or PR.",
    RiskLevel.MEDIUM: "Run in nightly builds and before releases.",
    RiskLevel.LOW: "Can be run in periodic regression sweeps.",
}


@dataclass
class RiskFactors:
    """Breakdown of risk factors for a test, each between 0 and 100."""

    historical_failure_rate: float = 0.0
    recent_changes_impact: float = 0.0
    complexity: float = 0.0
    dependency_weight: float = 0.0
    last_failure_recency: float = 0.0

    def compute_total_score(self, weights: Optional[dict[str, float]] = None) -> float:
        """Compute weighted total risk score.

        Args:
            weights: Optional custom weights for each factor

        Returns:
            Total risk score between 0.0 and 100.0
        """
        weights = weights or DEFAULT_WEIGHTS

        score = 0.0
        score += self.historical_failure_rate * weights.get("historical_failure_rate", 0.30)
        score += self.last_failure_recency * weights.get("last_failure_recency", 0.20)
        score += self.complexity * weights.get("complexity", 0.20)
        score += self.dependency_weight * weights.get("dependency_weight", 0.15)
        score += self.recent_changes_impact * weights.get("recent_changes_impact", 0.15)

        return clamp(score)

    def rounded(self) -> "RiskFactors":
        return RiskFactors(
            historical_failure_rate=round_half_up(self.historical_failure_rate),
            recent_changes_impact=round_half_up(self.recent_changes_impact),
            complexity=round_half_up(self.complexity),
            dependency_weight=round_half_up(self.dependency_weight),
            last_failure_recency=round_half_up(self.last_failure_recency),
        )

    def to_dict(self) -> dict:
        return {
            "historical_failure_rate": self.historical_failure_rate,
            "recent_changes_impact": self.recent_changes_impact,
            "complexity": self.complexity,
            "dependency_weight": self.dependency_weight,
            "last_failure_recency": self.last_failure_recency,
        }


@dataclass
class RiskScore:
    """Risk assessment for a single test case."""

    test_case_id: int
    test_name: str
    risk_level: RiskLevel
    score: int
    factors: RiskFactors
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "test_case_id": self.test_case_id,
            "test_name": self.test_name,
            "risk_level": self.risk_level.value,
            "score": self.score,
            "factors": self.factors.to_dict(),
            "recommendation": self.recommendation,
        }


class RiskScorer:
    """Computes risk scores for tests combining history and metadata signals."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        """Initialize the risk scorer.

        Args:
            config: Scoring weights and thresholds (defaults if omitted)
        """
        self.config = config or ScoringConfig()

    def score(
        self,
        test_case: TestCase,
        history: Sequence[ExecutionRecord],
        now: Optional[datetime] = None,
    ) -> RiskScore:
        """Score one test case against its execution history.

        Empty history is treated as zero signal, not as an error.
        """
        now = now or datetime.now()
        factors = self.compute_factors(test_case, history, now)
        score = round_half_up(factors.compute_total_score(self.config.weights))
        risk_level = self.categorize(score)

        return RiskScore(
            test_case_id=test_case.id,
            test_name=test_case.name,
            risk_level=risk_level,
            score=score,
            factors=factors.rounded(),
            recommendation=RECOMMENDATIONS[risk_level],
        )

    def score_all(
        self,
        test_cases: Sequence[TestCase],
        history_provider: HistoryProvider,
        now: Optional[datetime] = None,
    ) -> list[RiskScore]:
        """Score every test case, highest score first."""
        now = now or datetime.now()
        scores = [self.score(tc, history_provider(tc.id), now) for tc in test_cases]
        scores.sort(key=lambda s: s.score, reverse=True)
        return scores

    def compute_factors(
        self,
        test_case: TestCase,
        history: Sequence[ExecutionRecord],
        now: datetime,
    ) -> RiskFactors:
        return RiskFactors(
            historical_failure_rate=self._historical_failure_rate(history),
            recent_changes_impact=self._recent_changes_impact(history, now),
            complexity=self._complexity(test_case),
            dependency_weight=self._dependency_weight(test_case),
            last_failure_recency=self._last_failure_recency(history, now),
        )

    def categorize(self, score: float) -> RiskLevel:
        """Categorize a 0-100 score into a risk level."""
        if score >= self.config.critical_threshold:
            return RiskLevel.CRITICAL
        elif score >= self.config.high_threshold:
            return RiskLevel.HIGH
        elif score >= self.config.medium_threshold:
            return RiskLevel.MEDIUM
        else:
            return RiskLevel.LOW

    def _historical_failure_rate(self, history: Sequence[ExecutionRecord]) -> float:
        failures = sum(1 for h in history if h.failed)
        return 100.0 * failures / max(1, len(history))

    def _last_failure_recency(self, history: Sequence[ExecutionRecord], now: datetime) -> float:
        last_failure = max((h.executed_at for h in history if h.failed), default=None)
        days = (now - last_failure).days if last_failure else NO_FAILURE_DAYS

        if days < self.config.recent_failure_days:
            return 100.0
        elif days < self.config.stale_failure_days:
            return 50.0
        return 0.0

    def _complexity(self, test_case: TestCase) -> float:
        base = TYPE_COMPLEXITY.get(test_case.type)
        if base is None:
            logger.debug("Unknown test type %r for %s, using default complexity", test_case.type, test_case.name)
            base = DEFAULT_COMPLEXITY
        description_complexity = min(20.0, len(test_case.description or "") / 10)
        return float(round_half_up(base + description_complexity))

    def _dependency_weight(self, test_case: TestCase) -> float:
        return float(TYPE_DEPENDENCY_WEIGHT.get(test_case.type, DEFAULT_DEPENDENCY_WEIGHT))

    def _recent_changes_impact(self, history: Sequence[ExecutionRecord], now: datetime) -> float:
        cutoff = now - timedelta(days=self.config.recent_changes_days)
        recent = [h for h in history if h.executed_at > cutoff and h.code_changes]
        if not recent:
            return 0.0

        avg_changes = sum(len(h.code_changes) for h in recent) / len(recent)
        return min(100.0, avg_changes * 20)
