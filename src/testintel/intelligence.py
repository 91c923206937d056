"""Entry point tying the history store to the scoring components."""

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from testintel.config import TestIntelConfig
from testintel.risk.impact import ChangeImpactAnalyzer, CodeChangeImpact
from testintel.risk.predictor import FailurePredictor, TestPrediction
from testintel.risk.prioritizer import ExecutionOrderer, OptimalOrder
from testintel.risk.rules import PatternRule
from testintel.risk.scorer import RiskScore, RiskScorer
from testintel.storage.history import HistoryStore, InMemoryHistoryStore
from testintel.storage.models import ExecutionRecord, ExecutionResult, TestCase

logger = logging.getLogger(__name__)


class TestIntelligence:
    """Answers risk, impact, prediction and ordering questions for a test suite.

    All read operations work on the history snapshot held by ``store`` at call
    time and on the test cases passed in. Only ``record_test_execution``
    writes.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        store: Optional[HistoryStore] = None,
        config: Optional[TestIntelConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        rules: Optional[Sequence[PatternRule]] = None,
    ):
        """Initialize the engine.

        Args:
            store: History store (in-memory if omitted)
            config: TestIntel configuration (defaults if omitted)
            clock: Returns the reference time for recency based signals
            rules: Optional replacement pattern rules for failure prediction
        """
        self.config = config or TestIntelConfig()
        self.store = store if store is not None else InMemoryHistoryStore(self.config.history.max_records)
        self.clock = clock

        self.scorer = RiskScorer(self.config.scoring)
        self.predictor = FailurePredictor(self.config.prediction, rules=rules)
        self.impact_analyzer = ChangeImpactAnalyzer()
        self.orderer = ExecutionOrderer(self.scorer, self.predictor, self.config.ordering)

    def calculate_risk_scores(self, test_cases: Sequence[TestCase]) -> list[RiskScore]:
        """Risk scores for all test cases, highest first."""
        return self.scorer.score_all(test_cases, self.store.history, self.clock())

    def select_tests_for_code_changes(
        self,
        test_cases: Sequence[TestCase],
        changed_files: Sequence[str],
    ) -> CodeChangeImpact:
        """Tests likely affected by the changed files."""
        return self.impact_analyzer.analyze(test_cases, changed_files)

    def predict_test_failures(self, test_cases: Sequence[TestCase]) -> list[TestPrediction]:
        """Next-run predictions, likely failures first."""
        return self.predictor.predict_all(test_cases, self.store.history, self.clock())

    def optimize_test_execution_order(
        self,
        test_cases: Sequence[TestCase],
        test_case_ids: Optional[Sequence[int]] = None,
    ) -> OptimalOrder:
        """Run order for the given tests (all when no ids are given)."""
        return self.orderer.order(test_cases, self.store.history, test_case_ids, self.clock())

    def record_test_execution(
        self,
        test_case_id: int,
        test_name: str,
        result: ExecutionResult | str,
        duration: int,
        error_type: Optional[str] = None,
        code_changes: Optional[Sequence[str]] = None,
        branch_name: Optional[str] = None,
    ) -> ExecutionRecord:
        """Record one completed test run in the history store."""
        if duration < 0:
            logger.warning(
                "Negative duration %s for test case %s, recording 0", duration, test_case_id
            )
            duration = 0

        execution = ExecutionRecord(
            test_case_id=test_case_id,
            test_name=test_name,
            executed_at=self.clock(),
            result=ExecutionResult.parse(result),
            duration_ms=int(duration),
            error_type=error_type or None,
            code_changes=tuple(code_changes or ()),
            branch_name=branch_name or None,
        )
        self.store.record(execution)
        logger.debug("Recorded %s run of test case %s", execution.result.value, test_case_id)
        return execution
