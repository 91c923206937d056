"""Risk scoring, change impact, failure prediction and test ordering."""

from testintel.risk.impact import ChangeImpactAnalyzer, CodeChangeImpact, ImpactedTest
from testintel.risk.predictor import FailurePredictor, TestPrediction
from testintel.risk.prioritizer import ExecutionOrderer, OptimalOrder, OrderedTest
from testintel.risk.scorer import RiskFactors, RiskLevel, RiskScore, RiskScorer

__all__ = [
    "ChangeImpactAnalyzer",
    "CodeChangeImpact",
    "ExecutionOrderer",
    "FailurePredictor",
    "ImpactedTest",
    "OptimalOrder",
    "OrderedTest",
    "RiskFactors",
    "RiskLevel",
    "RiskScore",
    "RiskScorer",
    "TestPrediction",
]
