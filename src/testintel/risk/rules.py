"""
Pattern rules inspected by the failure predictor.

Each rule is a plain function taking a PatternContext and returning a
RuleFinding. Rules are fixed, explainable heuristics rather than learned
behavior; pass a different sequence to FailurePredictor to change the set.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence

from testintel.storage.models import ExecutionRecord, TestCase

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

WEEKDAY_FAILURE_THRESHOLD = 2
RECURRING_ERROR_THRESHOLD = 1


@dataclass
class SimilarFailure:
    """A past failure sharing a recurring pattern."""

    test_name: str
    date: datetime
    pattern: str

    def to_dict(self) -> dict:
        return {
            "test_name": self.test_name,
            "date": self.date.isoformat(),
            "pattern": self.pattern,
        }


@dataclass(frozen=True)
class PatternContext:
    """Inputs available to a pattern rule."""

    test_case: TestCase
    recent: Sequence[ExecutionRecord]
    failures: Sequence[ExecutionRecord]
    now: datetime


@dataclass
class RuleFinding:
    """Risk factors and similar failures reported by one rule."""

    risk_factors: list[str] = field(default_factory=list)
    similar_failures: list[SimilarFailure] = field(default_factory=list)


PatternRule = Callable[[PatternContext], RuleFinding]


def weekday_failure_clusters(ctx: PatternContext) -> RuleFinding:
    """Flag the weekday with the most recent failures if it has more than two.

    On a tie the weekday of the oldest failure in the window wins.
    """
    by_day = Counter(f.executed_at.weekday() for f in ctx.failures)
    if not by_day:
        return RuleFinding()

    day, count = by_day.most_common(1)[0]
    if count > WEEKDAY_FAILURE_THRESHOLD:
        return RuleFinding(risk_factors=[f"Fails frequently on {WEEKDAYS[day]}s"])
    return RuleFinding()


def recurring_error_types(ctx: PatternContext) -> RuleFinding:
    """Flag error types that occur more than once among recent failures."""
    by_error = Counter(f.error_type for f in ctx.failures if f.error_type)
    finding = RuleFinding()
    for error_type, count in by_error.items():
        if count <= RECURRING_ERROR_THRESHOLD:
            continue
        first = next(f for f in ctx.failures if f.error_type == error_type)
        finding.risk_factors.append(f"Recurring {error_type} errors")
        finding.similar_failures.append(
            SimilarFailure(test_name=ctx.test_case.name, date=first.executed_at, pattern=error_type)
        )
    return finding


def monday_e2e_instability(ctx: PatternContext) -> RuleFinding:
    """E2E tests run on a Monday carry extra environmental risk."""
    if ctx.test_case.type == "e2e" and ctx.now.weekday() == 0:
        return RuleFinding(risk_factors=["E2E tests have higher failure rate on Mondays"])
    return RuleFinding()


DEFAULT_RULES: tuple[PatternRule, ...] = (
    weekday_failure_clusters,
    recurring_error_types,
    monday_e2e_instability,
)
