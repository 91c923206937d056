"""Shared fixtures for TestIntel tests."""

from datetime import datetime, timedelta
from typing import Optional

import pytest

from testintel.storage.models import ExecutionRecord, ExecutionResult, TestCase

# A Wednesday
NOW = datetime(2024, 5, 15, 12, 0, 0)
# The Monday of the same week
MONDAY = datetime(2024, 5, 13, 12, 0, 0)


def make_record(
    test_case_id: int = 1,
    days_ago: float = 1,
    result: str = "passed",
    duration_ms: int = 1000,
    error_type: Optional[str] = None,
    code_changes: tuple[str, ...] = (),
    test_name: str = "Sample Test",
    now: datetime = NOW,
) -> ExecutionRecord:
    return ExecutionRecord(
        test_case_id=test_case_id,
        test_name=test_name,
        executed_at=now - timedelta(days=days_ago),
        result=ExecutionResult(result),
        duration_ms=duration_ms,
        error_type=error_type,
        code_changes=tuple(code_changes),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def unit_test_case():
    return TestCase(id=1, name="Sample Test", description="", type="unit", priority="low")


@pytest.fixture
def integration_test_case():
    return TestCase(
        id=2,
        name="Order Service Integration",
        description="x" * 50,
        type="integration",
        priority="medium",
    )
