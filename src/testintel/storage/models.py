"""Data models for test cases and execution history."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ExecutionResult(str, Enum):
    """Outcome of a single test execution."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @classmethod
    def parse(cls, value: "ExecutionResult | str") -> "ExecutionResult":
        """Parse a result value, falling back to SKIPPED for unknown input."""
        if isinstance(value, ExecutionResult):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning("Unknown execution result %r, treating as skipped", value)
            return cls.SKIPPED


@dataclass(frozen=True)
class TestCase:
    """Static metadata for a test case, owned by the test catalog."""

    __test__ = False  # not a pytest test class

    id: int
    name: str
    description: str = ""
    type: str = ""  # unit, integration, e2e, performance, security, ...
    priority: str = "medium"  # high, medium, low

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestCase":
        """Create from a catalog entry."""
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            type=str(data.get("type") or "").lower(),
            priority=str(data.get("priority") or "medium").lower(),
        )


@dataclass(frozen=True)
class ExecutionRecord:
    """One immutable observation of a completed test run."""

    test_case_id: int
    test_name: str
    executed_at: datetime
    result: ExecutionResult = ExecutionResult.PASSED
    duration_ms: int = 0
    error_type: Optional[str] = None
    code_changes: tuple[str, ...] = field(default_factory=tuple)
    branch_name: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.result == ExecutionResult.FAILED

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "test_case_id": self.test_case_id,
            "test_name": self.test_name,
            "executed_at": self.executed_at.isoformat(),
            "result": self.result.value,
            "duration_ms": self.duration_ms,
            "error_type": self.error_type,
            "code_changes": list(self.code_changes),
            "branch_name": self.branch_name,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "ExecutionRecord":
        """Create from database row (id column first)."""
        return cls(
            test_case_id=row[1],
            test_name=row[2] or "",
            executed_at=datetime.fromisoformat(row[3]),
            result=ExecutionResult.parse(row[4]),
            duration_ms=row[5] or 0,
            error_type=row[6] or None,
            code_changes=tuple(json.loads(row[7])) if row[7] else (),
            branch_name=row[8] or None,
        )
