"""Tests for the storage models."""

from datetime import datetime

from testintel.storage.models import ExecutionRecord, ExecutionResult, TestCase


class TestExecutionResult:
    """Tests for ExecutionResult enum."""

    def test_result_values(self):
        """Test that all expected results exist."""
        assert ExecutionResult.PASSED.value == "passed"
        assert ExecutionResult.FAILED.value == "failed"
        assert ExecutionResult.SKIPPED.value == "skipped"

    def test_parse_is_case_insensitive(self):
        """Test parsing ignores case and whitespace."""
        assert ExecutionResult.parse(" FAILED ") == ExecutionResult.FAILED

    def test_parse_unknown_falls_back_to_skipped(self):
        """Test unknown results are not counted as failures."""
        assert ExecutionResult.parse("exploded") == ExecutionResult.SKIPPED


class TestTestCase:
    """Tests for TestCase model."""

    def test_from_dict_normalizes_categoricals(self):
        """Test type and priority are lowercased."""
        tc = TestCase.from_dict(
            {"id": "7", "name": "Login", "type": "E2E", "priority": "HIGH"}
        )
        assert tc.id == 7
        assert tc.type == "e2e"
        assert tc.priority == "high"
        assert tc.description == ""

    def test_from_dict_missing_type(self):
        """Test missing type is kept empty so default weights apply."""
        tc = TestCase.from_dict({"id": 1, "name": "Login", "description": None})
        assert tc.type == ""
        assert tc.priority == "medium"

    def test_to_dict(self):
        """Test converting to dictionary."""
        tc = TestCase(id=3, name="API", description="d", type="integration", priority="low")
        assert TestCase.from_dict(tc.to_dict()) == tc


class TestExecutionRecord:
    """Tests for ExecutionRecord model."""

    def test_failed_property(self):
        """Test the failed shortcut."""
        when = datetime(2024, 1, 1)
        assert ExecutionRecord(1, "t", when, ExecutionResult.FAILED).failed
        assert not ExecutionRecord(1, "t", when, ExecutionResult.SKIPPED).failed

    def test_to_dict(self):
        """Test converting to dictionary."""
        record = ExecutionRecord(
            test_case_id=1,
            test_name="Login",
            executed_at=datetime(2024, 1, 2, 3, 4, 5),
            result=ExecutionResult.FAILED,
            duration_ms=1200,
            error_type="TimeoutError",
            code_changes=("auth.py",),
        )

        d = record.to_dict()
        assert d["result"] == "failed"
        assert d["executed_at"] == "2024-01-02T03:04:05"
        assert d["code_changes"] == ["auth.py"]
        assert d["branch_name"] is None

    def test_from_row(self):
        """Test creating from database row."""
        row = (
            10,  # id
            4,  # test_case_id
            "Checkout",  # test_name
            "2024-03-01T10:00:00",  # executed_at
            "failed",  # result
            2500,  # duration_ms
            "AssertionError",  # error_type
            '["cart.py", "pay.py"]',  # code_changes
            None,  # branch_name
        )

        record = ExecutionRecord.from_row(row)
        assert record.test_case_id == 4
        assert record.result == ExecutionResult.FAILED
        assert record.code_changes == ("cart.py", "pay.py")
        assert record.branch_name is None
