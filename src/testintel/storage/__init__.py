"""Storage layer for test cases and execution history."""

from testintel.storage.catalog import load_catalog, save_catalog
from testintel.storage.database import SQLiteHistoryStore
from testintel.storage.history import HistoryStore, InMemoryHistoryStore
from testintel.storage.models import ExecutionRecord, ExecutionResult, TestCase

__all__ = [
    "ExecutionRecord",
    "ExecutionResult",
    "HistoryStore",
    "InMemoryHistoryStore",
    "SQLiteHistoryStore",
    "TestCase",
    "load_catalog",
    "save_catalog",
]
