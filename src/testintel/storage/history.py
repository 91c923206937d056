"""Bounded per-test-case execution history."""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Sequence

from testintel.storage.models import ExecutionRecord

logger = logging.getLogger(__name__)

MAX_RECORDS_PER_TEST = 100

HistoryProvider = Callable[[int], Sequence[ExecutionRecord]]


class KeyedLock:
    """Hands out one lock per key so writers on different keys never contend."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def __call__(self, key: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


class HistoryStore(ABC):
    """Append-only store of execution records, capped per test case.

    Records for a test case are kept oldest-first in insertion order. Once a
    test case holds ``max_records`` entries, each new record evicts the oldest.
    """

    def __init__(self, max_records: int = MAX_RECORDS_PER_TEST):
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self.max_records = max_records

    @abstractmethod
    def record(self, execution: ExecutionRecord) -> None:
        """Append one execution record to its test case's history."""

    @abstractmethod
    def history(self, test_case_id: int) -> list[ExecutionRecord]:
        """Return the retained history for a test case, oldest first."""

    @abstractmethod
    def test_case_ids(self) -> list[int]:
        """Return the ids of all test cases with recorded history."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all recorded history."""


class InMemoryHistoryStore(HistoryStore):
    """History store held in process memory."""

    def __init__(self, max_records: int = MAX_RECORDS_PER_TEST):
        super().__init__(max_records)
        self._lock_for = KeyedLock()
        self._sequences: dict[int, deque[ExecutionRecord]] = {}

    def record(self, execution: ExecutionRecord) -> None:
        with self._lock_for(execution.test_case_id):
            sequence = self._sequences.get(execution.test_case_id)
            if sequence is None:
                sequence = deque(maxlen=self.max_records)
                self._sequences[execution.test_case_id] = sequence
            elif len(sequence) == self.max_records:
                logger.debug(
                    "Evicting oldest execution of test case %s", execution.test_case_id
                )
            sequence.append(execution)

    def history(self, test_case_id: int) -> list[ExecutionRecord]:
        sequence = self._sequences.get(test_case_id)
        if sequence is None:
            return []
        with self._lock_for(test_case_id):
            return list(sequence)

    def test_case_ids(self) -> list[int]:
        return sorted(self._sequences.copy())

    def clear(self) -> None:
        # Waits for in-flight writes per key; records arriving later are kept
        for test_case_id in list(self._sequences):
            with self._lock_for(test_case_id):
                self._sequences.pop(test_case_id, None)
