"""Selecting tests impacted by a set of changed files."""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Sequence

from testintel.storage.models import TestCase

# Substring keyword -> component tag, matched case-insensitively against paths
COMPONENT_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("auth", "Authentication"),
    ("api", "API Layer"),
    ("component", "UI Components"),
    ("service", "Business Logic"),
    ("db", "Data Layer"),
    ("model", "Data Layer"),
    ("route", "Routing"),
)

DIRECT_MATCH_CONFIDENCE = 90
COMPONENT_MATCH_CONFIDENCE = 60
INTEGRATION_API_CONFIDENCE = 40
E2E_UI_CONFIDENCE = 30
MIN_CONFIDENCE = 30

_SEPARATORS = re.compile(r"[\s_]+")


@dataclass
class ImpactedTest:
    """A test selected because of a code change."""

    test_case_id: int
    test_name: str
    confidence: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "test_case_id": self.test_case_id,
            "test_name": self.test_name,
            "confidence": self.confidence,
            "reason": self.reason,
        }


@dataclass
class CodeChangeImpact:
    """Tests and components affected by a set of changed files."""

    files_changed: list[str] = field(default_factory=list)
    affected_components: list[str] = field(default_factory=list)
    impacted_tests: list[ImpactedTest] = field(default_factory=list)
    risk_level: str = "low"  # 'high', 'medium', 'low'

    def to_dict(self) -> dict:
        return {
            "files_changed": self.files_changed,
            "affected_components": self.affected_components,
            "impacted_tests": [t.to_dict() for t in self.impacted_tests],
            "risk_level": self.risk_level,
        }


def normalize_name(name: str) -> str:
    return _SEPARATORS.sub("-", name.strip().lower())


def normalize_basename(path: str) -> str:
    """Reduce a path to its lowercased file stem ('a/auth.service.ts' -> 'auth')."""
    basename = PurePosixPath(path.replace("\\", "/")).name
    return normalize_name(basename.split(".", 1)[0])


class ChangeImpactAnalyzer:
    """Maps changed file paths to the tests they are likely to affect."""

    def analyze(self, test_cases: Sequence[TestCase], changed_files: Sequence[str]) -> CodeChangeImpact:
        """Select tests impacted by the changed files.

        Args:
            test_cases: All test cases of the project
            changed_files: Changed file paths, e.g. from a git diff

        Returns:
            CodeChangeImpact with tests sorted by confidence (highest first)
        """
        changed_files = list(changed_files)
        if not changed_files:
            return CodeChangeImpact()

        affected_components = self.identify_affected_components(changed_files)

        impacted = []
        for test_case in test_cases:
            confidence, reason = self.calculate_confidence(test_case, changed_files, affected_components)
            if confidence > MIN_CONFIDENCE:
                impacted.append(
                    ImpactedTest(
                        test_case_id=test_case.id,
                        test_name=test_case.name,
                        confidence=confidence,
                        reason=reason,
                    )
                )

        impacted.sort(key=lambda t: t.confidence, reverse=True)

        return CodeChangeImpact(
            files_changed=changed_files,
            affected_components=affected_components,
            impacted_tests=impacted,
            risk_level=self._overall_risk(impacted),
        )

    def identify_affected_components(self, changed_files: Sequence[str]) -> list[str]:
        components: list[str] = []
        for path in changed_files:
            lowered = path.lower()
            for keyword, component in COMPONENT_KEYWORDS:
                if keyword in lowered and component not in components:
                    components.append(component)
        return components

    def calculate_confidence(
        self,
        test_case: TestCase,
        changed_files: Sequence[str],
        affected_components: Sequence[str],
    ) -> tuple[int, str]:
        """Score how likely a test is affected by the changes.

        Returns:
            Tuple of (confidence capped at 100, comma separated reasons)
        """
        confidence = 0
        reasons: list[str] = []

        def add(points: int, reason: str) -> None:
            nonlocal confidence
            confidence += points
            if reason not in reasons:
                reasons.append(reason)

        test_name = normalize_name(test_case.name)
        for path in changed_files:
            basename = normalize_basename(path)
            if not basename or not test_name:
                continue
            if basename in test_name or test_name in basename:
                add(DIRECT_MATCH_CONFIDENCE, "Direct file match")

        name = test_case.name.lower()
        description = (test_case.description or "").lower()
        for component in affected_components:
            if component.lower() in name or component.lower() in description:
                add(COMPONENT_MATCH_CONFIDENCE, f"Tests {component}")

        if test_case.type == "integration" and "API Layer" in affected_components:
            add(INTEGRATION_API_CONFIDENCE, "Integration test for changed API")

        if test_case.type == "e2e" and any("component" in f.lower() for f in changed_files):
            add(E2E_UI_CONFIDENCE, "E2E test may be affected by UI changes")

        return min(100, confidence), ", ".join(reasons) or "General test coverage"

    def _overall_risk(self, impacted: Sequence[ImpactedTest]) -> str:
        if sum(1 for t in impacted if t.confidence > 70) > 5:
            return "high"
        elif sum(1 for t in impacted if t.confidence > 50) > 3:
            return "medium"
        return "low"
