"""
TestIntel - heuristic test intelligence from execution history.

This package provides tools to:
- Score how likely each test is to fail next
- Select the tests impacted by a set of changed files
- Predict next-run outcomes with explainable risk factors
- Order tests so failures surface as early as possible
"""

__version__ = "0.1.0"
__author__ = "TestIntel Team"
