"""Git integration for finding changed files."""

from testintel.git.diff import ChangedFile, GitDiffAnalyzer

__all__ = ["ChangedFile", "GitDiffAnalyzer"]
