"""Git diff reading for identifying changed files."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from git import Repo
from git.exc import BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

logger = logging.getLogger(__name__)


@dataclass
class ChangedFile:
    """Represents a changed file in a git diff."""

    path: str
    change_type: str  # 'A' (added), 'M' (modified), 'D' (deleted), 'R' (renamed)

    def to_dict(self) -> dict:
        return {"path": self.path, "change_type": self.change_type}


class GitDiffAnalyzer:
    """Collects the files changed relative to a git ref."""

    def __init__(self, repo_path: Path | str):
        """Initialize with repository path."""
        self.repo_path = Path(repo_path)
        self._repo: Optional[Repo] = None

    @property
    def repo(self) -> Repo:
        """Get the git repository, initializing if needed."""
        if self._repo is None:
            try:
                self._repo = Repo(self.repo_path, search_parent_directories=True)
            except (InvalidGitRepositoryError, NoSuchPathError):
                raise ValueError(f"Not a git repository: {self.repo_path}")
        return self._repo

    def changed_files(
        self,
        compare_ref: str = "HEAD~1",
        include_uncommitted: bool = True,
    ) -> list[ChangedFile]:
        """List files changed between compare_ref and HEAD.

        Args:
            compare_ref: Git ref to compare against (e.g., 'HEAD~1', 'main', commit hash)
            include_uncommitted: Include staged, unstaged and untracked files

        Returns:
            Changed files, committed changes first, without duplicate paths
        """
        files: list[ChangedFile] = []
        try:
            files.extend(self._get_committed_changes(compare_ref))
        except (BadName, GitCommandError, ValueError) as e:
            # Reference might not exist (e.g., not enough commits)
            logger.warning("Could not diff against %s: %s", compare_ref, e)

        if include_uncommitted:
            seen = {f.path for f in files}
            for f in self._get_uncommitted_changes():
                if f.path not in seen:
                    seen.add(f.path)
                    files.append(f)

        return files

    def changed_paths(self, compare_ref: str = "HEAD~1", include_uncommitted: bool = True) -> list[str]:
        return [f.path for f in self.changed_files(compare_ref, include_uncommitted)]

    def _get_committed_changes(self, compare_ref: str) -> list[ChangedFile]:
        """Get changes between compare_ref and HEAD."""
        diff = self.repo.commit(compare_ref).diff(self.repo.head.commit)
        return [
            ChangedFile(path=d.b_path or d.a_path, change_type=d.change_type)
            for d in diff
        ]

    def _get_uncommitted_changes(self) -> list[ChangedFile]:
        """Get uncommitted changes (staged, unstaged and untracked)."""
        files = []

        if self.repo.head.is_valid():
            for d in self.repo.index.diff("HEAD"):
                files.append(ChangedFile(path=d.b_path or d.a_path, change_type=d.change_type))

        for d in self.repo.index.diff(None):
            files.append(ChangedFile(path=d.b_path or d.a_path, change_type=d.change_type))

        for path in self.repo.untracked_files:
            files.append(ChangedFile(path=path, change_type="A"))

        return files
