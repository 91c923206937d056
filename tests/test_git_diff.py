"""Tests for git diff reading."""

import shutil

import pytest
from git import Actor, Repo

from testintel.git.diff import GitDiffAnalyzer

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

AUTHOR = Actor("Test User", "test@example.com")


@pytest.fixture
def repo_dir(tmp_path):
    repo = Repo.init(tmp_path)
    (tmp_path / "README.md").write_text("readme\n")
    repo.index.add(["README.md"])
    repo.index.commit("initial", author=AUTHOR, committer=AUTHOR)

    (tmp_path / "auth.py").write_text("def login(): pass\n")
    repo.index.add(["auth.py"])
    repo.index.commit("add auth", author=AUTHOR, committer=AUTHOR)
    return tmp_path


class TestGitDiffAnalyzer:
    """Tests for GitDiffAnalyzer."""

    def test_committed_changes(self, repo_dir):
        """Test files changed since the previous commit are listed."""
        analyzer = GitDiffAnalyzer(repo_dir)
        assert analyzer.changed_paths("HEAD~1", include_uncommitted=False) == ["auth.py"]

    def test_uncommitted_changes(self, repo_dir):
        """Test untracked and modified files are included once."""
        (repo_dir / "cart.py").write_text("x = 1\n")
        (repo_dir / "auth.py").write_text("def login(): return True\n")

        paths = GitDiffAnalyzer(repo_dir).changed_paths("HEAD~1")

        assert paths.count("auth.py") == 1
        assert "cart.py" in paths

    def test_bad_ref_is_tolerated(self, repo_dir):
        """Test an unknown ref only drops the committed part."""
        (repo_dir / "cart.py").write_text("x = 1\n")
        assert GitDiffAnalyzer(repo_dir).changed_paths("no-such-ref") == ["cart.py"]

    def test_not_a_repository(self, tmp_path):
        """Test a plain directory is reported as ValueError."""
        with pytest.raises(ValueError):
            GitDiffAnalyzer(tmp_path / "missing").changed_paths()
