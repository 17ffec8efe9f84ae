"""Tests for the git client."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from core.errors import ExecutionError, VersionControlError
from core.git import Git


def completed(stdout=""):
    return MagicMock(stdout=stdout, returncode=0)


class TestGit:
    """Test git status and commit commands."""

    def test_clean_tree(self, tmp_path):
        """Should report nothing to commit on empty porcelain output."""
        with patch("core.git.subprocess.run", return_value=completed("")) as mock_run:
            assert Git(tmp_path).is_anything_to_commit() is False

        assert mock_run.call_args[0][0] == ["git", "status", "--porcelain"]
        assert mock_run.call_args[1]["cwd"] == tmp_path

    def test_dirty_tree(self, tmp_path):
        """Should report changes when porcelain lists files."""
        with patch("core.git.subprocess.run", return_value=completed(" M composer.json\n")):
            assert Git(tmp_path).is_anything_to_commit() is True

    def test_commit_stages_everything(self, tmp_path):
        """Should add all changes before committing."""
        with patch("core.git.subprocess.run", return_value=completed()) as mock_run:
            Git(tmp_path, binary="/usr/bin/git").commit("Add drupal/token (^1.9) project to Composer")

        commands = [call[0][0] for call in mock_run.call_args_list]
        assert commands == [
            ["/usr/bin/git", "add", "-A"],
            ["/usr/bin/git", "commit", "-m", "Add drupal/token (^1.9) project to Composer"],
        ]

    def test_commit_failure(self, tmp_path):
        """Should raise a VersionControlError with git's message."""
        error = subprocess.CalledProcessError(1, ["git", "commit"], output="nothing to commit, working tree clean")

        with patch("core.git.subprocess.run", side_effect=[completed(), error]):
            with pytest.raises(VersionControlError, match="nothing to commit"):
                Git(tmp_path).commit("Empty")

    def test_error_is_execution_error(self):
        """Git failures are execution failures for callers that recover them."""
        assert issubclass(VersionControlError, ExecutionError)
