"""Tests for git diff capture and the analysis prompt."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from ai_launcher.core.git_diff import (
    GitCommandError,
    GitDiffError,
    GitDiffOptions,
    InvalidGitRefError,
    NoChangesError,
    NotGitRepositoryError,
    ensure_git_repository,
    get_git_diff,
    is_git_repository,
)
from ai_launcher.core.prompts import build_diff_analysis_prompt
from tests.utils import run


class TestRepositoryDetection:
    def test_inside_repository(self, git_repo):
        assert is_git_repository(git_repo) is True
        ensure_git_repository(git_repo)

    def test_outside_repository(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        plain = tmp_path / "plain"
        plain.mkdir()
        assert is_git_repository(plain) is False
        with pytest.raises(NotGitRepositoryError, match="Not a git repository"):
            ensure_git_repository(plain)

    def test_missing_git_binary(self, tmp_path):
        with patch("ai_launcher.core.git_diff.subprocess.run", side_effect=FileNotFoundError):
            assert is_git_repository(tmp_path) is False


class TestGetGitDiff:
    def test_staged_changes(self, git_repo):
        (git_repo / "app.py").write_text("print('changed')\n", encoding="utf-8")
        run(["git", "add", "app.py"], cwd=git_repo)

        diff = get_git_diff(GitDiffOptions(type="staged"), cwd=git_repo)
        assert "+print('changed')" in diff

    def test_nothing_staged(self, git_repo):
        (git_repo / "app.py").write_text("print('unstaged')\n", encoding="utf-8")
        with pytest.raises(NoChangesError):
            get_git_diff(GitDiffOptions(type="staged"), cwd=git_repo)

    def test_commit_ref(self, git_repo):
        (git_repo / "app.py").write_text("print('second')\n", encoding="utf-8")
        run(["git", "commit", "-am", "Second commit"], cwd=git_repo)

        diff = get_git_diff(GitDiffOptions(type="commit", ref="HEAD~1"), cwd=git_repo)
        assert "-print('hello')" in diff
        assert "+print('second')" in diff

    def test_unknown_ref(self, git_repo):
        with pytest.raises(InvalidGitRefError) as excinfo:
            get_git_diff(GitDiffOptions(type="commit", ref="no-such-branch"), cwd=git_repo)
        assert excinfo.value.ref == "no-such-branch"
        assert str(excinfo.value) == "Invalid git reference: no-such-branch"

    def test_commit_without_ref(self, git_repo):
        with pytest.raises(GitDiffError, match="Invalid git diff options"):
            get_git_diff(GitDiffOptions(type="commit"), cwd=git_repo)

    def test_other_failures(self, tmp_path):
        with patch("ai_launcher.core.git_diff.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(GitCommandError, match="git executable not found"):
                get_git_diff(GitDiffOptions(type="staged"), cwd=tmp_path)


class TestBuildDiffAnalysisPrompt:
    def test_staged_wording(self):
        prompt = build_diff_analysis_prompt("+line")
        assert prompt.startswith("Please analyze the following git diff (staged changes):")
        assert "+line" in prompt
        assert "4. Any suggestions for improvement" in prompt

    def test_ref_wording(self):
        prompt = build_diff_analysis_prompt("+line", ref="HEAD~1")
        assert "(HEAD~1)" in prompt

    def test_custom_instructions_are_appended(self):
        prompt = build_diff_analysis_prompt("+line", custom_prompt="Focus on security")
        assert prompt.endswith("\n\nAdditional instructions:\nFocus on security")
