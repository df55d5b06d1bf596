"""Shared fixtures for configtrace integration tests.

Builds throwaway git repositories with real commits so the history walker,
the git collaborator and the CLI run against the actual ``git`` executable.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "Dana Ops",
    "GIT_AUTHOR_EMAIL": "dana@ops.test",
    "GIT_COMMITTER_NAME": "Dana Ops",
    "GIT_COMMITTER_EMAIL": "dana@ops.test",
    "GIT_CONFIG_GLOBAL": os.devnull,
    "GIT_CONFIG_NOSYSTEM": "1",
}


class GitRepoBuilder:
    """Writes files and commits them, one call per revision."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._env = {**os.environ, **_GIT_ENV}
        self.git("init", "--quiet", "--initial-branch=main")
        self.git("config", "commit.gpgsign", "false")

    def git(self, *args: str) -> str:
        proc = subprocess.run(
            ["git", *args],
            cwd=self.root,
            env=self._env,
            capture_output=True,
            text=True,
            check=True,
        )
        return proc.stdout.strip()

    def commit(
        self,
        message: str,
        files: dict[str, str] | None = None,
        delete: tuple[str, ...] = (),
        date: str | None = None,
    ) -> str:
        """Apply *files* (path -> content) and *delete*, commit, return the sha."""
        for rel, content in (files or {}).items():
            path = self.root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        for rel in delete:
            (self.root / rel).unlink()
        self.git("add", "--all")
        if date is not None:
            self._env["GIT_AUTHOR_DATE"] = date
            self._env["GIT_COMMITTER_DATE"] = date
        self.git("commit", "--quiet", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepoBuilder:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    root = tmp_path / "repo"
    root.mkdir()
    return GitRepoBuilder(root)


@pytest.fixture
def config_history(git_repo: GitRepoBuilder) -> GitRepoBuilder:
    """Four revisions: initial config, debug enabled, docs only, new db file."""
    git_repo.commit(
        "initial config",
        {"deploy/app.yaml": "debug: false\nport: 80\n", "README.md": "docs\n"},
        date="2026-03-01T10:00:00+00:00",
    )
    git_repo.commit(
        "enable debug\n\nTemporary, for the incident on the 2nd.",
        {"deploy/app.yaml": "debug: true\nport: 80\n"},
        date="2026-03-02T10:00:00+00:00",
    )
    git_repo.commit("docs only", {"README.md": "more docs\n"}, date="2026-03-03T10:00:00+00:00")
    git_repo.commit(
        "add database config",
        {"deploy/db.json": '{"host": "db.internal", "port": 5432}'},
        date="2026-03-04T10:00:00+00:00",
    )
    return git_repo
