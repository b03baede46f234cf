"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import os
import subprocess
from pathlib import Path

from portbot.integrations.git.abc import Git
from portbot.integrations.git.types import CherryPickOutcome, GitIdentity
from portbot.subprocess_utils import describe_subprocess_failure, run_subprocess_with_context


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def __init__(
        self, *, committer: GitIdentity | None = None, timeout: float | None = None
    ) -> None:
        """Create RealGit.

        Args:
            committer: Identity recorded as committer on every commit git makes,
                cherry-picks included (None keeps the clone's own config)
            timeout: Seconds any single git command may run before it is killed
        """
        self._committer = committer
        self._timeout = timeout

    def _run(
        self,
        args: list[str],
        operation_context: str,
        cwd: Path | None,
        *,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        env = None
        if self._committer is not None:
            env = {
                **os.environ,
                "GIT_COMMITTER_NAME": self._committer.name,
                "GIT_COMMITTER_EMAIL": self._committer.email,
            }
        return run_subprocess_with_context(
            ["git", *args],
            operation_context=operation_context,
            cwd=cwd,
            check=check,
            timeout=self._timeout,
            env=env,
        )

    def has_clone(self, repo_dir: Path) -> bool:
        """Check for a .git entry inside repo_dir."""
        return (repo_dir / ".git").exists()

    def clone(self, url: str, repo_dir: Path) -> None:
        """Clone url into repo_dir."""
        try:
            repo_dir.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RuntimeError(f"Failed to create clone directory {repo_dir.parent}: {e}") from e
        self._run(["clone", url, str(repo_dir)], f"clone {url}", cwd=None)

    def fetch(self, repo_dir: Path, remote: str = "origin") -> None:
        """Fetch all refs from remote."""
        self._run(["fetch", remote], f"fetch {remote}", cwd=repo_dir)

    def checkout_remote_branch(self, repo_dir: Path, branch: str, remote: str = "origin") -> None:
        """Force checkout of branch, reset to remote/branch."""
        self._run(
            ["checkout", "-f", "-B", branch, f"{remote}/{branch}"],
            f"checkout branch '{branch}'",
            cwd=repo_dir,
        )

    def cherry_pick(self, repo_dir: Path, commit_sha: str) -> CherryPickOutcome:
        """Cherry-pick against the first parent and classify the result.

        A non-zero exit with unmerged paths in the index is a conflict; any
        other non-zero exit is a failure.
        """
        cmd = ["cherry-pick", "-m", "1", commit_sha]
        result = self._run(cmd, f"cherry-pick {commit_sha}", cwd=repo_dir, check=False)
        if result.returncode == 0:
            return CherryPickOutcome.CLEAN

        if self._unmerged_paths(repo_dir):
            return CherryPickOutcome.CONFLICTED

        raise RuntimeError(
            describe_subprocess_failure(
                ["git", *cmd],
                f"cherry-pick {commit_sha}",
                result.returncode,
                result.stdout,
                result.stderr,
            )
        )

    def _unmerged_paths(self, repo_dir: Path) -> list[str]:
        result = self._run(
            ["diff", "--name-only", "--diff-filter=U"],
            "list unmerged paths",
            cwd=repo_dir,
        )
        return [line for line in result.stdout.splitlines() if line.strip()]

    def stage_all(self, repo_dir: Path) -> None:
        """Stage every change in the working tree."""
        self._run(["add", "."], "stage changes", cwd=repo_dir)

    def commit(self, repo_dir: Path, message: str, author: GitIdentity) -> None:
        """Commit staged changes as author."""
        self._run(
            ["commit", f"--author={author.formatted}", "-m", message],
            "commit changes",
            cwd=repo_dir,
        )

    def amend_author(self, repo_dir: Path, author: GitIdentity) -> None:
        """Amend HEAD with a new author, keeping the message."""
        self._run(
            ["commit", "--amend", f"--author={author.formatted}", "--no-edit"],
            "amend commit author",
            cwd=repo_dir,
        )

    def push(self, repo_dir: Path, branch: str, remote: str = "origin") -> None:
        """Push branch to remote."""
        self._run(["push", remote, branch], f"push branch '{branch}'", cwd=repo_dir)
