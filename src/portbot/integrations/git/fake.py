"""In-memory fake implementation of Git for testing."""

from pathlib import Path

from portbot.integrations.git.abc import Git
from portbot.integrations.git.types import CherryPickOutcome, GitIdentity


class FakeGit(Git):
    """In-memory fake implementation for testing.

    All state is provided via constructor using keyword arguments.
    This class has NO public setup methods.
    """

    def __init__(
        self,
        *,
        existing_clones: set[Path] | None = None,
        conflicting_shas: set[str] | None = None,
        failures: dict[str, str] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            existing_clones: Directories that already hold a working copy
            conflicting_shas: Commits whose cherry-pick stops with conflicts
            failures: Mapping of operation name (e.g. "push", "cherry_pick") ->
                error message raised as RuntimeError when that operation runs
        """
        self._clones = set(existing_clones or set())
        self._conflicting_shas = conflicting_shas or set()
        self._failures = failures or {}
        self._operations: list[tuple[str, ...]] = []
        self._cloned: list[tuple[str, Path]] = []
        self._checked_out: list[tuple[Path, str]] = []
        self._commits: list[tuple[Path, str, GitIdentity]] = []
        self._amended: list[tuple[Path, GitIdentity]] = []
        self._pushed: list[tuple[Path, str]] = []

    @property
    def operations(self) -> list[tuple[str, ...]]:
        """Every operation in call order, as (name, *args) tuples."""
        return self._operations.copy()

    @property
    def cloned(self) -> list[tuple[str, Path]]:
        """Clones performed, as (url, repo_dir) tuples."""
        return self._cloned.copy()

    @property
    def checked_out(self) -> list[tuple[Path, str]]:
        """Checkouts performed, as (repo_dir, branch) tuples."""
        return self._checked_out.copy()

    @property
    def commits(self) -> list[tuple[Path, str, GitIdentity]]:
        """New commits, as (repo_dir, message, author) tuples."""
        return self._commits.copy()

    @property
    def amended(self) -> list[tuple[Path, GitIdentity]]:
        """Author amendments, as (repo_dir, author) tuples."""
        return self._amended.copy()

    @property
    def pushed(self) -> list[tuple[Path, str]]:
        """Pushes performed, as (repo_dir, branch) tuples."""
        return self._pushed.copy()

    def _record(self, name: str, *args: str) -> None:
        self._operations.append((name, *args))
        if name in self._failures:
            raise RuntimeError(self._failures[name])

    def has_clone(self, repo_dir: Path) -> bool:
        """Report whether repo_dir was pre-configured or cloned."""
        return repo_dir in self._clones

    def clone(self, url: str, repo_dir: Path) -> None:
        """Record the clone."""
        self._record("clone", url, str(repo_dir))
        self._clones.add(repo_dir)
        self._cloned.append((url, repo_dir))

    def fetch(self, repo_dir: Path, remote: str = "origin") -> None:
        """Record the fetch."""
        self._record("fetch", str(repo_dir), remote)

    def checkout_remote_branch(self, repo_dir: Path, branch: str, remote: str = "origin") -> None:
        """Record the checkout."""
        self._record("checkout_remote_branch", str(repo_dir), branch, remote)
        self._checked_out.append((repo_dir, branch))

    def cherry_pick(self, repo_dir: Path, commit_sha: str) -> CherryPickOutcome:
        """Return CONFLICTED for configured shas, CLEAN otherwise."""
        self._record("cherry_pick", str(repo_dir), commit_sha)
        if commit_sha in self._conflicting_shas:
            return CherryPickOutcome.CONFLICTED
        return CherryPickOutcome.CLEAN

    def stage_all(self, repo_dir: Path) -> None:
        """Record the staging."""
        self._record("stage_all", str(repo_dir))

    def commit(self, repo_dir: Path, message: str, author: GitIdentity) -> None:
        """Record the commit."""
        self._record("commit", str(repo_dir), message)
        self._commits.append((repo_dir, message, author))

    def amend_author(self, repo_dir: Path, author: GitIdentity) -> None:
        """Record the amendment."""
        self._record("amend_author", str(repo_dir))
        self._amended.append((repo_dir, author))

    def push(self, repo_dir: Path, branch: str, remote: str = "origin") -> None:
        """Record the push."""
        self._record("push", str(repo_dir), branch, remote)
        self._pushed.append((repo_dir, branch))
