"""Abstract interface for the git operations a port performs."""

from abc import ABC, abstractmethod
from pathlib import Path

from portbot.integrations.git.types import CherryPickOutcome, GitIdentity


class Git(ABC):
    """Abstract interface for git working-copy operations.

    All implementations (real and fake) must implement this interface.
    Failures are raised as RuntimeError with the command output attached.
    """

    @abstractmethod
    def has_clone(self, repo_dir: Path) -> bool:
        """Return True if repo_dir already holds a git working copy."""
        ...

    @abstractmethod
    def clone(self, url: str, repo_dir: Path) -> None:
        """Clone url into repo_dir.

        Args:
            url: Remote URL to clone from
            repo_dir: Destination directory (parents are created)

        Raises:
            RuntimeError: If git clone fails
        """
        ...

    @abstractmethod
    def fetch(self, repo_dir: Path, remote: str = "origin") -> None:
        """Fetch all refs from remote."""
        ...

    @abstractmethod
    def checkout_remote_branch(self, repo_dir: Path, branch: str, remote: str = "origin") -> None:
        """Check out branch locally, reset to the remote's copy of it.

        Any local branch of the same name, and any leftover changes in the
        working tree, are discarded.
        """
        ...

    @abstractmethod
    def cherry_pick(self, repo_dir: Path, commit_sha: str) -> CherryPickOutcome:
        """Cherry-pick commit_sha against its first parent.

        Returns:
            CLEAN if git committed the pick, CONFLICTED if the pick stopped
            with unmerged paths left in the working tree

        Raises:
            RuntimeError: If the pick failed for any other reason
        """
        ...

    @abstractmethod
    def stage_all(self, repo_dir: Path) -> None:
        """Stage every working-tree change as-is, conflict markers included."""
        ...

    @abstractmethod
    def commit(self, repo_dir: Path, message: str, author: GitIdentity) -> None:
        """Commit the staged changes with message, authored by author."""
        ...

    @abstractmethod
    def amend_author(self, repo_dir: Path, author: GitIdentity) -> None:
        """Rewrite the author of HEAD, keeping its message, without an editor."""
        ...

    @abstractmethod
    def push(self, repo_dir: Path, branch: str, remote: str = "origin") -> None:
        """Push branch to remote."""
        ...
