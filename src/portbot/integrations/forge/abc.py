"""Abstract base class for forge (code hosting API) operations."""

from abc import ABC, abstractmethod

from portbot.integrations.forge.types import NewPullRequest, RequestedReviewers
from portbot.models.port import PullRequestRef


class Forge(ABC):
    """Abstract interface for the forge operations the bot consumes.

    All implementations (real and fake) must implement this interface.
    Failures are raised as RuntimeError.
    """

    @abstractmethod
    def get_branch_sha(self, owner: str, repo: str, branch: str) -> str | None:
        """Get the commit a branch points at.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Branch name, without the refs/heads/ prefix

        Returns:
            Commit SHA, or None if the branch does not exist

        Raises:
            RuntimeError: If the lookup fails for any other reason
        """
        ...

    @abstractmethod
    def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Create refs/heads/<branch> pointing at sha.

        Raises:
            RuntimeError: If the ref exists already or creation fails
        """
        ...

    @abstractmethod
    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestRef:
        """Fetch a pull request's current title, author, labels and merge commit.

        Raises:
            RuntimeError: If the pull request cannot be fetched
        """
        ...

    @abstractmethod
    def create_pull_request(self, owner: str, repo: str, pr: NewPullRequest) -> int:
        """Open a pull request.

        Returns:
            Number of the new pull request
        """
        ...

    @abstractmethod
    def list_requested_reviewers(self, owner: str, repo: str, number: int) -> RequestedReviewers:
        """List the users and teams currently requested to review a pull request."""
        ...

    @abstractmethod
    def request_reviewers(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        users: list[str],
        teams: list[str],
    ) -> None:
        """Request reviews from users and team slugs on a pull request."""
        ...

    @abstractmethod
    def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> None:
        """Add labels to an issue or pull request."""
        ...

    @abstractmethod
    def create_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Post a comment on an issue or pull request."""
        ...
