"""In-memory fake forge for testing.

FakeForge accepts pre-configured state in its constructor. Owner and repo
arguments are accepted but ignored: a fake instance models one repository.
"""

from portbot.integrations.forge.abc import Forge
from portbot.integrations.forge.types import NewPullRequest, RequestedReviewers
from portbot.models.port import PullRequestRef


class FakeForge(Forge):
    """In-memory fake implementation of forge operations.

    This class has NO public setup methods. All state is provided via
    constructor using keyword arguments with sensible defaults.
    """

    def __init__(
        self,
        *,
        branches: dict[str, str] | None = None,
        pull_requests: dict[int, PullRequestRef] | None = None,
        reviewers: dict[int, RequestedReviewers] | None = None,
        next_pr_number: int = 1000,
        failures: dict[str, str] | None = None,
    ) -> None:
        """Create FakeForge with pre-configured state.

        Args:
            branches: Mapping of branch name -> commit SHA
            pull_requests: Mapping of PR number -> PullRequestRef
            reviewers: Mapping of PR number -> requested reviewers
            next_pr_number: Number given to the next created pull request
            failures: Mapping of operation name (e.g. "create_ref", "add_labels") ->
                error message raised as RuntimeError when that operation runs
        """
        self._branches = dict(branches or {})
        self._pull_requests = dict(pull_requests or {})
        self._reviewers = reviewers or {}
        self._next_pr_number = next_pr_number
        self._failures = failures or {}
        self._created_refs: list[tuple[str, str]] = []
        self._created_pull_requests: list[tuple[int, NewPullRequest]] = []
        self._added_labels: list[tuple[int, list[str]]] = []
        self._comments: list[tuple[int, str]] = []
        self._requested_reviewers: list[tuple[int, list[str], list[str]]] = []

    @property
    def branches(self) -> dict[str, str]:
        """Current branch -> SHA mapping, including created refs."""
        return self._branches.copy()

    @property
    def created_refs(self) -> list[tuple[str, str]]:
        """Refs created, as (branch, sha) tuples."""
        return self._created_refs.copy()

    @property
    def created_pull_requests(self) -> list[tuple[int, NewPullRequest]]:
        """Pull requests opened, as (number, NewPullRequest) tuples."""
        return self._created_pull_requests.copy()

    @property
    def added_labels(self) -> list[tuple[int, list[str]]]:
        """Label additions, as (number, labels) tuples."""
        return self._added_labels.copy()

    @property
    def comments(self) -> list[tuple[int, str]]:
        """Comments posted, as (number, body) tuples."""
        return self._comments.copy()

    @property
    def requested_reviewers(self) -> list[tuple[int, list[str], list[str]]]:
        """Review requests, as (number, users, teams) tuples."""
        return self._requested_reviewers.copy()

    def _check_failure(self, operation: str) -> None:
        if operation in self._failures:
            raise RuntimeError(self._failures[operation])

    def get_branch_sha(self, owner: str, repo: str, branch: str) -> str | None:
        """Return the configured SHA, or None for unknown branches."""
        self._check_failure("get_branch_sha")
        return self._branches.get(branch)

    def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Create the branch, failing like GitHub if it already exists."""
        self._check_failure("create_ref")
        if branch in self._branches:
            raise RuntimeError(f"Reference already exists: refs/heads/{branch}")
        self._branches[branch] = sha
        self._created_refs.append((branch, sha))

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestRef:
        """Return the configured pull request."""
        self._check_failure("get_pull_request")
        if number not in self._pull_requests:
            raise RuntimeError(f"Pull request #{number} not found")
        return self._pull_requests[number]

    def create_pull_request(self, owner: str, repo: str, pr: NewPullRequest) -> int:
        """Record the pull request and hand out the next number."""
        self._check_failure("create_pull_request")
        number = self._next_pr_number
        self._next_pr_number += 1
        self._created_pull_requests.append((number, pr))
        return number

    def list_requested_reviewers(self, owner: str, repo: str, number: int) -> RequestedReviewers:
        """Return configured reviewers (none if not configured)."""
        self._check_failure("list_requested_reviewers")
        return self._reviewers.get(number, RequestedReviewers())

    def request_reviewers(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        users: list[str],
        teams: list[str],
    ) -> None:
        """Record the review request."""
        self._check_failure("request_reviewers")
        self._requested_reviewers.append((number, list(users), list(teams)))

    def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> None:
        """Record the labels."""
        self._check_failure("add_labels")
        self._added_labels.append((number, list(labels)))

    def create_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Record the comment."""
        self._check_failure("create_comment")
        self._comments.append((number, body))
