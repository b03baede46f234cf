"""Real forge implementation using the gh CLI.

Every call goes through `gh api`, which authenticates from GH_TOKEN (or the
gh login) supplied by the deployment. Request bodies are sent as JSON on
stdin so label and reviewer lists keep their types.
"""

import json
from typing import Any

from portbot.integrations.forge.abc import Forge
from portbot.integrations.forge.types import NewPullRequest, RequestedReviewers
from portbot.models.port import PullRequestRef
from portbot.subprocess_utils import describe_subprocess_failure, run_subprocess_with_context


class RealForge(Forge):
    """Production implementation using `gh api`.

    Requires the gh CLI to be installed and authenticated.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        """Create RealForge.

        Args:
            timeout: Seconds any single API call may take before it is killed
        """
        self._timeout = timeout

    def _api(
        self,
        path: str,
        operation_context: str,
        *,
        method: str = "GET",
        payload: dict[str, Any] | None = None,
    ) -> Any:
        cmd = ["gh", "api", "--method", method, path]
        input_text = None
        if payload is not None:
            cmd.extend(["--input", "-"])
            input_text = json.dumps(payload)

        result = run_subprocess_with_context(
            cmd,
            operation_context=operation_context,
            timeout=self._timeout,
            input_text=input_text,
        )
        if not result.stdout.strip():
            return None
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to {operation_context}: invalid JSON from gh") from e

    def get_branch_sha(self, owner: str, repo: str, branch: str) -> str | None:
        """Resolve a branch through the single-ref endpoint (exact match only)."""
        cmd = ["gh", "api", f"repos/{owner}/{repo}/git/ref/heads/{branch}"]
        result = run_subprocess_with_context(
            cmd,
            operation_context=f"get ref heads/{branch}",
            check=False,
            timeout=self._timeout,
        )
        if result.returncode != 0:
            if "HTTP 404" in result.stderr:
                return None
            raise RuntimeError(
                describe_subprocess_failure(
                    cmd,
                    f"get ref heads/{branch}",
                    result.returncode,
                    result.stdout,
                    result.stderr,
                )
            )

        try:
            data = json.loads(result.stdout)
            return data["object"]["sha"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise RuntimeError(f"Failed to parse ref heads/{branch}: {result.stdout!r}") from e

    def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Create a branch ref."""
        self._api(
            f"repos/{owner}/{repo}/git/refs",
            f"create ref heads/{branch}",
            method="POST",
            payload={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestRef:
        """Fetch a pull request."""
        data = self._api(f"repos/{owner}/{repo}/pulls/{number}", f"get pull request #{number}")
        try:
            return PullRequestRef(
                owner=owner,
                repo=repo,
                number=data["number"],
                merge_commit_sha=data.get("merge_commit_sha") or "",
                title=data["title"],
                author=data["user"]["login"],
                labels=tuple(label["name"] for label in data.get("labels", [])),
            )
        except (KeyError, TypeError) as e:
            raise RuntimeError(f"Failed to parse pull request #{number}") from e

    def create_pull_request(self, owner: str, repo: str, pr: NewPullRequest) -> int:
        """Open a pull request and return its number."""
        data = self._api(
            f"repos/{owner}/{repo}/pulls",
            f"create pull request from {pr.head} into {pr.base}",
            method="POST",
            payload={
                "title": pr.title,
                "head": pr.head,
                "base": pr.base,
                "body": pr.body,
                "draft": pr.draft,
                "maintainer_can_modify": pr.maintainer_can_modify,
            },
        )
        try:
            return int(data["number"])
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Failed to parse created pull request from {pr.head}") from e

    def list_requested_reviewers(self, owner: str, repo: str, number: int) -> RequestedReviewers:
        """List requested reviewers (users by login, teams by slug)."""
        data = self._api(
            f"repos/{owner}/{repo}/pulls/{number}/requested_reviewers",
            f"list reviewers of pull request #{number}",
        )
        data = data or {}
        return RequestedReviewers(
            users=tuple(user["login"] for user in data.get("users", [])),
            teams=tuple(team["slug"] for team in data.get("teams", [])),
        )

    def request_reviewers(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        users: list[str],
        teams: list[str],
    ) -> None:
        """Request reviews on a pull request."""
        self._api(
            f"repos/{owner}/{repo}/pulls/{number}/requested_reviewers",
            f"request reviewers on pull request #{number}",
            method="POST",
            payload={"reviewers": users, "team_reviewers": teams},
        )

    def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> None:
        """Add labels to an issue or pull request."""
        self._api(
            f"repos/{owner}/{repo}/issues/{number}/labels",
            f"add labels to #{number}",
            method="POST",
            payload={"labels": labels},
        )

    def create_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Comment on an issue or pull request."""
        self._api(
            f"repos/{owner}/{repo}/issues/{number}/comments",
            f"comment on #{number}",
            method="POST",
            payload={"body": body},
        )
