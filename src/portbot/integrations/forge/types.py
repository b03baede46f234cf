"""Type definitions for forge (GitHub) operations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NewPullRequest:
    """Fields of a pull request to open."""

    head: str
    base: str
    title: str
    body: str
    draft: bool = False
    maintainer_can_modify: bool = True


@dataclass(frozen=True)
class RequestedReviewers:
    """Reviewers currently requested on a pull request."""

    users: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()  # team slugs
