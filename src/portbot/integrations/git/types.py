"""Type definitions for git operations."""

from dataclasses import dataclass
from enum import Enum


class CherryPickOutcome(str, Enum):
    """Result of a cherry-pick that did not fail outright."""

    CLEAN = "clean"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class GitIdentity:
    """Name and email used as commit author and committer."""

    name: str
    email: str

    @property
    def formatted(self) -> str:
        """Identity in the `Name <email>` form git expects for --author."""
        return f"{self.name} <{self.email}>"
