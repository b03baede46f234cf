"""Git working-copy integration."""

from portbot.integrations.git.abc import Git
from portbot.integrations.git.fake import FakeGit
from portbot.integrations.git.types import CherryPickOutcome, GitIdentity

__all__ = ["CherryPickOutcome", "FakeGit", "Git", "GitIdentity"]
