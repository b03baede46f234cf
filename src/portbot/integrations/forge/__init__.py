"""Forge (GitHub API) integration."""

from portbot.integrations.forge.abc import Forge
from portbot.integrations.forge.fake import FakeForge
from portbot.integrations.forge.types import NewPullRequest, RequestedReviewers

__all__ = ["FakeForge", "Forge", "NewPullRequest", "RequestedReviewers"]
