"""Bot context for dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from portbot.config import BotConfig
from portbot.integrations.forge.abc import Forge
from portbot.integrations.forge.fake import FakeForge
from portbot.integrations.forge.real import RealForge
from portbot.integrations.git.abc import Git
from portbot.integrations.git.fake import FakeGit
from portbot.integrations.git.real import RealGit


@dataclass(frozen=True)
class BotContext:
    """Bot context containing all dependencies.

    This is a frozen dataclass that holds all injected dependencies
    for the bot. Use for_test() for testing scenarios.
    """

    git: Git
    forge: Forge
    config: BotConfig

    @classmethod
    def create(cls, config: BotConfig) -> "BotContext":
        """Create the production context with real integrations."""
        return cls(
            git=RealGit(committer=config.bot_identity, timeout=config.command_timeout),
            forge=RealForge(timeout=config.command_timeout),
            config=config,
        )

    @classmethod
    def for_test(
        cls,
        *,
        git: Git | None = None,
        forge: Forge | None = None,
        workdir: Path = Path("/tmp/portbot-test"),
    ) -> "BotContext":
        """Create a test context with fake implementations.

        Args:
            git: Git implementation (defaults to an empty FakeGit)
            forge: Forge implementation (defaults to an empty FakeForge)
            workdir: Root directory for working copies

        Returns:
            BotContext with fake implementations
        """
        return cls(
            git=git if git is not None else FakeGit(),
            forge=forge if forge is not None else FakeForge(),
            config=BotConfig.for_test(workdir=workdir),
        )
