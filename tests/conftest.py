"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from portbot.context import BotContext
from portbot.integrations.forge.fake import FakeForge
from portbot.integrations.git.fake import FakeGit
from portbot.main import create_app
from tests.test_utils.builders import WORKDIR


@pytest.fixture
def fake_git() -> FakeGit:
    """Create a fresh FakeGit."""
    return FakeGit()


@pytest.fixture
def fake_forge() -> FakeForge:
    """Create a FakeForge that knows the usual release branches."""
    return FakeForge(
        branches={
            "main": "sha-main",
            "release-17.0": "sha-17",
            "release-18.0": "sha-18",
        },
    )


@pytest.fixture
def bot_context(fake_git: FakeGit, fake_forge: FakeForge) -> BotContext:
    """Create a BotContext with fake implementations."""
    return BotContext.for_test(git=fake_git, forge=fake_forge, workdir=WORKDIR)


@pytest.fixture
async def async_client(bot_context: BotContext) -> AsyncGenerator[AsyncClient]:
    """Create an async test client."""
    app = create_app(context=bot_context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
