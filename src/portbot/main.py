"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from portbot.config import BotConfig
from portbot.context import BotContext
from portbot.logs import configure_logging
from portbot.routes.webhooks import router as webhooks_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown.

    Creates production context with real implementations on startup.
    """
    config = BotConfig.from_env()
    app.state.context = BotContext.create(config)
    yield


def create_app(context: BotContext | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        context: Prebuilt BotContext (tests, `portbot serve`). If None, uses lifespan
                 to create production context.

    Returns:
        Configured FastAPI application
    """
    if context is not None:
        # Prebuilt context, no lifespan
        app = FastAPI(
            title="Port Bot",
            description="GitHub App webhook handler for pull-request chores and ports",
            version="0.1.0",
        )
        app.state.context = context
    else:
        app = FastAPI(
            title="Port Bot",
            description="GitHub App webhook handler for pull-request chores and ports",
            version="0.1.0",
            lifespan=lifespan,
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    app.include_router(webhooks_router)

    return app


def run(context: BotContext | None = None) -> None:
    """Run the server.

    Args:
        context: Context to serve with. If None, one is built from the
                 environment.
    """
    ctx = context if context is not None else BotContext.create(BotConfig.from_env())
    configure_logging(ctx.config.debug)
    uvicorn.run(
        create_app(context=ctx),
        host=ctx.config.host,
        port=ctx.config.port,
    )


if __name__ == "__main__":
    run()
