"""HTTP route handlers for GitHub webhook deliveries."""

import logging

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request, status
from pydantic import BaseModel, ValidationError

from portbot.context import BotContext
from portbot.models.events import PullRequestEvent
from portbot.services.pull_request_events import PullRequestEventHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


class Owner(BaseModel):
    """Repository owner in a webhook payload."""

    login: str


class Repository(BaseModel):
    """Repository in a webhook payload."""

    name: str
    owner: Owner


class PullRequestPayloadPR(BaseModel):
    """The pull_request object of a webhook payload."""

    number: int
    merged: bool = False


class PullRequestPayload(BaseModel):
    """Body of a pull_request webhook delivery (fields the bot reads)."""

    action: str
    number: int
    pull_request: PullRequestPayloadPR
    repository: Repository

    def to_event(self) -> PullRequestEvent:
        """Convert to the service-layer event."""
        return PullRequestEvent(
            action=self.action,
            owner=self.repository.owner.login,
            repo=self.repository.name,
            number=self.number,
            merged=self.pull_request.merged,
        )


class WebhookResponse(BaseModel):
    """Response body for a webhook delivery."""

    event: str
    handled: bool
    action: str | None = None


def get_event_handler(request: Request) -> PullRequestEventHandler:
    """Build the event handler from the app's context."""
    ctx: BotContext = request.app.state.context
    return PullRequestEventHandler(ctx)


@router.post(
    "/github",
    response_model=WebhookResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_github_event: str = Header(...),
) -> WebhookResponse:
    """Accept a delivery and handle pull_request events in the background."""
    if x_github_event != "pull_request":
        logger.debug("Ignoring %s event", x_github_event)
        return WebhookResponse(event=x_github_event, handled=False)

    try:
        payload = PullRequestPayload.model_validate_json(await request.body())
    except ValidationError as err:
        raise HTTPException(
            status_code=422,
            detail="Invalid pull_request payload",
        ) from err

    event = payload.to_event()
    handler = get_event_handler(request)
    background_tasks.add_task(handler.handle, event)
    logger.info("Queued pull_request %r for %s#%d", event.action, event.full_name, event.number)
    return WebhookResponse(event=x_github_event, handled=True, action=event.action)
