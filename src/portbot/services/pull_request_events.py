"""React to pull_request webhook events."""

import logging

from portbot.context import BotContext
from portbot.models.events import EventOutcome, PullRequestEvent
from portbot.models.port import PortResult
from portbot.services.orchestrator import PortOrchestrator

logger = logging.getLogger(__name__)


class PullRequestEventHandler:
    """Dispatches pull_request actions to the matching chores.

    - opened: post the review checklist and apply the default labels
    - closed (merged only): create the requested backport/forward-port PRs
    - anything else: ignored

    Forge failures are logged, never raised.
    """

    def __init__(self, ctx: BotContext, orchestrator: PortOrchestrator | None = None) -> None:
        """Create PullRequestEventHandler with bot context.

        Args:
            ctx: Bot context with injected dependencies
            orchestrator: Port orchestrator (defaults to one built from ctx)
        """
        self._ctx = ctx
        self._orchestrator = orchestrator if orchestrator is not None else PortOrchestrator(ctx)

    def handle(self, event: PullRequestEvent) -> EventOutcome:
        """Handle one event and report what was done."""
        if event.action == "opened":
            self._add_review_checklist(event)
            self._add_default_labels(event)
            return EventOutcome(action=event.action, handled=True)

        if event.action == "closed":
            if not event.merged:
                logger.debug("%s#%d closed without merge", event.full_name, event.number)
                return EventOutcome(action=event.action, handled=False)
            results = self._port_merged(event)
            return EventOutcome(action=event.action, handled=True, port_results=tuple(results))

        logger.debug("Ignoring %r on %s#%d", event.action, event.full_name, event.number)
        return EventOutcome(action=event.action, handled=False)

    def _add_review_checklist(self, event: PullRequestEvent) -> None:
        logger.debug("Adding review checklist to %s#%d", event.full_name, event.number)
        try:
            self._ctx.forge.create_comment(
                event.owner, event.repo, event.number, self._ctx.config.review_checklist
            )
        except RuntimeError:
            logger.exception(
                "Failed to comment the review checklist on %s#%d", event.full_name, event.number
            )

    def _add_default_labels(self, event: PullRequestEvent) -> None:
        labels = list(self._ctx.config.default_labels)
        if not labels:
            return
        logger.debug("Adding initial labels to %s#%d", event.full_name, event.number)
        try:
            self._ctx.forge.add_labels(event.owner, event.repo, event.number, labels)
        except RuntimeError:
            logger.exception(
                "Failed to add initial labels to %s#%d", event.full_name, event.number
            )

    def _port_merged(self, event: PullRequestEvent) -> list[PortResult]:
        # Labels and merge commit come from the forge, not the payload.
        try:
            pr = self._ctx.forge.get_pull_request(event.owner, event.repo, event.number)
        except RuntimeError:
            logger.exception("Failed to get %s#%d", event.full_name, event.number)
            return []
        return self._orchestrator.run_all(pr)
