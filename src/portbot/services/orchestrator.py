"""Run every port a merged pull request asks for."""

import logging

from portbot.context import BotContext
from portbot.models.port import (
    PortError,
    PortFailure,
    PortRequest,
    PortResult,
    PortState,
    PullRequestRef,
)
from portbot.services.executor import PortExecutor
from portbot.services.planner import build_port_requests, plan_ports

logger = logging.getLogger(__name__)


class PortOrchestrator:
    """Plans the ports of a merged PR and executes them one branch at a time.

    Each branch is an independent unit of work: a failure is logged and the
    remaining branches still run. Nothing is rolled back across branches.
    """

    def __init__(self, ctx: BotContext, executor: PortExecutor | None = None) -> None:
        """Create PortOrchestrator with bot context.

        Args:
            ctx: Bot context with injected dependencies
            executor: Executor to run each port (defaults to one built from ctx)
        """
        self._executor = executor if executor is not None else PortExecutor(ctx)

    def run_all(self, pr: PullRequestRef) -> list[PortResult]:
        """Port pr to every branch its labels name.

        Returns:
            One PortResult per target branch, backports first
        """
        plan = plan_ports(pr)
        if plan.is_empty:
            logger.debug("No port labels on %s#%d", pr.full_name, pr.number)
            return []

        requests = build_port_requests(pr, plan)
        logger.info(
            "Porting %s#%d: backport to %s, forward-port to %s",
            pr.full_name,
            pr.number,
            list(plan.backport_branches),
            list(plan.forwardport_branches),
        )

        results = [self._run_one(request) for request in requests]

        failed = [result for result in results if not result.succeeded]
        logger.info(
            "Finished porting %s#%d: %d succeeded, %d failed",
            pr.full_name,
            pr.number,
            len(results) - len(failed),
            len(failed),
        )
        return results

    def _run_one(self, request: PortRequest) -> PortResult:
        try:
            result = self._executor.execute(request)
        except Exception as e:
            logger.exception("Unexpected error during %s", request.describe())
            return PortResult(
                request=request,
                new_pr_number=None,
                had_conflict=False,
                reached=PortState.START,
                error=PortError(PortFailure.INTERNAL_ERROR, request, f"{type(e).__name__}: {e}"),
            )

        if result.error is not None:
            logger.error("%s", result.error)
        elif result.had_conflict:
            logger.warning(
                "Opened #%d with conflicts for %s", result.new_pr_number, request.describe()
            )
        return result
